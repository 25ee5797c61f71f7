"""
Temporal-difference training of the n-tuple value function.

Training runs once per episode, after the episode's trajectory has been
drained, so the tables have a single writer. Two rules are available:

- TD(0): backward sweep from the terminal afterstate. The terminal afterstate
  is pulled towards 0, then each earlier afterstate towards
  ``r_{t+1} + GAMMA * V(s_{t+1})`` using the freshly updated successor.
- TD(lambda), finite horizon: a forward sweep of a 6-step window. The
  window's earliest afterstate moves towards the lambda-weighted sum of its
  1- to 5-step returns; the window stops at the terminal afterstate.

Both rules are deterministic: same tables and trajectory, same result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .trajectory import EpisodeContext, Step
from .value_function import ValueFunction

logger = logging.getLogger(__name__)

TD0 = "td0"
TD_LAMBDA = "tdlambda"
RULES = (TD0, TD_LAMBDA)

GAMMA = 0.99  # Discount factor
LAMBDA = 0.5  # Weight decay across n-step horizons
HORIZON = 5  # Steps of lookahead in the TD(lambda) window


@dataclass
class TrainingConfig:
    """Training hyperparameters."""

    alpha: float = 0.0
    rule: str = TD0
    gamma: float = GAMMA
    lambda_: float = LAMBDA
    horizon: int = HORIZON


@dataclass
class TrainingMetrics:
    """What one episode of training did."""

    steps: int = 0
    updates: int = 0
    mean_abs_td_error: float = 0.0


# Padding in front of a TD(lambda) trajectory; never heads an updated window
_PLACEHOLDER = Step(features=(), reward=0.0)


class Trainer:
    """Applies the configured TD rule to completed episodes."""

    def __init__(self, value_function: ValueFunction, config: TrainingConfig):
        if config.rule not in RULES:
            raise ValueError(f"Unknown training rule: {config.rule} (choose from {', '.join(RULES)})")
        self.value_function = value_function
        self.config = config
        self.total_episodes = 0

    def train(self, context: EpisodeContext) -> TrainingMetrics:
        """Drain the episode's trajectory and update the tables from it."""
        steps = context.trajectory.drain()
        self.total_episodes += 1
        if not steps:
            return TrainingMetrics()

        if self.config.rule == TD0:
            errors = self.td0(steps)
        else:
            errors = self.td_lambda(steps)

        metrics = TrainingMetrics(
            steps=len(steps),
            updates=len(errors),
            mean_abs_td_error=sum(abs(e) for e in errors) / len(errors) if errors else 0.0,
        )
        logger.debug(
            f"Episode {self.total_episodes}: {self.config.rule} on {metrics.steps} steps, "
            f"mean |td error|={metrics.mean_abs_td_error:.4f}"
        )
        return metrics

    def td0(self, steps: list[Step]) -> list[float]:
        """One-step TD, backward from the terminal afterstate. Returns the TD errors applied."""
        vf = self.value_function
        alpha = self.config.alpha
        errors = []

        # Nothing follows the terminal afterstate
        terminal = steps[-1]
        delta = -vf.evaluate(terminal.features)
        vf.update(terminal.features, delta, alpha)
        errors.append(delta)

        for t in range(len(steps) - 2, -1, -1):
            successor = steps[t + 1]
            delta = (
                successor.reward
                + self.config.gamma * vf.evaluate(successor.features)
                - vf.evaluate(steps[t].features)
            )
            vf.update(steps[t].features, delta, alpha)
            errors.append(delta)
        return errors

    def td_lambda(self, steps: list[Step]) -> list[float]:
        """
        Finite-horizon TD(lambda), forward over a sliding window.

        The trajectory is padded with ``horizon`` placeholders in front, so
        every real step has that many predecessors. The window slides from the
        start of the padded trajectory until its last element is the terminal
        afterstate. Windows whose earliest element is a placeholder update
        nothing, so the last ``horizon`` afterstates are never updated and a
        trajectory of at most ``horizon`` steps trains nothing.
        """
        vf = self.value_function
        gamma = self.config.gamma
        lambda_ = self.config.lambda_
        horizon = self.config.horizon
        padded = [_PLACEHOLDER] * horizon + steps

        errors = []
        for end in range(horizon, len(padded)):
            window = padded[end - horizon:end + 1]
            head = window[0]
            if head is _PLACEHOLDER:
                continue

            target = 0.0
            rewards = 0.0
            for n in range(horizon):
                rewards += gamma**n * window[n + 1].reward
                n_step_return = rewards + gamma ** (n + 1) * vf.evaluate(window[n + 1].features)
                target += lambda_ ** (n + 1) * n_step_return

            delta = target - vf.evaluate(head.features)
            vf.update(head.features, delta, self.config.alpha)
            errors.append(delta)
        return errors

"""
Learning slider: n-tuple network + one-ply lookahead + TD training.

Options (key=value):
    profile    network profile, see features.PROFILES (default: rowcol)
    rule       td0 | tdlambda, overrides the profile's rule
    milestone  tile rank for the milestone rules, overrides the profile; 0 disables
    alpha      learning rate (default: 0, i.e. no learning)
    init       comma-separated table sizes for zero-initialized tables
    load       weight file to start from
    save       weight file written by close()

Example:
    with TdSlider("profile=isomorphic alpha=0.01 save=weights.bin") as slider:
        result = Simulator().run_episode(slider, RandomPlacer("seed=1"))
"""

from __future__ import annotations

import logging
from typing import Optional

from src.game.actions import Action
from src.game.agents import AgentConfig, Decider, HeuristicSlider, RandomSlider, Trainable
from src.game.board import Board

from .features import NetworkProfile, NTupleExtractor, get_profile
from .selector import LookaheadSelector
from .trajectory import EpisodeContext
from .training import Trainer, TrainingConfig, TrainingMetrics
from .value_function import ValueFunction, parse_sizes

logger = logging.getLogger(__name__)

# Reward shaping around the milestone tile
MILESTONE_BONUS = 10000.0
NO_MOVE_PENALTY = 10000.0


def build_value_function(config: AgentConfig, profile: NetworkProfile) -> ValueFunction:
    """
    Create the tables an agent starts with.

    ``load`` wins over ``init``; without either, the profile's own sizes are
    zero-initialized. Load problems raise WeightFileError.
    """
    sizes = profile.table_sizes
    init = config.get("init")
    if init:
        declared = parse_sizes(init)
        if len(declared) != len(sizes):
            raise ValueError(
                f"init declares {len(declared)} tables, profile {profile.name} needs {len(sizes)}"
            )
        for i, (have, need) in enumerate(zip(declared, sizes)):
            if have < need:
                raise ValueError(f"init table {i} has {have} entries, profile needs {need}")
        sizes = declared

    load = config.get("load")
    if load:
        return ValueFunction.load(load, sizes, profile.slot_tables)
    return ValueFunction.zeros(sizes, profile.slot_tables)


class TdSlider(Decider, Trainable):
    """Slider that plays greedily on its value function and learns at episode close."""

    def __init__(self, args: str = ""):
        self.config = AgentConfig.from_args(f"name=tdl role=slider {args}")
        milestone = self.config.get("milestone")
        self.profile = get_profile(
            self.config.get("profile", "rowcol"),
            rule=self.config.get("rule"),
            milestone=int(milestone) if milestone is not None else None,
        )
        self.extractor = NTupleExtractor(self.profile)
        self.value_function = build_value_function(self.config, self.profile)
        self.selector = LookaheadSelector(self.extractor, self.value_function, self.profile.milestone)
        self.trainer = Trainer(
            self.value_function,
            TrainingConfig(alpha=self.config.alpha, rule=self.profile.rule),
        )
        self.episode: Optional[EpisodeContext] = None
        self.last_metrics: Optional[TrainingMetrics] = None
        logger.info(
            f"{self.name}: profile={self.profile.name} rule={self.profile.rule} "
            f"milestone={self.profile.milestone} alpha={self.config.alpha}"
        )

    def open_episode(self, flag: str = "") -> None:
        self.episode = EpisodeContext()

    def close_episode(self, flag: str = "") -> None:
        if self.episode is None:
            return
        context, self.episode = self.episode, None
        self.last_metrics = self.trainer.train(context)

    def take_action(self, board: Board) -> Optional[Action]:
        context = self.episode
        if context is None:
            raise RuntimeError("take_action called outside an open episode")

        if self.selector.milestone_reached(board):
            context.milestone_reached = True

        choice = self.selector.select(board)
        if choice is None:
            if self.profile.milestone is not None and not context.milestone_reached:
                if context.trajectory.adjust_last(-NO_MOVE_PENALTY):
                    logger.debug("No legal move before the milestone; penalized last reward")
            return None

        reward = choice.reward
        if (
            not choice.override
            and not context.milestone_reached
            and self.selector.milestone_reached(choice.afterstate)
        ):
            reward += MILESTONE_BONUS
            context.milestone_reached = True
            logger.debug(f"Milestone reached after {context.moves} moves")

        context.trajectory.record(choice.features, reward)
        context.moves += 1
        return Action.slide(choice.direction)

    def close(self) -> None:
        """Persist the tables if ``save`` was given; otherwise they are discarded."""
        save = self.config.get("save")
        if save:
            self.value_function.save(save)

    def __enter__(self) -> TdSlider:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def make_agent(kind: str, args: str = "") -> Decider:
    """Build a slider by kind: td, random or heuristic."""
    match kind:
        case "td":
            return TdSlider(args)
        case "random":
            return RandomSlider(args)
        case "heuristic":
            return HeuristicSlider(args)
    raise ValueError(f"Unknown slider kind: {kind}")

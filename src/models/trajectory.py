"""
Per-episode trajectory of afterstate features and rewards.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Step:
    """One recorded move: the afterstate's features and the reward earned entering it."""

    features: tuple[int, ...]
    reward: float


class TrajectoryRecorder:
    """Append-only log of one episode's steps, drained once when the episode closes."""

    def __init__(self):
        self._steps: list[Step] = []

    def record(self, features: tuple[int, ...], reward: float) -> None:
        self._steps.append(Step(features=tuple(features), reward=float(reward)))

    def adjust_last(self, amount: float) -> bool:
        """Add ``amount`` to the most recent reward; False if nothing was recorded."""
        if not self._steps:
            return False
        self._steps[-1].reward += amount
        return True

    @property
    def last(self) -> Optional[Step]:
        return self._steps[-1] if self._steps else None

    def drain(self) -> list[Step]:
        """Return every recorded step and empty the log."""
        steps, self._steps = self._steps, []
        return steps

    def __len__(self) -> int:
        return len(self._steps)


@dataclass
class EpisodeContext:
    """State that lives exactly as long as one episode."""

    trajectory: TrajectoryRecorder = field(default_factory=TrajectoryRecorder)
    milestone_reached: bool = False
    moves: int = 0

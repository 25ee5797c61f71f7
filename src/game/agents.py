"""
Agent options, capability interfaces and the non-learning agents.

Agents are configured from a flat ``key=value`` option string, e.g.
``"name=slide seed=7"``. Instead of one deep class hierarchy, each agent mixes
in the capabilities it actually has:

- Decider: picks an action for a board
- Trainable: has an episode lifecycle (open/close) and learns at close
- Seeded: owns a private random stream
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional

from .actions import Action
from .board import ILLEGAL, NO_SLIDE, Board, Direction


@dataclass
class AgentConfig:
    """Parsed ``key=value`` options of one agent."""

    options: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_args(cls, args: str = "") -> "AgentConfig":
        """
        Parse a whitespace separated option string.

        ``name`` and ``role`` default to "unknown"; later keys override earlier
        ones, and a token without ``=`` maps to itself, so ``"alpha=0.1 quiet"``
        gives ``{"alpha": "0.1", "quiet": "quiet"}``.
        """
        options: dict[str, str] = {}
        for pair in f"name=unknown role=unknown {args}".split():
            key, sep, value = pair.partition("=")
            options[key] = value if sep else pair
        return cls(options=options)

    @property
    def name(self) -> str:
        return self.options["name"]

    @property
    def role(self) -> str:
        return self.options["role"]

    @property
    def alpha(self) -> float:
        return float(self.options.get("alpha", 0))

    @property
    def seed(self) -> Optional[int]:
        if "seed" not in self.options:
            return None
        return int(float(self.options["seed"]))

    # Defined after the properties above: from here on ``property`` in this
    # class body names this method, not the builtin decorator.
    def property(self, key: str) -> str:
        return self.options[key]

    def notify(self, message: str) -> None:
        """Set one option from a ``key=value`` message; ``"quiet"`` alone sets quiet=quiet."""
        key, sep, value = message.partition("=")
        self.options[key] = value if sep else message

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.options.get(key, default)


class Decider:
    """Capability: chooses an action for a board."""

    config: AgentConfig

    def take_action(self, board: Board) -> Optional[Action]:
        """Return the action to take, or None when there is nothing legal to do."""
        raise NotImplementedError

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def role(self) -> str:
        return self.config.role


class Trainable:
    """Capability: has an episode lifecycle and learns when an episode closes."""

    def open_episode(self, flag: str = "") -> None:
        raise NotImplementedError

    def close_episode(self, flag: str = "") -> None:
        raise NotImplementedError


class Seeded:
    """Capability: owns a private random stream."""

    rng: random.Random

    def reseed(self, seed: Optional[int] = None) -> None:
        self.rng = random.Random(seed)


# Cells where the next tile may appear, keyed by the last slide direction:
# always the edge the tiles moved away from.
PLACEMENT_SPACES = {
    Direction.UP: [12, 13, 14, 15],
    Direction.RIGHT: [0, 4, 8, 12],
    Direction.DOWN: [0, 1, 2, 3],
    Direction.LEFT: [3, 7, 11, 15],
    NO_SLIDE: list(range(16)),
}


class RandomPlacer(Decider, Seeded):
    """
    Default environment: places the hint tile and draws a new hint.

    The cell is a random empty one on the trailing edge of the last slide
    (any cell before the first slide). Tiles come from a shuffled copy of the
    board's bag.
    """

    def __init__(self, args: str = ""):
        self.config = AgentConfig.from_args(f"name=place role=placer {args}")
        self.reseed(self.config.seed)

    def take_action(self, board: Board) -> Optional[Action]:
        space = list(PLACEMENT_SPACES[board.last])
        self.rng.shuffle(space)
        for position in space:
            if board[position] != 0:
                continue

            bag = [rank for rank in (1, 2, 3) for _ in range(board.bag(rank))]
            self.rng.shuffle(bag)

            tile = board.hint or bag.pop()
            hint = bag.pop()
            return Action.place(position, tile, hint)
        return None


def legal_directions(board: Board) -> list[Direction]:
    """Directions whose slide changes the board, in canonical order."""
    return [d for d in Direction if board.copy().slide(d) != ILLEGAL]


class RandomSlider(Decider, Seeded):
    """Slides in a uniformly random legal direction."""

    def __init__(self, args: str = ""):
        self.config = AgentConfig.from_args(f"name=slide role=slider {args}")
        self.reseed(self.config.seed)

    def take_action(self, board: Board) -> Optional[Action]:
        legal = legal_directions(board)
        if not legal:
            return None
        return Action.slide(self.rng.choice(legal))


def _fits_hint(rank: int, hint: int) -> bool:
    return (rank == hint and hint == 3) or rank + hint == 3


class HeuristicSlider(Decider):
    """
    Hand-written slider that keeps tiles flowing towards the bottom-left.

    Prefers down and left; when both (or down and right) are legal they are
    compared by slide reward plus a bonus for cells on the entry edge that the
    hinted tile could merge with.
    """

    # Moves after which the entry edge bonus is raised
    LATE_GAME_MOVES = 200

    def __init__(self, args: str = ""):
        self.config = AgentConfig.from_args(f"name=slide role=slider {args}")
        self.moves_taken = 0

    def hint_bonus(self, board: Board, direction: Direction) -> int:
        """Bonus for cells on the edge where the next tile will enter after ``direction``."""
        factor = 4 if self.moves_taken > self.LATE_GAME_MOVES else 3
        match direction:
            case Direction.DOWN:
                edge, inner = [(0, j) for j in range(4)], [(1, j) for j in range(4)]
            case Direction.LEFT:
                edge, inner = [(i, 3) for i in range(4)], [(i, 2) for i in range(4)]
            case Direction.RIGHT:
                edge, inner = [(i, 0) for i in range(4)], [(i, 1) for i in range(4)]
            case _:
                return 0

        bonus = 0
        for first, second in zip(edge, inner):
            if _fits_hint(board[first], board.hint):
                bonus += factor
            elif _fits_hint(board[second], board.hint):
                bonus += 1
        return bonus

    def take_action(self, board: Board) -> Optional[Action]:
        self.moves_taken += 1
        rewards = {d: board.copy().slide(d) for d in Direction}
        down, left, right = rewards[Direction.DOWN], rewards[Direction.LEFT], rewards[Direction.RIGHT]

        if down != ILLEGAL and left != ILLEGAL:
            down += self.hint_bonus(board, Direction.DOWN)
            left += self.hint_bonus(board, Direction.LEFT)
            return Action.slide(Direction.DOWN if down > left else Direction.LEFT)
        if left != ILLEGAL:
            return Action.slide(Direction.LEFT)
        if down != ILLEGAL and right != ILLEGAL:
            down += self.hint_bonus(board, Direction.DOWN)
            right += self.hint_bonus(board, Direction.RIGHT)
            return Action.slide(Direction.DOWN if down > right else Direction.RIGHT)
        if down != ILLEGAL:
            return Action.slide(Direction.DOWN)
        if right != ILLEGAL:
            return Action.slide(Direction.RIGHT)
        if rewards[Direction.UP] != ILLEGAL:
            return Action.slide(Direction.UP)
        return None

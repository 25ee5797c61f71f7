"""
Actions exchanged between agents and the episode runner.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from .board import ILLEGAL, Board, Direction, tile_value


class ActionType(Enum):
    """Kinds of action an agent can take."""

    SLIDE = auto()
    PLACE = auto()


@dataclass(frozen=True)
class Action:
    """
    An opaque move: slide every tile, or place a tile and announce the next hint.

    Build one with ``Action.slide`` or ``Action.place``; ``apply`` performs it.
    """

    action_type: ActionType
    direction: Optional[int] = None
    position: Optional[int] = None
    tile: Optional[int] = None
    hint: Optional[int] = None

    @classmethod
    def slide(cls, direction: int) -> "Action":
        return cls(action_type=ActionType.SLIDE, direction=int(direction))

    @classmethod
    def place(cls, position: int, tile: int, hint: int) -> "Action":
        return cls(action_type=ActionType.PLACE, position=position, tile=tile, hint=hint)

    def apply(self, board: Board) -> int:
        """Perform the action in place; returns the reward or ILLEGAL."""
        match self.action_type:
            case ActionType.SLIDE:
                return board.slide(self.direction)
            case ActionType.PLACE:
                return board.place(self.position, self.tile, self.hint)
        return ILLEGAL

    def __repr__(self) -> str:
        match self.action_type:
            case ActionType.SLIDE:
                return f"Slide({Direction(self.direction).name})"
            case ActionType.PLACE:
                return (
                    f"Place({tile_value(self.tile)} at {self.position}, "
                    f"hint={tile_value(self.hint)})"
                )
        return f"Action({self.action_type})"

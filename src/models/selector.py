"""
One-ply lookahead move selection.

Every legal slide is simulated on a copy of the board and scored as
``reward + V(afterstate)``. Directions are scored in ascending order and only a
strictly better score replaces the current best, so ties go to the lowest
direction.

When a milestone rank is configured and the board already holds it, scoring
is skipped: the first legal move in ``OVERRIDE_PRIORITY`` is played so the
secured tile is not traded away by the learned values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.game.board import ILLEGAL, Board, Direction

from .features import NTupleExtractor, hint_bucket
from .value_function import ValueFunction

OVERRIDE_PRIORITY = (Direction.DOWN, Direction.RIGHT, Direction.UP, Direction.LEFT)


@dataclass
class Candidate:
    """A legal move with its simulated outcome."""

    direction: Direction
    afterstate: Board
    reward: int
    features: tuple[int, ...]
    score: Optional[float] = None
    override: bool = False


class LookaheadSelector:
    """Greedy one-ply selector over an n-tuple value function."""

    def __init__(
        self,
        extractor: NTupleExtractor,
        value_function: ValueFunction,
        milestone: Optional[int] = None,
    ):
        self.extractor = extractor
        self.value_function = value_function
        self.milestone = milestone

    def features(self, afterstate: Board) -> tuple[int, ...]:
        """Full feature vector: board tuples, then the hint bucket if the profile has one."""
        features = self.extractor.extract(afterstate)
        if self.extractor.profile.hint_bucket:
            features += (hint_bucket(afterstate),)
        return features

    def milestone_reached(self, board: Board) -> bool:
        return self.milestone is not None and board.max_rank() >= self.milestone

    def candidates(self, board: Board) -> list[Candidate]:
        """Legal moves in canonical direction order, unscored."""
        found = []
        for direction in Direction:
            after = board.copy()
            reward = after.slide(direction)
            if reward == ILLEGAL:
                continue
            found.append(Candidate(direction, after, reward, self.features(after)))
        return found

    def select(self, board: Board) -> Optional[Candidate]:
        """Pick a move, or return None when no move is legal (terminal)."""
        candidates = self.candidates(board)
        if not candidates:
            return None

        if self.milestone_reached(board):
            by_direction = {c.direction: c for c in candidates}
            for direction in OVERRIDE_PRIORITY:
                if direction in by_direction:
                    choice = by_direction[direction]
                    choice.override = True
                    return choice

        best = None
        for candidate in candidates:
            candidate.score = candidate.reward + self.value_function.evaluate(candidate.features)
            if best is None or candidate.score > best.score:
                best = candidate
        return best

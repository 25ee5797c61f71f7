"""
N-tuple feature extraction for the value function.

A tuple is a fixed set of board cells. Its feature is the cells' ranks read
as a base-16 number (first cell least significant), which indexes that tuple's
lookup table. Which tuples exist, whether they are sampled on all 8 board
symmetries, and whether a hint entry follows is declared per profile in
``PROFILES``; one ``NTupleExtractor`` serves every profile.

Feature vector layout for a symmetric profile with shapes A, B:

    [A@t0, B@t0, A@t1, B@t1, ..., A@t7, B@t7, (hint)]

Isomorphic samples of a shape share the shape's table.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from src.game.board import NUM_CELLS, Board

# Radix of the positional encoding; one digit per tile rank 0..15
BASE = 16

# 4 rotations x optional horizontal reflection
NUM_TRANSFORMS = 8

# Hint ranks 0 (none), 1, 2, 3
HINT_BUCKETS = 4

# Rank 10 is the 384 tile
MILESTONE_RANK = 10

ROW_LINES = tuple(tuple(r * 4 + c for c in range(4)) for r in range(4))
COLUMN_LINES = tuple(tuple(r * 4 + c for r in range(4)) for c in range(4))

ISOMORPHIC_SHAPES = (
    (0, 1, 2, 3),  # outer row
    (4, 5, 6, 7),  # inner row
    (0, 1, 4, 5),  # corner square
    (1, 2, 5, 6),  # edge square
)


@dataclass(frozen=True)
class NetworkProfile:
    """Declarative description of one n-tuple network configuration."""

    name: str
    shapes: tuple[tuple[int, ...], ...]
    symmetric: bool = False
    hint_bucket: bool = False
    rule: str = "td0"
    milestone: Optional[int] = None

    @property
    def transforms(self) -> int:
        return NUM_TRANSFORMS if self.symmetric else 1

    @property
    def table_sizes(self) -> list[int]:
        """Entries of each table, in declared order."""
        sizes = [BASE ** len(shape) for shape in self.shapes]
        if self.hint_bucket:
            sizes.append(HINT_BUCKETS)
        return sizes

    @property
    def slot_tables(self) -> list[int]:
        """Table read by each feature vector slot."""
        slots = [i for _ in range(self.transforms) for i in range(len(self.shapes))]
        if self.hint_bucket:
            slots.append(len(self.shapes))
        return slots

    @property
    def num_slots(self) -> int:
        return len(self.slot_tables)


PROFILES: dict[str, NetworkProfile] = {
    "rowcol": NetworkProfile(
        name="rowcol",
        shapes=ROW_LINES + COLUMN_LINES,
    ),
    "isomorphic": NetworkProfile(
        name="isomorphic",
        shapes=ISOMORPHIC_SHAPES,
        symmetric=True,
        rule="tdlambda",
    ),
    "milestone": NetworkProfile(
        name="milestone",
        shapes=ISOMORPHIC_SHAPES,
        symmetric=True,
        hint_bucket=True,
        rule="td0",
        milestone=MILESTONE_RANK,
    ),
}


def get_profile(
    name: str,
    rule: Optional[str] = None,
    milestone: Optional[int] = None,
) -> NetworkProfile:
    """
    Look up a profile, optionally overriding its training rule or milestone.

    A milestone of 0 disables the milestone rules.
    """
    try:
        profile = PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown profile: {name} (choose from {', '.join(PROFILES)})") from None

    changes = {}
    if rule is not None:
        changes["rule"] = rule
    if milestone is not None:
        changes["milestone"] = milestone or None
    return replace(profile, **changes) if changes else profile


def encode(values: list[int]) -> int:
    """Positional radix encoding: values[k] contributes values[k] * BASE**k."""
    index = 0
    for k, value in enumerate(values):
        index += min(value, BASE - 1) * BASE**k
    return index


def hint_bucket(board: Board) -> int:
    """Discrete bucket of the board's hint tile."""
    return min(board.hint, HINT_BUCKETS - 1)


class NTupleExtractor:
    """
    Maps a board to its board-derived feature vector.

    Symmetric sampling is precomputed: for each transform, the board position
    that lands on every shape cell. Extraction then reads the untransformed
    board directly and never modifies it.
    """

    def __init__(self, profile: NetworkProfile):
        self.profile = profile

        identity = Board(cells=list(range(NUM_CELLS)))
        self._samples: list[tuple[int, ...]] = []
        for t in range(profile.transforms):
            iso = identity.transformed(t)
            for shape in profile.shapes:
                self._samples.append(tuple(iso[cell] for cell in shape))

    @property
    def num_board_slots(self) -> int:
        return len(self._samples)

    def extract(self, board: Board) -> tuple[int, ...]:
        cells = board.cells
        return tuple(encode([cells[pos] for pos in sample]) for sample in self._samples)

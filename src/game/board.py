"""
Threes! board representation with slide mechanics and board symmetries.

Cells hold tile ranks rather than face values:
0 = empty, 1 = "1", 2 = "2", 3 = "3", 4 = "6", 5 = "12", ...
so rank r >= 3 is the tile 3 * 2^(r - 3).
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Union

SIZE = 4
NUM_CELLS = SIZE * SIZE
MAX_RANK = 15

# Returned by slide/place when the move changes nothing or is not allowed
ILLEGAL = -1

# Tiles of each basic rank (1, 2, 3) in a full bag
BAG_SIZE = 4

# Value of Board.last before the first slide
NO_SLIDE = 4


class Direction(IntEnum):
    """Slide directions in canonical order."""

    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3


def tile_value(rank: int) -> int:
    """Face value of a tile rank (0 for an empty cell)."""
    if rank < 3:
        return rank
    return 3 * 2 ** (rank - 3)


def tile_score(rank: int) -> int:
    """Points a tile of the given rank is worth; 1s and 2s score nothing."""
    if rank < 3:
        return 0
    return 3 ** (rank - 2)


def merge_rank(a: int, b: int) -> int:
    """Rank produced by sliding tile ``b`` onto tile ``a``, or 0 if they cannot merge."""
    if not a or not b:
        return 0
    if a + b == 3:
        return 3
    if a == b and a >= 3:
        return min(a + 1, MAX_RANK)
    return 0


def _slide_lines(direction: int) -> list[list[int]]:
    """Cell positions of each line, ordered from the edge tiles slide towards."""
    rows = [[r * SIZE + c for c in range(SIZE)] for r in range(SIZE)]
    cols = [[r * SIZE + c for r in range(SIZE)] for c in range(SIZE)]
    match direction:
        case Direction.UP:
            return cols
        case Direction.RIGHT:
            return [line[::-1] for line in rows]
        case Direction.DOWN:
            return [line[::-1] for line in cols]
        case Direction.LEFT:
            return rows
    raise ValueError(f"Unknown direction: {direction}")


SLIDE_LINES = {d: _slide_lines(d) for d in Direction}


@dataclass
class Board:
    """
    A 4x4 Threes! board plus the hint tile and the remaining tile bag.

    ``bag`` holds remaining counts for ranks 1, 2 and 3 (index 0 unused).
    ``last`` is the direction of the most recent slide, ``NO_SLIDE`` before the
    first one; the tile placer uses it to pick the edge for the next tile.
    """

    cells: list[int] = field(default_factory=lambda: [0] * NUM_CELLS)
    hint: int = 0
    bag_counts: list[int] = field(default_factory=lambda: [0, BAG_SIZE, BAG_SIZE, BAG_SIZE])
    last: int = NO_SLIDE

    def __post_init__(self):
        if len(self.cells) != NUM_CELLS:
            raise ValueError(f"Board needs {NUM_CELLS} cells, got {len(self.cells)}")
        if any(not 0 <= v <= MAX_RANK for v in self.cells):
            raise ValueError(f"Tile ranks must lie in [0, {MAX_RANK}]")
        self.cells = list(self.cells)
        self.bag_counts = list(self.bag_counts)

    @classmethod
    def from_rows(cls, rows: list[list[int]], hint: int = 0) -> "Board":
        """Build a board from four rows of tile ranks."""
        return cls(cells=[v for row in rows for v in row], hint=hint)

    def __getitem__(self, key: Union[int, tuple[int, int]]) -> int:
        if isinstance(key, tuple):
            row, col = key
            return self.cells[row * SIZE + col]
        return self.cells[key]

    def __setitem__(self, key: Union[int, tuple[int, int]], value: int) -> None:
        if isinstance(key, tuple):
            row, col = key
            key = row * SIZE + col
        self.cells[key] = value

    def rows(self) -> list[list[int]]:
        return [self.cells[r * SIZE:(r + 1) * SIZE] for r in range(SIZE)]

    def copy(self) -> "Board":
        return replace(self, cells=list(self.cells), bag_counts=list(self.bag_counts))

    def bag(self, rank: int) -> int:
        """Remaining tiles of a basic rank (1, 2 or 3) in the bag."""
        return self.bag_counts[rank]

    def empty_positions(self) -> list[int]:
        return [pos for pos, v in enumerate(self.cells) if v == 0]

    def max_rank(self) -> int:
        return max(self.cells)

    def score(self) -> int:
        return sum(tile_score(v) for v in self.cells)

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def slide(self, direction: int) -> int:
        """
        Slide all tiles one step towards ``direction``.

        Each line moves at its first movable tile: that tile either merges into
        its neighbour or steps into an empty cell, and every tile behind it
        shifts one cell along. Returns the score gained, or ILLEGAL (leaving
        the board untouched) when no line can move.
        """
        before = self.score()
        moved = False
        cells = self.cells
        for line in SLIDE_LINES[direction]:
            for i in range(1, SIZE):
                src, dst = line[i], line[i - 1]
                if cells[src] == 0:
                    continue
                if cells[dst] == 0:
                    cells[dst], cells[src] = cells[src], 0
                    moved = True
                    continue
                merged = merge_rank(cells[dst], cells[src])
                if merged:
                    cells[dst], cells[src] = merged, 0
                    moved = True
        if not moved:
            return ILLEGAL
        self.last = int(direction)
        return self.score() - before

    def place(self, position: int, tile: int, hint: int) -> int:
        """
        Put ``tile`` on an empty cell and announce ``hint`` as the next tile.

        Before any hint exists the placed tile is drawn from the bag; afterwards
        it is the previously announced hint, which already left the bag.
        """
        if not 0 <= position < NUM_CELLS or self.cells[position] != 0:
            return ILLEGAL
        if not 1 <= tile <= 3 or not 1 <= hint <= 3:
            return ILLEGAL
        if self.hint == 0:
            self._take(tile)
        self._take(hint)
        self.cells[position] = tile
        self.hint = hint
        return 0

    def _take(self, rank: int) -> None:
        self.bag_counts[rank] -= 1
        if sum(self.bag_counts) == 0:
            self.bag_counts = [0, BAG_SIZE, BAG_SIZE, BAG_SIZE]

    # ------------------------------------------------------------------
    # Symmetries
    # ------------------------------------------------------------------

    def rotated(self, times: int = 1) -> "Board":
        """Copy of the board rotated clockwise ``times`` quarter turns."""
        board = self.copy()
        for _ in range(times % 4):
            old = board.cells
            board.cells = [old[(SIZE - 1 - c) * SIZE + r] for r in range(SIZE) for c in range(SIZE)]
        return board

    def reflected(self) -> "Board":
        """Copy of the board mirrored left to right."""
        board = self.copy()
        board.cells = [self.cells[r * SIZE + (SIZE - 1 - c)] for r in range(SIZE) for c in range(SIZE)]
        return board

    def transformed(self, index: int) -> "Board":
        """
        One of the 8 dihedral transforms, in sampling order.

        Transforms 0-3 rotate the board 0-3 quarter turns; 4-7 reflect it
        first and then rotate.
        """
        board = self.reflected() if index >= 4 else self
        return board.rotated(index % 4)

    def __str__(self) -> str:
        lines = ["+" + "-" * 24 + "+"]
        for row in self.rows():
            lines.append("|" + "".join(f"{tile_value(v):6d}" for v in row) + "|")
        lines.append("+" + "-" * 24 + "+")
        lines.append(f"hint: {tile_value(self.hint)}")
        return "\n".join(lines)

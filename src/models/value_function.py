"""
N-tuple network value function and its weight-file persistence.

All lookup tables live in one flat float32 tensor; ``tables`` exposes per-table
views over it. A feature vector has one entry per slot, and ``slot_tables``
says which table each slot indexes (symmetric samples of a tuple share a
table).

Weight file layout (little-endian), tables in declared order:

    uint32 table_count
    table_count x { uint64 entries; float32[entries] }

Updates are not bounds- or NaN-checked. Keeping the tables finite is up to
the caller's choice of learning rate and reward scale.
"""

from __future__ import annotations

import logging
import re
import struct
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import torch

logger = logging.getLogger(__name__)

WEIGHT_DTYPE = torch.float32
FILE_DTYPE = np.dtype("<f4")


class WeightFileError(Exception):
    """A weight file is missing, truncated or does not match the declared tables."""


def parse_sizes(info: str) -> list[int]:
    """Table sizes from a list such as ``"65536,65536"``; any non-digit separates."""
    return [int(size) for size in re.split(r"\D+", info) if size]


class ValueFunction:
    """Sum of per-tuple lookup-table entries."""

    def __init__(
        self,
        sizes: Sequence[int],
        slot_tables: Optional[Sequence[int]] = None,
        weights: Optional[torch.Tensor] = None,
    ):
        """
        Args:
            sizes: Entries of each table, in declared order
            slot_tables: Table index read by each feature slot (default: slot i reads table i)
            weights: Flat initial weights (default: zeros)
        """
        self.sizes = [int(size) for size in sizes]
        self.slot_tables = list(slot_tables) if slot_tables is not None else list(range(len(self.sizes)))
        if any(not 0 <= t < len(self.sizes) for t in self.slot_tables):
            raise ValueError(f"Slot tables {self.slot_tables} refer to missing tables")

        total = sum(self.sizes)
        if weights is None:
            weights = torch.zeros(total, dtype=WEIGHT_DTYPE)
        elif weights.numel() != total:
            raise ValueError(f"Expected {total} weights, got {weights.numel()}")
        self.weights = weights.to(WEIGHT_DTYPE).reshape(-1)

        offsets = [0]
        for size in self.sizes[:-1]:
            offsets.append(offsets[-1] + size)
        self._slot_offsets = torch.tensor(
            [offsets[t] for t in self.slot_tables], dtype=torch.long
        )

    @classmethod
    def zeros(cls, sizes: Sequence[int], slot_tables: Optional[Sequence[int]] = None) -> ValueFunction:
        return cls(sizes, slot_tables)

    @property
    def tables(self) -> list[torch.Tensor]:
        """Per-table views over the flat weights."""
        return list(self.weights.split(self.sizes))

    @property
    def num_slots(self) -> int:
        return len(self.slot_tables)

    def _flat_index(self, features: Sequence[int]) -> torch.Tensor:
        if len(features) != len(self.slot_tables):
            raise ValueError(
                f"Feature vector has {len(features)} entries, expected {len(self.slot_tables)}"
            )
        return torch.as_tensor(features, dtype=torch.long) + self._slot_offsets

    def evaluate(self, features: Sequence[int]) -> float:
        return self.weights[self._flat_index(features)].sum().item()

    def update(self, features: Sequence[int], delta: float, alpha: float) -> None:
        """Add ``alpha * delta`` to the entry every slot reads; shared entries accumulate."""
        index = self._flat_index(features)
        step = torch.full(index.shape, alpha * delta, dtype=WEIGHT_DTYPE)
        self.weights.index_put_((index,), step, accumulate=True)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        with open(path, "wb") as fh:
            fh.write(struct.pack("<I", len(self.sizes)))
            for table in self.tables:
                fh.write(struct.pack("<Q", table.numel()))
                fh.write(table.numpy().astype(FILE_DTYPE).tobytes())
        logger.info(f"Saved {len(self.sizes)} weight tables to {path}")

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        sizes: Sequence[int],
        slot_tables: Optional[Sequence[int]] = None,
    ) -> ValueFunction:
        """
        Load tables saved by ``save``.

        The file must hold exactly the declared tables with the declared sizes;
        anything else raises WeightFileError.
        """
        sizes = [int(size) for size in sizes]
        tables = read_tables(path)
        if len(tables) != len(sizes):
            raise WeightFileError(
                f"{path} holds {len(tables)} tables, configuration declares {len(sizes)}"
            )
        for i, (table, size) in enumerate(zip(tables, sizes)):
            if table.size != size:
                raise WeightFileError(
                    f"Table {i} in {path} has {table.size} entries, configuration declares {size}"
                )

        chunks = [torch.from_numpy(table.astype(np.float32)) for table in tables]
        weights = torch.cat(chunks) if chunks else torch.zeros(0, dtype=WEIGHT_DTYPE)
        logger.info(f"Loaded {len(tables)} weight tables from {path}")
        return cls(sizes, slot_tables, weights=weights)


def read_tables(path: Union[str, Path]) -> list[np.ndarray]:
    """
    Read every table of a weight file, in file order.

    Raises WeightFileError if the file cannot be opened, ends inside a header
    or a table, or has bytes after the last table.
    """
    path = Path(path)
    try:
        fh = open(path, "rb")
    except OSError as e:
        raise WeightFileError(f"Cannot open weight file {path}: {e}") from e

    tables = []
    with fh:
        count = _read_struct(fh, "<I", path)
        for i in range(count):
            entries = _read_struct(fh, "<Q", path)
            raw = fh.read(entries * FILE_DTYPE.itemsize)
            if len(raw) != entries * FILE_DTYPE.itemsize:
                raise WeightFileError(f"{path} is truncated in table {i}")
            tables.append(np.frombuffer(raw, dtype=FILE_DTYPE))
        if fh.read(1):
            raise WeightFileError(f"{path} has trailing data after {count} tables")
    return tables


def _read_struct(fh, fmt: str, path: Path) -> int:
    raw = fh.read(struct.calcsize(fmt))
    if len(raw) != struct.calcsize(fmt):
        raise WeightFileError(f"{path} is truncated")
    return struct.unpack(fmt, raw)[0]

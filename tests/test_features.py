"""
Tests for n-tuple feature extraction.

Tests cover:
- encode / hint_bucket: Index arithmetic
- NetworkProfile: Table layout of each registered profile
- NTupleExtractor: Values, bounds and symmetry of extracted features
"""

import random
from collections import defaultdict

import pytest

from src.game import Board
from src.models.features import (
    BASE,
    HINT_BUCKETS,
    PROFILES,
    NTupleExtractor,
    encode,
    get_profile,
    hint_bucket,
)


def random_board(rng: random.Random) -> Board:
    return Board(cells=[rng.randint(0, 15) for _ in range(16)], hint=rng.randint(0, 3))


def per_shape_multisets(profile, features):
    """Sorted features of every shape, pooled over its symmetric samples."""
    groups = defaultdict(list)
    for slot, value in enumerate(features):
        groups[profile.slot_tables[slot]].append(value)
    return {table: sorted(values) for table, values in groups.items()}


class TestEncode:
    """Tests for the positional encoding."""

    def test_positional_radix(self):
        """Test the first cell is the least significant digit."""
        assert encode([1, 0, 0, 0]) == 1
        assert encode([0, 0, 0, 1]) == BASE**3
        assert encode([1, 2, 3, 4]) == 1 + 2 * 16 + 3 * 256 + 4 * 4096

    def test_values_are_clamped(self):
        """Test ranks beyond one digit saturate."""
        assert encode([20]) == BASE - 1

    def test_hint_bucket(self):
        """Test the hint tile maps to its own bucket."""
        assert hint_bucket(Board()) == 0
        assert hint_bucket(Board(hint=3)) == 3


class TestProfiles:
    """Tests for NetworkProfile and get_profile."""

    def test_rowcol(self):
        """Test the row/column profile has one table per line."""
        profile = PROFILES["rowcol"]
        assert profile.num_slots == 8
        assert profile.table_sizes == [65536] * 8
        assert profile.slot_tables == list(range(8))
        assert profile.milestone is None

    def test_isomorphic(self):
        """Test symmetric samples share their shape's table."""
        profile = PROFILES["isomorphic"]
        assert profile.rule == "tdlambda"
        assert profile.num_slots == 32
        assert profile.table_sizes == [65536] * 4
        assert profile.slot_tables[:8] == [0, 1, 2, 3, 0, 1, 2, 3]

    def test_milestone(self):
        """Test the milestone profile appends a hint table."""
        profile = PROFILES["milestone"]
        assert profile.num_slots == 33
        assert profile.table_sizes == [65536] * 4 + [HINT_BUCKETS]
        assert profile.slot_tables[-1] == 4
        assert profile.milestone == 10

    def test_unknown_profile(self):
        """Test unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown profile"):
            get_profile("ntuple9")

    def test_overrides(self):
        """Test rule and milestone overrides leave the registry untouched."""
        profile = get_profile("isomorphic", rule="td0", milestone=8)
        assert profile.rule == "td0"
        assert profile.milestone == 8
        assert PROFILES["isomorphic"].rule == "tdlambda"

    def test_zero_milestone_disables(self):
        """Test milestone=0 turns the milestone rules off."""
        assert get_profile("milestone", milestone=0).milestone is None


class TestExtractor:
    """Tests for NTupleExtractor."""

    def test_rowcol_values(self):
        """Test rows come first, then columns read top to bottom."""
        extractor = NTupleExtractor(PROFILES["rowcol"])
        board = Board.from_rows([[1, 2, 3, 4], [0] * 4, [0] * 4, [0] * 4])
        features = extractor.extract(board)
        assert len(features) == 8
        assert features[0] == 17185
        assert features[1] == 0
        assert features[4] == 1
        assert features[5] == 2

    def test_first_transform_is_identity(self):
        """Test the first block of samples reads the board as is."""
        extractor = NTupleExtractor(PROFILES["isomorphic"])
        board = Board.from_rows([[1, 2, 3, 4], [5, 6, 7, 8], [0] * 4, [0] * 4])
        features = extractor.extract(board)
        assert features[0] == encode([1, 2, 3, 4])
        assert features[1] == encode([5, 6, 7, 8])
        assert features[2] == encode([1, 2, 5, 6])
        assert features[3] == encode([2, 3, 6, 7])

    def test_lengths(self):
        """Test every profile yields its board-derived slot count."""
        for profile in PROFILES.values():
            extractor = NTupleExtractor(profile)
            expected = profile.num_slots - (1 if profile.hint_bucket else 0)
            assert extractor.num_board_slots == expected
            assert len(extractor.extract(Board())) == expected

    def test_features_within_table_bounds(self):
        """Test every feature indexes inside its table."""
        rng = random.Random(0)
        for profile in PROFILES.values():
            extractor = NTupleExtractor(profile)
            sizes = profile.table_sizes
            for _ in range(20):
                features = extractor.extract(random_board(rng))
                for slot, value in enumerate(features):
                    assert 0 <= value < sizes[profile.slot_tables[slot]]

    def test_deterministic_and_non_mutating(self):
        """Test extraction is repeatable and leaves the board alone."""
        extractor = NTupleExtractor(PROFILES["isomorphic"])
        board = random_board(random.Random(1))
        before = board.copy()
        assert extractor.extract(board) == extractor.extract(board)
        assert board == before

    def test_symmetric_profiles_are_invariant_under_transforms(self):
        """Test each shape's pooled samples match on every transformed board."""
        rng = random.Random(2)
        for name in ("isomorphic", "milestone"):
            profile = PROFILES[name]
            extractor = NTupleExtractor(profile)
            for _ in range(5):
                board = random_board(rng)
                expected = per_shape_multisets(profile, extractor.extract(board))
                for t in range(8):
                    transformed = extractor.extract(board.transformed(t))
                    assert per_shape_multisets(profile, transformed) == expected

    def test_rotation_turns_columns_into_rows(self):
        """Test a clockwise quarter turn puts each column, bottom first, in a row."""
        extractor = NTupleExtractor(PROFILES["rowcol"])
        board = random_board(random.Random(3))
        rotated = extractor.extract(board.rotated(1))
        for c in range(4):
            column = [board[r, c] for r in range(4)]
            assert rotated[c] == encode(column[::-1])

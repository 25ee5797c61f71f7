"""
Tests for the lookup-table value function and its weight files.
"""

import struct

import pytest
import torch

from src.models.value_function import ValueFunction, WeightFileError, parse_sizes, read_tables


@pytest.fixture
def trained(tmp_path):
    """A small value function with random weights, saved to disk."""
    torch.manual_seed(0)
    vf = ValueFunction([16, 256, 4], weights=torch.randn(16 + 256 + 4))
    path = tmp_path / "weights.bin"
    vf.save(path)
    return vf, path


class TestEvaluateAndUpdate:
    """Tests for evaluate/update."""

    def test_zero_tables(self):
        """Test fresh tables evaluate to zero."""
        vf = ValueFunction.zeros([16, 16])
        assert vf.evaluate((3, 7)) == 0.0
        assert vf.num_slots == 2

    def test_update_every_slot(self):
        """Test one update adds alpha * delta to each slot's entry."""
        vf = ValueFunction.zeros([4, 4])
        vf.update((1, 2), 2.0, 0.5)
        assert vf.tables[0][1].item() == 1.0
        assert vf.tables[1][2].item() == 1.0
        assert vf.evaluate((1, 2)) == 2.0
        assert vf.evaluate((2, 1)) == 0.0

    def test_shared_entries_accumulate(self):
        """Test slots that hit the same shared entry add up."""
        vf = ValueFunction.zeros([4], slot_tables=[0, 0])
        vf.update((3, 3), 0.25, 1.0)
        assert vf.tables[0][3].item() == 0.5
        assert vf.evaluate((3, 3)) == 1.0

    def test_wrong_feature_length(self):
        """Test a feature vector of the wrong length is rejected."""
        vf = ValueFunction.zeros([4, 4])
        with pytest.raises(ValueError):
            vf.evaluate((1,))

    def test_bad_slot_tables(self):
        """Test slots must point at existing tables."""
        with pytest.raises(ValueError):
            ValueFunction([4], slot_tables=[0, 1])

    def test_tables_are_views(self):
        """Test the per-table views see updates."""
        vf = ValueFunction.zeros([2, 2])
        tables = vf.tables
        vf.update((1, 0), 1.0, 1.0)
        assert tables[0][1].item() == 1.0


class TestPersistence:
    """Tests for save/load."""

    def test_round_trip_is_exact(self, trained):
        """Test loading reproduces every weight bit for bit."""
        vf, path = trained
        loaded = ValueFunction.load(path, vf.sizes)
        assert torch.equal(loaded.weights, vf.weights)
        assert loaded.evaluate((5, 100, 2)) == vf.evaluate((5, 100, 2))

    def test_file_layout(self, trained):
        """Test the header and table sizes on disk."""
        vf, path = trained
        data = path.read_bytes()
        assert struct.unpack("<I", data[:4])[0] == 3
        assert struct.unpack("<Q", data[4:12])[0] == 16
        assert len(data) == 4 + sum(8 + 4 * size for size in vf.sizes)

    def test_missing_file(self, tmp_path):
        """Test a missing file raises WeightFileError."""
        with pytest.raises(WeightFileError):
            ValueFunction.load(tmp_path / "missing.bin", [16])

    def test_table_count_mismatch(self, trained):
        """Test a different number of tables is rejected."""
        vf, path = trained
        with pytest.raises(WeightFileError, match="tables"):
            ValueFunction.load(path, [16, 256])

    def test_table_size_mismatch(self, trained):
        """Test a different table size is rejected."""
        vf, path = trained
        with pytest.raises(WeightFileError, match="entries"):
            ValueFunction.load(path, [16, 128, 4])

    def test_truncated_file(self, trained):
        """Test a short file is rejected."""
        vf, path = trained
        path.write_bytes(path.read_bytes()[:-2])
        with pytest.raises(WeightFileError, match="truncated"):
            ValueFunction.load(path, vf.sizes)

    def test_trailing_data(self, trained):
        """Test bytes after the last table are rejected."""
        vf, path = trained
        path.write_bytes(path.read_bytes() + b"\x00")
        with pytest.raises(WeightFileError, match="trailing"):
            ValueFunction.load(path, vf.sizes)


class TestReadTables:
    """Tests for read_tables."""

    def test_reads_every_table(self, trained):
        """Test tables come back in file order with their sizes and values."""
        vf, path = trained
        tables = read_tables(path)
        assert [table.size for table in tables] == vf.sizes
        assert tables[1][7] == vf.tables[1][7].item()

    def test_rejects_trailing_data(self, trained):
        """Test bytes after the last table are an error here too."""
        vf, path = trained
        path.write_bytes(path.read_bytes() + b"\x00\x00\x00\x00")
        with pytest.raises(WeightFileError, match="trailing"):
            read_tables(path)

    def test_empty_file(self, tmp_path):
        """Test a file too short for the header is truncated."""
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        with pytest.raises(WeightFileError, match="truncated"):
            read_tables(path)


class TestParseSizes:
    """Tests for parse_sizes."""

    def test_comma_list(self):
        """Test the usual comma separated form."""
        assert parse_sizes("65536,65536") == [65536, 65536]

    def test_any_separator(self):
        """Test any non-digit run separates sizes."""
        assert parse_sizes("16, 4;x2") == [16, 4, 2]
        assert parse_sizes("") == []

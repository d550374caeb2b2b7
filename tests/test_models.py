"""
Tests for data models: Record codec, ValueIndex and DataFile.
"""

import io
import os

import pytest

from multilog.models import record
from multilog.models.data_file import DataFile
from multilog.models.exceptions import KeyTooLongError, MalformedRecordError
from multilog.models.record import MAX_KEY_LENGTH, Record
from multilog.models.value_index import ValueIndex


class TestRecordEncoding:
    """Tests for the on-disk record layout."""

    def test_layout(self):
        """Test the exact bytes of an encoded record."""
        data = record.encode(False, "ab", 5)

        assert data == b"\x00" + b"\x02\x00\x00\x00" + b"ab" + b"\x05\x00\x00\x00"

    def test_tombstone_flag(self):
        """Test that the first byte carries the tombstone flag."""
        assert record.encode(True, "k", 1)[0] == 1
        assert record.encode(False, "k", 1)[0] == 0

    def test_negative_value(self):
        """Test that values are stored as signed 32-bit integers."""
        data = record.encode(False, "k", -1)

        assert data[-4:] == b"\xff\xff\xff\xff"

    def test_empty_key(self):
        """Test encoding a record with an empty key."""
        data = record.encode(False, "", 7)

        assert len(data) == record.HEADER_SIZE + record.VALUE_SIZE

    def test_bytes_of_record(self):
        """Test that bytes(Record) matches encode()."""
        rec = Record(tombstone=False, key="key", value=12)

        assert bytes(rec) == record.encode(False, "key", 12)
        assert rec.size_bytes() == len(bytes(rec))

    def test_unicode_key_length_in_bytes(self):
        """Test that the key length prefix counts UTF-8 bytes."""
        key = "中文"
        data = record.encode(False, key, 1)

        assert int.from_bytes(data[1:5], "little") == len(key.encode("utf-8"))
        assert record.encoded_size(key) == len(data)

    def test_key_at_bound_accepted(self):
        """Test that a key of exactly MAX_KEY_LENGTH bytes is accepted."""
        data = record.encode(False, "k" * MAX_KEY_LENGTH, 1)

        assert len(data) == record.HEADER_SIZE + MAX_KEY_LENGTH + record.VALUE_SIZE

    def test_key_too_long_rejected(self):
        """Test that keys over the bound are rejected before writing."""
        with pytest.raises(KeyTooLongError):
            record.encode(False, "k" * (MAX_KEY_LENGTH + 1), 1)

    @pytest.mark.parametrize("value", [2**31, -(2**31) - 1])
    def test_value_out_of_range_rejected(self, value):
        """Test that values outside int32 are rejected."""
        with pytest.raises(ValueError, match="int32"):
            record.encode(False, "k", value)


class TestRecordDecoding:
    """Tests for reading records back from a stream."""

    def test_decode_at_offset(self):
        """Test decoding the second of two records by offset."""
        first = record.encode(False, "a", 1)
        second = record.encode(True, "bb", -7)
        stream = io.BytesIO(first + second)

        rec = record.decode(stream, len(first))

        assert rec == Record(tombstone=True, key="bb", value=-7)
        assert stream.tell() == len(first) + len(second)

    def test_decode_empty_stream(self):
        """Test that an empty stream is end of data."""
        assert record.decode(io.BytesIO(b""), 0) is None

    @pytest.mark.parametrize("cut", [1, 3, 5, 6, 8])
    def test_decode_short_record(self, cut):
        """Test that any truncated record is end of data."""
        data = record.encode(False, "abc", 99)

        assert record.decode(io.BytesIO(data[:-cut]), 0) is None

    def test_decode_oversized_key_length(self):
        """Test that a key length beyond the bound is malformed."""
        data = b"\x00" + (MAX_KEY_LENGTH + 1).to_bytes(4, "little") + b"x" * 300

        with pytest.raises(MalformedRecordError) as exc_info:
            record.decode(io.BytesIO(data), 0)

        assert exc_info.value.offset == 0

    def test_decode_invalid_utf8_key(self):
        """Test that undecodable key bytes are malformed."""
        data = b"\x00" + (2).to_bytes(4, "little") + b"\xff\xfe" + b"\x01\x00\x00\x00"

        with pytest.raises(MalformedRecordError):
            record.decode(io.BytesIO(data), 0)

    def test_nonzero_flag_is_tombstone(self):
        """Test that any non-zero flag byte reads as deleted."""
        data = bytearray(record.encode(False, "k", 1))
        data[0] = 0x7F

        assert record.decode(io.BytesIO(bytes(data)), 0).tombstone

    def test_mark_tombstone_flips_one_byte(self):
        """Test that mark_tombstone only changes the flag byte."""
        first = record.encode(False, "a", 1)
        second = record.encode(False, "b", 2)
        stream = io.BytesIO(first + second)

        record.mark_tombstone(stream, len(first))

        after = stream.getvalue()
        assert after[: len(first)] == first
        assert after[len(first)] == 1
        assert after[len(first) + 1 :] == second[1:]


class TestValueIndex:
    """Tests for the in-memory ValueIndex."""

    def test_add_keeps_values_sorted(self):
        """Test that values are kept ascending regardless of insert order."""
        index = ValueIndex()
        for offset, value in enumerate([5, -1, 3, 10, 0]):
            index.add("k", value, offset)

        assert index.get("k") == [-1, 0, 3, 5, 10]

    def test_add_duplicate(self):
        """Test that adding an existing pair is rejected."""
        index = ValueIndex()

        assert index.add("k", 1, 0)
        assert not index.add("k", 1, 100)
        assert index.get("k") == [1]
        assert index.offset_of("k", 1) == 0

    def test_offsets_follow_values(self):
        """Test that each value keeps its own offset after reordering."""
        index = ValueIndex()
        index.add("k", 30, 0)
        index.add("k", 10, 14)
        index.add("k", 20, 28)

        assert index.snapshot() == {"k": [(10, 14), (20, 28), (30, 0)]}

    def test_remove_returns_offset(self):
        """Test that remove hands back the stored offset."""
        index = ValueIndex()
        index.add("k", 1, 0)
        index.add("k", 2, 14)

        assert index.remove("k", 2) == 14
        assert index.get("k") == [1]

    def test_remove_last_value_drops_key(self):
        """Test that a key disappears once its last value is removed."""
        index = ValueIndex()
        index.add("k", 1, 0)
        index.remove("k", 1)

        assert not index.has("k")
        assert "k" not in index
        assert len(index) == 0
        assert index.get("k") == []

    def test_remove_missing(self):
        """Test removing absent keys and values."""
        index = ValueIndex()
        index.add("k", 1, 0)

        assert index.remove("other", 1) is None
        assert index.remove("k", 2) is None
        assert index.get("k") == [1]

    def test_get_returns_copy(self):
        """Test that callers cannot mutate the index through get()."""
        index = ValueIndex()
        index.add("k", 1, 0)

        index.get("k").append(99)

        assert index.get("k") == [1]

    def test_counts_and_clear(self):
        """Test key/value counts and clear()."""
        index = ValueIndex()
        index.add("a", 1, 0)
        index.add("a", 2, 10)
        index.add("b", 1, 20)

        assert len(index) == 2
        assert index.value_count() == 3
        assert sorted(index.keys()) == ["a", "b"]

        index.clear()
        assert len(index) == 0


class TestDataFile:
    """Tests for DataFile append, tombstone and iteration."""

    def test_creates_missing_file(self, temp_dir):
        """Test that open() creates the file and parent directories."""
        path = os.path.join(temp_dir, "nested", "dir", "storage.db")
        df = DataFile(path)
        df.open()

        assert os.path.exists(path)
        assert not df.existed
        assert df.size_bytes() == 0
        df.close()

    def test_reopen_existing(self, data_path):
        """Test that an existing file is opened without truncation."""
        with DataFile(data_path) as df:
            df.append("k", 1)

        df = DataFile(data_path)
        df.open()
        assert df.existed
        assert df.size_bytes() == record.encoded_size("k")
        df.close()

    def test_append_returns_offsets(self, data_file):
        """Test that append returns each record's starting offset."""
        first = data_file.append("a", 1)
        second = data_file.append("bb", 2)

        assert first == 0
        assert second == record.encoded_size("a")
        assert data_file.size_bytes() == second + record.encoded_size("bb")

    def test_iterate(self, data_file):
        """Test iterating offsets and records in file order."""
        offsets = [data_file.append(f"key{i}", i) for i in range(5)]

        entries = list(data_file)

        assert [offset for offset, _ in entries] == offsets
        assert [rec.key for _, rec in entries] == [f"key{i}" for i in range(5)]
        assert all(not rec.tombstone for _, rec in entries)

    def test_mark_deleted(self, data_file):
        """Test that mark_deleted flags exactly one record."""
        data_file.append("a", 1)
        offset = data_file.append("b", 2)
        size = data_file.size_bytes()

        data_file.mark_deleted(offset)

        entries = [rec for _, rec in data_file]
        assert [rec.tombstone for rec in entries] == [False, True]
        assert data_file.size_bytes() == size
        assert data_file.read(offset) == Record(tombstone=True, key="b", value=2)

    def test_iterator_end_offset(self, data_file):
        """Test that end_offset stops before a truncated tail."""
        data_file.append("a", 1)
        good = data_file.size_bytes()
        data_file.close()

        with open(data_file.file_path, "ab") as f:
            f.write(b"\x00\x03\x00")

        records = iter(DataFile(data_file.file_path))
        assert len(list(records)) == 1
        assert records.end_offset == good

    def test_append_closed_error(self, data_path):
        """Test that append fails on a closed DataFile."""
        df = DataFile(data_path)

        with pytest.raises(RuntimeError, match="not open"):
            df.append("k", 1)

    def test_append_rejects_long_key(self, data_file):
        """Test that an oversized key leaves the file untouched."""
        with pytest.raises(KeyTooLongError):
            data_file.append("k" * (MAX_KEY_LENGTH + 1), 1)

        assert data_file.size_bytes() == 0

    def test_truncate(self, data_file):
        """Test dropping bytes past a given offset."""
        data_file.append("a", 1)
        keep = data_file.size_bytes()
        data_file.append("b", 2)

        data_file.truncate(keep)

        assert data_file.size_bytes() == keep
        assert [rec.key for _, rec in data_file] == ["a"]

    def test_context_manager(self, data_path):
        """Test DataFile context manager opens and closes correctly."""
        with DataFile(data_path) as df:
            assert df.is_open()

        assert df._file is None

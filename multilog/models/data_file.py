import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from multilog.models import record
from multilog.models.record import Record

logger = logging.getLogger(__name__)


class DataFile:
    """
    Append-only binary log of records.

    Records are only ever appended. The single exception to immutability
    is the tombstone flag, which may be flipped in place from live to
    deleted. Supports iteration for rebuilding in-memory state.
    """

    def __init__(self, file_path: str, sync_writes: bool = False) -> None:
        """
        Initialize DataFile.

        Args:
            file_path: Path to the data file.
            sync_writes: If True, fsync after every write. Otherwise writes
                are only flushed to the OS.
        """
        self.file_path = file_path
        self.sync_writes = sync_writes
        self._file: BinaryIO | None = None
        self._existed: bool = False

    @property
    def existed(self) -> bool:
        """Whether the file was already on disk when it was opened."""
        return self._existed

    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> None:
        """Open the data file, creating it empty if absent."""
        Path(self.file_path).parent.mkdir(parents=True, exist_ok=True)
        self._existed = os.path.exists(self.file_path)
        mode = "r+b" if self._existed else "w+b"
        self._file = open(self.file_path, mode)
        if not self._existed:
            logger.info(f"Created data file {self.file_path}")

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise RuntimeError("DataFile is not open")
        return self._file

    def _perform_flush(self) -> None:
        """Flush Python buffers to the OS, and to disk if sync_writes is set."""
        self._file.flush()
        if self.sync_writes:
            _sync_data = getattr(os, "fdatasync", os.fsync)
            _sync_data(self._file.fileno())

    def append(self, key: str, value: int) -> int:
        """
        Append a live record.

        Args:
            key: The record key.
            value: The record value.

        Returns:
            The byte offset at which the record starts.

        Raises:
            RuntimeError: If the file is not open.
            KeyTooLongError: If the key does not fit the record format.
            ValueError: If value is outside the int32 range.
        """
        f = self._require_open()
        data = record.encode(False, key, value)

        offset = f.seek(0, os.SEEK_END)
        f.write(data)
        self._perform_flush()
        return offset

    def mark_deleted(self, offset: int) -> None:
        """
        Flip the tombstone flag of the record at offset.

        Raises:
            RuntimeError: If the file is not open.
        """
        f = self._require_open()
        record.mark_tombstone(f, offset)
        self._perform_flush()

    def truncate(self, offset: int) -> None:
        """
        Discard every byte from offset onwards.

        Only meant for dropping unreadable trailing garbage found by a
        replay; live records are never truncated.
        """
        f = self._require_open()
        f.truncate(offset)
        self._perform_flush()

    def read(self, offset: int) -> Record | None:
        """Decode the record at offset using the open handle."""
        return record.decode(self._require_open(), offset)

    def size_bytes(self) -> int:
        if self._file is not None:
            return os.fstat(self._file.fileno()).st_size
        if os.path.exists(self.file_path):
            return os.path.getsize(self.file_path)
        return 0

    def close(self) -> None:
        """Close the data file, flushing pending writes."""
        if self._file:
            self._perform_flush()
            self._file.close()
            self._file = None

    def __enter__(self) -> "DataFile":
        if self._file is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> "RecordIterator":
        """Iterate over (offset, Record) pairs from the start of the file."""
        if self._file is not None:
            self._file.flush()
        return RecordIterator(self.file_path)


class RecordIterator(Iterator[tuple[int, Record]]):
    """
    Iterator over the records of a data file.

    Stops at the end of the file or at a short trailing record. A
    MalformedRecordError from the codec propagates to the caller.
    After iteration, end_offset holds the offset where reading stopped.
    """

    def __init__(self, file_path: str) -> None:
        self._file_path = file_path
        self._file: BinaryIO | None = None
        self.end_offset = 0
        if os.path.exists(file_path):
            self._file = open(file_path, "rb")

    def __iter__(self) -> Iterator[tuple[int, Record]]:
        return self

    def __next__(self) -> tuple[int, Record]:
        if self._file is None:
            raise StopIteration

        offset = self.end_offset
        try:
            rec = record.decode(self._file, offset)
        except Exception:
            self.close()
            raise

        if rec is None:
            self.close()
            raise StopIteration

        self.end_offset = self._file.tell()
        return offset, rec

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def __del__(self) -> None:
        self.close()

    def __enter__(self) -> "RecordIterator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

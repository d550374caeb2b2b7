"""
Engine - Main storage engine API.
"""

import logging
import os
from enum import Enum

from multilog.engine.recoverer import IndexRecoverer, RecoveryStats
from multilog.models.data_file import DataFile
from multilog.models.exceptions import EngineStateError
from multilog.models.record import encode_key, validate_value
from multilog.models.value_index import ValueIndex

logger = logging.getLogger(__name__)


class EngineState(Enum):
    CLOSED = "closed"
    REBUILDING = "rebuilding"
    READY = "ready"


class Engine:
    """
    Persistent multimap from string keys to sets of int32 values.

    Provides:
    - insert(key, value): Add a value to a key (idempotent)
    - delete(key, value): Remove a value from a key
    - find(key): Sorted values for a key, or None

    Architecture:
    - Every insert appends one record to the data file
    - Every delete flips one tombstone byte in place
    - Reads are served from the in-memory ValueIndex only
    - On open, the index is rebuilt by replaying the whole data file
    """

    def __init__(
        self,
        file_path: str,
        sync_writes: bool = False,
        truncate_garbage: bool = False,
    ) -> None:
        """
        Initialize the storage engine. Call open() before use.

        Args:
            file_path: Path of the data file.
            sync_writes: fsync the data file after every write.
            truncate_garbage: Drop unreadable trailing bytes found while
                rebuilding, so that later appends stay reachable.
        """
        if not file_path or not file_path.strip():
            raise ValueError("file_path cannot be empty")

        file_path = os.path.abspath(file_path)

        if os.path.isdir(file_path):
            raise ValueError(f"file_path is a directory: {file_path}")

        self._file_path = file_path
        self._truncate_garbage = truncate_garbage
        self._data_file = DataFile(file_path, sync_writes=sync_writes)
        self._index = ValueIndex()
        self._recoverer = IndexRecoverer()
        self._state = EngineState.CLOSED
        self._last_recovery: RecoveryStats | None = None

    @classmethod
    def create(cls, file_path: str, **kwargs) -> "Engine":
        """
        Factory method to create and open an engine.

        Returns:
            Engine in the READY state.
        """
        engine = cls(file_path, **kwargs)
        engine.open()
        return engine

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def file_path(self) -> str:
        return self._file_path

    @property
    def index(self) -> ValueIndex:
        return self._index

    @property
    def last_recovery(self) -> RecoveryStats | None:
        return self._last_recovery

    def open(self) -> None:
        """
        Open the data file and bring the engine to READY.

        A missing file is created empty. An existing file is replayed to
        rebuild the index.
        """
        if self._state != EngineState.CLOSED:
            raise EngineStateError(f"Engine is already {self._state.value}")

        self._index.clear()
        self._last_recovery = None
        self._data_file.open()
        try:
            if self._data_file.existed:
                self._rebuild()
        except Exception:
            self._data_file.close()
            self._state = EngineState.CLOSED
            raise

        self._state = EngineState.READY
        logger.info(
            f"Engine ready: {len(self._index)} keys, "
            f"{self._index.value_count()} values in {self._file_path}"
        )

    def rebuild(self) -> RecoveryStats:
        """
        Discard the index and replay the data file again.

        If the replay fails the engine is closed, since the index no longer
        mirrors the file.
        """
        self._require_ready()
        try:
            stats = self._rebuild()
        except Exception:
            self.close()
            raise

        self._state = EngineState.READY
        return stats

    def _rebuild(self) -> RecoveryStats:
        self._state = EngineState.REBUILDING
        self._index.clear()

        stats = self._recoverer.recover(self._data_file, self._index)
        self._last_recovery = stats
        logger.debug(f"Replayed {self._file_path}: {stats}")

        if stats.trailing_bytes and self._truncate_garbage:
            logger.warning(
                f"Truncating {self._file_path} to {stats.bytes_read} bytes"
            )
            self._data_file.truncate(stats.bytes_read)
            stats.trailing_bytes = 0

        return stats

    def _require_ready(self) -> None:
        if self._state != EngineState.READY:
            raise EngineStateError(f"Engine is {self._state.value}, not ready")

    def insert(self, key: str, value: int) -> bool:
        """
        Associate value with key.

        Args:
            key: The key, at most 256 bytes once UTF-8 encoded.
            value: Signed 32-bit integer.

        Returns:
            True if a record was written, False if the pair already existed.
        """
        self._require_ready()
        encode_key(key)
        validate_value(value)

        if self._index.contains(key, value):
            return False

        offset = self._data_file.append(key, value)
        self._index.add(key, value, offset)
        return True

    def delete(self, key: str, value: int) -> bool:
        """
        Remove value from key by tombstoning its record.

        Returns:
            True if the pair existed and was deleted, False otherwise.
        """
        self._require_ready()

        offset = self._index.offset_of(key, value)
        if offset is None:
            return False

        self._data_file.mark_deleted(offset)
        self._index.remove(key, value)
        return True

    def find(self, key: str) -> list[int] | None:
        """
        Look up the values of a key.

        Served from the index only; the data file is not read.

        Returns:
            The values in ascending order, or None if the key has none.
        """
        self._require_ready()
        values = self._index.get(key)
        return values or None

    def close(self) -> None:
        """Release the data file handle."""
        self._data_file.close()
        self._state = EngineState.CLOSED

    def __enter__(self) -> "Engine":
        if self._state == EngineState.CLOSED:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

"""
IndexRecoverer - Rebuild the ValueIndex by replaying the data file.
"""

import logging
from dataclasses import dataclass

from multilog.models.data_file import DataFile
from multilog.models.exceptions import MalformedRecordError
from multilog.models.value_index import ValueIndex

logger = logging.getLogger(__name__)


@dataclass
class RecoveryStats:
    """Counters collected while replaying a data file."""

    records: int = 0
    live: int = 0
    tombstoned: int = 0
    duplicates: int = 0
    bytes_read: int = 0
    trailing_bytes: int = 0


class IndexRecoverer:
    """
    Recovers a ValueIndex from a data file.

    Used during startup to make the in-memory index mirror the live
    records on disk.
    """

    def recover(self, data_file: DataFile, index: ValueIndex) -> RecoveryStats:
        """
        Replay every record into the index.

        Tombstoned records are skipped. A malformed record ends the scan;
        it and everything after it are ignored as trailing garbage.

        Args:
            data_file: The data file to replay.
            index: Empty index to populate.

        Returns:
            Statistics about the replay.
        """
        stats = RecoveryStats()
        records = iter(data_file)

        try:
            for offset, rec in records:
                stats.records += 1
                if rec.tombstone:
                    stats.tombstoned += 1
                    continue
                if index.add(rec.key, rec.value, offset):
                    stats.live += 1
                else:
                    # Never produced by the engine itself; keep the first copy
                    stats.duplicates += 1
                    logger.warning(
                        f"Duplicate live record ({rec.key!r}, {rec.value}) at offset {offset}"
                    )
        except MalformedRecordError as e:
            logger.warning(f"Stopping replay of {data_file.file_path}: {e}")

        stats.bytes_read = records.end_offset
        stats.trailing_bytes = data_file.size_bytes() - records.end_offset
        if stats.trailing_bytes:
            logger.warning(
                f"Ignoring {stats.trailing_bytes} unreadable trailing bytes "
                f"in {data_file.file_path} at offset {records.end_offset}"
            )

        return stats

"""
Data models for the storage engine.
"""

from multilog.models.data_file import DataFile
from multilog.models.exceptions import (
    EngineStateError,
    KeyTooLongError,
    MalformedRecordError,
)
from multilog.models.record import Record
from multilog.models.value_index import ValueIndex

__all__ = [
    "DataFile",
    "EngineStateError",
    "KeyTooLongError",
    "MalformedRecordError",
    "Record",
    "ValueIndex",
]

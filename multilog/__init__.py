"""
Persistent string -> int32 multimap backed by an append-only log.

This package provides a small storage engine with:
- insert(key, value) - Idempotent, one record appended per new pair
- delete(key, value) - Tombstone flip in place, no file rescan
- find(key) - Sorted values served from the in-memory index
- Index rebuilt from the data file on every open
"""

from multilog.engine.engine import Engine, EngineState

__all__ = ["Engine", "EngineState"]

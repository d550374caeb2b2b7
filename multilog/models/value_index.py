"""
ValueIndex - In-memory secondary index over the data file.
"""

import bisect


class ValueIndex:
    """
    Maps each live key to its values in ascending order.

    Every value is paired with the file offset of the record that
    introduced it, so deletes can flip the right tombstone without
    scanning the file. Keys with no values are never stored.

    Supports:
    - O(log M) membership checks via binary search (M = values per key)
    - O(M) insert and remove to keep the sequence sorted
    """

    def __init__(self) -> None:
        # key -> (sorted values, offsets parallel to values)
        self._entries: dict[str, tuple[list[int], list[int]]] = {}

    def _search(self, key: str, value: int) -> int | None:
        """Return the position of value under key, or None if absent."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        values = entry[0]
        pos = bisect.bisect_left(values, value)
        if pos < len(values) and values[pos] == value:
            return pos
        return None

    def contains(self, key: str, value: int) -> bool:
        return self._search(key, value) is not None

    def offset_of(self, key: str, value: int) -> int | None:
        pos = self._search(key, value)
        if pos is None:
            return None
        return self._entries[key][1][pos]

    def add(self, key: str, value: int, offset: int) -> bool:
        """
        Insert value under key at its sort position.

        Args:
            key: The key.
            value: The value to add.
            offset: File offset of the record holding this pair.

        Returns:
            True if added, False if the pair was already present.
        """
        values, offsets = self._entries.setdefault(key, ([], []))
        pos = bisect.bisect_left(values, value)
        if pos < len(values) and values[pos] == value:
            return False
        values.insert(pos, value)
        offsets.insert(pos, offset)
        return True

    def remove(self, key: str, value: int) -> int | None:
        """
        Remove value from key, dropping the key once it has no values.

        Returns:
            The offset that was stored for the pair, or None if absent.
        """
        pos = self._search(key, value)
        if pos is None:
            return None
        values, offsets = self._entries[key]
        del values[pos]
        offset = offsets.pop(pos)
        if not values:
            del self._entries[key]
        return offset

    def get(self, key: str) -> list[int]:
        """Return a copy of the sorted values for key (empty if absent)."""
        entry = self._entries.get(key)
        if entry is None:
            return []
        return list(entry[0])

    def has(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        return list(self._entries)

    def value_count(self) -> int:
        return sum(len(values) for values, _ in self._entries.values())

    def snapshot(self) -> dict[str, list[tuple[int, int]]]:
        """Return key -> [(value, offset), ...] for comparison and debugging."""
        return {
            key: list(zip(values, offsets))
            for key, (values, offsets) in self._entries.items()
        }

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

from typing import Any, Dict, Hashable


_MISSING = object()


class QueryCache:
    """In-memory results of read queries, keyed by arbitrary hashable keys."""

    def __init__(self):
        self._entries: Dict[Hashable, Any] = {}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, prefix: str) -> None:
        """Drop every entry whose key is, or starts with, ``prefix``."""
        for key in list(self._entries):
            head = key[0] if isinstance(key, tuple) and key else key
            if head == prefix:
                del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()


class RequestGenerations:
    """Generation counters telling a response whether it is still wanted.

    ``begin`` hands out a token for a query kind; only the newest token of a
    kind stays current, and ``reset`` retires all of them.
    """

    def __init__(self):
        self._counter = 0
        self._latest: Dict[str, int] = {}

    def begin(self, key: str) -> int:
        self._counter += 1
        self._latest[key] = self._counter
        return self._counter

    def is_current(self, key: str, token: int) -> bool:
        return self._latest.get(key, _MISSING) == token

    def reset(self) -> None:
        self._latest.clear()

"""Simple in-memory TTL cache for upstream slot payloads.

Staleness is checked lazily on lookup. Stale entries are not deleted; the next
successful fetch for the same key overwrites them.

Note: Each uvicorn worker has its own cache instance (and its own browser),
so with --workers 2 a date may be fetched once per worker.
"""

import time
from typing import Any, Callable, NamedTuple


class CacheEntry(NamedTuple):
    value: Any
    fetched_at: float


class TTLCache:
    def __init__(self, ttl_seconds: float = 10, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}

    def lookup(self, key: str) -> CacheEntry | None:
        """Fresh entry for a key, or None. The cached value itself may be None."""
        entry = self._store.get(key)
        if entry is not None and self._clock() - entry.fetched_at < self.ttl_seconds:
            return entry
        return None

    def get(self, key: str) -> Any | None:
        entry = self.lookup(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any) -> None:
        self._store[key] = CacheEntry(value, self._clock())

    def entry(self, key: str) -> CacheEntry | None:
        """Raw entry for a key, fresh or stale."""
        return self._store.get(key)

    def __len__(self) -> int:
        return len(self._store)

"""Process-wide memoisation of list responses keyed by request shape."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class TTLResultCache:
    """TTL cache with lazy eviction.

    Expired entries are dropped when they are next read, or when the table is
    full and room is needed for a new key. Concurrent misses on the same key
    each run their producer; the last writer wins.
    """

    def __init__(self, max_entries: int = 5000, clock: Callable[[], float] = time.monotonic) -> None:
        self._max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        expires_at = self._clock() + ttl_seconds
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                self._make_room()
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)

    def get_or_compute(self, key: str, ttl_seconds: float, producer: Callable[[], T]) -> T:
        """Return the live entry for ``key`` or store and return ``producer()``.

        A producer error propagates unchanged and leaves ``key`` absent.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now < entry.expires_at:
                return entry.value
        value = producer()
        self.set(key, value, ttl_seconds)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"size": len(self._entries), "capacity": self._max_entries}

    def _make_room(self) -> None:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for k in expired:
            del self._entries[k]
        if len(self._entries) >= self._max_entries:
            # Oldest insertion goes first.
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug(f"Result cache full, evicted {oldest}")

"""Fixed-window request counters backed by ``limits``, with a bounded key table."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter as LimitsFixedWindow

from handpicked_api.application.errors import RateLimitedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    count: int
    limit: int
    reset_in_seconds: float


class FixedWindowRateLimiter:
    """Counts hits per key in fixed windows of ``window_seconds``.

    Window counting is done by ``limits`` over in-process ``MemoryStorage``.
    At most ``capacity`` keys are tracked; the least recently used key is
    cleared first whether or not its window is still open.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int = 60,
        capacity: int = 50000,
        name: str = "rate-limiter",
    ) -> None:
        self.limit = limit
        self.window_seconds = int(window_seconds)
        self.capacity = capacity
        self.name = name
        self._item = RateLimitItemPerSecond(limit, self.window_seconds, namespace=name)
        self._storage = MemoryStorage()
        self._limiter = LimitsFixedWindow(self._storage)
        self._keys: "OrderedDict[str, None]" = OrderedDict()
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateDecision:
        with self._lock:
            self._limiter.hit(self._item, key)
            count = self._storage.get(self._item.key_for(key))
            reset_time = self._limiter.get_window_stats(self._item, key).reset_time
            self._keys[key] = None
            self._keys.move_to_end(key)
            while len(self._keys) > self.capacity:
                evicted, _ = self._keys.popitem(last=False)
                self._limiter.clear(self._item, evicted)
        reset_in = max(reset_time - time.time(), 0.0)
        return RateDecision(allowed=count <= self.limit, count=count, limit=self.limit, reset_in_seconds=reset_in)

    def check(self, key: str) -> RateDecision:
        """Record a hit and raise RateLimitedError when over the limit."""
        decision = self.hit(key)
        if not decision.allowed:
            logger.warning(f"{self.name}: rejected {key!r} ({decision.count}/{self.limit} in window)")
            raise RateLimitedError(
                "Too many requests, please try again later",
                retry_after_seconds=self.window_seconds,
            )
        return decision

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)

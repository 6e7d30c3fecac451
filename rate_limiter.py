"""
Expiring key -> timestamp store used to throttle repeated requests.

Each key may pass once per ``interval`` seconds. The store holds at most
``capacity`` keys; expired keys are purged on access and the oldest key is
evicted when the store is full. Instances are plain objects owned by the
caller (not thread-safe).
"""

import time
from collections import OrderedDict
from typing import Callable

from config import RATE_LIMITER_CAPACITY


class RateLimiter:
    def __init__(
        self,
        interval: float,
        capacity: int = RATE_LIMITER_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.interval = interval
        self.capacity = capacity
        self.clock = clock
        # key -> time of last allowed hit, oldest first
        self._hits: "OrderedDict[str, float]" = OrderedDict()

    def __len__(self) -> int:
        self._purge(self.clock())
        return len(self._hits)

    def _purge(self, now: float) -> None:
        while self._hits:
            key, hit = next(iter(self._hits.items()))
            if now - hit < self.interval:
                break
            del self._hits[key]

    def retry_after(self, key: str) -> float:
        """Seconds until ``key`` may pass again; 0 when it may pass now."""
        now = self.clock()
        self._purge(now)
        hit = self._hits.get(key)
        if hit is None:
            return 0.0
        return max(0.0, self.interval - (now - hit))

    def allow(self, key: str) -> bool:
        """Record a hit for ``key`` and return True, or return False if throttled."""
        now = self.clock()
        self._purge(now)
        if key in self._hits:
            return False
        if len(self._hits) >= self.capacity:
            self._hits.popitem(last=False)
        self._hits[key] = now
        return True

    def reset(self, key: str) -> None:
        self._hits.pop(key, None)

    def clear(self) -> None:
        self._hits.clear()

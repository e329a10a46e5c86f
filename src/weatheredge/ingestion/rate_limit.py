"""Process-wide budget for order-book calls. Requests over budget degrade to fallback prices."""

from __future__ import annotations

import time
from typing import Any, Callable


class TokenBucket:
    """Refills `rate` tokens per second up to `capacity`. Never blocks; callers fall back instead."""

    def __init__(self, rate: float = 5.0, capacity: int | None = None, clock: Callable[[], float] | None = None) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = rate
        self.capacity = capacity or max(1, int(rate * 2))
        self.tokens = float(self.capacity)
        self._clock = clock or time.monotonic
        self._last = self._clock()
        self.granted = 0
        self.rejected = 0

    def _refill(self) -> None:
        now = self._clock()
        self.tokens = min(self.capacity, self.tokens + (now - self._last) * self.rate)
        self._last = now

    @property
    def available(self) -> float:
        self._refill()
        return self.tokens

    def consume(self, n: int = 1) -> bool:
        """Take n tokens if present. Not thread-safe; enrichment runs on one event loop."""
        self._refill()
        if self.tokens < n:
            self.rejected += 1
            return False
        self.tokens -= n
        self.granted += 1
        return True

    def stats(self) -> dict[str, Any]:
        return {
            "rate_per_sec": self.rate,
            "capacity": self.capacity,
            "available": round(self.available, 2),
            "granted": self.granted,
            "rejected": self.rejected,
        }

"""In-process TTL caches with an injectable clock. Expiry is lazy: stale entries read as absent."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]

DEFAULT_KEY = "default"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    payload: T
    timestamp: float


class TTLCache(Generic[T]):
    """Key -> {payload, timestamp}. An entry is valid only while now - timestamp < ttl."""

    def __init__(self, name: str, ttl_sec: float, clock: Clock | None = None) -> None:
        self.name = name
        self.ttl_sec = ttl_sec
        self._clock = clock or time.time
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl_sec:
            return None
        return entry.payload

    def set(self, key: str, payload: T) -> None:
        # Last write wins; concurrent refills of the same key are idempotent
        self._entries[key] = CacheEntry(payload=payload, timestamp=self._clock())

    def age(self, key: str) -> float | None:
        entry = self._entries.get(key)
        return None if entry is None else self._clock() - entry.timestamp

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def live_count(self) -> int:
        now = self._clock()
        return sum(1 for e in self._entries.values() if now - e.timestamp < self.ttl_sec)

    def stats(self) -> dict[str, Any]:
        return {
            "entries": len(self._entries),
            "live": self.live_count(),
            "ttl_sec": self.ttl_sec,
        }


class CacheService:
    """The four engine caches. Constructed once per process and passed to the pipeline."""

    def __init__(
        self,
        *,
        location_ttl_sec: float = 5 * 60,
        market_detail_ttl_sec: float = 10 * 60,
        catalog_ttl_sec: float = 30 * 60,
        category_metadata_ttl_sec: float = 24 * 60 * 60,
        clock: Clock | None = None,
    ) -> None:
        self.clock = clock or time.time
        self.locations: TTLCache[Any] = TTLCache("locations", location_ttl_sec, self.clock)
        self.market_details: TTLCache[Any] = TTLCache("market_details", market_detail_ttl_sec, self.clock)
        self.catalogs: TTLCache[Any] = TTLCache("catalogs", catalog_ttl_sec, self.clock)
        self.category_metadata: TTLCache[Any] = TTLCache(
            "category_metadata", category_metadata_ttl_sec, self.clock
        )

    @classmethod
    def from_settings(cls, settings: Any, clock: Clock | None = None) -> CacheService:
        return cls(
            location_ttl_sec=settings.location_ttl_sec,
            market_detail_ttl_sec=settings.market_detail_ttl_sec,
            catalog_ttl_sec=settings.catalog_ttl_sec,
            category_metadata_ttl_sec=settings.category_metadata_ttl_sec,
            clock=clock,
        )

    @staticmethod
    def location_key(location: str) -> str:
        return f"markets_{location.strip().lower()}"

    @staticmethod
    def catalog_key(category: str | None) -> str:
        return category or DEFAULT_KEY

    def caches(self) -> list[TTLCache[Any]]:
        return [self.locations, self.market_details, self.catalogs, self.category_metadata]

    def clear(self) -> None:
        for c in self.caches():
            c.clear()

    def stats(self) -> dict[str, dict[str, Any]]:
        return {c.name: c.stats() for c in self.caches()}

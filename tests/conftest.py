"""Shared fixtures: market builder, fake feed/book source, fake clock, test settings."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from weatheredge.cache import CacheService
from weatheredge.config.settings import Settings
from weatheredge.errors import UpstreamError
from weatheredge.models import Market, OrderBookSnapshot, Outcome, PriceLevel

NOW = datetime.now(timezone.utc).replace(microsecond=0)


def build_market(
    market_id: str = "m1",
    title: str = "Will it rain at the game?",
    *,
    days_out: float | None = 3,
    volume: float = 100_000,
    liquidity: float = 50_000,
    yes: float | None = 0.5,
    no: float | None = 0.5,
    token: str = "tok-m1",
    tags: list[Any] | None = None,
    **kw: Any,
) -> Market:
    outcomes = []
    if yes is not None and no is not None:
        outcomes = [
            Outcome(token_id=token, name="Yes", price=yes),
            Outcome(token_id=f"{token}-no", name="No", price=no),
        ]
    kw.setdefault("volume_1wk", volume * 7)
    return Market(
        market_id=market_id,
        title=title,
        resolution_date=NOW + timedelta(days=days_out) if days_out is not None else None,
        volume_24h=volume,
        liquidity=liquidity,
        outcomes=outcomes,
        tags=tags or [],
        **kw,
    )


def book(token: str, bids: list[tuple[float, float]], asks: list[tuple[float, float]]) -> OrderBookSnapshot:
    return OrderBookSnapshot(
        asset_id=token,
        bids=[PriceLevel(price=p, size=s) for p, s in bids],
        asks=[PriceLevel(price=p, size=s) for p, s in asks],
    )


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFeed:
    """In-memory MarketFeed. Records every call; `error` makes listing calls fail."""

    def __init__(self, markets: list[Market] | None = None, sports: list[dict[str, Any]] | None = None) -> None:
        self.markets = list(markets or [])
        self.sports = sports or []
        self.error: UpstreamError | None = None
        self.listing_calls: list[dict[str, Any]] = []
        self.detail_calls: list[str] = []
        self.sports_calls = 0

    async def fetch_active_markets(self, tag_ids=None, limit=None, event_type=None) -> list[Market]:
        self.listing_calls.append({"tag_ids": tag_ids, "event_type": event_type})
        if self.error is not None:
            raise self.error
        if event_type:
            return [m.model_copy(update={"category": event_type}) for m in self.markets]
        return list(self.markets)

    async def fetch_market(self, market_id: str) -> Market | None:
        self.detail_calls.append(market_id)
        if self.error is not None:
            raise self.error
        return next((m for m in self.markets if m.market_id == market_id), None)

    async def fetch_sports(self) -> list[dict[str, Any]]:
        self.sports_calls += 1
        return self.sports


class FakeBookSource:
    """token_id -> snapshot, or an exception to raise for that token."""

    def __init__(self, books: dict[str, OrderBookSnapshot | Exception] | None = None) -> None:
        self.books = books or {}
        self.calls: list[str] = []

    async def fetch_order_book(self, token_id: str) -> OrderBookSnapshot:
        self.calls.append(token_id)
        found = self.books.get(token_id)
        if isinstance(found, Exception):
            raise found
        if found is None:
            raise UpstreamError(f"GET /book returned 404 for {token_id}", status_code=404)
        return found


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CacheService:
    return CacheService(clock=clock)


@pytest.fixture
def settings() -> Settings:
    return Settings.from_dict(
        {
            "feed": {
                "gamma_api_base": "https://gamma.test",
                "clob_api_base": "https://clob.test",
                "timeout_sec": 2,
                "order_book_timeout_sec": 1,
            },
            "ranking": {"default_limit": 10, "max_limit": 50, "default_min_volume": 50000},
            "enrichment": {"order_book_rate": 100, "order_book_burst": 100},
        }
    )


@pytest.fixture
def feed() -> FakeFeed:
    return FakeFeed()


@pytest.fixture
def books() -> FakeBookSource:
    return FakeBookSource()


@pytest.fixture
def engine(settings, feed, books, cache):
    from weatheredge.intel.engine import MarketIntelligence

    return MarketIntelligence(settings, feed=feed, book_source=books, cache=cache)

"""Connector protocols the engine depends on. Polymarket implements both; tests plug in fakes."""

from __future__ import annotations

from typing import Any, Protocol

from weatheredge.models import Market, OrderBookSnapshot


class MarketFeed(Protocol):
    """Bulk market discovery (one request per tag, never per market)."""

    async def fetch_active_markets(
        self,
        tag_ids: list[str] | None = None,
        limit: int | None = None,
        event_type: str | None = None,
    ) -> list[Market]: ...

    async def fetch_market(self, market_id: str) -> Market | None: ...

    async def fetch_sports(self) -> list[dict[str, Any]]: ...


class OrderBookSource(Protocol):
    """Per-token L2 book. May be unavailable or rate limited at any time (raises UpstreamError)."""

    async def fetch_order_book(self, token_id: str) -> OrderBookSnapshot: ...

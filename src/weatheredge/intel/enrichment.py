"""Late enrichment: live order book for the returned subset, else the price-source fallback chain."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable

import structlog

from weatheredge.errors import UpstreamError
from weatheredge.ingestion.base import OrderBookSource
from weatheredge.ingestion.rate_limit import TokenBucket
from weatheredge.models import DepthImpact, Market, OrderBookMetrics, RankedMarket
from weatheredge.orderbook.book import OrderBook

log = structlog.get_logger(__name__)

NEUTRAL_PRICE = 0.5
MIN_SYNTHETIC_BID = 0.001


@dataclass(frozen=True)
class PriceQuote:
    best_bid: float
    best_ask: float
    source: str


# A source returns a quote, or None to skip to the next one
PriceSource = Callable[[Market, float], PriceQuote | None]


def outcome_prices(market: Market, offset: float) -> PriceQuote | None:
    """YES price as the ask, 1 - NO price as the bid."""
    odds = market.current_odds
    if odds is None:
        return None
    yes, no = odds
    if yes <= 0 or no <= 0:
        return None
    a, b = yes, 1 - no
    return PriceQuote(best_bid=min(a, b), best_ask=max(a, b), source="outcome_prices")


def bid_ask_fields(market: Market, offset: float) -> PriceQuote | None:
    if not market.best_bid or not market.best_ask:
        return None
    return PriceQuote(best_bid=market.best_bid, best_ask=market.best_ask, source="bid_ask_fields")


def last_trade(market: Market, offset: float) -> PriceQuote | None:
    """Last trade as the ask, widened by a fixed offset for a synthetic bid."""
    p = market.last_trade_price
    if not p:
        return None
    return PriceQuote(best_bid=max(MIN_SYNTHETIC_BID, p - offset), best_ask=p, source="last_trade")


def neutral_default(market: Market, offset: float) -> PriceQuote | None:
    return PriceQuote(best_bid=NEUTRAL_PRICE, best_ask=NEUTRAL_PRICE, source="neutral_default")


PRICE_SOURCES: list[PriceSource] = [outcome_prices, bid_ask_fields, last_trade, neutral_default]


def quote(market: Market, offset: float = 0.01, sources: list[PriceSource] | None = None) -> PriceQuote:
    for source in sources or PRICE_SOURCES:
        q = source(market, offset)
        if q is not None:
            return q
    return PriceQuote(best_bid=NEUTRAL_PRICE, best_ask=NEUTRAL_PRICE, source="neutral_default")


def fallback_metrics(market: Market, offset: float = 0.01) -> OrderBookMetrics:
    """Book metrics from fields already on the record. Depths are estimated from liquidity."""
    q = quote(market, offset)
    spread = market.spread if market.spread and market.spread > 0 else max(q.best_ask - q.best_bid, 0.0)
    mid = (q.best_bid + q.best_ask) / 2
    half = market.liquidity * 0.5
    return OrderBookMetrics(
        best_bid=q.best_bid,
        best_ask=q.best_ask,
        mid_price=mid,
        spread=spread,
        spread_pct=spread / mid * 100 if spread > 0 and mid > 0 else 0.0,
        bid_depth=half,
        ask_depth=half,
        total_depth=market.liquidity,
        source=q.source,
        estimated_depth=True,
    )


class Enricher:
    """Fetches order books for ranked markets. Failures degrade only the affected item."""

    def __init__(
        self,
        source: OrderBookSource,
        *,
        bucket: TokenBucket | None = None,
        target_movement: float = 0.05,
        last_trade_offset: float = 0.01,
    ) -> None:
        self.source = source
        self.bucket = bucket
        self.target_movement = target_movement
        self.last_trade_offset = last_trade_offset

    @classmethod
    def from_settings(cls, settings: Any, source: OrderBookSource) -> Enricher:
        return cls(
            source,
            bucket=TokenBucket(rate=settings.order_book_rate, capacity=settings.order_book_burst),
            target_movement=settings.depth_target_movement,
            last_trade_offset=settings.last_trade_offset,
        )

    def _fallback(self, item: RankedMarket, reason: str) -> RankedMarket:
        metrics = fallback_metrics(item.market, self.last_trade_offset)
        if metrics.source == "neutral_default":
            log.warning("degraded_price_data", market_id=item.market_id, reason=reason)
        else:
            log.info("order_book_fallback", market_id=item.market_id, reason=reason, source=metrics.source)
        return item.model_copy(
            update={
                "order_book": metrics,
                "depth_impact": DepthImpact(target_movement=self.target_movement),
                "enriched": False,
                "enrichment_source": "fallback",
            }
        )

    async def enrich(self, item: RankedMarket) -> RankedMarket:
        """Attach order-book metrics and a depth-impact estimate. Never raises for upstream failures."""
        token_id = item.market.yes_token_id
        if token_id is None:
            return self._fallback(item, "no_token")
        if self.bucket is not None and not self.bucket.consume():
            return self._fallback(item, "rate_limited_local")
        try:
            snapshot = await self.source.fetch_order_book(token_id)
        except UpstreamError as e:
            return self._fallback(item, "rate_limited" if e.rate_limited else f"upstream_error: {e}")
        book = OrderBook.from_snapshot(snapshot)
        if book.is_empty:
            return self._fallback(item, "empty_book")
        return item.model_copy(
            update={
                "order_book": book.metrics(),
                "depth_impact": book.depth_impact(self.target_movement),
                "enriched": True,
                "enrichment_source": "order_book_api",
            }
        )

    async def enrich_all(self, items: list[RankedMarket]) -> list[RankedMarket]:
        """Enrich concurrently; output keeps the input (rank) order regardless of completion order."""
        results = await asyncio.gather(*(self.enrich(i) for i in items), return_exceptions=True)
        out = []
        for item, result in zip(items, results):
            if isinstance(result, Exception):
                log.warning("enrichment_failed", market_id=item.market_id, error=repr(result))
                result = self._fallback(item, "error")
            elif isinstance(result, BaseException):
                raise result
            out.append(result)
        return out

"""Catalog builder: one bulk listing per category, metadata extraction and cheap metrics, TTL-cached."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import structlog

from weatheredge.cache import CacheService
from weatheredge.errors import UpstreamError
from weatheredge.ingestion.base import MarketFeed
from weatheredge.ingestion.polymarket.gamma import CATEGORY_TAG_IDS, SPORT_TAG_IDS, resolve_tag_ids
from weatheredge.intel.enrichment import fallback_metrics
from weatheredge.intel.metadata import SPORT_CATEGORIES, SUPPORTED_SPORTS, apply_metadata
from weatheredge.models import Catalog, Market, MarketEfficiency, VolumeMetrics

log = structlog.get_logger(__name__)

SPORTS_METADATA_KEY = "sports"
LOCATION_RESULT_LIMIT = 20


def volume_metrics(market: Market) -> VolumeMetrics:
    """24h volume against the trailing weekly daily average."""
    avg_daily = market.volume_1wk / 7
    trend = (market.volume_24h - avg_daily) / avg_daily * 100 if avg_daily > 0 else 0.0
    if trend > 10:
        direction = "increasing"
    elif trend < -10:
        direction = "decreasing"
    else:
        direction = "stable"
    return VolumeMetrics(
        vol_24h=market.volume_24h,
        vol_1wk=market.volume_1wk,
        vol_1mo=market.volume_1mo,
        volume_trend=trend,
        direction=direction,
    )


def market_efficiency(market: Market) -> MarketEfficiency:
    changes = [
        c
        for c in (market.one_day_price_change, market.one_week_price_change, market.one_month_price_change)
        if c is not None
    ]
    avg_change = sum(changes) / len(changes) if changes else 0.0
    ratio = abs(avg_change * 100) / market.volume_24h if market.volume_24h > 0 else 0.0
    return MarketEfficiency(
        efficiency_ratio=ratio,
        volatility_score=abs(avg_change),
        liquidity_score=market.liquidity,
    )


def prepare_market(market: Market, last_trade_offset: float = 0.01) -> Market:
    """Metadata + cheap metrics from bulk fields only. No network."""
    market = apply_metadata(market)
    return market.model_copy(
        update={
            "volume_metrics": volume_metrics(market),
            "efficiency": market_efficiency(market),
            "order_book": fallback_metrics(market, last_trade_offset),
        }
    )


class CatalogBuilder:
    """Builds volume-filtered catalogs from the feed. Never raises for upstream failures."""

    def __init__(
        self,
        feed: MarketFeed,
        cache: CacheService,
        *,
        default_min_volume: float = 50000,
        last_trade_offset: float = 0.01,
    ) -> None:
        self.feed = feed
        self.cache = cache
        self.default_min_volume = default_min_volume
        self.last_trade_offset = last_trade_offset
        self.upstream_available: bool | None = None
        self.last_error: str | None = None
        self.last_checked: datetime | None = None

    def _record(self, error: Exception | None) -> None:
        self.upstream_available = error is None
        self.last_error = str(error) if error else None
        self.last_checked = datetime.now(timezone.utc)

    async def get_category_metadata(self) -> list[dict[str, Any]]:
        """Sports metadata (league tags). Cached for a day; empty list when unavailable."""
        cached = self.cache.category_metadata.get(SPORTS_METADATA_KEY)
        if cached is not None:
            return cached
        try:
            sports = await self.feed.fetch_sports()
        except UpstreamError as e:
            log.warning("sports_metadata_unavailable", error=str(e))
            self._record(e)
            return []
        self.cache.category_metadata.set(SPORTS_METADATA_KEY, sports)
        return sports

    async def resolve_tag_ids(self, category: str | None) -> list[str]:
        if not category:
            return []
        key = category.strip().lower()
        # Static tags need no metadata round trip
        if key in SPORT_TAG_IDS or key in CATEGORY_TAG_IDS:
            sports = []
        else:
            sports = await self.get_category_metadata()
        return resolve_tag_ids(category, sports)

    async def _prepared(self, category: str | None) -> tuple[Catalog, bool]:
        """All prepared markets for a category (before the volume floor), and whether it came from cache."""
        key = self.cache.catalog_key(category)
        cached = self.cache.catalogs.get(key)
        if cached is not None:
            return cached, True
        tag_ids = await self.resolve_tag_ids(category)
        hint = category if category in SPORT_CATEGORIES and tag_ids else None
        try:
            raw = await self.feed.fetch_active_markets(tag_ids or None, event_type=hint)
        except UpstreamError as e:
            self._record(e)
            raise
        self._record(None)
        markets = [prepare_market(m, self.last_trade_offset) for m in raw]
        markets.sort(key=lambda m: m.volume_24h, reverse=True)
        full = Catalog(
            markets=markets,
            total_markets=len(markets),
            category=category,
            fetched_at=datetime.now(timezone.utc),
        )
        self.cache.catalogs.set(key, full)
        return full, False

    async def build_catalog(self, min_volume: float | None = None, category: str | None = None) -> Catalog:
        """Volume-filtered catalog sorted by 24h volume. Empty catalog with `error` set on upstream failure."""
        floor = self.default_min_volume if min_volume is None else min_volume
        try:
            full, cached = await self._prepared(category)
        except UpstreamError as e:
            log.warning("catalog_unavailable", category=category, error=str(e))
            return Catalog(
                min_volume=floor,
                category=category,
                fetched_at=datetime.now(timezone.utc),
                error=str(e),
            )
        markets = [m for m in full.markets if m.volume_24h >= floor]
        if not cached:
            categories = sorted({m.category or "Other" for m in markets})
            log.info(
                "catalog_built",
                category=category or "all",
                fetched=full.total_markets,
                kept=len(markets),
                min_volume=floor,
                categories=categories,
            )
        return Catalog(
            markets=markets,
            total_markets=len(markets),
            min_volume=floor,
            category=category,
            fetched_at=full.fetched_at,
            cached=cached,
        )

    async def search_by_location(self, location: str) -> Catalog:
        """Markets whose extracted venue equals location (case-insensitive), over the volume floor, top 20."""
        key = self.cache.location_key(location)
        cached = self.cache.locations.get(key)
        if cached is not None:
            return cached.model_copy(update={"cached": True})
        catalog = await self.build_catalog(self.default_min_volume)
        if catalog.error:
            return catalog
        wanted = location.strip().lower()
        found = [m for m in catalog.markets if m.location and m.location.lower() == wanted]
        result = Catalog(
            markets=found[:LOCATION_RESULT_LIMIT],
            total_markets=len(found),
            min_volume=self.default_min_volume,
            fetched_at=catalog.fetched_at,
        )
        self.cache.locations.set(key, result)
        return result

    async def get_market_details(self, market_id: str) -> Market | None:
        cached = self.cache.market_details.get(market_id)
        if cached is not None:
            return cached
        try:
            market = await self.feed.fetch_market(market_id)
        except UpstreamError as e:
            log.warning("market_details_unavailable", market_id=market_id, error=str(e))
            self._record(e)
            return None
        if market is None:
            return None
        market = prepare_market(market, last_trade_offset=self.last_trade_offset)
        self.cache.market_details.set(market_id, market)
        return market

    async def category_counts(
        self,
        min_volume: float | None = None,
        categories: tuple[str, ...] = SUPPORTED_SPORTS,
    ) -> dict[str, int]:
        """Catalog size per sport, built concurrently. Unavailable categories count 0."""
        catalogs = await asyncio.gather(*(self.build_catalog(min_volume, c) for c in categories))
        return {c: cat.total_markets for c, cat in zip(categories, catalogs)}

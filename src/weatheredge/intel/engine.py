"""MarketIntelligence: the engine facade wiring feed, caches, scoring, ranking and late enrichment."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError

from weatheredge.cache import CacheService
from weatheredge.config.settings import Settings
from weatheredge.errors import InvalidFilterError
from weatheredge.ingestion.base import MarketFeed, OrderBookSource
from weatheredge.ingestion.polymarket.clob import ClobClient
from weatheredge.ingestion.polymarket.gamma import GammaClient
from weatheredge.intel.catalog import CatalogBuilder
from weatheredge.intel.classifier import classify
from weatheredge.intel.enrichment import Enricher
from weatheredge.intel.ranker import rank
from weatheredge.models import (
    Catalog,
    ClassificationResult,
    Market,
    RankedMarket,
    RankFilters,
    WeatherContext,
    parse_filters,
)

log = structlog.get_logger(__name__)


def _weather(payload: Any) -> WeatherContext | None:
    try:
        return WeatherContext.from_payload(payload)
    except ValidationError as e:
        errors = [
            {"field": "weather." + ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InvalidFilterError("invalid weather context", errors) from e


class MarketIntelligence:
    """One per process. Owns the cache service and upstream clients; every call is request-scoped."""

    def __init__(
        self,
        settings: Settings,
        *,
        feed: MarketFeed | None = None,
        book_source: OrderBookSource | None = None,
        cache: CacheService | None = None,
    ) -> None:
        settings.validate()
        self.settings = settings
        self.cache = cache or CacheService.from_settings(settings)
        self.feed = feed or GammaClient.from_settings(settings)
        self.catalogs = CatalogBuilder(
            self.feed,
            self.cache,
            default_min_volume=settings.default_min_volume,
            last_trade_offset=settings.last_trade_offset,
        )
        self.enricher = Enricher.from_settings(settings, book_source or ClobClient.from_settings(settings))

    def classify(self, market: Market, now: datetime | None = None) -> ClassificationResult:
        return classify(market, now)

    async def build_catalog(self, min_volume: float | None = None, category: str | None = None) -> Catalog:
        if min_volume is not None and min_volume < 0:
            raise InvalidFilterError("min_volume must be >= 0", [{"field": "min_volume", "message": "must be >= 0"}])
        return await self.catalogs.build_catalog(min_volume, category)

    def _limit(self, limit: int | None) -> int:
        if limit is None:
            return self.settings.default_limit
        if not 1 <= limit <= self.settings.max_limit:
            raise InvalidFilterError(
                f"limit must be between 1 and {self.settings.max_limit}",
                [{"field": "limit", "message": f"must be between 1 and {self.settings.max_limit}"}],
            )
        return limit

    async def rank_markets(
        self,
        filters: RankFilters | dict[str, Any] | None = None,
        limit: int | None = None,
        weather: WeatherContext | dict[str, Any] | None = None,
        venue_weather: dict[str, Any] | None = None,
        hour: int | None = None,
        now: datetime | None = None,
    ) -> list[RankedMarket]:
        """Validated filters -> catalog -> score/filter/diversify -> enrich only the returned subset."""
        # Caller input is rejected before any upstream work
        parsed = parse_filters(filters)
        size = self._limit(limit)
        context = _weather(weather)
        venues = {k: w for k, w in ((k, _weather(v)) for k, v in (venue_weather or {}).items()) if w is not None}
        if hour is None:
            hour = datetime.now().hour
        elif not 0 <= hour <= 23:
            raise InvalidFilterError("hour must be between 0 and 23", [{"field": "hour", "message": "must be 0-23"}])
        catalog = await self.catalogs.build_catalog(parsed.min_volume, parsed.catalog_key)
        if catalog.error:
            log.warning("ranking_without_catalog", error=catalog.error)
            return []
        ranked = rank(
            catalog.markets,
            parsed,
            size,
            weather=context,
            hour=hour,
            now=now,
            venue_weather=venues,
            band_width=self.settings.band_width,
            min_band=self.settings.diversify_min_band,
        )
        return await self.enricher.enrich_all(ranked)

    async def search_by_location(self, location: str) -> Catalog:
        if not location or len(location.strip()) < 2:
            raise InvalidFilterError("location too short", [{"field": "location", "message": "at least 2 characters"}])
        return await self.catalogs.search_by_location(location)

    async def get_market_details(self, market_id: str) -> Market | None:
        return await self.catalogs.get_market_details(market_id)

    async def classify_market(self, market_id: str, now: datetime | None = None) -> ClassificationResult | None:
        market = await self.get_market_details(market_id)
        return None if market is None else classify(market, now)

    async def category_counts(self, min_volume: float | None = None) -> dict[str, int]:
        return await self.catalogs.category_counts(min_volume)

    def status(self) -> dict[str, Any]:
        """Cache population and last known upstream availability."""
        builder = self.catalogs
        return {
            "service": "weather-edge",
            "upstream": {
                "available": builder.upstream_available,
                "last_error": builder.last_error,
                "checked_at": builder.last_checked.isoformat() if builder.last_checked else None,
                "gamma_api_base": self.settings.gamma_api_base,
                "clob_api_base": self.settings.clob_api_base,
            },
            "caches": self.cache.stats(),
            "order_book_budget": self.enricher.bucket.stats() if self.enricher.bucket else None,
        }

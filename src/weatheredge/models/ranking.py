"""Catalog, RankFilters, RankedMarket."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from weatheredge.errors import InvalidFilterError
from weatheredge.models.assessment import ClassificationResult, EdgeFactors, WeatherSnapshot
from weatheredge.models.market import Market
from weatheredge.models.orderbook import DepthImpact, OrderBookMetrics

Theme = Literal["all", "sports", "outdoor", "aviation", "energy", "agriculture", "weather_explicit"]
AnalysisType = Literal["event-weather", "discovery"]


class Catalog(BaseModel):
    """Volume-filtered, metadata-enriched candidate markets built without per-market calls."""

    model_config = ConfigDict(frozen=True)

    markets: list[Market] = Field(default_factory=list)
    total_markets: int = 0
    min_volume: float = 0.0
    category: str | None = None
    fetched_at: datetime | None = None
    cached: bool = False
    error: str | None = None


class RankFilters(BaseModel):
    """Caller-supplied ranking filters. Validated before any upstream work."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    category: str | None = None
    min_volume: float | None = Field(None, ge=0, description="24h volume floor; None uses the configured default")
    confidence: Literal["all", "LOW", "MEDIUM", "HIGH"] = "all"
    location: str | None = None
    allow_categories: list[str] = Field(default_factory=list)
    exclude_futures: bool = True
    max_days_to_resolution: int | None = Field(None, ge=1, le=365)
    search_text: str | None = Field(None, max_length=200)
    theme: Theme = "all"
    analysis_type: AnalysisType = "event-weather"

    @field_validator("confidence", mode="before")
    @classmethod
    def _upper_confidence(cls, v: Any) -> Any:
        if isinstance(v, str) and v.lower() != "all":
            return v.upper()
        return v.lower() if isinstance(v, str) else v

    @field_validator("category", "location", "search_text")
    @classmethod
    def _blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("location")
    @classmethod
    def _location_length(cls, v: str | None) -> str | None:
        if v is not None and len(v) < 2:
            raise ValueError("location too short")
        return v

    @property
    def catalog_key(self) -> str | None:
        """Category passed to the catalog builder; 'all' shares the default catalog."""
        if self.category is None or self.category.lower() == "all":
            return None
        return self.category


def parse_filters(raw: dict[str, Any] | RankFilters | None) -> RankFilters:
    """Validate caller input into RankFilters, raising InvalidFilterError on bad values."""
    if isinstance(raw, RankFilters):
        return raw
    try:
        return RankFilters.model_validate(raw or {})
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        message = "; ".join(f"{err['field']}: {err['message']}" for err in errors)
        raise InvalidFilterError(f"invalid filters: {message}", errors) from e


class RankedMarket(BaseModel):
    """A scored market; order_book/depth_impact are only set for the returned subset."""

    model_config = ConfigDict(frozen=True)

    market: Market
    edge_score: float = 0.0
    edge_factors: EdgeFactors | dict[str, float] = Field(default_factory=EdgeFactors)
    confidence: str = "LOW"
    is_weather_sensitive: bool = False
    weather_context: WeatherSnapshot | None = None
    classification: ClassificationResult | None = None
    order_book: OrderBookMetrics | None = None
    depth_impact: DepthImpact | None = None
    enriched: bool = False
    enrichment_source: str = "fallback"

    @property
    def market_id(self) -> str:
        return self.market.market_id

    @property
    def category(self) -> str | None:
        return self.market.category

    @property
    def volume_24h(self) -> float:
        return self.market.volume_24h

"""Canonical schema (Pydantic) - Market, OrderBook, assessments, ranking."""

from weatheredge.models.assessment import (
    ClassificationResult,
    EdgeAssessment,
    EdgeFactors,
    EfficiencyAssessment,
    Signal,
    WeatherContext,
    WeatherSnapshot,
)
from weatheredge.models.market import (
    Market,
    MarketEfficiency,
    Outcome,
    Participant,
    VolumeMetrics,
    normalize_tags,
)
from weatheredge.models.orderbook import DepthImpact, OrderBookMetrics, OrderBookSnapshot, PriceLevel
from weatheredge.models.ranking import Catalog, RankedMarket, RankFilters, parse_filters

__all__ = [
    "Market",
    "Outcome",
    "Participant",
    "VolumeMetrics",
    "MarketEfficiency",
    "normalize_tags",
    "OrderBookSnapshot",
    "OrderBookMetrics",
    "PriceLevel",
    "DepthImpact",
    "Signal",
    "ClassificationResult",
    "WeatherContext",
    "WeatherSnapshot",
    "EdgeFactors",
    "EdgeAssessment",
    "EfficiencyAssessment",
    "Catalog",
    "RankFilters",
    "RankedMarket",
    "parse_filters",
]

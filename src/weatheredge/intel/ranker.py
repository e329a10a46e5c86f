"""Ranker & diversifier: score, filter, sort, band near-equal scores and interleave categories."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable

import structlog

from weatheredge.intel.classifier import classify
from weatheredge.intel.edge import assess_edge, assess_efficiency
from weatheredge.models import Market, RankedMarket, RankFilters, WeatherContext
from weatheredge.models.assessment import CONFIDENCE_ORDER

log = structlog.get_logger(__name__)

BAND_WIDTH = 0.5
MIN_DIVERSIFY_BAND = 3
_EPS = 1e-9

SPORT_KEYWORDS = (
    "NFL", "SOCCER", "NBA", "MLB", "NHL", "HOCKEY", "TENNIS", "GOLF", "CRICKET", "F1", "FORMULA",
    "RUGBY", "MARATHON", "PREMIER LEAGUE", "CHAMPIONS LEAGUE",
)


def _words(*words: str) -> re.Pattern[str]:
    return re.compile(r"\b(" + "|".join(re.escape(w) for w in words) + r")\b")


_SPORT_THEME = _words("nfl", "nba", "mlb", "soccer", "tennis", "golf", "cricket", "rugby", "marathon", "race")
THEMES: dict[str, Callable[[str], bool]] = {
    "sports": lambda text: bool(_SPORT_THEME.search(text)),
    "outdoor": lambda text: bool(
        _SPORT_THEME.search(text) or _words("marathon", "race", "festival", "concert", "outdoor").search(text)
    ),
    "aviation": lambda text: bool(
        _words("flight", "flights", "airport", "delay", "delays", "storm", "airline").search(text)
    ),
    "energy": lambda text: bool(
        _words("grid", "power", "electricity", "oil", "gas", "energy", "utility").search(text)
    ),
    "agriculture": lambda text: bool(
        _words("harvest", "crop", "crops", "yield", "agriculture", "wheat", "corn", "soy").search(text)
    ),
    "weather_explicit": lambda text: bool(
        _words("weather", "rain", "snow", "wind", "temperature", "heat", "cold", "humidity", "storm").search(text)
    ),
}


def _search_text(market: Market) -> str:
    return f"{market.text} {' '.join(market.tag_labels)}"


def _weather_for(
    market: Market,
    weather: WeatherContext | None,
    venue_weather: dict[str, WeatherContext] | None,
) -> WeatherContext | None:
    if venue_weather and market.location:
        found = venue_weather.get(market.location.lower())
        if found is not None:
            return found
    return weather


def score_market(
    market: Market,
    analysis_type: str = "event-weather",
    weather: WeatherContext | None = None,
    now: datetime | None = None,
) -> RankedMarket:
    classification = classify(market, now)
    if analysis_type == "discovery":
        efficiency = assess_efficiency(market)
        return RankedMarket(
            market=market,
            edge_score=efficiency.total_score,
            edge_factors=efficiency.factors,
            confidence=efficiency.confidence,
            is_weather_sensitive=False,
            classification=classification,
        )
    edge = assess_edge(market, weather)
    return RankedMarket(
        market=market,
        edge_score=edge.total_score,
        edge_factors=edge.factors,
        confidence=edge.confidence,
        is_weather_sensitive=edge.is_weather_sensitive,
        weather_context=edge.weather_context,
        classification=classification,
    )


def is_recognised_sport(item: RankedMarket) -> bool:
    text = f"{item.category or ''} {item.market.title}".upper()
    return any(s in text for s in SPORT_KEYWORDS)


def matches_category(item: RankedMarket, category: str) -> bool:
    target = category.upper()
    return target in (item.category or "").upper() or target in item.market.title.upper()


def within_days(item: RankedMarket, max_days: int, now: datetime) -> bool:
    """Resolution within [now, now + max_days]. Missing dates never pass."""
    res = item.market.resolution_date
    if res is None:
        return False
    if res.tzinfo is None:
        res = res.replace(tzinfo=timezone.utc)
    days = (res - now).total_seconds() / 86400
    return 0 <= days <= max_days


def meets_confidence(item: RankedMarket, level: str) -> bool:
    if level in ("all", "LOW"):
        return True
    return CONFIDENCE_ORDER.get(item.confidence, 0) >= CONFIDENCE_ORDER[level]


def apply_filters(items: list[RankedMarket], filters: RankFilters, now: datetime) -> list[RankedMarket]:
    allow = {c.lower() for c in filters.allow_categories}
    out = []
    for item in items:
        if item.edge_score <= 0 and (item.category or "").lower() not in allow:
            continue
        if filters.category:
            if filters.category.lower() in ("all", "sports"):
                if not is_recognised_sport(item):
                    continue
            elif not matches_category(item, filters.category):
                continue
        if filters.exclude_futures and item.classification is not None and item.classification.is_futures:
            continue
        if not meets_confidence(item, filters.confidence):
            continue
        if filters.location and (item.market.location or "").lower() != filters.location.lower():
            continue
        if filters.max_days_to_resolution and not within_days(item, filters.max_days_to_resolution, now):
            continue
        if filters.search_text and filters.search_text.lower() not in _search_text(item.market):
            continue
        if filters.theme != "all" and not THEMES[filters.theme](_search_text(item.market)):
            continue
        out.append(item)
    return out


def sort_ranked(items: list[RankedMarket]) -> list[RankedMarket]:
    return sorted(items, key=lambda i: (-i.edge_score, -i.volume_24h))


def band_scores(items: list[RankedMarket], width: float = BAND_WIDTH) -> list[list[RankedMarket]]:
    """Split a score-sorted list into bands; an item joins while within `width` of the band's first score."""
    bands: list[list[RankedMarket]] = []
    for item in items:
        if bands and bands[-1][0].edge_score - item.edge_score <= width + _EPS:
            bands[-1].append(item)
        else:
            bands.append([item])
    return bands


def diversify_band(band: list[RankedMarket], hour: int, min_size: int = MIN_DIVERSIFY_BAND) -> list[RankedMarket]:
    """Interleave categories round-robin, each category list rotated by the hour of day."""
    if len(band) <= min_size:
        return band
    groups: dict[str, list[RankedMarket]] = {}
    for item in band:
        groups.setdefault(item.category or "Other", []).append(item)
    rotated = []
    for members in groups.values():
        offset = hour % len(members)
        rotated.append(members[offset:] + members[:offset])
    out = []
    for i in range(max(len(g) for g in rotated)):
        for g in rotated:
            if i < len(g):
                out.append(g[i])
    return out


def rank(
    markets: list[Market],
    filters: RankFilters,
    limit: int,
    weather: WeatherContext | dict[str, Any] | None = None,
    hour: int = 0,
    now: datetime | None = None,
    venue_weather: dict[str, WeatherContext | dict[str, Any]] | None = None,
    band_width: float = BAND_WIDTH,
    min_band: int = MIN_DIVERSIFY_BAND,
) -> list[RankedMarket]:
    """Score, filter, sort, band-diversify and truncate. Deterministic for a fixed (catalog, weather, hour, now)."""
    now = now or datetime.now(timezone.utc)
    context = WeatherContext.from_payload(weather)
    venues = {
        k.lower(): w
        for k, w in ((k, WeatherContext.from_payload(v)) for k, v in (venue_weather or {}).items())
        if w is not None
    }
    scored = [
        score_market(m, filters.analysis_type, _weather_for(m, context, venues), now)
        for m in markets
    ]
    kept = sort_ranked(apply_filters(scored, filters, now))
    bands = band_scores(kept, band_width)
    ordered = [item for band in bands for item in diversify_band(band, hour, min_band)]
    log.info(
        "markets_ranked",
        scored=len(scored),
        kept=len(kept),
        bands=len(bands),
        returned=min(limit, len(ordered)),
        hour=hour,
    )
    return ordered[:limit]

"""Weather-edge scorer and discovery-mode efficiency scorer. Pure; no I/O."""

from __future__ import annotations

import re
from typing import Any, Callable

import structlog

from weatheredge.intel.metadata import ESPORTS_WORDS, POLITICAL_WORDS
from weatheredge.models import (
    EdgeAssessment,
    EdgeFactors,
    EfficiencyAssessment,
    Market,
    Signal,
    WeatherContext,
    WeatherSnapshot,
)

log = structlog.get_logger(__name__)

MAX_SCORE = 10.0
CONTEXTUAL_CAP = 3.0

OUTDOOR_CATEGORIES = frozenset(
    {"NFL", "MLB", "Soccer", "Golf", "Tennis", "Cricket", "Rugby", "F1", "Marathon"}
)
# Indoor or not a sport; generic "game"/"match" wording never makes these outdoor
INDOOR_CATEGORIES = frozenset({"NBA", "NHL", "Esports", "Crypto", "Politics"})

WEATHER_WORDS = re.compile(
    r"\b(weather|temperatures?|rain|rains|rainfall|rainy|snow|snows|snowfall|snowy|winds?|windy|"
    r"precipitation|hurricanes?|tornado(es)?|heat ?wave)\b"
)
OUTDOOR_WORDS = re.compile(r"\b(games?|match(es)?|race|triathlon|stadium|outdoor|tournament)\b")
# Sports vocabulary that is outdoor regardless of political context
_SPORT_WORDS = re.compile(r"\b(nfl|mlb|golf|tennis|cricket|soccer|rugby|f1|formula 1|marathon|regatta|grand prix)\b")
_INDOOR_WORDS = re.compile(r"\b(nba|basketball|nhl|hockey|stanley cup|bitcoin|crypto)\b")

# (weather field, threshold test, market wording, points)
CONTEXT_RULES: list[tuple[str, Callable[[float], bool], re.Pattern[str], float, str]] = [
    ("wind_speed", lambda v: v > 15, re.compile(r"\b(wind|winds|windy|sail|sailing)\b"), 1.5, "high wind"),
    (
        "precipitation_chance",
        lambda v: v > 30,
        re.compile(r"\b(rain|rainy|rainfall|snow|snowy|snowfall|weather)\b"),
        1.5,
        "precipitation likely",
    ),
    (
        "temperature",
        lambda v: v < 45 or v > 85,
        re.compile(r"\b(cold|freezing|heat|hot|temperatures?)\b"),
        1.0,
        "extreme temperature",
    ),
    ("humidity", lambda v: v > 70, re.compile(r"\b(humid|humidity|moisture)\b"), 0.5, "high humidity"),
]

FactorFn = Callable[[Market, WeatherContext | None], Signal]


def is_outdoor_event(market: Market) -> bool:
    """Outdoor/sport event known to be weather-affected. NBA, NHL and e-sports are indoor; generic wording is a last resort."""
    if market.category in OUTDOOR_CATEGORIES:
        return True
    if any(p.sport in OUTDOOR_CATEGORIES for p in market.participants):
        return True
    if market.category in INDOOR_CATEGORIES or any(p.sport in INDOOR_CATEGORIES for p in market.participants):
        return False
    text = market.text
    tags = " ".join(market.tag_labels)
    if _SPORT_WORDS.search(text) or _SPORT_WORDS.search(tags):
        return True
    if POLITICAL_WORDS.search(text) or ESPORTS_WORDS.search(text) or _INDOOR_WORDS.search(text):
        return False
    return bool(OUTDOOR_WORDS.search(text))


def weather_direct(market: Market, weather: WeatherContext | None) -> Signal:
    m = WEATHER_WORDS.search(market.text)
    if m:
        return Signal(name="weather_direct", score=3, detail=f"weather wording '{m.group(0)}'")
    return Signal(name="weather_direct", score=0)


def weather_sensitive_event(market: Market, weather: WeatherContext | None) -> Signal:
    if is_outdoor_event(market):
        return Signal(name="weather_sensitive_event", score=2, detail=f"outdoor event ({market.category or 'keyword'})")
    return Signal(name="weather_sensitive_event", score=0)


def contextual_weather_impact(market: Market, weather: WeatherContext | None) -> Signal:
    if weather is None or not is_outdoor_event(market):
        return Signal(name="contextual_weather_impact", score=0)
    text = market.text
    score = 0.0
    hits = []
    for field, crosses, wording, points, label in CONTEXT_RULES:
        value = getattr(weather, field)
        if value is not None and crosses(value) and wording.search(text):
            score += points
            hits.append(label)
    return Signal(name="contextual_weather_impact", score=min(score, CONTEXTUAL_CAP), detail=", ".join(hits))


def asymmetry_signal(market: Market) -> Signal:
    """Mispricing proxies from bulk/enriched fields; only counted when the base factors are non-zero."""
    score = 0.0
    hits = []
    volume = market.volume_24h
    liquidity = market.liquidity
    if volume > 0 and liquidity > 0:
        ratio = volume / liquidity
        if ratio > 2:
            score += 1
            hits.append(f"volume/liquidity {ratio:.1f}")
        if ratio > 5:
            score += 0.5
    trend = market.volume_metrics.volume_trend if market.volume_metrics else 0.0
    if trend > 50:
        score += 1.5
        hits.append(f"volume spike {trend:.0f}%")
    elif trend > 25:
        score += 1
        hits.append(f"volume up {trend:.0f}%")
    spread_pct = market.order_book.spread_pct if market.order_book else 0.0
    if spread_pct > 5:
        score += 1
        hits.append(f"wide spread {spread_pct:.1f}%")
    elif spread_pct > 2:
        score += 0.5
        hits.append(f"spread {spread_pct:.1f}%")
    volatility = market.efficiency.volatility_score if market.efficiency else 0.0
    if volatility > 0.1 and trend < 10:
        score += 0.5
        hits.append("price moving without volume")
    return Signal(name="asymmetry_signal", score=score, detail=", ".join(hits))


BASE_FACTORS: list[FactorFn] = [weather_direct, weather_sensitive_event, contextual_weather_impact]


def _snapshot(weather: WeatherContext | None) -> WeatherSnapshot:
    if weather is None:
        return WeatherSnapshot()
    return WeatherSnapshot(
        temperature=weather.temperature,
        condition=weather.condition_text.lower(),
        precipitation_chance=weather.precipitation_chance or 0.0,
        wind_speed=weather.wind_speed,
        humidity=weather.humidity,
        has_data=True,
    )


def edge_confidence(total: float) -> str:
    if total > 6:
        return "HIGH"
    if total > 3:
        return "MEDIUM"
    return "LOW"


def assess_edge(market: Market, weather: WeatherContext | dict[str, Any] | None = None) -> EdgeAssessment:
    """Score how exploitable a market is with respect to venue weather, in [0, 10]."""
    context = WeatherContext.from_payload(weather)
    base = [fn(market, context) for fn in BASE_FACTORS]
    base_total = sum(s.score for s in base)
    asym = asymmetry_signal(market)
    total = base_total + asym.score if base_total > 0 else 0.0
    total = min(total, MAX_SCORE)
    factors = EdgeFactors(**{s.name: s.score for s in base}, asymmetry_signal=asym.score)
    details = [s.detail for s in base if s.score and s.detail]
    if base_total > 0 and asym.score:
        details.append(asym.detail)
    log.debug("edge_assessed", market_id=market.market_id, total=total, base=base_total, asymmetry=asym.score)
    return EdgeAssessment(
        total_score=total,
        factors=factors,
        confidence=edge_confidence(total),
        is_weather_sensitive=total > 0,
        weather_context=_snapshot(context),
        details=details,
    )


def assess_efficiency(market: Market) -> EfficiencyAssessment:
    """Discovery mode: rank by tradeability (volume, liquidity, trend, spread) instead of weather."""
    volume = market.volume_24h
    liquidity = market.liquidity
    trend = market.volume_metrics.volume_trend if market.volume_metrics else 0.0
    spread_pct = market.order_book.spread_pct if market.order_book and market.order_book.spread_pct else 5.0

    if volume > 500_000:
        volume_score = 3
    elif volume > 100_000:
        volume_score = 2
    elif volume > 50_000:
        volume_score = 1
    else:
        volume_score = 0

    if liquidity > 100_000:
        liquidity_score = 2
    elif liquidity > 50_000:
        liquidity_score = 1
    else:
        liquidity_score = 0

    if abs(trend) > 50:
        volatility_score = 2
    elif abs(trend) > 25:
        volatility_score = 1
    else:
        volatility_score = 0

    if spread_pct < 1:
        spread_score = 2
    elif spread_pct < 2:
        spread_score = 1
    else:
        spread_score = 0

    if liquidity > 50_000 and volume > 100_000:
        confidence = "HIGH"
    elif liquidity > 20_000 or volume > 50_000:
        confidence = "MEDIUM"
    else:
        confidence = "LOW"

    factors = {
        "volume_score": volume_score,
        "liquidity_score": liquidity_score,
        "volatility_score": volatility_score,
        "spread_score": spread_score,
    }
    return EfficiencyAssessment(
        total_score=min(sum(factors.values()), MAX_SCORE),
        factors=factors,
        confidence=confidence,
    )

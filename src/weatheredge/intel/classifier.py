"""Futures vs single-event classifier. Four pure signals folded over an ordered list."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Callable

import structlog

from weatheredge.models import ClassificationResult, Market, Signal

log = structlog.get_logger(__name__)

SignalFn = Callable[[Market, datetime], Signal]

# Per-signal "definitely futures" thresholds
DATE_THRESHOLD = 3
LANGUAGE_THRESHOLD = 2
METADATA_THRESHOLD = 3
TOTAL_THRESHOLD = 3
HIGH_CONFIDENCE = 5

LANGUAGE_CAP = 3

# (pattern, score, label); only the first match counts
FUTURES_PATTERNS: list[tuple[re.Pattern[str], int, str]] = [
    (
        re.compile(
            r"will.*win(?:\s+(?:the|a))?\s+(championship|super bowl|world series|stanley cup|nba finals)"
        ),
        3,
        "championship",
    ),
    (re.compile(r"season winner|season champion|division winner"), 3, "season winner"),
    (re.compile(r"\b(202[5-9]|203[0-9])\b.*(season|championship)"), 3, "future season"),
    (re.compile(r"make (the )?playoffs"), 3, "playoffs"),
    (re.compile(r"finish (first|top|1st) in (the )?(division|conference|league)"), 3, "standings"),
    (re.compile(r"by (end of|conclusion of) (season|year)"), 2, "season end"),
    (
        re.compile(r"\b(over|under) \d+(\.\d+)? (wins|points|goals|games) (this|next|the) season"),
        3,
        "season totals",
    ),
    (
        re.compile(r"win.*\b(nfc|afc|eastern|western) (east|west|north|south|conference)\b"),
        3,
        "division/conference",
    ),
]

FUTURES_TAGS = ("futures", "season winner", "championship")
SINGLE_EVENT_TAGS = ("game", "match", "tonight")


def _as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def resolution_date_signal(market: Market, now: datetime) -> Signal:
    if market.resolution_date is None:
        return Signal(name="resolution_date", score=0, detail="no resolution date")
    days = (_as_utc(market.resolution_date) - now).total_seconds() / 86400
    if days >= 120:
        score = 5
    elif days > 60:
        score = 3
    elif days > 30:
        score = 1
    else:
        score = 0
    return Signal(name="resolution_date", score=score, detail=f"{int(days)} days to resolution")


def language_signal(market: Market, now: datetime) -> Signal:
    text = market.text
    for pattern, score, label in FUTURES_PATTERNS:
        if pattern.search(text):
            return Signal(name="language", score=min(score, LANGUAGE_CAP), detail=f"matched '{label}' language")
    return Signal(name="language", score=0, detail="no futures language")


def odds_signal(market: Market, now: datetime) -> Signal:
    prices = [p for p in (market.best_bid, market.best_ask) if p is not None]
    odds = market.current_odds
    if odds is not None:
        prices.append(odds[0])
    if not prices:
        return Signal(name="odds", score=0, detail="no prices")
    top = max(prices)
    if 0 < top <= 0.05:
        score = 2
    elif 0 < top < 0.15:
        score = 1
    else:
        score = 0
    return Signal(name="odds", score=score, detail=f"max price {top:.1%}")


def metadata_signal(market: Market, now: datetime) -> Signal:
    labels = market.tag_labels
    for tag in labels:
        if any(t in tag for t in FUTURES_TAGS):
            return Signal(name="metadata", score=3, detail=f"futures tag '{tag}'")
    for tag in labels:
        if any(t in tag for t in SINGLE_EVENT_TAGS):
            return Signal(name="metadata", score=-2, detail=f"single-event tag '{tag}'")
    return Signal(name="metadata", score=0, detail="no classifying tags")


SIGNALS: list[SignalFn] = [resolution_date_signal, language_signal, odds_signal, metadata_signal]

_THRESHOLDS = {
    "resolution_date": DATE_THRESHOLD,
    "language": LANGUAGE_THRESHOLD,
    "metadata": METADATA_THRESHOLD,
}


def classify(market: Market, now: datetime | None = None) -> ClassificationResult:
    """Classify a market as futures or single-event. Pure given `now` (defaults to the wall clock)."""
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    signals = [fn(market, now) for fn in SIGNALS]
    total = sum(s.score for s in signals)
    definitive = [s for s in signals if s.name in _THRESHOLDS and s.score >= _THRESHOLDS[s.name]]
    is_futures = bool(definitive) or total >= TOTAL_THRESHOLD
    if total >= HIGH_CONFIDENCE:
        confidence = "HIGH"
    elif total >= TOTAL_THRESHOLD:
        confidence = "MEDIUM"
    else:
        confidence = "LOW"

    veto = next((s for s in signals if s.name == "metadata" and s.score < 0), None)
    conflicting = is_futures and veto is not None and bool(definitive)
    if conflicting:
        log.warning(
            "classifier_conflict",
            market_id=market.market_id,
            definitive=[s.name for s in definitive],
            veto=veto.detail,
            total_score=total,
        )

    if definitive:
        reason = "futures: " + ", ".join(s.detail for s in definitive)
    elif is_futures:
        reason = f"futures: combined signals {total:g}"
    elif veto is not None:
        reason = f"single event: {veto.detail}"
    else:
        reason = "single event"
    return ClassificationResult(
        is_futures=is_futures,
        confidence=confidence,
        signals=signals,
        total_score=total,
        conflicting_signals=conflicting,
        reason=reason,
    )

"""Polymarket payload fields -> canonical values (floats, prices, datetimes, book levels)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from weatheredge.models.orderbook import OrderBookSnapshot, PriceLevel


def _float(s: str | float | None) -> float:
    if s is None:
        return 0.0
    try:
        return float(s)
    except (TypeError, ValueError):
        return 0.0


def _opt_float(s: str | float | None) -> float | None:
    if s is None or s == "":
        return None
    try:
        return float(s)
    except (TypeError, ValueError):
        return None


def _price(s: str | float | None) -> float | None:
    """Probability price in [0, 1], else None."""
    p = _opt_float(s)
    if p is None or not 0 <= p <= 1:
        return None
    return p


def parse_datetime(value: Any) -> datetime | None:
    """ISO-8601 string (trailing Z or date-only accepted) -> aware UTC datetime. None when unparseable."""
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _levels(raw: Any) -> list[PriceLevel]:
    levels = []
    for lev in raw or []:
        if isinstance(lev, dict):
            p, s = _float(lev.get("price")), _float(lev.get("size"))
        else:
            continue
        if 0 <= p <= 1 and s >= 0:
            levels.append(PriceLevel(price=p, size=s))
    return levels


def parse_book_payload(payload: dict[str, Any], token_id: str) -> OrderBookSnapshot:
    """Convert CLOB /book response to OrderBookSnapshot. Uses 'bids'/'asks' or 'buys'/'sells'."""
    ts = payload.get("timestamp")
    try:
        exchange_ts = int(ts) if ts is not None else None
    except (TypeError, ValueError):
        exchange_ts = None
    return OrderBookSnapshot(
        market_id=str(payload.get("market") or ""),
        asset_id=str(payload.get("asset_id") or token_id),
        bids=_levels(payload.get("bids") or payload.get("buys")),
        asks=_levels(payload.get("asks") or payload.get("sells")),
        exchange_ts=exchange_ts,
    )

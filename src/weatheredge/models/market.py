"""Market, Outcome, Participant - canonical entities built fresh on every catalog build."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from weatheredge.models.orderbook import OrderBookMetrics


def normalize_tags(tags: list[Any] | None) -> list[str]:
    """Lowercased tag labels; accepts plain strings and {label: ...} objects. Drops anything else."""
    labels = []
    for t in tags or []:
        if isinstance(t, str):
            label = t
        elif isinstance(t, dict):
            label = str(t.get("label") or t.get("slug") or "")
        else:
            continue
        label = label.strip().lower()
        if label:
            labels.append(label)
    return labels


class Outcome(BaseModel):
    """Single outcome (e.g. Yes/No token) in a market."""

    model_config = ConfigDict(frozen=True)

    token_id: str
    name: str
    price: float = Field(..., ge=0, le=1, description="Probability/price in [0, 1]")


class Participant(BaseModel):
    """Team or player named in the market title."""

    model_config = ConfigDict(frozen=True)

    name: str
    sport: str
    home: str | None = None  # home city, used as venue fallback


class VolumeMetrics(BaseModel):
    """Volume trend derived from bulk listing fields (24h vs trailing weekly average)."""

    model_config = ConfigDict(frozen=True)

    vol_24h: float = 0.0
    vol_1wk: float = 0.0
    vol_1mo: float = 0.0
    volume_trend: float = 0.0  # % above/below trailing daily average
    direction: str = "stable"


class MarketEfficiency(BaseModel):
    model_config = ConfigDict(frozen=True)

    efficiency_ratio: float = 0.0
    volatility_score: float = 0.0
    liquidity_score: float = 0.0


class Market(BaseModel):
    """Canonical market. Never mutated; stages derive new records via model_copy."""

    model_config = ConfigDict(frozen=True)

    market_id: str
    venue: str = "polymarket"
    condition_id: str | None = None
    slug: str | None = None
    title: str = ""
    description: str = ""
    resolution_date: datetime | None = None
    category: str | None = None
    location: str | None = None
    participants: list[Participant] = Field(default_factory=list)
    outcomes: list[Outcome] = Field(default_factory=list)
    tags: list[Any] = Field(default_factory=list)
    best_bid: float | None = Field(None, ge=0, le=1)
    best_ask: float | None = Field(None, ge=0, le=1)
    last_trade_price: float | None = Field(None, ge=0, le=1)
    spread: float | None = None
    volume_24h: float = 0.0
    volume_1wk: float = 0.0
    volume_1mo: float = 0.0
    liquidity: float = 0.0
    one_day_price_change: float | None = None
    one_week_price_change: float | None = None
    one_month_price_change: float | None = None
    # Cheap metrics attached by the catalog builder (no network)
    volume_metrics: VolumeMetrics | None = None
    efficiency: MarketEfficiency | None = None
    order_book: OrderBookMetrics | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @property
    def tag_labels(self) -> list[str]:
        return normalize_tags(self.tags)

    @property
    def text(self) -> str:
        """Lowercased title + description, the haystack for keyword rules."""
        return f"{self.title} {self.description}".lower()

    @property
    def current_odds(self) -> tuple[float, float] | None:
        """(yes, no) outcome-price pair, if the listing carried one."""
        if len(self.outcomes) < 2:
            return None
        return (self.outcomes[0].price, self.outcomes[1].price)

    @property
    def yes_token_id(self) -> str | None:
        """First outcome token (YES for binary markets); None when the listing has no token ids."""
        if not self.outcomes:
            return None
        return self.outcomes[0].token_id or None

"""OrderBookSnapshot, OrderBookMetrics, DepthImpact - request-scoped book data, never cached."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PriceLevel(BaseModel):
    """Single price level (price -> size)."""

    model_config = ConfigDict(frozen=True)

    price: float = Field(..., ge=0, le=1)
    size: float = Field(..., ge=0)


class OrderBookSnapshot(BaseModel):
    """L2 order book as returned by the CLOB /book endpoint."""

    model_config = ConfigDict(frozen=True)

    market_id: str = ""
    asset_id: str
    venue: str = "polymarket"
    bids: list[PriceLevel] = Field(default_factory=list)
    asks: list[PriceLevel] = Field(default_factory=list)
    exchange_ts: int | None = None  # ms epoch


class OrderBookMetrics(BaseModel):
    """Top-of-book and depth figures, from live levels or the fallback price chain."""

    model_config = ConfigDict(frozen=True)

    best_bid: float | None = None
    best_ask: float | None = None
    mid_price: float | None = None
    spread: float = 0.0
    spread_pct: float = 0.0
    bid_depth: float = 0.0
    ask_depth: float = 0.0
    total_depth: float = 0.0
    source: str = "fallback"  # order_book_api | outcome_prices | bid_ask_fields | last_trade | neutral_default
    estimated_depth: bool = False  # depths derived from liquidity, not from levels


class DepthImpact(BaseModel):
    """Capital needed to move the price by target_movement. "N/A" when the book has no levels."""

    model_config = ConfigDict(frozen=True)

    side: Literal["BUY", "SELL"] = "BUY"
    target_movement: float = 0.05
    capital_to_move: float | Literal["N/A"] = "N/A"
    ladder_exhausted: bool = False
    depth_rating: Literal["shallow", "moderate", "deep"] = "shallow"
    liquidity_rating: Literal["low", "medium", "high"] = "low"
    total_book_size: float = 0.0

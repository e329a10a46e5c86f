"""L2 book built from a single REST snapshot - best bid/ask, spread, depth sums and depth-impact walk."""

from __future__ import annotations

from typing import Literal

import structlog

from weatheredge.models.orderbook import DepthImpact, OrderBookMetrics, OrderBookSnapshot

log = structlog.get_logger(__name__)

DEEP_BOOK_SIZE = 1000.0
MODERATE_BOOK_SIZE = 100.0


def depth_rating(total_size: float) -> tuple[str, str]:
    """(depth_rating, liquidity_rating) from total two-sided size."""
    if total_size > DEEP_BOOK_SIZE:
        return "deep", "high"
    if total_size > MODERATE_BOOK_SIZE:
        return "moderate", "medium"
    return "shallow", "low"


class OrderBook:
    """Read-only book for one outcome token. Levels with size 0 are dropped."""

    __slots__ = ("asset_id", "bids", "asks")

    def __init__(self, asset_id: str, bids: dict[float, float] | None = None, asks: dict[float, float] | None = None) -> None:
        self.asset_id = asset_id
        # price -> size (bids: higher is better, asks: lower is better)
        self.bids: dict[float, float] = bids or {}
        self.asks: dict[float, float] = asks or {}

    @classmethod
    def from_snapshot(cls, snapshot: OrderBookSnapshot) -> OrderBook:
        bids: dict[float, float] = {}
        asks: dict[float, float] = {}
        for lev in snapshot.bids:
            if lev.size > 0:
                bids[lev.price] = bids.get(lev.price, 0.0) + lev.size
        for lev in snapshot.asks:
            if lev.size > 0:
                asks[lev.price] = asks.get(lev.price, 0.0) + lev.size
        return cls(snapshot.asset_id, bids, asks)

    @property
    def best_bid(self) -> float | None:
        return max(self.bids) if self.bids else None

    @property
    def best_ask(self) -> float | None:
        return min(self.asks) if self.asks else None

    @property
    def mid_price(self) -> float | None:
        bb, ba = self.best_bid, self.best_ask
        if bb is not None and ba is not None:
            return (bb + ba) / 2.0
        return bb if bb is not None else ba

    @property
    def spread(self) -> float | None:
        bb, ba = self.best_bid, self.best_ask
        if bb is not None and ba is not None:
            return ba - bb
        return None

    @property
    def spread_pct(self) -> float | None:
        """Spread as percentage of mid."""
        mid = self.mid_price
        sp = self.spread
        if mid is not None and sp is not None and mid > 0:
            return (sp / mid) * 100.0
        return None

    @property
    def bid_depth(self) -> float:
        return sum(self.bids.values())

    @property
    def ask_depth(self) -> float:
        return sum(self.asks.values())

    @property
    def is_empty(self) -> bool:
        return not self.bids and not self.asks

    def metrics(self) -> OrderBookMetrics:
        return OrderBookMetrics(
            best_bid=self.best_bid,
            best_ask=self.best_ask,
            mid_price=self.mid_price,
            spread=self.spread or 0.0,
            spread_pct=self.spread_pct or 0.0,
            bid_depth=self.bid_depth,
            ask_depth=self.ask_depth,
            total_depth=self.bid_depth + self.ask_depth,
            source="order_book_api",
        )

    def depth_impact(self, target_movement: float = 0.05, side: Literal["BUY", "SELL"] = "BUY") -> DepthImpact:
        """Notional needed to move the price by target_movement (relative to mid).

        BUY walks asks upward until a level would sit past mid * (1 + target); SELL walks bids
        downward to mid * (1 - target). A one-sided or empty book has no real mid and reports "N/A".
        """
        total = self.bid_depth + self.ask_depth
        rating, liquidity = depth_rating(total)
        ladder = sorted(self.asks.items()) if side == "BUY" else sorted(self.bids.items(), reverse=True)
        mid = self.mid_price
        if not self.bids or not self.asks or mid is None:
            return DepthImpact(
                side=side,
                target_movement=target_movement,
                capital_to_move="N/A",
                depth_rating=rating,
                liquidity_rating=liquidity,
                total_book_size=total,
            )
        target = mid * (1 + target_movement) if side == "BUY" else mid * (1 - target_movement)
        capital = 0.0
        exhausted = True
        for price, size in ladder:
            past_target = price > target if side == "BUY" else price < target
            if past_target:
                exhausted = False
                break
            capital += price * size
        if exhausted:
            log.debug("depth_ladder_exhausted", asset_id=self.asset_id, side=side, capital=capital)
        return DepthImpact(
            side=side,
            target_movement=target_movement,
            capital_to_move=round(capital, 2),
            ladder_exhausted=exhausted,
            depth_rating=rating,
            liquidity_rating=liquidity,
            total_book_size=total,
        )

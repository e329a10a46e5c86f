"""Order book metrics and depth-impact walk."""

import pytest
from conftest import book

from weatheredge.orderbook.book import OrderBook, depth_rating


@pytest.fixture
def ob() -> OrderBook:
    return OrderBook.from_snapshot(
        book("a1", bids=[(0.48, 100), (0.47, 200)], asks=[(0.52, 100), (0.54, 200), (0.60, 500)])
    )


def test_top_of_book(ob):
    assert ob.best_bid == 0.48
    assert ob.best_ask == 0.52
    assert ob.mid_price == pytest.approx(0.50)
    assert ob.spread == pytest.approx(0.04)
    assert ob.spread_pct == pytest.approx(8.0)
    assert ob.bid_depth == 300
    assert ob.ask_depth == 800


def test_metrics_are_marked_live(ob):
    m = ob.metrics()
    assert m.source == "order_book_api"
    assert not m.estimated_depth
    assert m.total_depth == 1100


def test_buy_walk_stops_past_target(ob):
    impact = ob.depth_impact(0.05)
    assert impact.capital_to_move == pytest.approx(52.0)
    assert not impact.ladder_exhausted
    assert impact.depth_rating == "deep"
    assert impact.liquidity_rating == "high"


def test_sell_walk(ob):
    impact = ob.depth_impact(0.05, side="SELL")
    assert impact.capital_to_move == pytest.approx(48.0)


def test_exhausted_ladder_is_flagged():
    ob = OrderBook.from_snapshot(book("a1", bids=[(0.49, 10)], asks=[(0.51, 10)]))
    impact = ob.depth_impact(0.5)
    assert impact.capital_to_move == pytest.approx(5.1)
    assert impact.ladder_exhausted
    assert impact.depth_rating == "shallow"


def test_one_sided_book_reports_na_on_both_sides():
    ob = OrderBook.from_snapshot(book("a1", bids=[(0.40, 50)], asks=[]))
    assert ob.mid_price == 0.40
    assert ob.spread is None
    assert ob.depth_impact(0.05).capital_to_move == "N/A"
    assert ob.depth_impact(0.05, side="SELL").capital_to_move == "N/A"


def test_asks_only_book_has_no_capital_estimate():
    ob = OrderBook.from_snapshot(book("a1", bids=[], asks=[(0.50, 100), (0.60, 100)]))
    impact = ob.depth_impact(0.05)
    assert impact.capital_to_move == "N/A"
    assert not impact.ladder_exhausted
    assert impact.total_book_size == 200


def test_zero_size_levels_dropped_and_duplicates_summed():
    ob = OrderBook.from_snapshot(book("a1", bids=[(0.45, 0), (0.44, 10), (0.44, 5)], asks=[]))
    assert ob.best_bid == 0.44
    assert ob.bids[0.44] == 15


def test_empty_book():
    ob = OrderBook.from_snapshot(book("a1", bids=[], asks=[]))
    assert ob.is_empty
    assert ob.mid_price is None
    assert ob.depth_impact().capital_to_move == "N/A"


def test_depth_rating_tiers():
    assert depth_rating(1500) == ("deep", "high")
    assert depth_rating(500) == ("moderate", "medium")
    assert depth_rating(100) == ("shallow", "low")

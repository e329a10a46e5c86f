"""Catalog builder: bulk listing, volume floor, TTL caching and degraded upstream."""

import asyncio

import pytest
from conftest import FakeFeed, build_market

from weatheredge.errors import UpstreamError
from weatheredge.intel.catalog import CatalogBuilder, market_efficiency, prepare_market, volume_metrics
from weatheredge.intel.metadata import SUPPORTED_SPORTS


@pytest.fixture
def markets():
    return [
        build_market("small", "Will it rain in Chicago on Sunday?", volume=10_000),
        build_market("big", "Will the Bears beat the Packers?", volume=900_000),
        build_market("mid", "Will Bitcoin hit $150k?", volume=200_000),
    ]


@pytest.fixture
def builder(markets, cache):
    return CatalogBuilder(FakeFeed(markets), cache, default_min_volume=50_000)


def test_build_catalog_filters_and_sorts(builder):
    catalog = asyncio.run(builder.build_catalog())
    assert [m.market_id for m in catalog.markets] == ["big", "mid"]
    assert catalog.total_markets == 2
    assert catalog.min_volume == 50_000
    assert not catalog.cached
    big = catalog.markets[0]
    assert big.category == "NFL"
    assert big.location == "Chicago"
    assert big.order_book.source == "outcome_prices"
    assert big.volume_metrics.direction == "stable"


def test_second_build_is_served_from_cache(builder):
    asyncio.run(builder.build_catalog())
    again = asyncio.run(builder.build_catalog(min_volume=0))
    assert len(builder.feed.listing_calls) == 1
    assert again.cached
    assert again.total_markets == 3


def test_cache_expires_after_ttl(builder, clock):
    asyncio.run(builder.build_catalog())
    clock.advance(30 * 60)
    asyncio.run(builder.build_catalog())
    assert len(builder.feed.listing_calls) == 2


def test_upstream_failure_yields_empty_catalog(builder):
    builder.feed.error = UpstreamError("GET /events timed out")
    catalog = asyncio.run(builder.build_catalog())
    assert catalog.markets == []
    assert catalog.error == "GET /events timed out"
    assert builder.upstream_available is False


def test_static_sport_tag_skips_metadata_fetch(builder):
    catalog = asyncio.run(builder.build_catalog(category="NFL"))
    assert builder.feed.listing_calls == [{"tag_ids": ["450"], "event_type": "NFL"}]
    assert builder.feed.sports_calls == 0
    assert catalog.category == "NFL"


def test_soccer_resolves_league_tags_from_cached_metadata(markets, cache):
    sports = [{"sport": "epl", "tags": "1,82"}, {"sport": "lal", "tags": "1,780"}, {"sport": "nba", "tags": "1,745"}]
    builder = CatalogBuilder(FakeFeed(markets, sports), cache)
    asyncio.run(builder.build_catalog(category="Soccer"))
    asyncio.run(builder.build_catalog(category="NBA"))
    assert builder.feed.listing_calls[0]["tag_ids"] == ["82", "780"]
    assert builder.feed.listing_calls[1]["tag_ids"] == ["745"]
    assert builder.feed.sports_calls == 1


def test_search_by_location_is_cached(builder):
    found = asyncio.run(builder.search_by_location("chicago"))
    assert [m.market_id for m in found.markets] == ["big"]
    again = asyncio.run(builder.search_by_location("Chicago"))
    assert again.cached
    assert len(builder.feed.listing_calls) == 1


def test_market_details_cached_and_missing(builder):
    m = asyncio.run(builder.get_market_details("mid"))
    assert m.market_id == "mid"
    assert m.volume_metrics is not None
    asyncio.run(builder.get_market_details("mid"))
    assert builder.feed.detail_calls == ["mid"]
    assert asyncio.run(builder.get_market_details("nope")) is None


def test_category_counts_cover_supported_sports(builder):
    counts = asyncio.run(builder.category_counts())
    assert list(counts) == list(SUPPORTED_SPORTS)
    assert all(n == 2 for n in counts.values())


def test_category_counts_zero_when_feed_down(builder):
    builder.feed.error = UpstreamError("down")
    counts = asyncio.run(builder.category_counts())
    assert set(counts.values()) == {0}


def test_volume_metrics_trend():
    vm = volume_metrics(build_market(volume=200, volume_1wk=700))
    assert vm.volume_trend == pytest.approx(100.0)
    assert vm.direction == "increasing"
    assert volume_metrics(build_market(volume=0, volume_1wk=0)).volume_trend == 0


def test_market_efficiency_and_prepare():
    m = build_market(volume=1000, one_day_price_change=0.1, one_week_price_change=0.3)
    eff = market_efficiency(m)
    assert eff.volatility_score == pytest.approx(0.2)
    prepared = prepare_market(m)
    assert prepared.efficiency == eff
    assert prepared.order_book.estimated_depth

"""Gamma and CLOB clients against httpx.MockTransport, plus payload normalization."""

import asyncio
import json
from datetime import timedelta

import httpx
import pytest
from conftest import NOW

from weatheredge.errors import UpstreamError
from weatheredge.ingestion.polymarket.clob import ClobClient
from weatheredge.ingestion.polymarket.gamma import (
    GammaClient,
    flatten_events,
    league_tag,
    parse_market,
    resolve_tag_ids,
)
from weatheredge.ingestion.polymarket.normalize import parse_book_payload, parse_datetime


def _iso(days: float) -> str:
    return (NOW + timedelta(days=days)).isoformat().replace("+00:00", "Z")


def _raw_market(market_id: str, **kw):
    raw = {
        "id": market_id,
        "conditionId": f"0x{market_id}",
        "question": "Will it rain at the Bears game?",
        "outcomes": '["Yes", "No"]',
        "outcomePrices": '["0.3", "0.7"]',
        "clobTokenIds": f'["t{market_id}", "t{market_id}n"]',
        "volume24hr": "120000",
        "volume1wk": 500000,
        "liquidityNum": 80000,
        "bestBid": "0.29",
        "bestAsk": "0.31",
        "active": True,
        "closed": False,
    }
    raw.update(kw)
    return raw


EVENTS = [
    {
        "id": "e1",
        "title": "Bears vs Packers",
        "endDate": _iso(2),
        "tags": [{"label": "NFL"}, {"label": "Games"}],
        "markets": [_raw_market("101"), _raw_market("102", closed=True)],
    },
    {"id": "e2", "title": "Season futures", "endDate": _iso(200), "markets": [_raw_market("103")]},
]


def test_parse_market_fields():
    m = parse_market({**_raw_market("101"), "eventTags": ["NFL"], "endDate": _iso(2)})
    assert m.market_id == "101"
    assert m.condition_id == "0x101"
    assert [o.price for o in m.outcomes] == [0.3, 0.7]
    assert m.yes_token_id == "t101"
    assert m.volume_24h == 120000
    assert m.liquidity == 80000
    assert m.best_bid == 0.29
    assert m.tag_labels == ["nfl"]
    assert m.resolution_date is not None


def test_parse_market_tolerates_bad_fields():
    m = parse_market(_raw_market("9", outcomePrices="not json", bestBid="1.7", volume24hr=None, endDate="soon"))
    assert m.outcomes == []
    assert m.best_bid is None
    assert m.volume_24h == 0
    assert m.resolution_date is None


def test_parse_market_requires_id():
    with pytest.raises(ValueError):
        parse_market({"question": "no id"})


def test_flatten_events_inherits_tags_and_skips_far_events():
    rows = flatten_events(EVENTS, max_days_out=60, now=NOW, event_type="NFL")
    assert [r["id"] for r in rows] == ["101", "102"]
    assert rows[0]["eventTags"] == [{"label": "NFL"}, {"label": "Games"}]
    assert rows[0]["eventType"] == "NFL"


def test_resolve_tag_ids():
    sports = [
        {"sport": "epl", "tags": "1,82,100639"},
        {"sport": "ucl", "tags": "100639,1234"},
        {"sport": "nba", "tags": "1,745"},
    ]
    assert resolve_tag_ids("NFL", sports) == ["450"]
    assert resolve_tag_ids("soccer", sports) == ["82", "1234"]
    assert resolve_tag_ids("NBA", sports) == ["745"]
    assert resolve_tag_ids("politics", []) == ["2"]
    assert resolve_tag_ids("weather", []) == []
    assert resolve_tag_ids(None, sports) == []
    assert league_tag("1,100639") == "1"


def _gamma(handler) -> GammaClient:
    return GammaClient(base_url="https://gamma.test", transport=httpx.MockTransport(handler), max_days_out=60)


def test_fetch_active_markets_skips_closed_and_far():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=EVENTS)

    markets = asyncio.run(_gamma(handler).fetch_active_markets())
    assert [m.market_id for m in markets] == ["101"]
    assert seen[0].url.path == "/events"
    assert seen[0].url.params["closed"] == "false"
    assert "tag_id" not in seen[0].url.params


def test_fetch_active_markets_dedupes_across_tags_and_skips_failed_tag():
    def handler(request: httpx.Request) -> httpx.Response:
        tag = request.url.params.get("tag_id")
        if tag == "bad":
            return httpx.Response(500)
        return httpx.Response(200, json=EVENTS[:1])

    markets = asyncio.run(_gamma(handler).fetch_active_markets(["82", "bad", "1234"]))
    assert [m.market_id for m in markets] == ["101"]


def test_fetch_active_markets_raises_when_every_tag_fails():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(UpstreamError) as exc:
        asyncio.run(_gamma(handler).fetch_active_markets(["1", "2"]))
    assert exc.value.status_code == 503


def test_rate_limit_maps_to_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429)

    with pytest.raises(UpstreamError) as exc:
        asyncio.run(_gamma(handler).fetch_active_markets())
    assert exc.value.rate_limited


def test_timeout_maps_to_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamError):
        asyncio.run(_gamma(handler).fetch_sports())


def test_fetch_market_and_sports():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/sports":
            return httpx.Response(200, json=[{"sport": "nfl", "tags": "1,450"}, "junk"])
        return httpx.Response(200, json=_raw_market("101"))

    client = _gamma(handler)
    assert asyncio.run(client.fetch_market("101")).market_id == "101"
    assert asyncio.run(client.fetch_sports()) == [{"sport": "nfl", "tags": "1,450"}]


def test_clob_order_book():
    payload = {
        "market": "0xabc",
        "asset_id": "t1",
        "bids": [{"price": "0.45", "size": "100"}],
        "asks": [{"price": "0.55", "size": "50"}],
        "timestamp": "1700000000000",
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/book"
        assert request.url.params["token_id"] == "t1"
        return httpx.Response(200, content=json.dumps(payload))

    client = ClobClient(base_url="https://clob.test", transport=httpx.MockTransport(handler))
    snap = asyncio.run(client.fetch_order_book("t1"))
    assert snap.bids[0].price == 0.45
    assert snap.asks[0].size == 50
    assert snap.exchange_ts == 1700000000000


def test_clob_error_payload_and_429():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["token_id"] == "gone":
            return httpx.Response(200, json={"error": "No orderbook exists for the requested token id"})
        return httpx.Response(429)

    client = ClobClient(base_url="https://clob.test", transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError):
        asyncio.run(client.fetch_order_book("gone"))
    with pytest.raises(UpstreamError) as exc:
        asyncio.run(client.fetch_order_book("t1"))
    assert exc.value.rate_limited


def test_book_payload_drops_out_of_range_levels():
    snap = parse_book_payload({"buys": [{"price": "0.4", "size": "1"}, {"price": "4", "size": "1"}]}, "t9")
    assert snap.asset_id == "t9"
    assert len(snap.bids) == 1
    assert snap.asks == []


def test_parse_datetime():
    assert parse_datetime("2026-01-05T00:00:00Z").tzinfo is not None
    assert parse_datetime("2026-01-05").year == 2026
    assert parse_datetime("not a date") is None
    assert parse_datetime(None) is None

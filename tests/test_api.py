"""HTTP API routes with the engine dependency overridden."""

import pytest
from conftest import book, build_market
from fastapi.testclient import TestClient

from weatheredge.api.main import app, get_engine


@pytest.fixture
def client(engine, feed, books):
    feed.markets = [
        build_market("rain", "Will it rain at the Bears game?", token="t-rain"),
        build_market("future", "Will the Chiefs win the Super Bowl?", token="t-future", days_out=150),
    ]
    books.books["t-rain"] = book("t-rain", bids=[(0.45, 100)], asks=[(0.47, 100)])
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_status(client):
    r = client.get("/status")
    assert r.status_code == 200
    body = r.json()
    assert body["upstream"]["gamma_api_base"] == "https://gamma.test"
    assert set(body["caches"]) == {"locations", "market_details", "catalogs", "category_metadata"}


def test_catalog(client):
    r = client.get("/markets/catalog", params={"min_volume": 0})
    assert r.status_code == 200
    assert r.json()["total_markets"] == 2


def test_ranked_get(client):
    r = client.get("/markets/ranked", params={"limit": 5, "hour": 3})
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    item = body["markets"][0]
    assert item["market"]["market_id"] == "rain"
    assert item["enriched"] is True
    assert item["depth_impact"]["capital_to_move"] == pytest.approx(47.0)
    assert body["filters"]["exclude_futures"] is True


def test_ranked_post_with_weather(client):
    r = client.post(
        "/markets/ranked",
        json={"filters": {"exclude_futures": False}, "weather": {"precipitationChance": 70}, "hour": 0},
    )
    assert r.status_code == 200
    ids = [m["market"]["market_id"] for m in r.json()["markets"]]
    assert ids[0] == "rain"
    assert "future" in ids
    assert r.json()["markets"][0]["edge_score"] == 6.5


@pytest.mark.parametrize(
    "params",
    [{"limit": 0}, {"confidence": "SUPER"}, {"theme": "space"}, {"max_days": 400}, {"hour": 30}],
)
def test_ranked_invalid_filters_are_400(client, feed, params):
    r = client.get("/markets/ranked", params=params)
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_filter"
    assert feed.listing_calls == []


def test_market_detail_and_404(client):
    assert client.get("/markets/rain").json()["location"] == "Chicago"
    r = client.get("/markets/nope")
    assert r.status_code == 404
    assert r.json() == {"detail": "Market not found: nope", "code": "not_found"}


def test_classification(client):
    r = client.get("/markets/future/classification")
    assert r.status_code == 200
    body = r.json()
    assert body["classification"]["is_futures"] is True
    assert body["classification"]["confidence"] == "HIGH"


def test_search_validation(client):
    assert client.get("/markets/search", params={"location": "C"}).status_code == 400
    r = client.get("/markets/search", params={"location": "chicago"})
    assert [m["market_id"] for m in r.json()["markets"]] == ["rain"]


def test_counts(client):
    r = client.get("/markets/counts")
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == sum(body["counts"].values())
    assert "NFL" in body["counts"]

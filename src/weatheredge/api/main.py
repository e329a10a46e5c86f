"""FastAPI backend: catalog, ranked markets, classification and engine status."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weatheredge.api.schemas import (
    ClassificationResponse,
    CountsResponse,
    ErrorResponse,
    HealthResponse,
    RankedResponse,
    RankRequest,
    StatusResponse,
)
from weatheredge.config import get_settings
from weatheredge.config.settings import configure_logging
from weatheredge.errors import ConfigurationError, InvalidFilterError
from weatheredge.intel.engine import MarketIntelligence
from weatheredge.models import Catalog, Market, parse_filters

log = structlog.get_logger(__name__)

# Set by run_api() before uvicorn imports the app
_config_profile: str | None = None
_engine: MarketIntelligence | None = None


def get_engine() -> MarketIntelligence:
    """Process-wide engine; built on first use so the caches outlive individual requests."""
    global _engine
    if _engine is None:
        _engine = MarketIntelligence(get_settings(_config_profile))
    return _engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings(_config_profile)
    configure_logging(settings)
    log.info("api_started", gamma_api_base=settings.gamma_api_base, profile=_config_profile)
    yield


app = FastAPI(title="Weather Edge API", version="0.1.0", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def _error_json(code: str, message: str, status_code: int = 404, errors: list[dict] | None = None) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    content: dict[str, Any] = {"detail": message, "code": code}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(InvalidFilterError)
async def _invalid_filter(request: Request, exc: InvalidFilterError) -> JSONResponse:
    return _error_json("invalid_filter", str(exc), 400, exc.errors)


@app.exception_handler(ConfigurationError)
async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    log.error("configuration_error", error=str(exc))
    return _error_json("configuration_error", str(exc), 500)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/status", response_model=StatusResponse)
def status(engine: MarketIntelligence = Depends(get_engine)) -> dict[str, Any]:
    return engine.status()


@app.get("/markets/catalog", response_model=Catalog)
async def markets_catalog(
    min_volume: float | None = Query(None, description="24h volume floor (default from config)"),
    category: str | None = Query(None, description="Category or sport, e.g. NFL, Soccer, politics"),
    engine: MarketIntelligence = Depends(get_engine),
) -> Catalog:
    """Volume-filtered catalog. An unavailable feed yields an empty catalog with `error` set."""
    return await engine.build_catalog(min_volume, category)


async def _ranked(engine: MarketIntelligence, body: RankRequest) -> RankedResponse:
    filters = parse_filters(body.filters)
    markets = await engine.rank_markets(
        filters,
        body.limit,
        weather=body.weather,
        venue_weather=body.venue_weather,
        hour=body.hour,
    )
    return RankedResponse(
        markets=markets,
        count=len(markets),
        filters=filters,
        generated_at=datetime.now(timezone.utc),
    )


@app.get(
    "/markets/ranked",
    response_model=RankedResponse,
    responses={400: {"description": "Invalid filters", "model": ErrorResponse}},
)
async def markets_ranked(
    category: str | None = Query(None),
    min_volume: float | None = Query(None),
    confidence: str | None = Query(None, description="all, LOW, MEDIUM or HIGH"),
    location: str | None = Query(None),
    exclude_futures: bool | None = Query(None),
    max_days: int | None = Query(None, description="Only markets resolving within this many days"),
    search: str | None = Query(None),
    theme: str | None = Query(None),
    analysis_type: str | None = Query(None, description="event-weather or discovery"),
    limit: int | None = Query(None),
    hour: int | None = Query(None),
    engine: MarketIntelligence = Depends(get_engine),
) -> RankedResponse:
    """Ranked, diversified markets with late order-book enrichment. Query-string variant without weather."""
    raw = {
        "category": category,
        "min_volume": min_volume,
        "confidence": confidence,
        "location": location,
        "exclude_futures": exclude_futures,
        "max_days_to_resolution": max_days,
        "search_text": search,
        "theme": theme,
        "analysis_type": analysis_type,
    }
    body = RankRequest(filters={k: v for k, v in raw.items() if v is not None}, limit=limit, hour=hour)
    return await _ranked(engine, body)


@app.post(
    "/markets/ranked",
    response_model=RankedResponse,
    responses={400: {"description": "Invalid filters", "model": ErrorResponse}},
)
async def markets_ranked_post(body: RankRequest, engine: MarketIntelligence = Depends(get_engine)) -> RankedResponse:
    """Ranked markets scored against caller-supplied venue weather."""
    return await _ranked(engine, body)


@app.get("/markets/counts", response_model=CountsResponse)
async def markets_counts(
    min_volume: float | None = Query(None),
    engine: MarketIntelligence = Depends(get_engine),
) -> CountsResponse:
    counts = await engine.category_counts(min_volume)
    return CountsResponse(counts=counts, total=sum(counts.values()))


@app.get(
    "/markets/search",
    response_model=Catalog,
    responses={400: {"description": "Location too short", "model": ErrorResponse}},
)
async def markets_search(
    location: str = Query(..., description="Venue name, e.g. Chicago"),
    engine: MarketIntelligence = Depends(get_engine),
) -> Catalog:
    return await engine.search_by_location(location)


@app.get(
    "/markets/{market_id}",
    response_model=Market,
    responses={404: {"description": "Market not found", "model": ErrorResponse}},
)
async def market_detail(market_id: str, engine: MarketIntelligence = Depends(get_engine)):
    market = await engine.get_market_details(market_id)
    if market is None:
        return _error_json("not_found", f"Market not found: {market_id}")
    return market


@app.get(
    "/markets/{market_id}/classification",
    response_model=ClassificationResponse,
    responses={404: {"description": "Market not found", "model": ErrorResponse}},
)
async def market_classification(market_id: str, engine: MarketIntelligence = Depends(get_engine)):
    """Futures vs single-event verdict with per-signal scores."""
    market = await engine.get_market_details(market_id)
    if market is None:
        return _error_json("not_found", f"Market not found: {market_id}")
    return ClassificationResponse(market_id=market.market_id, title=market.title, classification=engine.classify(market))


def run_api(host: str = "127.0.0.1", port: int = 8000, profile: str | None = None) -> None:
    global _config_profile
    _config_profile = profile
    import uvicorn

    uvicorn.run("weatheredge.api.main:app", host=host, port=port, reload=False)

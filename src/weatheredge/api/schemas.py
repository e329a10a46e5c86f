"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from weatheredge.models import ClassificationResult, RankedMarket, RankFilters


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. invalid_filter, not_found")
    errors: list[dict[str, Any]] = Field(default_factory=list, description="Per-field validation errors")


# --- Status ---
class UpstreamStatus(BaseModel):
    available: bool | None = None
    last_error: str | None = None
    checked_at: str | None = None
    gamma_api_base: str
    clob_api_base: str


class StatusResponse(BaseModel):
    service: str
    upstream: UpstreamStatus
    caches: dict[str, dict[str, Any]]
    order_book_budget: dict[str, Any] | None = None


# --- Ranking ---
class RankRequest(BaseModel):
    """POST body for /markets/ranked. Filters stay a plain dict so bad values surface as invalid_filter."""

    filters: dict[str, Any] = Field(default_factory=dict)
    limit: int | None = None
    weather: dict[str, Any] | None = None
    venue_weather: dict[str, dict[str, Any]] | None = Field(
        None, description="Per-venue conditions keyed by location name"
    )
    hour: int | None = Field(None, description="Hour of day used to rotate near-tied categories")


class RankedResponse(BaseModel):
    markets: list[RankedMarket]
    count: int
    filters: RankFilters
    generated_at: datetime


# --- Counts ---
class CountsResponse(BaseModel):
    counts: dict[str, int]
    total: int


# --- Classification ---
class ClassificationResponse(BaseModel):
    market_id: str
    title: str
    classification: ClassificationResult

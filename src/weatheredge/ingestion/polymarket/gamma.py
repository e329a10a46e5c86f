"""Polymarket Gamma API client - bulk event listing, market details and sports metadata."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import structlog

from weatheredge.errors import UpstreamError
from weatheredge.ingestion.http import get_json
from weatheredge.ingestion.polymarket.normalize import _float, _opt_float, _price, parse_datetime
from weatheredge.models import Market, Outcome

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"

# Static category -> Gamma tag id. Soccer and other sports resolve through /sports metadata.
CATEGORY_TAG_IDS: dict[str, str | None] = {
    "sports": None,
    "weather": None,
    "all": None,
    "politics": "2",
    "crypto": "21",
    "finance": "120",
    "business": "107",
    "tech": "1401",
    "culture": "596",
    "science": "74",
    "movies": "53",
}
SPORT_TAG_IDS = {"nfl": "450", "f1": "435", "formula 1": "435"}
SOCCER_LEAGUE_CODES = [
    "epl", "lal", "ucl", "sea", "bun", "fl1", "mls", "uel", "afc", "ofc", "fif", "ere", "arg", "itc",
    "mex", "lcs", "lib", "sud", "tur", "con", "cof", "uef", "caf", "rus", "efa", "efl", "cdr",
]
MAX_SOCCER_LEAGUES = 10
GENERIC_SPORT_TAGS = ("1", "100639")


def _json_list(value: str | list[Any] | None) -> list[Any]:
    if isinstance(value, list):
        return value
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return []
    return parsed if isinstance(parsed, list) else []


def _parse_outcomes(
    outcomes_str: str | list[str] | None,
    prices_str: str | list[str] | None,
    clob_token_ids_str: str | list[str] | None,
) -> list[Outcome]:
    """Build Outcome list from Gamma API outcome fields (may be JSON strings). Unparseable prices drop the outcome."""
    names = _json_list(outcomes_str)
    prices = _json_list(prices_str)
    token_ids = _json_list(clob_token_ids_str)
    # Align lengths
    while len(prices) < len(names):
        prices.append(None)
    while len(token_ids) < len(names):
        token_ids.append("")
    outcomes = []
    for name, raw_price, tid in zip(names, prices, token_ids):
        price = _price(raw_price)
        if price is None:
            continue
        outcomes.append(Outcome(token_id=str(tid or ""), name=str(name), price=price))
    return outcomes


def parse_market(raw: dict[str, Any], venue: str = "polymarket") -> Market:
    """Convert a Gamma market object (optionally carrying inherited eventTags) to canonical Market."""
    market_id = str(raw.get("id") or raw.get("conditionId") or "")
    if not market_id:
        raise ValueError("market has no id")
    tags = list(raw.get("tags") or []) + list(raw.get("eventTags") or [])
    return Market(
        market_id=market_id,
        venue=venue,
        condition_id=raw.get("conditionId") or None,
        slug=raw.get("slug"),
        title=raw.get("question") or raw.get("title") or "",
        description=raw.get("description") or "",
        resolution_date=parse_datetime(raw.get("endDate") or raw.get("endDateIso")),
        category=raw.get("eventType") or raw.get("category"),
        outcomes=_parse_outcomes(raw.get("outcomes"), raw.get("outcomePrices"), raw.get("clobTokenIds")),
        tags=tags,
        best_bid=_price(raw.get("bestBid")),
        best_ask=_price(raw.get("bestAsk")),
        last_trade_price=_price(raw.get("lastTradePrice")),
        spread=_opt_float(raw.get("spread")),
        volume_24h=_float(raw.get("volume24hr")),
        volume_1wk=_float(raw.get("volume1wk")),
        volume_1mo=_float(raw.get("volume1mo")),
        liquidity=_float(raw.get("liquidityNum") or raw.get("liquidity")),
        one_day_price_change=_opt_float(raw.get("oneDayPriceChange")),
        one_week_price_change=_opt_float(raw.get("oneWeekPriceChange")),
        one_month_price_change=_opt_float(raw.get("oneMonthPriceChange")),
        extra={"event_id": raw.get("eventId"), "event_title": raw.get("eventTitle")},
    )


def flatten_events(
    events: list[dict[str, Any]],
    max_days_out: int = 60,
    now: datetime | None = None,
    event_type: str | None = None,
) -> list[dict[str, Any]]:
    """Event list -> market dicts inheriting event tags and end date. Events ending past the horizon are skipped."""
    now = now or datetime.now(timezone.utc)
    horizon = now + timedelta(days=max_days_out) if max_days_out > 0 else None
    rows = []
    for event in events:
        if not isinstance(event, dict):
            continue
        end = event.get("endDate") or event.get("end_date")
        end_dt = parse_datetime(end)
        if horizon is not None and end_dt is not None and end_dt > horizon:
            continue
        for m in event.get("markets") or []:
            if not isinstance(m, dict):
                continue
            row = {
                **m,
                "eventTags": event.get("tags") or [],
                "endDate": m.get("endDate") or end,
                "eventId": event.get("id"),
                "eventTitle": event.get("title"),
            }
            if event_type:
                row["eventType"] = event_type
            rows.append(row)
    return rows


def league_tag(tags: str | None) -> str | None:
    """Pick the league-specific tag from a /sports comma list (not the generic sports tags)."""
    if not tags:
        return None
    parts = [t.strip() for t in str(tags).split(",") if t.strip()]
    return next((t for t in parts if t not in GENERIC_SPORT_TAGS), parts[0] if parts else None)


def resolve_tag_ids(category: str | None, sports: list[dict[str, Any]]) -> list[str]:
    """Category -> Gamma tag ids to query. Empty list means an unfiltered listing."""
    if not category:
        return []
    key = category.strip().lower()
    if key in SPORT_TAG_IDS:
        return [SPORT_TAG_IDS[key]]
    if key == "soccer":
        by_code = {s.get("sport"): s for s in sports if isinstance(s, dict)}
        tags = []
        for code in SOCCER_LEAGUE_CODES:
            tag = league_tag(by_code[code].get("tags")) if code in by_code else None
            if tag and tag not in tags:
                tags.append(tag)
        return tags[:MAX_SOCCER_LEAGUES]
    if key in CATEGORY_TAG_IDS:
        tag = CATEGORY_TAG_IDS[key]
        return [tag] if tag else []
    for s in sports:
        if isinstance(s, dict) and str(s.get("sport", "")).lower() == key:
            tag = league_tag(s.get("tags"))
            return [tag] if tag else []
    return []


class GammaClient:
    """Async Gamma client. One short-lived httpx client per request; failures raise UpstreamError."""

    def __init__(
        self,
        base_url: str = GAMMA_API_BASE,
        timeout: float = 10.0,
        events_limit: int = 200,
        max_days_out: int = 60,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.events_limit = events_limit
        self.max_days_out = max_days_out
        self.user_agent = user_agent
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Any, transport: httpx.AsyncBaseTransport | None = None) -> GammaClient:
        return cls(
            base_url=settings.gamma_api_base,
            timeout=settings.feed_timeout_sec,
            events_limit=settings.events_limit,
            max_days_out=settings.max_days_out,
            user_agent=settings.user_agent,
            transport=transport,
        )

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await get_json(
            self.base_url + path,
            params,
            timeout=self.timeout,
            user_agent=self.user_agent,
            transport=self._transport,
        )

    async def fetch_events(self, tag_id: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"closed": "false", "limit": limit or self.events_limit}
        if tag_id:
            params["tag_id"] = tag_id
        data = await self._get("/events", params)
        if not isinstance(data, list):
            data = data.get("data", []) if isinstance(data, dict) else []
        return data

    async def fetch_active_markets(
        self,
        tag_ids: list[str] | None = None,
        limit: int | None = None,
        event_type: str | None = None,
    ) -> list[Market]:
        """Active markets from the event listing, one request per tag. De-duplicated by market id.

        With several tags a failing tag is skipped; the call only raises when every tag failed.
        """
        targets: list[str | None] = list(tag_ids) if tag_ids else [None]
        events: list[dict[str, Any]] = []
        failures: list[UpstreamError] = []
        for tag_id in targets:
            try:
                events.extend(await self.fetch_events(tag_id, limit))
            except UpstreamError as e:
                if len(targets) == 1:
                    raise
                log.warning("gamma_tag_fetch_failed", tag_id=tag_id, error=str(e))
                failures.append(e)
        if failures and len(failures) == len(targets):
            raise failures[-1]
        markets: list[Market] = []
        seen: set[str] = set()
        for row in flatten_events(events, self.max_days_out, event_type=event_type):
            if row.get("closed") is True or row.get("active") is False:
                continue
            try:
                market = parse_market(row)
            except (ValueError, TypeError) as e:
                log.warning("skip_market", market_id=row.get("id"), error=str(e))
                continue
            if market.market_id in seen:
                continue
            seen.add(market.market_id)
            markets.append(market)
        log.debug("gamma_markets_fetched", tags=targets, events=len(events), markets=len(markets))
        return markets

    async def fetch_market(self, market_id: str) -> Market | None:
        data = await self._get(f"/markets/{market_id}")
        if not isinstance(data, dict) or not data:
            return None
        try:
            return parse_market(data)
        except (ValueError, TypeError) as e:
            log.warning("skip_market", market_id=market_id, error=str(e))
            return None

    async def fetch_sports(self) -> list[dict[str, Any]]:
        data = await self._get("/sports")
        return [s for s in data if isinstance(s, dict)] if isinstance(data, list) else []

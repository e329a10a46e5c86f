"""Polymarket CLOB REST client - L2 order book per outcome token."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from weatheredge.errors import UpstreamError
from weatheredge.ingestion.http import get_json
from weatheredge.ingestion.polymarket.normalize import parse_book_payload
from weatheredge.models import OrderBookSnapshot

log = structlog.get_logger(__name__)

CLOB_API_BASE = "https://clob.polymarket.com"


class ClobClient:
    def __init__(
        self,
        base_url: str = CLOB_API_BASE,
        timeout: float = 5.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Any, transport: httpx.AsyncBaseTransport | None = None) -> ClobClient:
        return cls(
            base_url=settings.clob_api_base,
            timeout=settings.order_book_timeout_sec,
            user_agent=settings.user_agent,
            transport=transport,
        )

    async def fetch_order_book(self, token_id: str) -> OrderBookSnapshot:
        """GET /book?token_id=... Raises UpstreamError (rate_limited on 429) on any failure."""
        data = await get_json(
            f"{self.base_url}/book",
            {"token_id": token_id},
            timeout=self.timeout,
            user_agent=self.user_agent,
            transport=self._transport,
        )
        if not isinstance(data, dict):
            raise UpstreamError(f"unexpected order book payload for token {token_id}")
        if data.get("error"):
            raise UpstreamError(f"order book error for token {token_id}: {data['error']}")
        book = parse_book_payload(data, token_id)
        log.debug("order_book_fetched", token_id=token_id, bids=len(book.bids), asks=len(book.asks))
        return book

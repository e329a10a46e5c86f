"""Shared async GET helper: one short-lived httpx client per call, errors mapped to UpstreamError."""

from __future__ import annotations

from typing import Any

import httpx

from weatheredge.errors import UpstreamError


async def get_json(
    url: str,
    params: dict[str, Any] | None = None,
    *,
    timeout: float,
    user_agent: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    headers = {"Accept": "application/json"}
    if user_agent:
        headers["User-Agent"] = user_agent
    try:
        async with httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport) as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise UpstreamError(f"GET {url} returned {status}", status_code=status) from e
    except httpx.TimeoutException as e:
        raise UpstreamError(f"GET {url} timed out after {timeout}s") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"GET {url} failed: {e}") from e
    except ValueError as e:
        raise UpstreamError(f"GET {url} returned invalid JSON") from e

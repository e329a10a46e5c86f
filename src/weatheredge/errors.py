"""Exception hierarchy. Only configuration and caller-input errors reach the API boundary."""

from __future__ import annotations


class WeatherEdgeError(Exception):
    """Base class for all weather-edge errors."""


class ConfigurationError(WeatherEdgeError):
    """Settings make the feed unusable (missing base URL, non-positive timeouts or TTLs)."""


class InvalidFilterError(WeatherEdgeError):
    """Caller-supplied ranking/catalog parameters failed validation."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class UpstreamError(WeatherEdgeError):
    """Feed or order-book call failed, timed out, or was rate limited."""

    def __init__(self, message: str, status_code: int | None = None, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.rate_limited = rate_limited or status_code == 429

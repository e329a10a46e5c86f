"""TOML config loading, profiles and structlog setup."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from weatheredge.errors import ConfigurationError

CONFIG_DIR_ENV = "WEATHEREDGE_CONFIG_DIR"
PROFILE_ENV = "WEATHEREDGE_PROFILE"

# Repo checkout: <root>/src/weatheredge/config/settings.py -> <root>/config
_REPO_CONFIG = Path(__file__).resolve().parents[3] / "config"


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"{path}: {e}") from e


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Overlay wins; nested tables are merged key by key."""
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        merged[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _config_dir(explicit: Path | None) -> Path:
    # explicit > env > ./config > repo config
    if explicit is not None:
        return explicit
    if os.environ.get(CONFIG_DIR_ENV):
        return Path(os.environ[CONFIG_DIR_ENV])
    cwd = Path.cwd() / "config"
    return cwd if cwd.is_dir() else _REPO_CONFIG


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """default.toml with `<profile>.toml` laid over it. Missing files contribute nothing."""
    directory = _config_dir(config_dir)
    profile = profile or os.environ.get(PROFILE_ENV)
    raw: dict[str, Any] = {}
    for name in ("default", profile):
        path = directory / f"{name}.toml" if name else None
        if path is not None and path.is_file():
            raw = _merge(raw, _read_toml(path))
    return raw


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    return Settings.from_dict(load_config(profile, config_dir))


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        feed: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
        ranking: dict[str, Any] | None = None,
        enrichment: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.feed = feed or {}
        self.cache = cache or {}
        self.ranking = ranking or {}
        self.enrichment = enrichment or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            feed=raw.get("feed"),
            cache=raw.get("cache"),
            ranking=raw.get("ranking"),
            enrichment=raw.get("enrichment"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def gamma_api_base(self) -> str:
        return self.feed.get("gamma_api_base", "https://gamma-api.polymarket.com")

    @property
    def clob_api_base(self) -> str:
        return self.feed.get("clob_api_base", "https://clob.polymarket.com")

    @property
    def feed_timeout_sec(self) -> float:
        return float(self.feed.get("timeout_sec", 10.0))

    @property
    def order_book_timeout_sec(self) -> float:
        return float(self.feed.get("order_book_timeout_sec", 5.0))

    @property
    def events_limit(self) -> int:
        return int(self.feed.get("events_limit", 200))

    @property
    def max_days_out(self) -> int:
        return int(self.feed.get("max_days_out", 60))

    @property
    def user_agent(self) -> str:
        return self.feed.get("user_agent", "weather-edge/0.1")

    @property
    def location_ttl_sec(self) -> float:
        return float(self.cache.get("location_ttl_sec", 5 * 60))

    @property
    def market_detail_ttl_sec(self) -> float:
        return float(self.cache.get("market_detail_ttl_sec", 10 * 60))

    @property
    def catalog_ttl_sec(self) -> float:
        return float(self.cache.get("catalog_ttl_sec", 30 * 60))

    @property
    def category_metadata_ttl_sec(self) -> float:
        return float(self.cache.get("category_metadata_ttl_sec", 24 * 60 * 60))

    @property
    def default_limit(self) -> int:
        return int(self.ranking.get("default_limit", 10))

    @property
    def max_limit(self) -> int:
        return int(self.ranking.get("max_limit", 50))

    @property
    def default_min_volume(self) -> float:
        return float(self.ranking.get("default_min_volume", 50000))

    @property
    def band_width(self) -> float:
        return float(self.ranking.get("band_width", 0.5))

    @property
    def diversify_min_band(self) -> int:
        return int(self.ranking.get("diversify_min_band", 3))

    @property
    def order_book_rate(self) -> float:
        return float(self.enrichment.get("order_book_rate", 5.0))

    @property
    def order_book_burst(self) -> int:
        return int(self.enrichment.get("order_book_burst", 10))

    @property
    def depth_target_movement(self) -> float:
        return float(self.enrichment.get("depth_target_movement", 0.05))

    @property
    def last_trade_offset(self) -> float:
        return float(self.enrichment.get("last_trade_offset", 0.01))

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)

    def validate(self) -> None:
        """Raise ConfigurationError if the feed cannot be used with these settings."""
        for name in ("gamma_api_base", "clob_api_base"):
            url = getattr(self, name)
            if not url or not str(url).startswith(("http://", "https://")):
                raise ConfigurationError(f"feed.{name} must be an http(s) URL, got {url!r}")
        for name in (
            "feed_timeout_sec",
            "order_book_timeout_sec",
            "location_ttl_sec",
            "market_detail_ttl_sec",
            "catalog_ttl_sec",
            "category_metadata_ttl_sec",
        ):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.max_limit < 1:
            raise ConfigurationError("ranking.max_limit must be at least 1")


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_RELAY_URLS = (
    "https://corsproxy.io/?",
    "https://api.allorigins.win/raw?url=",
    "https://api.codetabs.com/v1/proxy?quest=",
)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the watchlist server."""

    app_name: str = "alphaview"
    app_version: str = "1.0.0"
    transport_mode: str = "auto"
    http_transport: str = "sse"
    host: str = "0.0.0.0"
    port: int = 8000
    mcp_path: str = "/mcp"
    health_path: str = "/health"
    log_level: str = "INFO"
    relay_urls: tuple[str, ...] = field(default=DEFAULT_RELAY_URLS)
    relay_timeout_seconds: float = 6.0
    fetch_max_sweeps: int = 3
    fetch_backoff_seconds: float = 1.0
    cache_ttl_seconds: int = 300
    reference_currency: str = "EUR"
    quote_currency: str = "USD"
    fx_initial_rate: float = 1 / 1.08
    watchlist_path: str = "~/.alphaview/watchlist.json"
    default_range: str = "1d"
    refresh_interval_seconds: float = 60.0


def _as_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _as_float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None or value.strip() == "":
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


def get_settings() -> Settings:
    """Load runtime settings from environment variables."""
    load_dotenv()
    defaults = Settings()

    return Settings(
        transport_mode=os.getenv("TRANSPORT_MODE", "auto").strip().lower(),
        http_transport=os.getenv("HTTP_TRANSPORT", "sse").strip().lower(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_as_int(os.getenv("PORT"), 8000),
        mcp_path=os.getenv("MCP_PATH", "/mcp"),
        health_path=os.getenv("HEALTH_PATH", "/health"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        relay_urls=_as_list(os.getenv("RELAY_URLS"), DEFAULT_RELAY_URLS),
        relay_timeout_seconds=_as_float(os.getenv("RELAY_TIMEOUT_SECONDS"), 6.0),
        fetch_max_sweeps=_as_int(os.getenv("FETCH_MAX_SWEEPS"), 3),
        fetch_backoff_seconds=_as_float(os.getenv("FETCH_BACKOFF_SECONDS"), 1.0),
        cache_ttl_seconds=_as_int(os.getenv("CACHE_TTL_SECONDS"), 300),
        reference_currency=os.getenv("REFERENCE_CURRENCY", "EUR").strip().upper(),
        quote_currency=os.getenv("QUOTE_CURRENCY", "USD").strip().upper(),
        fx_initial_rate=_as_float(os.getenv("FX_INITIAL_RATE"), defaults.fx_initial_rate),
        watchlist_path=os.getenv("WATCHLIST_PATH", defaults.watchlist_path),
        default_range=os.getenv("DEFAULT_RANGE", "1d").strip(),
        refresh_interval_seconds=(
            _as_float(os.getenv("REFRESH_INTERVAL_SECONDS"), 60.0)
            if _as_bool(os.getenv("AUTO_REFRESH"), True)
            else 0.0
        ),
    )

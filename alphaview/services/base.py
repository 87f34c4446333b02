"""Shared service orchestration helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Generic, TypeVar

from alphaview.cache.ttl_cache import TTLCache
from alphaview.providers.http import ProviderError

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9^][A-Z0-9.\-=^]{0,19}$")
# Display range -> (provider range, provider interval).
RANGE_INTERVALS: dict[str, tuple[str, str]] = {
    "1d": ("1d", "5m"),
    "1W": ("5d", "15m"),
    "5d": ("5d", "15m"),
    "1mo": ("1mo", "1d"),
    "6mo": ("6mo", "1d"),
    "1y": ("1y", "1d"),
    "5y": ("5y", "1wk"),
    "max": ("max", "1mo"),
}
T = TypeVar("T")


@dataclass
class ErrorEnvelope:
    code: str
    message: str
    retriable: bool = True
    provider: str | None = None


@dataclass
class ServiceResult(Generic[T]):
    data: T | None
    source: str | None = None
    warning: str | None = None
    error: ErrorEnvelope | None = None
    fetched_at: float | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None


@dataclass
class ServiceContext:
    providers: dict[str, object]
    cache: TTLCache
    cache_ttl_seconds: int = 300

    def get_provider(self, name: str) -> object | None:
        return self.providers.get(name)


def normalize_symbol(symbol: str) -> str:
    return symbol.replace("$", "").strip().upper()


def validate_symbol(symbol: str) -> str:
    clean = normalize_symbol(symbol)
    if not clean or not SYMBOL_PATTERN.match(clean):
        raise ValueError("Symbol must be 1-20 chars: A-Z, 0-9, dot, hyphen, caret, equals.")
    return clean


def validate_range(range_: str) -> str:
    if range_ not in RANGE_INTERVALS:
        raise ValueError(f"Range must be one of: {', '.join(RANGE_INTERVALS)}.")
    return range_


def resolve_range(range_: str) -> tuple[str, str]:
    """Map a display range to the (range, interval) pair sent upstream."""
    return RANGE_INTERVALS[validate_range(range_)]


def envelope_from_provider_error(error: ProviderError) -> ErrorEnvelope:
    retriable = error.code not in {"AUTH", "NOT_FOUND"}
    return ErrorEnvelope(code=error.code, message=error.message, retriable=retriable, provider=error.provider)

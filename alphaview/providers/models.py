"""Normalized data models shared across providers, analytics and tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ProviderName = Literal["yahoo", "relay"]
Trend = Literal["bullish", "bearish", "neutral"]

SHORTEST_RANGE = "1d"
DAILY_INTERVALS = frozenset({"1d", "1wk", "1mo"})
SEARCH_TYPES = frozenset({"EQUITY", "ETF", "MUTUALFUND", "INDEX", "CRYPTOCURRENCY", "CURRENCY"})
FUND_TYPES = frozenset({"ETF", "MUTUALFUND"})
DEFAULT_INSTRUMENT_TYPE = "EQUITY"


@dataclass(frozen=True)
class InstrumentMeta:
    symbol: str
    short_name: str | None = None
    long_name: str | None = None
    currency: str | None = None
    exchange_name: str | None = None
    full_exchange_name: str | None = None
    instrument_type: str | None = None
    regular_market_price: float | None = None
    chart_previous_close: float | None = None
    range: str | None = None


@dataclass(frozen=True)
class RawMarketPayload:
    """Chart result after ingestion; price arrays may still hold gaps and disorder."""

    meta: InstrumentMeta
    timestamps: list[int | None] = field(default_factory=list)
    close: list[float | None] = field(default_factory=list)
    adjclose: list[float | None] | None = None
    range: str = "1y"
    interval: str = "1d"

    def has_close_prices(self) -> bool:
        return any(value is not None for value in self.close)

    def has_quote_metadata(self) -> bool:
        return bool(self.meta.regular_market_price) or bool(self.meta.chart_previous_close)


@dataclass(frozen=True)
class PricePoint:
    time: int
    value: float


@dataclass(frozen=True)
class AnalysisResult:
    symbol: str
    name: str
    instrument_type: str
    exchange: str
    currency: str | None
    price: float
    change: float
    change_percent: float
    trend: Trend
    volatility_pct: float
    sma50: float | None
    sma200: float | None
    computed_at: float


@dataclass(frozen=True)
class SymbolMatch:
    symbol: str
    name: str
    instrument_type: str
    exchange: str | None = None

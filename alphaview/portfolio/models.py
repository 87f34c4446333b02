"""Typed portfolio models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from alphaview.providers.models import AnalysisResult

SortField = Literal["name", "value", "performance", "weight"]
SortDirection = Literal["asc", "desc"]
LinkKind = Literal["primary", "secondary"]


@dataclass(frozen=True)
class WatchlistEntry:
    symbol: str
    quantity: float = 0.0
    primary_link: str = ""
    secondary_link: str = ""


@dataclass(frozen=True)
class PortfolioRow:
    symbol: str
    quantity: float = 0.0
    primary_link: str = ""
    secondary_link: str = ""
    analysis: AnalysisResult | None = None
    error: bool = False
    message: str | None = None
    value_native: float = 0.0
    value_reference: float = 0.0
    weight_pct: float = 0.0
    fx_converted: bool = True

    @property
    def name(self) -> str:
        return self.analysis.name if self.analysis else self.symbol

    @property
    def change_percent(self) -> float:
        return self.analysis.change_percent if self.analysis else 0.0


@dataclass(frozen=True)
class SortState:
    field: SortField = "value"
    direction: SortDirection = "desc"


@dataclass(frozen=True)
class PortfolioSnapshot:
    rows: tuple[PortfolioRow, ...] = field(default_factory=tuple)
    fx_rate: float = 1.0
    range: str = "1d"
    refreshed_at: float | None = None

    @property
    def total_reference(self) -> float:
        return sum(row.value_reference for row in self.rows if not row.error)


@dataclass
class ValidationIssue:
    field: str
    message: str
    row: int | None = None
    code: str = "invalid_value"

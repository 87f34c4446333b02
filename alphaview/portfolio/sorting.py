"""Sorting and filtering of portfolio rows."""

from __future__ import annotations

from typing import Iterable

from alphaview.portfolio.models import PortfolioRow, SortDirection, SortField, SortState

SORT_FIELDS: tuple[SortField, ...] = ("name", "value", "performance", "weight")


def default_direction(field: SortField) -> SortDirection:
    return "asc" if field == "name" else "desc"


def toggle_sort(state: SortState, field: str) -> SortState:
    """Same field flips direction; a new field starts at its natural direction."""
    if field not in SORT_FIELDS:
        raise ValueError(f"Sort field must be one of: {', '.join(SORT_FIELDS)}.")
    if state.field == field:
        return SortState(field=state.field, direction="asc" if state.direction == "desc" else "desc")
    return SortState(field=field, direction=default_direction(field))  # type: ignore[arg-type]


def _sort_key(row: PortfolioRow, field: SortField) -> str | float:
    if field == "name":
        return row.name.lower()
    if field == "performance":
        return row.change_percent
    if field == "weight":
        return row.weight_pct
    return row.value_reference


def sort_rows(rows: Iterable[PortfolioRow], state: SortState) -> list[PortfolioRow]:
    items = list(rows)
    healthy = [row for row in items if not row.error]
    failed = [row for row in items if row.error]
    ordered = sorted(healthy, key=lambda row: _sort_key(row, state.field), reverse=state.direction == "desc")
    return ordered + failed


def filter_rows(
    rows: Iterable[PortfolioRow],
    query: str | None = None,
    trend: str | None = None,
    include_errors: bool = True,
) -> list[PortfolioRow]:
    needle = (query or "").strip().lower()
    output: list[PortfolioRow] = []
    for row in rows:
        if row.error and not include_errors:
            continue
        if needle and needle not in row.symbol.lower() and needle not in row.name.lower():
            continue
        if trend and (row.analysis is None or row.analysis.trend != trend):
            continue
        output.append(row)
    return output

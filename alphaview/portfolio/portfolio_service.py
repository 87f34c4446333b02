"""Portfolio refresh orchestration: fetch, analyze, merge, value and sort."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any

from alphaview.lib.analysis import analyze
from alphaview.lib.sanitizer import sanitize
from alphaview.portfolio.models import (
    LinkKind,
    PortfolioRow,
    PortfolioSnapshot,
    SortState,
    ValidationIssue,
    WatchlistEntry,
)
from alphaview.portfolio.sorting import filter_rows, sort_rows, toggle_sort
from alphaview.portfolio.store import WatchlistStore
from alphaview.providers.models import FUND_TYPES, AnalysisResult
from alphaview.runtime.monitoring import ServerMetrics
from alphaview.services.base import resolve_range, validate_range
from alphaview.services.market_service import MarketDataService

LOGGER = logging.getLogger(__name__)
QUOTE_PAGE_URL = "https://finance.yahoo.com/quote/{symbol}"
NO_DATA_MESSAGE = "No data"
ANALYSIS_FAILED_MESSAGE = "Analysis failed"


def default_primary_link(symbol: str) -> str:
    return QUOTE_PAGE_URL.format(symbol=symbol)


def default_secondary_link(symbol: str, instrument_type: str | None) -> str:
    suffix = "holdings" if (instrument_type or "").upper() in FUND_TYPES else "news"
    return f"{QUOTE_PAGE_URL.format(symbol=symbol)}/{suffix}"


def merge_entry(entry: WatchlistEntry, outcome: AnalysisResult | str) -> PortfolioRow:
    """Overlay user-owned fields on an analysis result or an error message."""
    primary = entry.primary_link or default_primary_link(entry.symbol)
    if isinstance(outcome, str):
        return PortfolioRow(
            symbol=entry.symbol,
            quantity=entry.quantity,
            primary_link=primary,
            secondary_link=entry.secondary_link,
            error=True,
            message=outcome,
        )
    return PortfolioRow(
        symbol=entry.symbol,
        quantity=entry.quantity,
        primary_link=primary,
        secondary_link=entry.secondary_link or default_secondary_link(entry.symbol, outcome.instrument_type),
        analysis=outcome,
    )


def value_rows(
    rows: list[PortfolioRow],
    fx_rate: float,
    reference_currency: str,
    quote_currency: str,
) -> list[PortfolioRow]:
    """Compute native and reference values, then each row's weight in the total."""
    valued: list[PortfolioRow] = []
    for row in rows:
        if row.error or row.analysis is None:
            valued.append(replace(row, value_native=0.0, value_reference=0.0, weight_pct=0.0))
            continue
        native = row.analysis.price * row.quantity
        currency = (row.analysis.currency or "").upper()
        if currency == quote_currency:
            valued.append(replace(row, value_native=native, value_reference=native * fx_rate, fx_converted=True))
        else:
            valued.append(
                replace(
                    row,
                    value_native=native,
                    value_reference=native,
                    fx_converted=currency == reference_currency,
                )
            )
    total = sum(row.value_reference for row in valued if not row.error)
    return [
        replace(row, weight_pct=(row.value_reference / total * 100.0) if total > 0 and not row.error else 0.0)
        for row in valued
    ]


class PortfolioService:
    """Owns the current snapshot; a single refresh writes it at a time."""

    def __init__(
        self,
        market: MarketDataService,
        store: WatchlistStore,
        reference_currency: str = "EUR",
        quote_currency: str = "USD",
        initial_fx_rate: float = 1 / 1.08,
        default_range: str = "1d",
        metrics: ServerMetrics | None = None,
    ) -> None:
        self.market = market
        self.store = store
        self.reference_currency = reference_currency.upper()
        self.quote_currency = quote_currency.upper()
        self.fx_symbol = f"{self.reference_currency}{self.quote_currency}=X"
        self.metrics = metrics
        self._default_range = validate_range(default_range)
        self._snapshot = PortfolioSnapshot(fx_rate=initial_fx_rate, range=self._default_range)
        self._sort = store.sort_state()
        self._refresh_lock = asyncio.Lock()

    @property
    def snapshot(self) -> PortfolioSnapshot:
        return self._snapshot

    @property
    def fx_rate(self) -> float:
        return self._snapshot.fx_rate

    @property
    def sort_state(self) -> SortState:
        return self._sort

    async def _analyze_entry(self, entry: WatchlistEntry, range_: str, interval: str) -> AnalysisResult | str:
        payload = await self.market.fetch_series(entry.symbol, range_, interval)
        if payload is None:
            return NO_DATA_MESSAGE
        result = analyze(payload)
        return result if result is not None else ANALYSIS_FAILED_MESSAGE

    async def _fetch_fx_rate(self) -> float | None:
        payload = await self.market.fetch_series(self.fx_symbol, "5d", "1d")
        if payload is None:
            return None
        closes = sanitize(payload.timestamps, payload.close)
        quote = closes[-1].value if closes else payload.meta.regular_market_price
        if not quote or quote <= 0:
            return None
        return 1.0 / quote

    async def refresh(self, range_: str | None = None) -> PortfolioSnapshot:
        """Rebuild every row concurrently and swap the snapshot in one step.

        Entries are re-read from the store after the join so quantity and
        link edits made while the cycle was in flight are not overwritten.
        """
        selected = validate_range(range_ or self._snapshot.range or self._default_range)
        fetch_range, interval = resolve_range(selected)
        async with self._refresh_lock:
            started = time.perf_counter()
            entries = self.store.entries()
            results = await asyncio.gather(
                self._fetch_fx_rate(),
                *(self._analyze_entry(entry, fetch_range, interval) for entry in entries),
                return_exceptions=True,
            )
            fx_result, outcomes = results[0], results[1:]

            fx_rate = self._snapshot.fx_rate
            if isinstance(fx_result, float):
                fx_rate = fx_result
            else:
                LOGGER.warning("fx refresh failed, keeping previous rate: pair=%s rate=%s", self.fx_symbol, fx_rate)

            by_symbol: dict[str, AnalysisResult | str] = {}
            for entry, outcome in zip(entries, outcomes):
                if isinstance(outcome, BaseException):
                    LOGGER.error("symbol refresh crashed: symbol=%s error=%r", entry.symbol, outcome)
                    by_symbol[entry.symbol] = str(outcome) or ANALYSIS_FAILED_MESSAGE
                else:
                    by_symbol[entry.symbol] = outcome

            merged = [
                merge_entry(entry, by_symbol[entry.symbol])
                for entry in self.store.entries()
                if entry.symbol in by_symbol
            ]
            rows = value_rows(merged, fx_rate, self.reference_currency, self.quote_currency)
            self._snapshot = PortfolioSnapshot(rows=tuple(rows), fx_rate=fx_rate, range=selected, refreshed_at=time.time())

            latency_ms = (time.perf_counter() - started) * 1000.0
            failed = sum(1 for row in rows if row.error)
            LOGGER.info(
                "portfolio refreshed: range=%s rows=%s errors=%s fx_rate=%s latency_ms=%s",
                selected,
                len(rows),
                failed,
                round(fx_rate, 6),
                round(latency_ms, 2),
            )
            if self.metrics is not None:
                self.metrics.record(latency_ms=latency_ms, success=not rows or failed < len(rows))
            return self._snapshot

    def view(self, query: str | None = None, trend: str | None = None, include_errors: bool = True) -> list[PortfolioRow]:
        rows = filter_rows(self._snapshot.rows, query=query, trend=trend, include_errors=include_errors)
        return sort_rows(rows, self._sort)

    def set_sort(self, field: str) -> SortState:
        self._sort = toggle_sort(self._sort, field)
        self.store.save_sort_state(self._sort)
        return self._sort

    def totals(self) -> dict[str, float]:
        total = self._snapshot.total_reference
        fx_rate = self._snapshot.fx_rate
        return {
            f"total_{self.reference_currency.lower()}": total,
            f"total_{self.quote_currency.lower()}": total / fx_rate if fx_rate else 0.0,
            "fx_rate": fx_rate,
        }

    def _patch_row(self, symbol: str, **changes: Any) -> None:
        rows = list(self._snapshot.rows)
        for idx, row in enumerate(rows):
            if row.symbol != symbol:
                continue
            patched = replace(row, **changes)
            if "secondary_link" in changes and not patched.secondary_link and patched.analysis is not None:
                patched = replace(patched, secondary_link=default_secondary_link(symbol, patched.analysis.instrument_type))
            if "primary_link" in changes and not patched.primary_link:
                patched = replace(patched, primary_link=default_primary_link(symbol))
            rows[idx] = patched
            revalued = value_rows(rows, self._snapshot.fx_rate, self.reference_currency, self.quote_currency)
            self._snapshot = replace(self._snapshot, rows=tuple(revalued))
            return

    def add_symbol(self, symbol: str) -> bool:
        return self.store.add(symbol)

    def remove_symbol(self, symbol: str) -> bool:
        removed = self.store.remove(symbol)
        clean = symbol.strip().upper()
        rows = [row for row in self._snapshot.rows if row.symbol != clean]
        if len(rows) != len(self._snapshot.rows):
            revalued = value_rows(rows, self._snapshot.fx_rate, self.reference_currency, self.quote_currency)
            self._snapshot = replace(self._snapshot, rows=tuple(revalued))
        return removed

    def update_quantity(self, symbol: str, quantity: object) -> WatchlistEntry | None:
        entry = self.store.update_quantity(symbol, quantity)
        if entry is not None:
            self._patch_row(entry.symbol, quantity=entry.quantity)
        return entry

    def update_link(self, symbol: str, url: str, kind: LinkKind = "primary") -> WatchlistEntry | None:
        entry = self.store.update_link(symbol, url, kind)
        if entry is not None:
            if kind == "primary":
                self._patch_row(entry.symbol, primary_link=entry.primary_link)
            else:
                self._patch_row(entry.symbol, secondary_link=entry.secondary_link)
        return entry

    def import_watchlist(self, blob: str) -> tuple[bool, list[ValidationIssue]]:
        return self.store.import_json(blob)

    def export_watchlist(self) -> str:
        return self.store.export_json()

    async def run_periodic_refresh(self, interval_seconds: float, stop: asyncio.Event | None = None) -> None:
        stop = stop or asyncio.Event()
        while not stop.is_set():
            try:
                await self.refresh()
            except Exception:
                LOGGER.exception("scheduled portfolio refresh failed")
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                continue

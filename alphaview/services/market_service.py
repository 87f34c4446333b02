"""Cached, cascading access to chart data and symbol search."""

from __future__ import annotations

import logging

from alphaview.lib.analysis import analyze
from alphaview.providers.models import DAILY_INTERVALS, AnalysisResult, RawMarketPayload, SymbolMatch
from alphaview.providers.yahoo_finance import YahooFinanceClient
from alphaview.services.base import ServiceContext, normalize_symbol
from alphaview.services.fallback_manager import FallbackManager, FetchAttempt

LOGGER = logging.getLogger(__name__)
FALLBACK_RANGES: tuple[tuple[str, str], ...] = (("5d", "1d"), ("1mo", "1d"))


def chart_cache_key(symbol: str, range_: str, interval: str) -> str:
    return f"chart:{symbol}:{range_}:{interval}"


class MarketDataService:
    def __init__(self, ctx: ServiceContext, fallback: FallbackManager | None = None) -> None:
        self.ctx = ctx
        self.fallback = fallback or FallbackManager()

    def _yahoo(self) -> YahooFinanceClient | None:
        provider = self.ctx.get_provider("yahoo")
        return provider if isinstance(provider, YahooFinanceClient) else None

    def _attempts(self, yahoo: YahooFinanceClient, symbol: str, range_: str, interval: str) -> list[FetchAttempt]:
        plan = [(range_, interval)]
        # Intraday intervals fail most often upstream; daily ones have nothing coarser to fall back to.
        if interval not in DAILY_INTERVALS:
            plan.extend(FALLBACK_RANGES)

        def make_call(attempt_range: str, attempt_interval: str):
            async def call() -> RawMarketPayload | None:
                return await yahoo.get_chart(symbol, attempt_range, attempt_interval)

            return call

        return [
            FetchAttempt(
                key=f"{attempt_range}/{attempt_interval}",
                label=f"Yahoo Finance {attempt_range}/{attempt_interval}",
                call=make_call(attempt_range, attempt_interval),
            )
            for attempt_range, attempt_interval in plan
        ]

    async def fetch_series(self, symbol: str, range_: str = "1y", interval: str = "1d") -> RawMarketPayload | None:
        """Resolve a chart request to a validated payload, or None once every strategy is spent."""
        try:
            cache_key = chart_cache_key(symbol, range_, interval)
            cached = self.ctx.cache.get(cache_key)
            if isinstance(cached, RawMarketPayload):
                return cached

            yahoo = self._yahoo()
            if yahoo is None:
                LOGGER.warning("chart fetch skipped: symbol=%s reason=no_provider", symbol)
                return None

            result = await self.fallback.execute("fetch_series", symbol, self._attempts(yahoo, symbol, range_, interval))
            if result.data is None:
                LOGGER.error(
                    "all chart attempts failed: symbol=%s range=%s interval=%s code=%s",
                    symbol,
                    range_,
                    interval,
                    result.error.code if result.error else None,
                )
                return None
            self.ctx.cache.set(cache_key, result.data, ttl_seconds=self.ctx.cache_ttl_seconds)
            return result.data
        except Exception:
            LOGGER.exception("chart fetch crashed: symbol=%s range=%s interval=%s", symbol, range_, interval)
            return None

    async def analyze_symbol(self, symbol: str, range_: str, interval: str) -> AnalysisResult | None:
        payload = await self.fetch_series(symbol, range_, interval)
        return analyze(payload) if payload is not None else None

    async def search_symbols(self, query: str) -> list[SymbolMatch]:
        clean = query.strip()
        if not clean:
            return []
        yahoo = self._yahoo()
        if yahoo is None:
            return []
        attempt = FetchAttempt(key="search", label="Yahoo Finance search", call=lambda: yahoo.search(clean))
        result = await self.fallback.execute("search", normalize_symbol(clean), [attempt])
        return list(result.data) if result.data is not None else []

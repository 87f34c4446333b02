"""Market-data MCP tools: search, per-symbol analysis and chart series."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from alphaview.lib.analysis import analyze, extract_price_series
from alphaview.runtime.response import error_response, success_response
from alphaview.services.base import resolve_range, validate_symbol

if TYPE_CHECKING:
    from alphaview.tools.registry import ToolServices


def register_market_tools(mcp: FastMCP, services: ToolServices) -> None:
    @mcp.tool(description="Search instruments by name or ticker (stocks, ETFs, funds, indices, crypto, FX).")
    async def search_symbols(query: str) -> str:
        matches = await services.market.search_symbols(query)
        return success_response(matches)

    @mcp.tool(description="Trend, SMA50/200, volatility and performance for one symbol over a range.")
    async def get_symbol_analysis(symbol: str, range: str = "1y") -> str:
        try:
            clean = validate_symbol(symbol)
            fetch_range, interval = resolve_range(range)
        except ValueError as error:
            return error_response("INVALID_INPUT", str(error))
        payload = await services.market.fetch_series(clean, fetch_range, interval)
        result = analyze(payload) if payload is not None else None
        if result is None:
            return error_response("DATA_UNAVAILABLE", f"No analyzable data for {clean}.")
        warning = None if payload.range == fetch_range else f"Served range {payload.range} instead of {fetch_range}."
        return success_response(result, fetched_at=result.computed_at, warning=warning)

    @mcp.tool(description="Sanitized time/value price points for charting one symbol.")
    async def get_price_series(symbol: str, range: str = "1y") -> str:
        try:
            clean = validate_symbol(symbol)
            fetch_range, interval = resolve_range(range)
        except ValueError as error:
            return error_response("INVALID_INPUT", str(error))
        payload = await services.market.fetch_series(clean, fetch_range, interval)
        if payload is None:
            return error_response("DATA_UNAVAILABLE", f"Unable to fetch data for {clean}.")
        points = extract_price_series(payload)
        return success_response(
            {
                "symbol": payload.meta.symbol,
                "currency": payload.meta.currency,
                "range": payload.range,
                "interval": payload.interval,
                "points": points,
            }
        )

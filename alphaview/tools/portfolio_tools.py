"""Watchlist and portfolio MCP tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp import FastMCP

from alphaview.runtime.response import error_response, row_payload, success_response

if TYPE_CHECKING:
    from alphaview.portfolio.portfolio_service import PortfolioService
    from alphaview.tools.registry import ToolServices


def portfolio_view_payload(
    portfolio: PortfolioService,
    query: str | None = None,
    trend: str | None = None,
    include_errors: bool = True,
) -> dict[str, Any]:
    snapshot = portfolio.snapshot
    sort = portfolio.sort_state
    return {
        "range": snapshot.range,
        "refreshed_at": snapshot.refreshed_at,
        "sort": {"field": sort.field, "direction": sort.direction},
        "totals": portfolio.totals(),
        "rows": [row_payload(row) for row in portfolio.view(query=query, trend=trend, include_errors=include_errors)],
    }


def register_portfolio_tools(mcp: FastMCP, services: ToolServices) -> None:
    @mcp.tool(description="Add a ticker to the watchlist with quantity 0 and refresh the portfolio.")
    async def add_to_watchlist(symbol: str) -> str:
        try:
            added = services.portfolio.add_symbol(symbol)
        except ValueError as error:
            return error_response("INVALID_INPUT", str(error))
        if added:
            await services.portfolio.refresh()
        return success_response({"symbol": symbol.strip().upper(), "added": added})

    @mcp.tool(description="Remove a ticker from the watchlist.")
    def remove_from_watchlist(symbol: str) -> str:
        removed = services.portfolio.remove_symbol(symbol)
        return success_response({"symbol": symbol.strip().upper(), "removed": removed})

    @mcp.tool(description="Set the held quantity for a watchlist ticker.")
    def update_position_quantity(symbol: str, quantity: float) -> str:
        entry = services.portfolio.update_quantity(symbol, quantity)
        if entry is None:
            return error_response("NOT_FOUND", f"{symbol.strip().upper()} is not on the watchlist.")
        return success_response(entry)

    @mcp.tool(description="Set the primary or secondary link for a watchlist ticker.")
    def update_position_link(symbol: str, url: str, kind: str = "primary") -> str:
        if kind not in {"primary", "secondary"}:
            return error_response("INVALID_INPUT", "kind must be 'primary' or 'secondary'.")
        entry = services.portfolio.update_link(symbol, url, kind)  # type: ignore[arg-type]
        if entry is None:
            return error_response("NOT_FOUND", f"{symbol.strip().upper()} is not on the watchlist.")
        return success_response(entry)

    @mcp.tool(description="Export the watchlist as a JSON array.")
    def export_watchlist() -> str:
        return services.portfolio.export_watchlist()

    @mcp.tool(description="Replace the watchlist from a JSON array produced by export_watchlist, then refresh.")
    async def import_watchlist(payload: str) -> str:
        ok, issues = services.portfolio.import_watchlist(payload)
        if not ok:
            return error_response("INVALID_INPUT", issues[0].message if issues else "Import failed.")
        await services.portfolio.refresh()
        return success_response({"imported": True, "skipped": issues})

    @mcp.tool(description="Refresh analytics for every watchlist ticker and return the sorted portfolio.")
    async def refresh_portfolio(range: str | None = None) -> str:
        try:
            snapshot = await services.portfolio.refresh(range)
        except ValueError as error:
            return error_response("INVALID_INPUT", str(error))
        return success_response(portfolio_view_payload(services.portfolio), fetched_at=snapshot.refreshed_at)

    @mcp.tool(description="Return the latest portfolio snapshot, optionally filtered by text or trend.")
    def get_portfolio(query: str | None = None, trend: str | None = None, include_errors: bool = True) -> str:
        payload = portfolio_view_payload(services.portfolio, query=query, trend=trend, include_errors=include_errors)
        return success_response(payload, fetched_at=services.portfolio.snapshot.refreshed_at)

    @mcp.tool(description="Sort by name, value, performance or weight; repeating a field flips direction.")
    def set_portfolio_sort(field: str) -> str:
        try:
            state = services.portfolio.set_sort(field)
        except ValueError as error:
            return error_response("INVALID_INPUT", str(error))
        return success_response(state)

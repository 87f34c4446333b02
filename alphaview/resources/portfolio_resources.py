"""Portfolio resource definitions."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

from alphaview.tools.portfolio_tools import portfolio_view_payload

if TYPE_CHECKING:
    from alphaview.tools.registry import ToolServices

CURRENT_PORTFOLIO_URI = "portfolio://current"


def register_portfolio_resources(mcp: FastMCP, services: "ToolServices") -> None:
    @mcp.resource(
        CURRENT_PORTFOLIO_URI,
        name="current-portfolio",
        description="Latest sorted portfolio snapshot produced by the refresh cycle.",
        mime_type="application/json",
    )
    def current_portfolio_resource() -> str:
        if services.portfolio.snapshot.refreshed_at is None:
            raise ValueError("Portfolio resource not found. Run refresh_portfolio first.")
        return json.dumps(portfolio_view_payload(services.portfolio), ensure_ascii=True, default=str)

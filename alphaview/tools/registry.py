"""Tool service wiring and registration."""

from __future__ import annotations

from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from alphaview.portfolio.portfolio_service import PortfolioService
from alphaview.services.market_service import MarketDataService
from alphaview.tools.market_tools import register_market_tools
from alphaview.tools.portfolio_tools import register_portfolio_tools


@dataclass
class ToolServices:
    market: MarketDataService
    portfolio: PortfolioService


def register_all_tools(mcp: FastMCP, services: ToolServices) -> None:
    register_market_tools(mcp, services)
    register_portfolio_tools(mcp, services)

"""Watchlist and portfolio aggregation package."""

from alphaview.portfolio.models import PortfolioRow, PortfolioSnapshot, WatchlistEntry
from alphaview.portfolio.portfolio_service import PortfolioService

__all__ = ["PortfolioRow", "PortfolioSnapshot", "PortfolioService", "WatchlistEntry"]

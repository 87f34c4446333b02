"""Moving averages, volatility and trend helpers."""

from __future__ import annotations

import numpy as np

from alphaview.providers.models import Trend

TRADING_DAYS_PER_YEAR = 252


def calc_sma(values: list[float], window: int) -> float | None:
    """Mean of the last ``window`` values, or None when the series is shorter."""
    if window <= 0 or len(values) < window:
        return None
    return sum(values[-window:]) / window


def calc_log_returns(values: list[float]) -> np.ndarray:
    prices = np.asarray(values, dtype=float)
    if prices.size < 2:
        return np.empty(0, dtype=float)
    previous = prices[:-1]
    current = prices[1:]
    valid = (previous > 0) & (current > 0)
    return np.log(current[valid] / previous[valid])


def calc_annualized_volatility(values: list[float]) -> float:
    """Population stdev of log returns, annualized and expressed in percent."""
    returns = calc_log_returns(values)
    if returns.size == 0:
        return 0.0
    return float(np.std(returns, ddof=0) * np.sqrt(TRADING_DAYS_PER_YEAR) * 100.0)


def classify_trend(price: float, sma50: float | None, sma200: float | None) -> Trend:
    if sma50 is None or sma200 is None:
        return "neutral"
    if price > sma50 and price > sma200:
        return "bullish"
    if price < sma50 and price < sma200:
        return "bearish"
    return "neutral"


def calc_change_percent(price: float, reference: float) -> float:
    if reference == 0 or reference == price:
        return 0.0
    return (price - reference) / reference * 100.0

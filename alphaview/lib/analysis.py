"""Per-symbol analytics over a sanitized chart payload."""

from __future__ import annotations

import time

from alphaview.lib.indicators import calc_annualized_volatility, calc_change_percent, calc_sma, classify_trend
from alphaview.lib.sanitizer import sanitize
from alphaview.providers.models import (
    DEFAULT_INSTRUMENT_TYPE,
    SHORTEST_RANGE,
    AnalysisResult,
    InstrumentMeta,
    PricePoint,
    RawMarketPayload,
)


def extract_price_series(payload: RawMarketPayload) -> list[PricePoint]:
    """Prefer adjusted close when it holds any value, otherwise raw close."""
    adjclose = payload.adjclose
    if adjclose and any(value is not None for value in adjclose):
        prices = adjclose
    else:
        prices = payload.close
    return sanitize(payload.timestamps, prices)


def _display_fields(meta: InstrumentMeta) -> dict[str, object]:
    return {
        "symbol": meta.symbol,
        "name": meta.short_name or meta.long_name or meta.symbol,
        "instrument_type": meta.instrument_type or DEFAULT_INSTRUMENT_TYPE,
        "exchange": meta.exchange_name or meta.full_exchange_name or "N/A",
        "currency": meta.currency,
    }


def analyze(payload: RawMarketPayload, now: float | None = None) -> AnalysisResult | None:
    computed_at = time.time() if now is None else now
    meta = payload.meta
    series = extract_price_series(payload)

    if not series:
        if not meta.regular_market_price:
            return None
        return AnalysisResult(
            **_display_fields(meta),
            price=meta.regular_market_price,
            change=0.0,
            change_percent=0.0,
            trend="neutral",
            volatility_pct=0.0,
            sma50=None,
            sma200=None,
            computed_at=computed_at,
        )

    values = [point.value for point in series]
    price = values[-1]
    reference = values[0]
    if payload.range == SHORTEST_RANGE and meta.chart_previous_close:
        reference = meta.chart_previous_close

    sma50 = calc_sma(values, 50)
    sma200 = calc_sma(values, 200)
    return AnalysisResult(
        **_display_fields(meta),
        price=price,
        change=price - reference,
        change_percent=calc_change_percent(price, reference),
        trend=classify_trend(price, sma50, sma200),
        volatility_pct=calc_annualized_volatility(values),
        sma50=sma50,
        sma200=sma200,
        computed_at=computed_at,
    )

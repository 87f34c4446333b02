"""Yahoo Finance chart and search adapter, reached through CORS relays."""

from __future__ import annotations

import math
from typing import Any
from urllib.parse import quote, urlencode

from alphaview.providers.http import ProviderError
from alphaview.providers.models import SEARCH_TYPES, InstrumentMeta, RawMarketPayload, SymbolMatch
from alphaview.providers.relays import RelayClient

CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
SEARCH_URL = "https://query1.finance.yahoo.com/v1/finance/search"


def _to_float(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def _to_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def _to_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _float_array(value: object) -> list[float | None] | None:
    if not isinstance(value, list):
        return None
    return [_to_float(item) for item in value]


def parse_meta(meta: object, fallback_symbol: str) -> InstrumentMeta:
    data = meta if isinstance(meta, dict) else {}
    return InstrumentMeta(
        symbol=_to_str(data.get("symbol")) or fallback_symbol,
        short_name=_to_str(data.get("shortName")),
        long_name=_to_str(data.get("longName")),
        currency=_to_str(data.get("currency")),
        exchange_name=_to_str(data.get("exchangeName")),
        full_exchange_name=_to_str(data.get("fullExchangeName")),
        instrument_type=_to_str(data.get("instrumentType")),
        regular_market_price=_to_float(data.get("regularMarketPrice")),
        chart_previous_close=_to_float(data.get("chartPreviousClose")),
        range=_to_str(data.get("range")),
    )


def parse_chart_result(data: Any, symbol: str, range_: str, interval: str) -> RawMarketPayload:
    """Validate the chart JSON and normalize it into a typed payload.

    Raises ``ProviderError`` with a data-integrity code when the structure is
    missing or carries no usable price at all.
    """
    chart = data.get("chart") if isinstance(data, dict) else None
    results = chart.get("result") if isinstance(chart, dict) else None
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        raise ProviderError("yahoo", "BAD_RESPONSE", "Invalid chart data structure.")
    item = results[0]

    meta = parse_meta(item.get("meta"), symbol)
    raw_timestamps = item.get("timestamp")
    timestamps = [_to_int(ts) for ts in raw_timestamps] if isinstance(raw_timestamps, list) else []

    indicators = item.get("indicators") if isinstance(item.get("indicators"), dict) else {}
    quotes = indicators.get("quote") if isinstance(indicators.get("quote"), list) else []
    first_quote = quotes[0] if quotes and isinstance(quotes[0], dict) else {}
    close = _float_array(first_quote.get("close")) or []

    adj_blocks = indicators.get("adjclose") if isinstance(indicators.get("adjclose"), list) else []
    first_adj = adj_blocks[0] if adj_blocks and isinstance(adj_blocks[0], dict) else {}
    adjclose = _float_array(first_adj.get("adjclose"))

    payload = RawMarketPayload(
        meta=meta,
        timestamps=timestamps,
        close=close,
        adjclose=adjclose,
        range=meta.range or range_,
        interval=interval,
    )
    # Some fund types return an empty chart but still quote a price.
    if not payload.has_close_prices() and not payload.has_quote_metadata():
        raise ProviderError("yahoo", "NO_DATA", "No price data included.")
    return payload


def parse_search_results(data: Any) -> list[SymbolMatch]:
    quotes = data.get("quotes") if isinstance(data, dict) else None
    if not isinstance(quotes, list):
        return []
    matches: list[SymbolMatch] = []
    for item in quotes:
        if not isinstance(item, dict) or not item.get("isYahooFinance"):
            continue
        symbol = _to_str(item.get("symbol"))
        quote_type = (_to_str(item.get("quoteType")) or "UNKNOWN").upper()
        if not symbol or quote_type not in SEARCH_TYPES:
            continue
        matches.append(
            SymbolMatch(
                symbol=symbol,
                name=_to_str(item.get("shortname")) or _to_str(item.get("longname")) or symbol,
                instrument_type=quote_type,
                exchange=_to_str(item.get("exchange")),
            )
        )
    return matches


class YahooFinanceClient:
    def __init__(self, relay_client: RelayClient, quotes_count: int = 10) -> None:
        self.relay_client = relay_client
        self.quotes_count = quotes_count

    @staticmethod
    def chart_url(symbol: str, range_: str, interval: str) -> str:
        query = urlencode({"interval": interval, "range": range_})
        return f"{CHART_URL.format(symbol=quote(symbol, safe=''))}?{query}"

    def search_url(self, query: str) -> str:
        params = urlencode({"q": query, "quotesCount": self.quotes_count, "newsCount": 0})
        return f"{SEARCH_URL}?{params}"

    async def get_chart(self, symbol: str, range_: str, interval: str) -> RawMarketPayload:
        data = await self.relay_client.fetch_json(self.chart_url(symbol, range_, interval))
        return parse_chart_result(data, symbol, range_, interval)

    async def search(self, query: str) -> list[SymbolMatch]:
        data = await self.relay_client.fetch_json(self.search_url(query))
        return parse_search_results(data)

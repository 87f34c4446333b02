import asyncio
import json

import pytest
from mcp.server.fastmcp import FastMCP

from alphaview.cache.ttl_cache import TTLCache
from alphaview.portfolio.portfolio_service import PortfolioService
from alphaview.portfolio.store import MemoryKeyValueStore, WatchlistStore
from alphaview.providers.http import ProviderError
from alphaview.providers.models import InstrumentMeta, RawMarketPayload
from alphaview.providers.relays import RelayClient
from alphaview.providers.yahoo_finance import YahooFinanceClient
from alphaview.resources.portfolio_resources import register_portfolio_resources
from alphaview.services.base import ServiceContext
from alphaview.services.market_service import MarketDataService
from alphaview.tools.registry import ToolServices, register_all_tools


class _StaticYahoo(YahooFinanceClient):
    def __init__(self, payloads: dict[str, RawMarketPayload]) -> None:
        super().__init__(RelayClient(["https://relay.example/?"]))
        self.payloads = payloads

    async def get_chart(self, symbol: str, range_: str, interval: str) -> RawMarketPayload:
        if symbol not in self.payloads:
            raise ProviderError("relay", "NOT_FOUND", "token=secret upstream 404", 404)
        return self.payloads[symbol]


def _payload(symbol: str, closes: list[float], currency: str = "USD") -> RawMarketPayload:
    return RawMarketPayload(
        meta=InstrumentMeta(symbol=symbol, currency=currency, short_name=symbol),
        timestamps=[1700000000 + idx * 60 for idx in range(len(closes))],
        close=closes,
        range="1d",
        interval="5m",
    )


def _build() -> FastMCP:
    yahoo = _StaticYahoo({"EURUSD=X": _payload("EURUSD=X", [1.25]), "AAPL": _payload("AAPL", [100.0, 110.0])})
    market = MarketDataService(ServiceContext(providers={"yahoo": yahoo}, cache=TTLCache()))
    portfolio = PortfolioService(market, WatchlistStore(MemoryKeyValueStore()))
    services = ToolServices(market=market, portfolio=portfolio)
    mcp = FastMCP(name="alphaview-tools-json")
    register_all_tools(mcp, services)
    register_portfolio_resources(mcp, services)
    return mcp


def _call_tool_result_string(mcp: FastMCP, name: str, arguments: dict[str, object]) -> str:
    result = asyncio.run(mcp.call_tool(name, arguments))
    if isinstance(result, tuple):
        content, metadata = result
        if isinstance(metadata, dict) and "result" in metadata:
            return str(metadata["result"])
        result = content
    return "".join(getattr(block, "text", "") for block in result)


def test_refresh_returns_sorted_rows_with_error_rows_last() -> None:
    mcp = _build()
    for symbol in ("MISSING", "AAPL"):
        added = json.loads(_call_tool_result_string(mcp, "add_to_watchlist", {"symbol": symbol}))
        assert added["data"]["added"] is True
    _call_tool_result_string(mcp, "update_position_quantity", {"symbol": "AAPL", "quantity": 2})

    parsed = json.loads(_call_tool_result_string(mcp, "refresh_portfolio", {}))
    rows = parsed["data"]["rows"]
    assert [row["symbol"] for row in rows] == ["AAPL", "MISSING"]
    assert rows[0]["value_reference"] == pytest.approx(176.0)
    assert rows[0]["weight_pct"] == pytest.approx(100.0)
    assert rows[1] == {
        "symbol": "MISSING",
        "error": True,
        "quantity": 0.0,
        "primary_link": "https://finance.yahoo.com/quote/MISSING",
        "secondary_link": "",
        "message": "No data",
    }
    assert parsed["data"]["totals"]["fx_rate"] == pytest.approx(0.8)
    assert "disclaimer" in parsed
    assert "secret" not in json.dumps(parsed)


def test_invalid_inputs_return_error_envelopes() -> None:
    mcp = _build()
    bad_symbol = json.loads(_call_tool_result_string(mcp, "add_to_watchlist", {"symbol": "not valid"}))
    assert bad_symbol["error"] is True
    assert bad_symbol["code"] == "INVALID_INPUT"

    bad_sort = json.loads(_call_tool_result_string(mcp, "set_portfolio_sort", {"field": "percent"}))
    assert bad_sort["code"] == "INVALID_INPUT"

    missing = json.loads(_call_tool_result_string(mcp, "update_position_quantity", {"symbol": "TSLA", "quantity": 1}))
    assert missing["code"] == "NOT_FOUND"

    unavailable = json.loads(_call_tool_result_string(mcp, "get_symbol_analysis", {"symbol": "MISSING", "range": "1d"}))
    assert unavailable["code"] == "DATA_UNAVAILABLE"


def test_export_import_round_trip_through_tools() -> None:
    mcp = _build()
    _call_tool_result_string(mcp, "add_to_watchlist", {"symbol": "AAPL"})
    exported = _call_tool_result_string(mcp, "export_watchlist", {})
    assert json.loads(exported)[0]["symbol"] == "AAPL"

    imported = json.loads(
        _call_tool_result_string(mcp, "import_watchlist", {"payload": json.dumps(["MSFT", {"symbol": "SAP.DE", "qty": 3}])})
    )
    assert imported["data"]["imported"] is True
    exported = json.loads(_call_tool_result_string(mcp, "export_watchlist", {}))
    assert [entry["symbol"] for entry in exported] == ["MSFT", "SAP.DE"]

    rejected = json.loads(_call_tool_result_string(mcp, "import_watchlist", {"payload": "{}"}))
    assert rejected["error"] is True


def test_symbol_analysis_tool_returns_metrics() -> None:
    mcp = _build()
    parsed = json.loads(_call_tool_result_string(mcp, "get_symbol_analysis", {"symbol": "aapl", "range": "1d"}))
    assert parsed["data"]["symbol"] == "AAPL"
    assert parsed["data"]["trend"] == "neutral"
    assert round(parsed["data"]["change_percent"], 6) == 10.0


def test_added_symbol_is_visible_without_manual_refresh() -> None:
    mcp = _build()
    _call_tool_result_string(mcp, "add_to_watchlist", {"symbol": "AAPL"})
    parsed = json.loads(_call_tool_result_string(mcp, "get_portfolio", {}))
    assert [row["symbol"] for row in parsed["data"]["rows"]] == ["AAPL"]
    assert parsed["data"]["refreshed_at"] is not None


def test_import_replaces_served_rows_immediately() -> None:
    mcp = _build()
    _call_tool_result_string(mcp, "add_to_watchlist", {"symbol": "AAPL"})
    imported = json.loads(_call_tool_result_string(mcp, "import_watchlist", {"payload": json.dumps(["MISSING"])}))
    assert imported["data"]["imported"] is True

    parsed = json.loads(_call_tool_result_string(mcp, "get_portfolio", {}))
    rows = parsed["data"]["rows"]
    assert [row["symbol"] for row in rows] == ["MISSING"]
    assert rows[0]["error"] is True

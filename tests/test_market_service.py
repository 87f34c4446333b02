import asyncio

from alphaview.cache.ttl_cache import TTLCache
from alphaview.providers.http import ProviderError
from alphaview.providers.models import InstrumentMeta, RawMarketPayload, SymbolMatch
from alphaview.providers.relays import RelayClient
from alphaview.providers.yahoo_finance import YahooFinanceClient
from alphaview.services.base import ServiceContext
from alphaview.services.market_service import MarketDataService


class FakeYahoo(YahooFinanceClient):
    """Records chart requests; outcomes are keyed by (range, interval)."""

    def __init__(self, outcomes: dict[tuple[str, str], object] | None = None, default: object = None) -> None:
        super().__init__(RelayClient(["https://relay.example/?"]))
        self.outcomes = outcomes or {}
        self.default = default
        self.chart_calls: list[tuple[str, str, str]] = []
        self.search_calls = 0

    async def get_chart(self, symbol: str, range_: str, interval: str) -> RawMarketPayload:
        self.chart_calls.append((symbol, range_, interval))
        outcome = self.outcomes.get((range_, interval), self.default)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            raise ProviderError("relay", "NETWORK", "all relays down")
        return outcome  # type: ignore[return-value]

    async def search(self, query: str) -> list[SymbolMatch]:
        self.search_calls += 1
        return [SymbolMatch(symbol="AAPL", name="Apple Inc.", instrument_type="EQUITY", exchange="NMS")]


def payload(range_: str = "1y", interval: str = "1d") -> RawMarketPayload:
    return RawMarketPayload(
        meta=InstrumentMeta(symbol="AAPL", currency="USD", regular_market_price=10.0),
        timestamps=[1, 2],
        close=[9.0, 10.0],
        range=range_,
        interval=interval,
    )


def make_service(yahoo: FakeYahoo, cache: TTLCache | None = None) -> MarketDataService:
    ctx = ServiceContext(providers={"yahoo": yahoo}, cache=cache if cache is not None else TTLCache(default_ttl_seconds=300))
    return MarketDataService(ctx)


def test_second_identical_request_is_served_from_cache() -> None:
    yahoo = FakeYahoo(default=payload())
    service = make_service(yahoo)

    async def scenario():
        first = await service.fetch_series("AAPL", "1y", "1d")
        second = await service.fetch_series("AAPL", "1y", "1d")
        return first, second

    first, second = asyncio.run(scenario())
    assert first is second
    assert len(yahoo.chart_calls) == 1


def test_cache_expires_after_freshness_window() -> None:
    now = [1000.0]
    cache = TTLCache(default_ttl_seconds=300, clock=lambda: now[0])
    yahoo = FakeYahoo(default=payload())
    service = make_service(yahoo, cache)

    asyncio.run(service.fetch_series("AAPL", "1y", "1d"))
    now[0] += 299
    asyncio.run(service.fetch_series("AAPL", "1y", "1d"))
    assert len(yahoo.chart_calls) == 1
    now[0] += 2
    asyncio.run(service.fetch_series("AAPL", "1y", "1d"))
    assert len(yahoo.chart_calls) == 2


def test_intraday_failure_cascades_to_daily_ranges() -> None:
    fallback = payload("1mo", "1d")
    yahoo = FakeYahoo(outcomes={("1mo", "1d"): fallback})
    service = make_service(yahoo)

    result = asyncio.run(service.fetch_series("AAPL", "1d", "5m"))
    assert result is fallback
    assert [call[1:] for call in yahoo.chart_calls] == [("1d", "5m"), ("5d", "1d"), ("1mo", "1d")]


def test_daily_interval_does_not_cascade() -> None:
    yahoo = FakeYahoo()
    service = make_service(yahoo)
    assert asyncio.run(service.fetch_series("AAPL", "1y", "1d")) is None
    assert len(yahoo.chart_calls) == 1


def test_total_failure_resolves_to_none_without_raising() -> None:
    yahoo = FakeYahoo(default=ProviderError("yahoo", "NO_DATA", "No price data included."))
    service = make_service(yahoo)
    assert asyncio.run(service.fetch_series("AAPL", "1d", "5m")) is None
    assert len(yahoo.chart_calls) == 3

    crashing = FakeYahoo(default=RuntimeError("unexpected"))
    assert asyncio.run(make_service(crashing).fetch_series("AAPL", "1d", "5m")) is None


def test_failures_are_not_cached() -> None:
    yahoo = FakeYahoo()
    service = make_service(yahoo)
    asyncio.run(service.fetch_series("AAPL", "1y", "1d"))
    yahoo.default = payload()
    assert asyncio.run(service.fetch_series("AAPL", "1y", "1d")) is not None
    assert len(yahoo.chart_calls) == 2


def test_missing_provider_returns_none() -> None:
    service = MarketDataService(ServiceContext(providers={}, cache=TTLCache()))
    assert asyncio.run(service.fetch_series("AAPL", "1y", "1d")) is None
    assert asyncio.run(service.search_symbols("apple")) == []


def test_search_skips_blank_queries() -> None:
    yahoo = FakeYahoo()
    service = make_service(yahoo)
    assert asyncio.run(service.search_symbols("   ")) == []
    assert yahoo.search_calls == 0
    matches = asyncio.run(service.search_symbols("apple"))
    assert [match.symbol for match in matches] == ["AAPL"]


def test_analyze_symbol_combines_fetch_and_analysis() -> None:
    service = make_service(FakeYahoo(default=payload()))
    result = asyncio.run(service.analyze_symbol("AAPL", "1y", "1d"))
    assert result is not None
    assert abs(result.change_percent - (10.0 / 9.0 - 1) * 100) < 1e-9

import asyncio

from alphaview.providers.http import ProviderError
from alphaview.services.fallback_manager import EXHAUSTED_MESSAGE, FallbackManager, FetchAttempt


def test_fallback_manager_short_circuits_on_first_success() -> None:
    calls: list[str] = []

    async def failing():
        calls.append("primary")
        raise ProviderError("relay", "TIMEOUT", "timed out")

    async def succeeding():
        calls.append("fallback")
        return {"price": 1.0}

    async def never():
        calls.append("never")
        return {"price": 2.0}

    result = asyncio.run(
        FallbackManager().execute(
            operation="fetch_series",
            symbol="AAPL",
            attempts=[
                FetchAttempt("1d/5m", "primary", failing),
                FetchAttempt("5d/1d", "fallback", succeeding),
                FetchAttempt("1mo/1d", "last", never),
            ],
        )
    )
    assert result.data == {"price": 1.0}
    assert result.source == "fallback"
    assert result.warning is not None
    assert calls == ["primary", "fallback"]


def test_fallback_manager_returns_generic_error_without_upstream_leakage() -> None:
    async def failing():
        raise ProviderError("relay", "UPSTREAM", "sensitive upstream payload: token=secret")

    async def crashing():
        raise RuntimeError("boom")

    result = asyncio.run(
        FallbackManager().execute(
            operation="fetch_series",
            symbol="AAPL",
            attempts=[FetchAttempt("a", "A", failing), FetchAttempt("b", "B", crashing)],
        )
    )
    assert result.data is None
    assert result.ok is False
    assert result.error is not None
    assert result.error.code == "UPSTREAM"
    assert result.error.message == EXHAUSTED_MESSAGE
    assert "secret" not in result.error.message

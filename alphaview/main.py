"""Application entrypoint for the AlphaView watchlist MCP server."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from dataclasses import asdict

from mcp.server.fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from alphaview.cache.ttl_cache import TTLCache
from alphaview.config.settings import Settings, get_settings
from alphaview.portfolio.portfolio_service import PortfolioService
from alphaview.portfolio.store import JsonFileKeyValueStore, WatchlistStore
from alphaview.providers.relays import RelayClient
from alphaview.providers.yahoo_finance import YahooFinanceClient
from alphaview.resources.portfolio_resources import register_portfolio_resources
from alphaview.runtime.monitoring import ServerMetrics
from alphaview.services.base import ServiceContext
from alphaview.services.market_service import MarketDataService
from alphaview.tools.registry import ToolServices, register_all_tools

LOGGER = logging.getLogger(__name__)


def resolve_transport_mode(configured_mode: str) -> str:
    if os.getenv("RENDER") and configured_mode == "stdio":
        return "http"
    if configured_mode in {"stdio", "http"}:
        return configured_mode
    if os.getenv("RENDER") or os.getenv("PORT"):
        return "http"
    return "stdio"


def resolve_http_transport(configured_transport: str) -> str:
    if configured_transport in {"sse", "streamable"}:
        return configured_transport
    return "sse"


def configure_logging(level: str) -> None:
    # stdout carries the stdio transport; logs go to stderr.
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_services(settings: Settings, metrics: ServerMetrics | None = None) -> tuple[ToolServices, TTLCache]:
    cache = TTLCache(default_ttl_seconds=settings.cache_ttl_seconds)
    relay_client = RelayClient(
        settings.relay_urls,
        timeout_seconds=settings.relay_timeout_seconds,
        max_sweeps=settings.fetch_max_sweeps,
        backoff_unit_seconds=settings.fetch_backoff_seconds,
    )
    ctx = ServiceContext(
        providers={"yahoo": YahooFinanceClient(relay_client)},
        cache=cache,
        cache_ttl_seconds=settings.cache_ttl_seconds,
    )
    market = MarketDataService(ctx)
    portfolio = PortfolioService(
        market,
        WatchlistStore(JsonFileKeyValueStore(settings.watchlist_path)),
        reference_currency=settings.reference_currency,
        quote_currency=settings.quote_currency,
        initial_fx_rate=settings.fx_initial_rate,
        default_range=settings.default_range,
        metrics=metrics,
    )
    return ToolServices(market=market, portfolio=portfolio), cache


async def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    server_metrics = ServerMetrics()
    services, cache = build_services(settings, server_metrics)

    mcp = FastMCP(
        name=settings.app_name,
        host=settings.host,
        port=settings.port,
        streamable_http_path=settings.mcp_path,
    )
    register_all_tools(mcp, services)
    register_portfolio_resources(mcp, services)
    resolved_mode = resolve_transport_mode(settings.transport_mode)
    resolved_http_transport = resolve_http_transport(settings.http_transport)

    @mcp.custom_route(settings.health_path, methods=["GET"])
    async def health(_: Request) -> Response:
        snapshot = server_metrics.snapshot(cache_entries=len(cache))
        return JSONResponse(
            {
                "status": "ok",
                "app": settings.app_name,
                "version": settings.app_version,
                "watchlist_size": len(services.portfolio.store.entries()),
                "fx_rate": services.portfolio.fx_rate,
                **asdict(snapshot),
            }
        )

    poller: asyncio.Task | None = None
    if settings.refresh_interval_seconds > 0:
        poller = asyncio.create_task(services.portfolio.run_periodic_refresh(settings.refresh_interval_seconds))
    LOGGER.info(
        "starting server: transport=%s relays=%s reference=%s",
        resolved_mode if resolved_mode == "stdio" else resolved_http_transport,
        len(settings.relay_urls),
        settings.reference_currency,
    )
    try:
        if resolved_mode == "stdio":
            await mcp.run_stdio_async()
        elif resolved_http_transport == "streamable":
            await mcp.run_streamable_http_async()
        else:
            await mcp.run_sse_async()
    finally:
        if poller is not None:
            poller.cancel()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()

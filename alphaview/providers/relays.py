"""Relay rotation with bounded sweeps and linear backoff."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence
from urllib.parse import quote

from alphaview.providers.http import ProviderError, fetch_text, parse_json

LOGGER = logging.getLogger(__name__)
MIN_ROTATING_RELAYS = 2

TextFetcher = Callable[[str, float], Awaitable[str]]
Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Relay:
    """A CORS relay that takes the percent-encoded target URL as a suffix."""

    prefix: str

    @property
    def name(self) -> str:
        host = self.prefix.split("://", 1)[-1]
        return host.split("/", 1)[0]

    def wrap(self, target_url: str) -> str:
        return f"{self.prefix}{quote(target_url, safe='')}"


async def _default_fetcher(url: str, timeout_seconds: float) -> str:
    return await fetch_text(url, provider="relay", timeout_seconds=timeout_seconds)


class RelayClient:
    def __init__(
        self,
        relays: Sequence[Relay | str],
        timeout_seconds: float = 6.0,
        max_sweeps: int = 3,
        backoff_unit_seconds: float = 1.0,
        fetcher: TextFetcher | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if len(relays) < 1:
            raise ValueError("At least one relay is required.")
        if len(relays) < MIN_ROTATING_RELAYS:
            LOGGER.warning("relay rotation disabled: relays=%s minimum=%s", len(relays), MIN_ROTATING_RELAYS)
        self.relays = [relay if isinstance(relay, Relay) else Relay(relay) for relay in relays]
        self.timeout_seconds = timeout_seconds
        self.max_sweeps = max(1, max_sweeps)
        self.backoff_unit_seconds = max(0.0, backoff_unit_seconds)
        self._fetcher = fetcher or _default_fetcher
        self._sleep = sleep

    async def _sweep(self, target_url: str, sweep: int) -> tuple[Any, ProviderError | None]:
        last_error: ProviderError | None = None
        for relay in self.relays:
            started = time.perf_counter()
            try:
                raw = await self._fetcher(relay.wrap(target_url), self.timeout_seconds)
                return parse_json(raw), None
            except ProviderError as error:
                last_error = error
                LOGGER.debug(
                    "relay attempt failed: relay=%s sweep=%s kind=%s code=%s status=%s latency_ms=%s",
                    relay.name,
                    sweep,
                    "transport" if error.is_transport_failure else "integrity",
                    error.code,
                    error.status,
                    round((time.perf_counter() - started) * 1000, 2),
                )
        return None, last_error

    async def fetch_json(self, target_url: str) -> Any:
        """Return parsed JSON from the first relay that answers, or raise the last ProviderError."""
        last_error: ProviderError | None = None
        for sweep in range(1, self.max_sweeps + 1):
            data, error = await self._sweep(target_url, sweep)
            if error is None:
                return data
            last_error = error
            if sweep < self.max_sweeps:
                delay = self.backoff_unit_seconds * sweep
                LOGGER.info("relay sweep exhausted: sweep=%s next_delay_s=%s", sweep, delay)
                await self._sleep(delay)
        LOGGER.warning("all relay sweeps failed: sweeps=%s target=%s", self.max_sweeps, target_url)
        raise last_error or ProviderError("relay", "UPSTREAM", "All relays and retries failed.")

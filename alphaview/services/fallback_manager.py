"""Ordered attempt strategies folded into a single tagged result."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from alphaview.providers.http import ProviderError
from alphaview.services.base import ErrorEnvelope, ServiceResult, envelope_from_provider_error

T = TypeVar("T")
LOGGER = logging.getLogger(__name__)
EXHAUSTED_MESSAGE = "Market data is currently unavailable. Please try again later."


@dataclass(frozen=True)
class FetchAttempt(Generic[T]):
    key: str
    label: str
    call: Callable[[], Awaitable[T | None]]


class FallbackManager:
    """Runs attempts in order and stops at the first one that yields data."""

    async def execute(self, operation: str, symbol: str, attempts: list[FetchAttempt[T]]) -> ServiceResult[T]:
        had_fallback = False
        last_error: ProviderError | None = None
        for attempt in attempts:
            started = time.perf_counter()
            try:
                value = await attempt.call()
                elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
                LOGGER.info(
                    "fetch attempt complete: op=%s symbol=%s attempt=%s success=%s latency_ms=%s",
                    operation,
                    symbol,
                    attempt.key,
                    value is not None,
                    elapsed_ms,
                )
                if value is not None:
                    warning = "Used fallback range due to upstream issue." if had_fallback else None
                    return ServiceResult(data=value, source=attempt.label, warning=warning, fetched_at=time.time())
                had_fallback = True
            except ProviderError as error:
                had_fallback = True
                last_error = error
                LOGGER.warning(
                    "fetch attempt failed: op=%s symbol=%s attempt=%s code=%s status=%s latency_ms=%s",
                    operation,
                    symbol,
                    attempt.key,
                    error.code,
                    error.status,
                    round((time.perf_counter() - started) * 1000, 2),
                )
            except Exception:
                had_fallback = True
                LOGGER.exception(
                    "fetch attempt unexpected failure: op=%s symbol=%s attempt=%s latency_ms=%s",
                    operation,
                    symbol,
                    attempt.key,
                    round((time.perf_counter() - started) * 1000, 2),
                )

        envelope = (
            envelope_from_provider_error(last_error)
            if last_error
            else ErrorEnvelope(code="UPSTREAM", message=EXHAUSTED_MESSAGE)
        )
        envelope.message = EXHAUSTED_MESSAGE
        return ServiceResult(data=None, error=envelope)

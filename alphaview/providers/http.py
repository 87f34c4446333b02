"""HTTP utilities and normalized provider errors."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Literal

import requests
from requests.adapters import HTTPAdapter

from alphaview.providers.models import ProviderName

ProviderErrorCode = Literal[
    "RATE_LIMIT",
    "AUTH",
    "NOT_FOUND",
    "UPSTREAM",
    "NETWORK",
    "TIMEOUT",
    "BAD_RESPONSE",
    "NO_DATA",
]
TRANSPORT_CODES = frozenset({"RATE_LIMIT", "AUTH", "NOT_FOUND", "UPSTREAM", "NETWORK", "TIMEOUT"})

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36",
    "Accept": "application/json,text/plain,*/*",
}

_SESSION = requests.Session()
_SESSION.mount("https://", HTTPAdapter(pool_connections=20, pool_maxsize=50))
_SESSION.mount("http://", HTTPAdapter(pool_connections=20, pool_maxsize=50))


@dataclass
class ProviderError(Exception):
    provider: ProviderName
    code: ProviderErrorCode
    message: str
    status: int | None = None

    def __str__(self) -> str:
        return self.message

    @property
    def is_transport_failure(self) -> bool:
        return self.code in TRANSPORT_CODES


def map_status_to_code(status: int) -> ProviderErrorCode:
    if status in {401, 403}:
        return "AUTH"
    if status == 404:
        return "NOT_FOUND"
    if status == 429:
        return "RATE_LIMIT"
    return "UPSTREAM"


async def fetch_text(
    url: str,
    provider: ProviderName = "relay",
    timeout_seconds: float = 6.0,
    headers: dict[str, str] | None = None,
) -> str:
    """GET ``url`` off the event loop and return a non-empty body.

    The deadline applies both to the socket read and to the awaiting coroutine.
    """
    try:
        response = await asyncio.wait_for(
            asyncio.to_thread(
                _SESSION.get,
                url,
                timeout=timeout_seconds,
                headers=headers or DEFAULT_HEADERS,
            ),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError as error:
        raise ProviderError(provider, "TIMEOUT", f"Request timed out after {timeout_seconds}s.") from error
    except requests.Timeout as error:
        raise ProviderError(provider, "TIMEOUT", f"Request timed out after {timeout_seconds}s.") from error
    except requests.RequestException as error:
        raise ProviderError(provider, "NETWORK", "Request failed due to network error.") from error

    if not response.ok:
        raise ProviderError(
            provider,
            map_status_to_code(response.status_code),
            f"Request failed with status {response.status_code}.",
            response.status_code,
        )

    raw = response.text or ""
    if not raw.strip():
        raise ProviderError(provider, "BAD_RESPONSE", "Empty response body.", response.status_code)
    return raw


def parse_json(raw: str, provider: ProviderName = "relay") -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as error:
        raise ProviderError(provider, "BAD_RESPONSE", "Response was not valid JSON.") from error

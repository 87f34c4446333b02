"""Response shaping helpers for MCP tools."""

from __future__ import annotations

import json
import time
from dataclasses import asdict, is_dataclass
from typing import Any

from alphaview.portfolio.models import PortfolioRow

DISCLAIMER = "Data is for informational purposes only and does not constitute financial advice."
DATA_PROVIDER = "Yahoo Finance via public relays"


def _convert_data(data: Any) -> Any:
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, (list, tuple)):
        return [_convert_data(item) for item in data]
    if isinstance(data, dict):
        return {key: _convert_data(value) for key, value in data.items()}
    return data


def row_payload(row: PortfolioRow) -> dict[str, Any]:
    """Flatten a row into the shape the presentation layer consumes."""
    payload: dict[str, Any] = {
        "symbol": row.symbol,
        "error": row.error,
        "quantity": row.quantity,
        "primary_link": row.primary_link,
        "secondary_link": row.secondary_link,
    }
    if row.error:
        payload["message"] = row.message
        return payload
    payload.update(_convert_data(row.analysis))
    payload.update(
        {
            "value_native": row.value_native,
            "value_reference": row.value_reference,
            "weight_pct": row.weight_pct,
            "fx_converted": row.fx_converted,
        }
    )
    return payload


def _freshness(fetched_at: float | None) -> dict[str, Any]:
    ts = fetched_at or time.time()
    age_seconds = max(0.0, time.time() - ts)
    return {"timestamp": int(ts), "age_seconds": round(age_seconds, 3)}


def success_response(data: Any, fetched_at: float | None = None, warning: str | None = None) -> str:
    payload: dict[str, Any] = {
        "data": _convert_data(data),
        "data_freshness": _freshness(fetched_at),
        "disclaimer": DISCLAIMER,
        "data_provider": DATA_PROVIDER,
    }
    if warning:
        payload["warning"] = warning
    return json.dumps(payload, ensure_ascii=True)


def error_response(code: str, message: str) -> str:
    return json.dumps(
        {
            "error": True,
            "code": code,
            "message": message,
            "timestamp": int(time.time()),
        },
        ensure_ascii=True,
    )

"""Watchlist import sanitization."""

from __future__ import annotations

import math

from alphaview.portfolio.models import ValidationIssue, WatchlistEntry
from alphaview.services.base import validate_symbol


def coerce_quantity(value: object) -> float:
    """Parse a quantity the forgiving way: anything unusable becomes 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def coerce_link(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def _first(item: dict, *keys: str) -> object:
    for key in keys:
        if key in item and item[key] is not None:
            return item[key]
    return None


def sanitize_entries(data: object) -> tuple[list[WatchlistEntry], list[ValidationIssue]]:
    """Turn an imported blob into unique watchlist entries.

    Accepts the export shape, the legacy ``qty``/``url``/``extraUrl`` shape and
    bare symbol strings. Raises ``ValueError`` when the blob is not a list.
    """
    if not isinstance(data, list):
        raise ValueError("Watchlist import must be a JSON array.")

    entries: list[WatchlistEntry] = []
    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for idx, item in enumerate(data):
        if isinstance(item, str):
            item = {"symbol": item}
        if not isinstance(item, dict):
            issues.append(ValidationIssue(field="entry", row=idx, code="invalid_entry", message="Entry must be an object."))
            continue

        raw_symbol = item.get("symbol")
        try:
            symbol = validate_symbol(raw_symbol if isinstance(raw_symbol, str) else "")
        except ValueError:
            issues.append(
                ValidationIssue(field="symbol", row=idx, code="invalid_symbol", message=f"Invalid ticker: {raw_symbol!r}")
            )
            continue
        if symbol in seen:
            issues.append(
                ValidationIssue(field="symbol", row=idx, code="duplicate_symbol", message=f"Duplicate ticker: {symbol}")
            )
            continue
        seen.add(symbol)

        entries.append(
            WatchlistEntry(
                symbol=symbol,
                quantity=coerce_quantity(_first(item, "quantity", "qty")),
                primary_link=coerce_link(_first(item, "primary_link", "url")),
                secondary_link=coerce_link(_first(item, "secondary_link", "extraUrl")),
            )
        )
    return entries, issues

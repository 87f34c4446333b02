"""Price series sanitization shared by analytics and chart consumers."""

from __future__ import annotations

import math
from typing import Sequence

import pandas as pd

from alphaview.providers.models import PricePoint


def _clean_time(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _clean_value(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def sanitize(timestamps: Sequence[object], values: Sequence[object]) -> list[PricePoint]:
    """Drop gaps, sort by time and keep the first point per timestamp.

    Sorting is stable, so among duplicated timestamps the point that came
    first in the input survives regardless of where the duplicates sit.
    """
    rows: list[tuple[int, float]] = []
    for raw_time, raw_value in zip(timestamps, values):
        time_value = _clean_time(raw_time)
        price = _clean_value(raw_value)
        if time_value is None or price is None:
            continue
        rows.append((time_value, price))
    if not rows:
        return []

    frame = pd.DataFrame(rows, columns=["time", "value"])
    frame = frame.sort_values("time", kind="stable").drop_duplicates(subset="time", keep="first")
    return [PricePoint(time=int(ts), value=float(value)) for ts, value in zip(frame["time"], frame["value"])]

"""Refresh metrics aggregation for the health route."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass
class HealthSnapshot:
    uptime_seconds: float
    total_refreshes: int
    error_rate: float
    avg_latency_ms: float
    last_refresh_at: float | None
    cache_entries: int


class ServerMetrics:
    def __init__(self, started_at: float | None = None) -> None:
        self.started_at = started_at or time.time()
        self._lock = threading.Lock()
        self.total_refreshes = 0
        self.failed_refreshes = 0
        self.total_latency_ms = 0.0
        self.last_refresh_at: float | None = None

    def record(self, latency_ms: float, success: bool) -> None:
        with self._lock:
            self.total_refreshes += 1
            if not success:
                self.failed_refreshes += 1
            self.total_latency_ms += max(0.0, latency_ms)
            self.last_refresh_at = time.time()

    def snapshot(self, cache_entries: int = 0) -> HealthSnapshot:
        with self._lock:
            refreshes = self.total_refreshes
            avg_latency = (self.total_latency_ms / refreshes) if refreshes else 0.0
            error_rate = (self.failed_refreshes / refreshes) if refreshes else 0.0
            last_refresh_at = self.last_refresh_at
        return HealthSnapshot(
            uptime_seconds=max(0.0, time.time() - self.started_at),
            total_refreshes=refreshes,
            error_rate=error_rate,
            avg_latency_ms=avg_latency,
            last_refresh_at=last_refresh_at,
            cache_entries=cache_entries,
        )

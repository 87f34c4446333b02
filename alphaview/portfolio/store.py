"""Watchlist persistence over an opaque key-value store."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Any, Protocol

from alphaview.portfolio.models import LinkKind, SortState, ValidationIssue, WatchlistEntry
from alphaview.portfolio.validation import coerce_link, coerce_quantity, sanitize_entries
from alphaview.services.base import validate_symbol

LOGGER = logging.getLogger(__name__)
WATCHLIST_KEY = "watchlist"
SORT_KEY = "sort"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryKeyValueStore:
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileKeyValueStore:
    """Keeps every key in one JSON document on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("watchlist store unreadable, starting empty: path=%s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Any:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=True, indent=2), encoding="utf-8")
            tmp.replace(self.path)


class WatchlistStore:
    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def entries(self) -> list[WatchlistEntry]:
        raw = self.kv.get(WATCHLIST_KEY)
        if raw is None:
            return []
        try:
            entries, _ = sanitize_entries(raw)
        except ValueError:
            LOGGER.warning("stored watchlist is malformed; ignoring it")
            return []
        return entries

    def _save(self, entries: list[WatchlistEntry]) -> None:
        self.kv.set(WATCHLIST_KEY, [asdict(entry) for entry in entries])

    def get(self, symbol: str) -> WatchlistEntry | None:
        clean = symbol.strip().upper()
        return next((entry for entry in self.entries() if entry.symbol == clean), None)

    def add(self, symbol: str) -> bool:
        """Prepend a new symbol; returns False when it is already tracked."""
        clean = validate_symbol(symbol)
        entries = self.entries()
        if any(entry.symbol == clean for entry in entries):
            return False
        self._save([WatchlistEntry(symbol=clean), *entries])
        return True

    def remove(self, symbol: str) -> bool:
        clean = symbol.strip().upper()
        entries = self.entries()
        remaining = [entry for entry in entries if entry.symbol != clean]
        if len(remaining) == len(entries):
            return False
        self._save(remaining)
        return True

    def update_quantity(self, symbol: str, quantity: object) -> WatchlistEntry | None:
        return self._update(symbol, quantity=coerce_quantity(quantity))

    def update_link(self, symbol: str, url: str, kind: LinkKind = "primary") -> WatchlistEntry | None:
        if kind == "primary":
            return self._update(symbol, primary_link=coerce_link(url))
        return self._update(symbol, secondary_link=coerce_link(url))

    def _update(self, symbol: str, **changes: Any) -> WatchlistEntry | None:
        clean = symbol.strip().upper()
        entries = self.entries()
        updated: WatchlistEntry | None = None
        for idx, entry in enumerate(entries):
            if entry.symbol == clean:
                updated = WatchlistEntry(**{**asdict(entry), **changes})
                entries[idx] = updated
                break
        if updated is not None:
            self._save(entries)
        return updated

    def export_json(self) -> str:
        return json.dumps([asdict(entry) for entry in self.entries()], ensure_ascii=True, indent=2)

    def import_json(self, blob: str) -> tuple[bool, list[ValidationIssue]]:
        """Replace the whole watchlist from an exported blob; leaves it untouched on failure."""
        try:
            data = json.loads(blob)
            entries, issues = sanitize_entries(data)
        except (json.JSONDecodeError, ValueError) as error:
            LOGGER.warning("watchlist import rejected: reason=%s", error)
            return False, [ValidationIssue(field="payload", code="invalid_payload", message=str(error))]
        self._save(entries)
        LOGGER.info("watchlist imported: entries=%s skipped=%s", len(entries), len(issues))
        return True, issues

    def sort_state(self) -> SortState:
        raw = self.kv.get(SORT_KEY)
        if isinstance(raw, dict) and raw.get("field") in {"name", "value", "performance", "weight"}:
            direction = raw.get("direction") if raw.get("direction") in {"asc", "desc"} else "desc"
            return SortState(field=raw["field"], direction=direction)
        return SortState()

    def save_sort_state(self, state: SortState) -> None:
        self.kv.set(SORT_KEY, asdict(state))

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from storebot.application.exceptions import SourceUnavailableError, TabNotFoundError
from storebot.application.ports.sheet_source import SheetSourcePort
from storebot.domain.entities.tab_dataset import TabDataset, normalize_row


class InMemorySheetSource(SheetSourcePort):
    """Spreadsheet stand-in for dev and tests. Tabs are matched case-insensitively."""

    def __init__(self, stores: Mapping[str, Mapping[str, list[Mapping[str, Any]]]] | None = None) -> None:
        self._tabs: dict[str, dict[str, tuple[list[str], TabDataset]]] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)
        self.fetch_count: dict[tuple[str, str], int] = {}
        self.unavailable = False
        for store_id, tabs in (stores or {}).items():
            for tab_name, rows in tabs.items():
                self.load_tab(store_id, tab_name, rows)

    def load_tab(self, store_id: str, tab_name: str, rows: list[Mapping[str, Any]], headers: list[str] | None = None) -> None:
        if headers is None:
            headers = []
            for row in rows:
                for key in row:
                    if key not in headers:
                        headers.append(key)
        with self._lock:
            self._tabs.setdefault(store_id, {})[tab_name] = (
                list(headers),
                [normalize_row(row, headers) for row in rows],
            )

    def fetch_tab(self, store_id: str, tab_name: str) -> tuple[list[str], TabDataset]:
        if self.unavailable:
            raise SourceUnavailableError("Spreadsheet source is unreachable")
        with self._lock:
            title = self._find_title(store_id, tab_name)
            key = (store_id, tab_name.lower())
            self.fetch_count[key] = self.fetch_count.get(key, 0) + 1
            headers, rows = self._tabs[store_id][title]
            return list(headers), [dict(r) for r in rows]

    def append_row(self, store_id: str, tab_name: str, row: Mapping[str, str]) -> None:
        if self.unavailable:
            raise SourceUnavailableError("Spreadsheet source is unreachable")
        with self._lock:
            title = self._find_title(store_id, tab_name)
            headers, rows = self._tabs[store_id][title]
            for key in row:
                if key not in headers:
                    headers.append(key)
            rows.append(normalize_row(row, headers))
        self._logger.info("Mock sheet row appended", extra={"store_id": store_id, "tab": tab_name})

    def update_row(self, store_id: str, tab_name: str, row_index: int, row: Mapping[str, str]) -> None:
        if self.unavailable:
            raise SourceUnavailableError("Spreadsheet source is unreachable")
        with self._lock:
            title = self._find_title(store_id, tab_name)
            headers, rows = self._tabs[store_id][title]
            if row_index >= len(rows):
                raise TabNotFoundError(f"Row {row_index} not found in tab {tab_name!r}")
            merged = dict(rows[row_index])
            merged.update({k: str(v) for k, v in row.items()})
            for key in row:
                if key not in headers:
                    headers.append(key)
            rows[row_index] = normalize_row(merged, headers)

    def rows(self, store_id: str, tab_name: str) -> TabDataset:
        """Current rows, bypassing fetch counting."""
        with self._lock:
            title = self._find_title(store_id, tab_name)
            return [dict(r) for r in self._tabs[store_id][title][1]]

    def _find_title(self, store_id: str, tab_name: str) -> str:
        for title in self._tabs.get(store_id, {}):
            if title.lower() == tab_name.lower():
                return title
        raise TabNotFoundError(f'Tab "{tab_name}" not found')

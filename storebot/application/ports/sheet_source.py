from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

from storebot.domain.entities.tab_dataset import TabDataset


class SheetSourcePort(ABC):
    @abstractmethod
    def fetch_tab(self, store_id: str, tab_name: str) -> tuple[list[str], TabDataset]:
        """
        Fetch a whole tab from the store's spreadsheet.

        Returns (header_columns, rows). Every row carries every header column.

        Raises:
            SourceUnavailableError: source unreachable, timed out or failed
            TabNotFoundError: the store's sheet has no such tab
        """
        raise NotImplementedError

    @abstractmethod
    def append_row(self, store_id: str, tab_name: str, row: Mapping[str, str]) -> None:
        raise NotImplementedError

    @abstractmethod
    def update_row(self, store_id: str, tab_name: str, row_index: int, row: Mapping[str, str]) -> None:
        """Update the data row at zero-based `row_index` (header row excluded)."""
        raise NotImplementedError

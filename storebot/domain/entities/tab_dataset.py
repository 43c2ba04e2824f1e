from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

# Rows are keyed by the sheet's header row; every value is a string.
TabRow = dict[str, str]
TabDataset = list[TabRow]

SERVICES_TAB = "Services"
PRODUCTS_TAB = "Products"
HOURS_TAB = "Hours"
BOOKINGS_TAB = "Bookings"
LEADS_TAB = "Leads"


@dataclass(frozen=True)
class CacheKey:
    store_id: str
    tab_name: str

    @classmethod
    def for_tab(cls, store_id: str, tab_name: str) -> "CacheKey":
        return cls(store_id=str(store_id), tab_name=str(tab_name).strip().lower())

    def as_string(self) -> str:
        return f"store:{self.store_id}:{self.tab_name}"


def normalize_row(row: Mapping[str, Any], headers: Iterable[str] | None = None) -> TabRow:
    """Coerce a raw sheet row into a string-valued row; absent or null values become ''."""
    keys = list(headers) if headers is not None else list(row.keys())
    out: TabRow = {}
    for key in keys:
        value = row.get(key)
        if value is None:
            out[str(key)] = ""
        elif isinstance(value, bool):
            out[str(key)] = "TRUE" if value else "FALSE"
        else:
            out[str(key)] = str(value)
    return out


def project_rows(rows: TabDataset, columns: list[str] | None) -> TabDataset:
    if not columns:
        return [dict(row) for row in rows]
    return [{col: row.get(col, "") for col in columns} for row in rows]

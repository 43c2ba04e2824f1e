from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from storebot.application.exceptions import (
    InvalidDataError,
    SourceUnavailableError,
    TabNotFoundError,
)
from storebot.application.ports.sheet_source import SheetSourcePort
from storebot.core.config import settings
from storebot.domain.entities.tab_dataset import TabDataset, normalize_row


class HttpSheetSource(SheetSourcePort):
    """
    Client for the spreadsheet service.

    Every operation is one POST with a JSON body
    {operation, storeId, tabName, columns?, data?, rowIndex?}; the service answers
    {success, data?} or {error}.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url or settings.SHEETS_API_URL
        self._api_key = api_key or settings.SHEETS_API_KEY
        self._timeout = timeout_seconds or settings.SHEETS_TIMEOUT_SECONDS
        self._client = client or httpx.Client(timeout=self._timeout)
        self._logger = logging.getLogger(__name__)

        if not self._base_url:
            raise ValueError("SHEETS_API_URL is required for the spreadsheet source")

    def fetch_tab(self, store_id: str, tab_name: str) -> tuple[list[str], TabDataset]:
        body = self._post({"operation": "read", "storeId": store_id, "tabName": tab_name}, store_id, tab_name)
        raw_rows = body.get("data") or []
        if not isinstance(raw_rows, list):
            raise SourceUnavailableError(f"Unexpected read response for tab {tab_name!r}")

        headers = body.get("headers")
        if not isinstance(headers, list):
            headers = []
            for raw in raw_rows:
                if isinstance(raw, dict):
                    for key in raw:
                        if key not in headers:
                            headers.append(key)

        rows = [normalize_row(raw, headers) for raw in raw_rows if isinstance(raw, dict)]
        self._logger.info("Read tab from sheet", extra={"store_id": store_id, "tab": tab_name, "rows": len(rows)})
        return [str(h) for h in headers], rows

    def append_row(self, store_id: str, tab_name: str, row: Mapping[str, str]) -> None:
        self._post(
            {"operation": "append", "storeId": store_id, "tabName": tab_name, "data": dict(row)},
            store_id,
            tab_name,
        )
        self._logger.info("Appended row", extra={"store_id": store_id, "tab": tab_name})

    def update_row(self, store_id: str, tab_name: str, row_index: int, row: Mapping[str, str]) -> None:
        self._post(
            {
                "operation": "update",
                "storeId": store_id,
                "tabName": tab_name,
                "rowIndex": row_index,
                "data": dict(row),
            },
            store_id,
            tab_name,
        )
        self._logger.info("Updated row", extra={"store_id": store_id, "tab": tab_name, "row_index": row_index})

    def _post(self, payload: dict[str, Any], store_id: str, tab_name: str) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            response = self._client.post(self._base_url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            self._logger.error("Sheet source timed out", extra={"store_id": store_id, "tab": tab_name, "error": str(e)})
            raise SourceUnavailableError(f"Spreadsheet source timed out reading {tab_name!r}") from e
        except httpx.HTTPError as e:
            self._logger.error("Sheet source unreachable", extra={"store_id": store_id, "tab": tab_name, "error": str(e)})
            raise SourceUnavailableError("Spreadsheet source is unreachable") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        error = body.get("error")

        if response.status_code == 404:
            raise TabNotFoundError(error or f'Tab "{tab_name}" not found')
        if response.status_code in (400, 422):
            raise InvalidDataError(error or f"Spreadsheet source rejected the request for {tab_name!r}")
        if response.status_code >= 400 or error:
            self._logger.error(
                "Sheet source error",
                extra={"store_id": store_id, "tab": tab_name, "status": response.status_code, "error": error},
            )
            raise SourceUnavailableError(error or f"Spreadsheet source returned HTTP {response.status_code}")
        return body

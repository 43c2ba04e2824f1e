from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from storebot.application.exceptions import (
    BookingValidationError,
    NotFoundError,
    StorebotError,
    TabNotFoundError,
)
from storebot.application.use_cases.data_gateway import DataGateway
from storebot.application.utils.validators import first_value
from storebot.domain.entities.function_result import FunctionCallResult
from storebot.domain.entities.tab_dataset import (
    HOURS_TAB,
    PRODUCTS_TAB,
    SERVICES_TAB,
    TabDataset,
)

INFO_TABS = {"hours": HOURS_TAB, "services": SERVICES_TAB, "products": PRODUCTS_TAB}


def _row_text(row: dict[str, str]) -> str:
    return " ".join(str(v) for v in row.values()).lower()


class CatalogUseCase:
    def __init__(self, gateway: DataGateway, max_workers: int = 3) -> None:
        self._gateway = gateway
        self._max_workers = max_workers
        self._logger = logging.getLogger(__name__)

    def get_store_info(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        info_type = (first_value(params, "info_type") or "all").lower()
        if info_type != "all" and info_type not in INFO_TABS:
            raise BookingValidationError(
                f"Invalid info_type {info_type!r}. Use one of: hours, services, products, all."
            )

        if info_type != "all":
            rows = self._gateway.read(store_id, INFO_TABS[info_type])
            return FunctionCallResult.ok(
                {"info_type": info_type, info_type: rows},
                components=[{"type": info_type, "props": {info_type: rows}}] if rows else [],
            )

        data: dict[str, Any] = {"info_type": "all"}
        failed: list[str] = []
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = {key: pool.submit(self._gateway.read, store_id, tab) for key, tab in INFO_TABS.items()}
            for key, future in futures.items():
                try:
                    data[key] = future.result()
                except StorebotError as e:
                    self._logger.warning(
                        "Store info tab failed, continuing without it",
                        extra={"store_id": store_id, "tab": INFO_TABS[key], "error": e.message},
                    )
                    data[key] = []
                    failed.append(key)
        if failed:
            data["unavailable"] = failed
        return FunctionCallResult.ok(data)

    def get_services(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        query = first_value(params, "query")
        category = first_value(params, "category")
        services = self._gateway.read(store_id, SERVICES_TAB)

        if category:
            services = [s for s in services if category.lower() in s.get("category", "").lower()]
        if query:
            services = [s for s in services if query.lower() in _row_text(s)]

        return FunctionCallResult.ok(
            {"services": services, "count": len(services), "query": query, "category": category},
            message=f"Found {len(services)} services.",
            components=[{"type": "services", "props": {"services": services}}] if services else [],
        )

    def get_products(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        category = first_value(params, "category")
        query = first_value(params, "query")
        products = self._gateway.read(store_id, PRODUCTS_TAB)

        if category:
            before = len(products)
            products = [p for p in products if p.get("category", "").strip().lower() == category.lower()]
            self._logger.info(
                "Filtered products by category",
                extra={"store_id": store_id, "category": category, "before": before, "after": len(products)},
            )
            if not products:
                raise NotFoundError(f'No products found in category "{category}"')
        if query:
            products = [p for p in products if query.lower() in _row_text(p)]

        return FunctionCallResult.ok(
            {"products": products, "category": category or "all", "count": len(products)},
            message=f"Found {len(products)} products.",
            components=[{"type": "products", "props": {"products": products}}] if products else [],
        )

    def get_misc_data(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        tab_name = first_value(params, "tab_name", "tabName")
        if not tab_name:
            raise BookingValidationError("tab_name is required")
        query = first_value(params, "query")

        try:
            rows: TabDataset = self._gateway.read(store_id, tab_name)
        except TabNotFoundError as e:
            raise NotFoundError(f'Tab "{tab_name}" not found') from e

        if query:
            rows = [r for r in rows if query.lower() in _row_text(r)]
        return FunctionCallResult.ok({"tab_name": tab_name, "data": rows, "count": len(rows), "query": query})

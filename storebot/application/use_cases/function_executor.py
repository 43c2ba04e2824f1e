from __future__ import annotations

import logging
import time
from typing import Any, Callable

from storebot.application.exceptions import StorebotError, UnknownFunctionError
from storebot.application.use_cases.booking import BookingUseCase
from storebot.application.use_cases.catalog import CatalogUseCase
from storebot.application.use_cases.leads import SubmitLeadUseCase
from storebot.application.use_cases.recommendations import RecommendationsUseCase
from storebot.domain.entities.function_result import FunctionCallResult

CALLABLE_FUNCTIONS = (
    "get_store_info",
    "get_services",
    "get_products",
    "check_availability",
    "create_booking",
    "get_booking_slots",
    "submit_lead",
    "get_misc_data",
    "get_recommendations",
)

Handler = Callable[[dict[str, Any], str], FunctionCallResult]


class FunctionExecutor:
    """
    Runs one of the callable store functions.

    Never raises: domain failures come back as `success=False` results carrying
    the error kind, anything unexpected as a generic failure.
    """

    def __init__(
        self,
        booking: BookingUseCase,
        catalog: CatalogUseCase,
        leads: SubmitLeadUseCase,
        recommendations: RecommendationsUseCase,
    ) -> None:
        self._handlers: dict[str, Handler] = {
            "get_store_info": catalog.get_store_info,
            "get_services": catalog.get_services,
            "get_products": catalog.get_products,
            "get_misc_data": catalog.get_misc_data,
            "check_availability": booking.check_availability,
            "create_booking": booking.create_booking,
            "get_booking_slots": booking.get_booking_slots,
            "submit_lead": leads.execute,
            "get_recommendations": recommendations.execute,
        }
        self._logger = logging.getLogger(__name__)

    def execute(self, function_name: str, params: dict[str, Any] | None, store_id: str) -> FunctionCallResult:
        started = time.perf_counter()
        try:
            handler = self._handlers.get(function_name)
            if handler is None:
                raise UnknownFunctionError(f"Unknown function: {function_name}")
            result = handler(dict(params or {}), store_id)
        except StorebotError as e:
            self._logger.info(
                "Function failed",
                extra={"store_id": store_id, "function": function_name, "error": e.message, "kind": e.kind.value},
            )
            return FunctionCallResult.fail(e.kind, e.message)
        except Exception:
            self._logger.exception("Function crashed", extra={"store_id": store_id, "function": function_name})
            return FunctionCallResult(success=False, error="Function execution failed")

        self._logger.info(
            "Function executed",
            extra={
                "store_id": store_id,
                "function": function_name,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return result

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from storebot.application.exceptions import UnknownActionError


def _pick(data: dict[str, Any], *names: str) -> Any:
    for name in names:
        value = data.get(name)
        if value is not None and value != "":
            return value
    return None


@dataclass(frozen=True)
class ActionMapping:
    function_name: str
    extract: Callable[[dict[str, Any]], dict[str, Any]]


ACTION_MAPPINGS: dict[str, ActionMapping] = {
    "confirm_booking": ActionMapping(
        "create_booking",
        lambda d: {
            "service_name": _pick(d, "service_name", "serviceName"),
            "date": _pick(d, "date"),
            "time": _pick(d, "time"),
            "customer_name": _pick(d, "customer_name", "customerName"),
            "customer_email": _pick(d, "customer_email", "customerEmail", "email"),
            "customer_phone": _pick(d, "customer_phone", "customerPhone", "phone"),
        },
    ),
    "book_service": ActionMapping(
        "get_booking_slots",
        lambda d: {
            "service_name": _pick(d, "service_name", "serviceName", "name"),
            "prefill_name": _pick(d, "prefill_name"),
            "prefill_email": _pick(d, "prefill_email"),
        },
    ),
    "view_products": ActionMapping(
        "get_products", lambda d: {"query": _pick(d, "query"), "category": _pick(d, "category")}
    ),
    "view_services": ActionMapping(
        "get_services", lambda d: {"query": _pick(d, "query"), "category": _pick(d, "category")}
    ),
    # Lead forms are built from the sheet's own columns, so every field passes through.
    "submit_lead": ActionMapping("submit_lead", lambda d: dict(d)),
    "get_recommendations": ActionMapping(
        "get_recommendations",
        lambda d: {
            name: _pick(d, name)
            for name in ("goal", "experience_level", "budget", "time_preference", "offering_type", "category")
        },
    ),
    "check_availability": ActionMapping(
        "check_availability",
        lambda d: {"service_name": _pick(d, "service_name", "serviceName"), "date": _pick(d, "date")},
    ),
}


class DirectCallRouter:
    """Maps a known UI action straight to an executor call, skipping classification."""

    def __init__(self, mappings: dict[str, ActionMapping] | None = None) -> None:
        self._mappings = mappings if mappings is not None else ACTION_MAPPINGS

    def can_handle(self, action: str) -> bool:
        return action in self._mappings

    def route(self, action: str, data: dict[str, Any] | None) -> tuple[str, dict[str, Any]]:
        mapping = self._mappings.get(action)
        if mapping is None:
            raise UnknownActionError(f"Action {action!r} is not supported for direct calls.")
        params = mapping.extract(dict(data or {}))
        return mapping.function_name, {k: v for k, v in params.items() if v is not None}

    @staticmethod
    def action_display_text(action: str, data: dict[str, Any] | None) -> str:
        d = data or {}
        if action == "confirm_booking":
            return f"Book {_pick(d, 'service_name', 'serviceName')} on {d.get('date')} at {d.get('time')}"
        if action == "book_service":
            return f"Show booking options for {_pick(d, 'service_name', 'serviceName', 'name')}"
        if action == "view_products":
            return f'Search products: "{d["query"]}"' if d.get("query") else "View products"
        if action == "view_services":
            return f'Search services: "{d["query"]}"' if d.get("query") else "View services"
        if action == "submit_lead":
            return "Submit contact information"
        if action == "get_recommendations":
            return "Get recommendations"
        if action == "check_availability":
            return f"Check availability for {_pick(d, 'service_name', 'serviceName')}"
        return action.replace("_", " ")

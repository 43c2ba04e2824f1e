from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from storebot.application.exceptions import (
    BookingValidationError,
    CacheInvalidationError,
    NotFoundError,
    TabNotFoundError,
)
from storebot.application.use_cases.data_gateway import DataGateway
from storebot.application.utils.validators import is_valid_email
from storebot.domain.entities.function_result import FunctionCallResult
from storebot.domain.entities.tab_dataset import LEADS_TAB

# Filled in by the system, never asked from the customer.
AUTO_COLUMNS = ("date", "status", "timestamp", "created", "id")

_ALIASES = {
    "name": ("name", "Name", "fullname", "full_name", "customer_name"),
    "email": ("email", "Email", "e_mail", "customer_email"),
    "phone": ("phone", "Phone", "mobile", "Mobile", "tel", "customer_phone"),
    "message": ("message", "Message", "note", "Note", "comment"),
}


def field_type(column: str) -> str:
    lower = column.lower()
    if "email" in lower:
        return "email"
    if "phone" in lower or "mobile" in lower or "tel" in lower:
        return "tel"
    if any(word in lower for word in ("message", "note", "comment", "description")):
        return "textarea"
    return "text"


def lead_form_fields(columns: list[str]) -> list[dict[str, Any]]:
    form_columns = [c for c in columns if c.strip().lower() not in AUTO_COLUMNS]
    return [
        {"name": col, "label": col, "type": field_type(col), "required": index < 2}
        for index, col in enumerate(form_columns)
    ]


def _value_for(column: str, params: dict[str, Any]) -> str:
    value = params.get(column) or params.get(column.lower())
    if not value:
        lower = column.lower()
        for marker, aliases in _ALIASES.items():
            if marker in lower or (marker == "phone" and "mobile" in lower):
                value = next((params[a] for a in aliases if params.get(a)), None)
                if value:
                    break
    return str(value).strip() if value else ""


class SubmitLeadUseCase:
    def __init__(self, gateway: DataGateway, clock: Callable[[], datetime] | None = None) -> None:
        self._gateway = gateway
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logging.getLogger(__name__)

    def execute(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        try:
            columns = self._gateway.headers(store_id, LEADS_TAB)
        except TabNotFoundError as e:
            raise NotFoundError('Lead capture not available. Please ensure your sheet has a "Leads" tab.') from e

        fields = lead_form_fields(columns)
        values = {col: _value_for(col, params) for col in columns}
        missing = [f["name"] for f in fields if f["required"] and not values.get(f["name"])]

        if missing:
            defaults = {f["name"]: values[f["name"]] for f in fields if values.get(f["name"])}
            return FunctionCallResult.ok(
                {"missing_fields": missing, "fields": fields},
                message="Please provide your contact information so we can assist you better.",
                components=[{"type": "LeadForm", "props": {"fields": fields, "defaultValues": defaults}}],
                awaiting_input=True,
            )

        for col in columns:
            if field_type(col) == "email" and values.get(col) and not is_valid_email(values[col]):
                raise BookingValidationError("Invalid email format. Please provide a valid email address.")

        now = self._clock().isoformat()
        row: dict[str, str] = {}
        for col in columns:
            lower = col.strip().lower()
            if lower in ("date", "timestamp"):
                row[col] = now
            elif lower == "status":
                row[col] = "new"
            else:
                row[col] = values.get(col, "")

        try:
            self._gateway.append(store_id, LEADS_TAB, row)
        except CacheInvalidationError as e:
            self._logger.warning(
                "Lead written but cache invalidation failed",
                extra={"store_id": store_id, "tab": LEADS_TAB, "error": e.message},
            )
        self._logger.info("Lead captured", extra={"store_id": store_id, "tab": LEADS_TAB})
        return FunctionCallResult.ok(
            {"lead_id": now},
            message="Thank you! We've received your information and will get back to you soon.",
        )

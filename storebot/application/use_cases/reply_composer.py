from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from storebot.application.utils.slots import is_closed
from storebot.domain.entities.error_kind import ErrorKind
from storebot.domain.entities.function_result import FunctionCallResult

# Error kinds whose messages are written for the customer; everything else gets a generic line.
USER_FACING_KINDS = {ErrorKind.VALIDATION_ERROR, ErrorKind.NOT_AVAILABLE, ErrorKind.NOT_FOUND}

GENERIC_FAILURE = {
    "en": "Sorry, something went wrong on our side. Please try again in a moment.",
    "es": "Lo siento, algo salió mal. Por favor intenta de nuevo en un momento.",
}

FALLBACK_CLARIFICATION = {
    "en": "Sorry, I didn't quite get that. Could you rephrase what you're looking for?",
    "es": "Perdón, no entendí bien. ¿Puedes decirme de otra forma lo que buscas?",
}

FALLBACK_GREETING = {
    "en": "Hi! How can I help you today?",
    "es": "Hola! ¿Cómo puedo ayudarte?",
}


@dataclass(frozen=True)
class ComposedReply:
    text: str
    components: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None


def _lang(table: dict[str, str], language: str) -> str:
    return table.get(language, table["en"])


def _plural(count: int, noun: str) -> str:
    return f"{'is' if count == 1 else 'are'} {count} {noun}{'' if count == 1 else 's'}"


def _create_booking(data: dict[str, Any], params: dict[str, Any]) -> str:
    booking = data.get("booking") or {}
    return _join_blocks(
        [
            "Booking confirmed!",
            f"**{booking.get('service')}**\n{booking.get('date')} at {booking.get('time')}\n{booking.get('customer_name')}",
            f"Confirmation: {booking.get('confirmation')}",
        ]
    )


def _check_availability(data: dict[str, Any], params: dict[str, Any]) -> str:
    slots = data.get("available_slots") or []
    if not slots:
        return f"Sorry, **{data.get('service')}** is fully booked on {data.get('date')}. Would you like to check another date?"
    return f"**{data.get('service')}** is available on {data.get('day')} {data.get('date')} at: {', '.join(slots)}. Would you like to book one?"


def _get_booking_slots(data: dict[str, Any], params: dict[str, Any]) -> str:
    if not data.get("service"):
        return "Which service would you like to book?"
    if not any(day.get("available_slots") for day in data.get("days") or []):
        return f"Sorry, no available slots found for {data['service']}. Would you like to try a different date?"
    return f"Here are the available times for **{data['service']}**. Select a slot to continue:"


def _listing(noun: str, key: str) -> Callable[[dict[str, Any], dict[str, Any]], str]:
    def render(data: dict[str, Any], params: dict[str, Any]) -> str:
        items = data.get(key) or []
        query = params.get("query")
        suffix = f' matching "{query}"' if query else ""
        if not items:
            return f"Sorry, no {noun}s found{suffix}. Would you like to see all our {noun}s?"
        return f"Here {_plural(len(items), noun)}{suffix}:"

    return render


def _get_store_info(data: dict[str, Any], params: dict[str, Any]) -> str:
    if data.get("info_type") == "hours":
        lines = [_hours_line(row) for row in data.get("hours") or []]
        return _join_blocks(["Here are our hours:", "\n".join(lines)])
    return "Here's what you need to know:"


def _hours_line(row: dict[str, str]) -> str:
    day = row.get("day", "")
    if is_closed(row):
        return f"{day}: closed"
    return f"{day}: {row.get('openTime', '')} - {row.get('closeTime', '')}".rstrip(" -")


def _submit_lead(data: dict[str, Any], params: dict[str, Any]) -> str:
    name = params.get("name") or params.get("Name") or params.get("customer_name") or "there"
    return f"Thanks for reaching out, {name}! We've received your information and will get back to you soon."


def _get_recommendations(data: dict[str, Any], params: dict[str, Any]) -> str:
    if not data.get("recommendations"):
        return "I couldn't find specific recommendations for those preferences. Would you like to tell me more?"
    return "Based on what you've shared, here are my top recommendations for you:"


def _get_misc_data(data: dict[str, Any], params: dict[str, Any]) -> str:
    rows = data.get("data") or []
    if not rows:
        return f"I couldn't find anything in {data.get('tab_name')} about that."
    return f"Here's what I found in {data.get('tab_name')}:"


TEMPLATES: dict[str, Callable[[dict[str, Any], dict[str, Any]], str]] = {
    "create_booking": _create_booking,
    "check_availability": _check_availability,
    "get_booking_slots": _get_booking_slots,
    "get_products": _listing("product", "products"),
    "get_services": _listing("service", "services"),
    "get_store_info": _get_store_info,
    "submit_lead": _submit_lead,
    "get_recommendations": _get_recommendations,
    "get_misc_data": _get_misc_data,
}


class ReplyComposer:
    """Turns executor results and classifier decisions into customer-facing text plus UI components."""

    def compose(
        self,
        function_name: str,
        params: dict[str, Any],
        result: FunctionCallResult,
        language: str = "en",
    ) -> ComposedReply:
        if not result.success:
            if result.error_kind in USER_FACING_KINDS and result.error:
                return ComposedReply(text=_customer_error(result.error), error=result.error)
            return ComposedReply(text=_lang(GENERIC_FAILURE, language), error=result.error)

        # Forms and pickers carry their own prompt text.
        if result.awaiting_input and result.message:
            return ComposedReply(text=result.message, components=list(result.components))

        template = TEMPLATES.get(function_name)
        text = template(result.data or {}, params) if template else (result.message or "Done.")
        return ComposedReply(text=_dedupe_paragraphs(text), components=list(result.components))

    def clarification(self, question: str | None, language: str = "en") -> ComposedReply:
        return ComposedReply(text=question or _lang(FALLBACK_CLARIFICATION, language))

    def conversational(self, reply: str | None, language: str = "en") -> ComposedReply:
        return ComposedReply(text=reply or _lang(FALLBACK_GREETING, language))


def _customer_error(error: str) -> str:
    """Drop a leading error-kind tag such as `NotAvailable:`; the tag stays in `error` for callers."""
    for kind in USER_FACING_KINDS:
        tag = f"{kind.value}:"
        if error.startswith(tag):
            return error[len(tag):].strip()
    return error


def _join_blocks(blocks: list[str]) -> str:
    return "\n\n".join(block.strip() for block in blocks if block and block.strip())


def _dedupe_paragraphs(text: str) -> str:
    paragraphs = [p for p in text.split("\n\n") if p.strip()]
    seen: set[str] = set()
    out: list[str] = []
    for p in paragraphs:
        if p not in seen:
            out.append(p)
            seen.add(p)
    return "\n\n".join(out)

from __future__ import annotations

import json
import re
from datetime import date
from zoneinfo import ZoneInfo

from storebot.application.ports.llm import LLMCompletion, LLMPort
from storebot.application.utils.date_parser import parse_date_preference

_MESSAGE_RE = re.compile(r"CURRENT MESSAGE: '(.*)'|CURRENT MESSAGE: \"(.*)\"")
_TODAY_RE = re.compile(r"TODAY'S DATE: (\d{4}-\d{2}-\d{2})")


class MockLLM(LLMPort):
    """Keyword rules over the current message; answers in the classifier's JSON schema."""

    def __init__(self, timezone: ZoneInfo | None = None) -> None:
        self._timezone = timezone or ZoneInfo("UTC")

    def complete_json(self, prompt: str, request_id: str | None = None) -> LLMCompletion:
        match = _MESSAGE_RE.search(prompt)
        text = (match.group(1) or match.group(2) or "") if match else prompt
        today_match = _TODAY_RE.search(prompt)
        today = date.fromisoformat(today_match.group(1)) if today_match else None

        decision = self._decide(text, today)
        return LLMCompletion(
            text=json.dumps(decision),
            input_tokens=len(prompt) // 4,
            output_tokens=len(json.dumps(decision)) // 4,
            model="mock",
        )

    def _decide(self, text: str, today: date | None) -> dict:
        normalized = text.lower()
        language = "es" if any(w in normalized for w in ("hola", "gracias", "precio", "horario", "reservar")) else "en"
        decision: dict = {
            "needs_clarification": False,
            "clarification_question": None,
            "function_to_call": None,
            "extracted_params": {},
            "user_language": language,
            "reply": None,
        }

        if any(w in normalized for w in ("hours", "open", "horario")):
            decision["function_to_call"] = "get_store_info"
            decision["extracted_params"] = {"info_type": "hours"}
        elif "available" in normalized or "availability" in normalized:
            day = self._extract_date(text, today)
            if day is None:
                decision["needs_clarification"] = True
                decision["clarification_question"] = "Which date are you interested in?"
            else:
                decision["function_to_call"] = "check_availability"
                decision["extracted_params"] = {"date": day.isoformat(), "service_name": _service_hint(text)}
        elif any(w in normalized for w in ("book", "appointment", "reservar")):
            day = self._extract_date(text, today)
            decision["function_to_call"] = "get_booking_slots"
            decision["extracted_params"] = {"prefill_date": day.isoformat()} if day else {}
        elif "product" in normalized or "buy" in normalized:
            decision["function_to_call"] = "get_products"
        elif "service" in normalized or "offer" in normalized:
            decision["function_to_call"] = "get_services"
        elif "recommend" in normalized or "suggest" in normalized:
            decision["function_to_call"] = "get_recommendations"
        elif "contact" in normalized or "call me" in normalized:
            decision["function_to_call"] = "submit_lead"
        else:
            decision["reply"] = "Hola! ¿Cómo puedo ayudarte?" if language == "es" else "Hi! How can I help you today?"

        decision["extracted_params"] = {k: v for k, v in decision["extracted_params"].items() if v}
        return decision

    def _extract_date(self, text: str, today: date | None) -> date | None:
        iso = re.search(r"\b(\d{4}-\d{2}-\d{2})\b", text)
        if iso:
            try:
                return date.fromisoformat(iso.group(1))
            except ValueError:
                return None
        return parse_date_preference(text, self._timezone, reference_date=today)


def _service_hint(text: str) -> str | None:
    match = re.search(r"(?:for|is|a|an)\s+([A-Za-z][\w ]*?)\s+(?:on|available|tomorrow|today)", text, re.IGNORECASE)
    return match.group(1).strip() if match else None

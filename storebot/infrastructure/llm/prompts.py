from __future__ import annotations

from storebot.domain.entities.message import ChatTurn


def format_history(history: list[ChatTurn], max_turns: int = 6) -> str:
    recent = history[-max_turns:] if max_turns > 0 else []
    if not recent:
        return "(no previous messages)"
    return "\n".join(f"{turn.role}: {turn.content}" for turn in recent)


def build_classification_prompt(history: list[ChatTurn], last_message: str, today: str, tomorrow: str, max_turns: int = 6) -> str:
    return (
        "You are a tool classifier for a business chat assistant.\n"
        "\n"
        "CONVERSATION HISTORY (recent turns only):\n"
        f"{format_history(history, max_turns)}\n"
        "\n"
        f"CURRENT MESSAGE: {last_message!r}\n"
        f"TODAY'S DATE: {today}\n"
        f"TOMORROW'S DATE: {tomorrow}\n"
        "\n"
        "TOOLS:\n"
        "  get_store_info\n"
        "    Params: info_type ('hours' | 'services' | 'products' | 'all')\n"
        "    Use: \"what do you offer?\", \"when are you open?\"\n"
        "  get_services\n"
        "    Params: query (optional), category (optional)\n"
        "    Use: browsing services\n"
        "  get_products\n"
        "    Params: category (optional), query (optional)\n"
        "    Use: browsing products\n"
        "  submit_lead\n"
        "    Params: name, email, phone, message\n"
        "    Use: contact info capture. Always call it; it returns a form when info is missing\n"
        "  get_misc_data\n"
        "    Params: tab_name, query (optional)\n"
        "    Use: custom tabs (FAQ, Policies, ...) for topics not in standard tabs\n"
        "  check_availability\n"
        "    Params: service_name, date (YYYY-MM-DD)\n"
        "    Use: ONLY availability questions, not booking intent\n"
        "  create_booking\n"
        "    Params: service_name, date (YYYY-MM-DD), time (HH:MM), customer_name, customer_email, customer_phone (optional)\n"
        "    Use: ONLY when all required fields are present\n"
        "  get_booking_slots\n"
        "    Params: service_name (optional), prefill_date, prefill_time, prefill_name, prefill_email (all optional)\n"
        "    Use: booking intent. Pass any mentioned details as prefill_* params\n"
        "  get_recommendations\n"
        "    Params: goal, experience_level, budget, budget_max, offering_type, category (all optional)\n"
        "    Use: the user asks for suggestions or help choosing\n"
        "\n"
        "BOOKING RULES:\n"
        "  - Booking intent -> get_booking_slots (NOT check_availability)\n"
        "  - \"Is X available on Y?\" -> check_availability\n"
        "  - NEVER call create_booking without customer_name AND customer_email\n"
        "\n"
        "EXTRACTION RULES:\n"
        "  - Resolve relative dates (\"today\", \"tomorrow\", \"next Monday\") to YYYY-MM-DD using the dates above\n"
        "  - Times as 24-hour HH:MM\n"
        "  - Only extract what the user actually said\n"
        "  - Greetings and small talk: no tool, put a short answer in \"reply\"\n"
        "  - If the request is ambiguous, set needs_clarification and ask one question\n"
        "\n"
        "LANGUAGE DETECTION:\n"
        "  - ISO 639-1 code of the CURRENT message ('en', 'es', 'fr', ...). Default 'en'\n"
        "\n"
        "Return ONLY valid JSON. No markdown. No extra text.\n"
        "Output schema (exact field names):\n"
        "{\n"
        "  \"needs_clarification\": true | false,\n"
        "  \"clarification_question\": \"string or null\",\n"
        "  \"function_to_call\": \"<one of the tools above>\" | null,\n"
        "  \"extracted_params\": {},\n"
        "  \"user_language\": \"en\",\n"
        "  \"reply\": \"string or null\"\n"
        "}\n"
    )

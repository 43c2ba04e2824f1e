from __future__ import annotations

import logging
import re
from typing import Any

from storebot.application.exceptions import BookingValidationError, NotFoundError, StorebotError
from storebot.application.use_cases.data_gateway import DataGateway
from storebot.application.utils.validators import first_value, parse_price
from storebot.domain.entities.function_result import FunctionCallResult
from storebot.domain.entities.tab_dataset import PRODUCTS_TAB, SERVICES_TAB, TabDataset

BUDGET_RANGES = {"low": (0.0, 50.0), "medium": (30.0, 150.0), "high": (100.0, float("inf"))}

LEVEL_KEYWORDS = {
    "beginner": ("beginner", "intro", "introduction", "starter", "basic", "first time", "fundamentals", "entry"),
    "intermediate": ("intermediate", "level 2", "continuing", "progression", "next level"),
    "advanced": ("advanced", "expert", "pro", "professional", "master", "intensive"),
}

PREFERENCE_FIELDS = [
    {"name": "goal", "label": "What are you looking for?", "type": "textarea", "required": True},
    {
        "name": "experience_level",
        "label": "Experience Level",
        "type": "select",
        "required": False,
        "options": ["beginner", "intermediate", "advanced", "any"],
    },
    {
        "name": "budget",
        "label": "Budget Range",
        "type": "select",
        "required": False,
        "options": ["low", "medium", "high", "any"],
    },
]

_STOP_WORDS = {"a", "an", "the", "and", "or", "for", "to", "of", "in", "on", "with", "i", "my", "me", "want", "like"}


def _search_text(item: dict[str, str]) -> str:
    parts = (item.get("_name"), item.get("tags"), item.get("description"), item.get("category"))
    return " ".join(p for p in parts if p).lower()


def _tokens(text: str) -> set[str]:
    return {t for t in re.findall(r"[a-z0-9]+", text.lower()) if t not in _STOP_WORDS and len(t) > 1}


def apply_preference_filters(offerings: TabDataset, preferences: dict[str, Any]) -> TabDataset:
    filtered = list(offerings)

    category = preferences.get("category")
    if category:
        filtered = [o for o in filtered if category.lower() in o.get("category", "").lower()]

    budget = (preferences.get("budget") or "").lower()
    if budget in BUDGET_RANGES:
        low, high = BUDGET_RANGES[budget]
        # Items with no price stay in.
        filtered = [o for o in filtered if parse_price(o.get("price")) == 0 or low <= parse_price(o.get("price")) <= high]

    budget_max = preferences.get("budget_max")
    if budget_max:
        try:
            ceiling = float(budget_max)
        except (TypeError, ValueError) as e:
            raise BookingValidationError(f"Invalid budget_max {budget_max!r}") from e
        filtered = [o for o in filtered if parse_price(o.get("price")) == 0 or parse_price(o.get("price")) <= ceiling]

    level = (preferences.get("experience_level") or "").lower()
    keywords = LEVEL_KEYWORDS.get(level, ())
    if keywords:
        matching = [o for o in filtered if any(kw in _search_text(o) for kw in keywords)]
        if len(matching) >= 2:
            filtered = matching

    return filtered


def rank_by_goal(offerings: TabDataset, goal: str | None) -> list[tuple[dict[str, str], int]]:
    """Score offerings by keyword overlap with the goal; stable for ties."""
    if not goal:
        return [(o, 0) for o in offerings]
    wanted = _tokens(goal)
    scored = [(o, len(wanted & _tokens(_search_text(o)))) for o in offerings]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


class RecommendationsUseCase:
    def __init__(self, gateway: DataGateway) -> None:
        self._gateway = gateway
        self._logger = logging.getLogger(__name__)

    def execute(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        goal = first_value(params, "goal")
        category = first_value(params, "category")

        if not goal and not category:
            defaults = {f["name"]: str(params.get(f["name"]) or "") for f in PREFERENCE_FIELDS}
            return FunctionCallResult.ok(
                {"needs_preferences": True, "fields": PREFERENCE_FIELDS},
                message="I'd love to help you find the perfect option! Let me ask you a few quick questions.",
                components=[
                    {
                        "type": "PreferencesForm",
                        "props": {"fields": PREFERENCE_FIELDS, "defaultValues": defaults},
                    }
                ],
                awaiting_input=True,
            )

        offering_type = (first_value(params, "offering_type") or "both").lower()
        if offering_type not in ("services", "products", "both"):
            raise BookingValidationError("offering_type must be one of: services, products, both")
        try:
            limit = int(params.get("limit") or 3)
        except (TypeError, ValueError) as e:
            raise BookingValidationError(f"Invalid limit {params.get('limit')!r}") from e

        offerings: TabDataset = []
        if offering_type in ("services", "both"):
            offerings += [
                {**s, "_type": "service", "_name": s.get("serviceName") or s.get("name", "")}
                for s in self._load(store_id, SERVICES_TAB)
            ]
        if offering_type in ("products", "both"):
            offerings += [
                {**p, "_type": "product", "_name": p.get("name", "")} for p in self._load(store_id, PRODUCTS_TAB)
            ]
        if not offerings:
            raise NotFoundError(
                "No offerings available to recommend. Please ensure your sheet has Services or Products data."
            )

        preferences = {
            "budget": first_value(params, "budget"),
            "budget_max": params.get("budget_max"),
            "experience_level": first_value(params, "experience_level"),
            "category": category,
        }
        filtered = apply_preference_filters(offerings, preferences)
        ranked = rank_by_goal(filtered, goal)[: max(limit, 0)]
        picks = [item for item, _ in ranked]
        self._logger.info(
            "Recommendations ranked",
            extra={"store_id": store_id, "total": len(offerings), "filtered": len(filtered), "returned": len(picks)},
        )

        message = (
            f"Based on your preferences, here are my top {len(picks)} recommendation{'s' if len(picks) > 1 else ''}!"
            if picks
            else "I couldn't find anything matching those preferences. Try adjusting your criteria."
        )
        return FunctionCallResult.ok(
            {
                "recommendations": picks,
                "count": len(picks),
                "preferences_used": {
                    **preferences,
                    "goal": goal,
                    "time_preference": first_value(params, "time_preference"),
                },
                "total_available": len(offerings),
            },
            message=message,
            components=[{"type": "RecommendationList", "props": {"recommendations": picks}}] if picks else [],
        )

    def _load(self, store_id: str, tab: str) -> TabDataset:
        try:
            return self._gateway.read(store_id, tab)
        except StorebotError as e:
            self._logger.warning("Offerings tab unavailable", extra={"store_id": store_id, "tab": tab, "error": e.message})
            return []

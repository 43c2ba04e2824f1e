from __future__ import annotations

import re
from typing import Any, Mapping

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and bool(EMAIL_RE.match(str(value).strip()))


def missing_fields(params: Mapping[str, Any], required: tuple[str, ...] | list[str]) -> list[str]:
    return [name for name in required if not str(params.get(name) or "").strip()]


def first_value(params: Mapping[str, Any], *names: str) -> str | None:
    """First non-empty value among aliased parameter names."""
    for name in names:
        value = params.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def matches_ci(left: str | None, right: str | None) -> bool:
    return bool(left) and bool(right) and str(left).strip().lower() == str(right).strip().lower()


def parse_price(value: str | None) -> float:
    text = re.sub(r"[^0-9.]", "", str(value or ""))
    try:
        return float(text) if text else 0.0
    except ValueError:
        return 0.0

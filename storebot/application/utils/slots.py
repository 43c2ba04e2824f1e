from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping

DEFAULT_SLOTS = ("09:00", "10:00", "11:00", "13:00", "14:00", "15:00", "16:00")

CLOSED_MARKERS = {"true", "yes", "y", "1", "x", "closed"}


def is_closed(hours_row: Mapping[str, str] | None) -> bool:
    """A Hours row marks a closed day with `closed` truthy or `isOpen` = No."""
    if not hours_row:
        return False
    closed = str(hours_row.get("closed", "")).strip().lower()
    if closed in CLOSED_MARKERS:
        return True
    is_open = str(hours_row.get("isOpen", "")).strip().lower()
    return is_open in {"no", "false", "n", "0"}


def parse_duration_minutes(value: str | None, default: int = 60) -> int:
    """'60', '60 minutes', '1.5 hours', '90 min' -> minutes."""
    text = str(value or "").strip().lower()
    if not text:
        return default
    number = ""
    for ch in text:
        if ch.isdigit() or (ch == "." and "." not in number):
            number += ch
        elif number:
            break
    if not number:
        return default
    amount = float(number)
    if "hour" in text or text.endswith("h"):
        amount *= 60
    minutes = int(round(amount))
    return minutes if minutes > 0 else default


def _to_minutes(value: str) -> int | None:
    text = str(value or "").strip().lower()
    if not text:
        return None
    suffix = None
    if text.endswith(("am", "pm")):
        suffix = text[-2:]
        text = text[:-2].strip()
    parts = text.split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return None
    if suffix == "pm" and hour != 12:
        hour += 12
    elif suffix == "am" and hour == 12:
        hour = 0
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour * 60 + minute


class SlotStrategy(ABC):
    @abstractmethod
    def candidate_slots(self, service: Mapping[str, str], hours_row: Mapping[str, str] | None) -> list[str]:
        """Bookable start times (HH:MM) for one service on one open day, before removing booked ones."""
        raise NotImplementedError


class FixedSlotStrategy(SlotStrategy):
    """Same slot list every open day, regardless of service duration or opening hours."""

    def __init__(self, slots: tuple[str, ...] | list[str] = DEFAULT_SLOTS) -> None:
        self._slots = list(slots)

    def candidate_slots(self, service: Mapping[str, str], hours_row: Mapping[str, str] | None) -> list[str]:
        return list(self._slots)


class HoursSlotStrategy(SlotStrategy):
    """
    Slots every `step_minutes` between the day's openTime and closeTime, keeping
    only starts where the service (duration column) finishes before closing.
    Falls back to the fixed list when the Hours row has no usable times.
    """

    def __init__(self, step_minutes: int = 60, fallback: SlotStrategy | None = None) -> None:
        self._step = step_minutes
        self._fallback = fallback or FixedSlotStrategy()

    def candidate_slots(self, service: Mapping[str, str], hours_row: Mapping[str, str] | None) -> list[str]:
        if not hours_row:
            return self._fallback.candidate_slots(service, hours_row)
        open_at = _to_minutes(hours_row.get("openTime", "") or hours_row.get("open", ""))
        close_at = _to_minutes(hours_row.get("closeTime", "") or hours_row.get("close", ""))
        if open_at is None or close_at is None or close_at <= open_at:
            return self._fallback.candidate_slots(service, hours_row)

        duration = parse_duration_minutes(service.get("duration"))
        slots: list[str] = []
        start = open_at
        while start + duration <= close_at:
            slots.append(f"{start // 60:02d}:{start % 60:02d}")
            start += self._step
        return slots


def build_slot_strategy(name: str) -> SlotStrategy:
    if name.lower() == "hours":
        return HoursSlotStrategy()
    return FixedSlotStrategy()

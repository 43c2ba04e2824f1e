from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone as dt_timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from storebot.application.exceptions import (
    BookingValidationError,
    CacheInvalidationError,
    NotFoundError,
    SlotNotAvailableError,
    TabNotFoundError,
)
from storebot.application.use_cases.data_gateway import DataGateway
from storebot.application.utils.date_parser import normalize_time, parse_iso_date, weekday_name
from storebot.application.utils.slots import FixedSlotStrategy, SlotStrategy, is_closed
from storebot.application.utils.validators import first_value, is_valid_email, matches_ci, missing_fields
from storebot.domain.entities.booking import Booking
from storebot.domain.entities.error_kind import ErrorKind
from storebot.domain.entities.function_result import FunctionCallResult
from storebot.domain.entities.tab_dataset import (
    BOOKINGS_TAB,
    HOURS_TAB,
    SERVICES_TAB,
    TabDataset,
    TabRow,
)

BOOKING_REQUIRED_FIELDS = ("service_name", "date", "time", "customer_name", "customer_email")


@dataclass(frozen=True)
class Availability:
    service: TabRow
    service_name: str
    date: date
    day: str
    available_slots: list[str]
    booked_times: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service_name,
            "date": self.date.isoformat(),
            "day": self.day,
            "available_slots": list(self.available_slots),
            "existing_bookings": list(self.booked_times),
            "existing_booking_count": len(self.booked_times),
            "duration": self.service.get("duration") or "60 minutes",
        }


def service_display_name(row: TabRow) -> str:
    return row.get("serviceName") or row.get("name") or row.get("service") or ""


def find_service(services: TabDataset, service_name: str) -> TabRow | None:
    for row in services:
        if matches_ci(service_display_name(row), service_name):
            return row
    return None


class BookingUseCase:
    """Availability and booking rules over the Services, Bookings and Hours tabs."""

    def __init__(
        self,
        gateway: DataGateway,
        slot_strategy: SlotStrategy | None = None,
        timezone: ZoneInfo | None = None,
        booking_slot_days: int = 7,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._gateway = gateway
        self._slots = slot_strategy or FixedSlotStrategy()
        self._timezone = timezone or ZoneInfo("UTC")
        self._booking_slot_days = booking_slot_days
        self._clock = clock or (lambda: datetime.now(dt_timezone.utc))
        self._logger = logging.getLogger(__name__)

    def check_availability(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        service_name = first_value(params, "service_name", "serviceName")
        date_value = first_value(params, "date")
        missing = [n for n, v in (("service_name", service_name), ("date", date_value)) if not v]
        if missing:
            raise BookingValidationError(f"Missing required fields: {', '.join(missing)}")

        availability = self._availability(store_id, service_name, date_value)
        self._logger.info(
            "Availability computed",
            extra={
                "store_id": store_id,
                "service": availability.service_name,
                "date": availability.date.isoformat(),
                "slots": len(availability.available_slots),
            },
        )
        return FunctionCallResult.ok(
            availability.to_dict(),
            message=f"{len(availability.available_slots)} slots available on {availability.day}.",
        )

    def create_booking(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        fields = {
            "service_name": first_value(params, "service_name", "serviceName"),
            "date": first_value(params, "date"),
            "time": first_value(params, "time"),
            "customer_name": first_value(params, "customer_name", "customerName", "name"),
            "customer_email": first_value(params, "customer_email", "customerEmail", "email"),
            "customer_phone": first_value(params, "customer_phone", "customerPhone", "phone"),
        }
        missing = missing_fields(fields, BOOKING_REQUIRED_FIELDS)
        if missing:
            raise BookingValidationError(
                f"Missing required fields: {', '.join(missing)}. Please provide all booking details."
            )
        if not is_valid_email(fields["customer_email"]):
            raise BookingValidationError("Invalid email format. Please provide a valid email address.")

        time_value = normalize_time(fields["time"])
        if time_value is None:
            raise BookingValidationError(f"Invalid time {fields['time']!r}. Use HH:MM (24-hour).")

        # Never trust slots from an earlier response; Bookings is re-read from the source.
        availability = self._availability(store_id, fields["service_name"], fields["date"], fresh=True)
        if time_value not in availability.available_slots:
            available = ", ".join(availability.available_slots) or "none"
            raise SlotNotAvailableError(
                f"{ErrorKind.NOT_AVAILABLE.value}: Sorry, {time_value} on {availability.date.isoformat()} "
                f"is already booked. Available times: {available}"
            )

        booking = Booking(
            service_name=availability.service_name,
            date=availability.date.isoformat(),
            time=time_value,
            customer_name=fields["customer_name"],
            customer_email=fields["customer_email"],
            customer_phone=fields["customer_phone"],
            status="confirmed",
            created_at=self._clock().isoformat(),
            confirmation=f"CONFIRMED-{uuid.uuid4().hex[:10].upper()}",
        )
        try:
            self._gateway.append(store_id, BOOKINGS_TAB, booking.to_row())
        except CacheInvalidationError as e:
            # The row is already in the sheet; the gateway keeps the key dirty until the cache recovers.
            self._logger.warning(
                "Booking written but cache invalidation failed",
                extra={"store_id": store_id, "tab": BOOKINGS_TAB, "error": e.message},
            )
        self._logger.info(
            "Booking created",
            extra={"store_id": store_id, "service": booking.service_name, "date": booking.date, "time": booking.time},
        )
        return FunctionCallResult.ok(
            {"booking": booking.to_dict()},
            message=f"Booking confirmed for {booking.service_name} on {booking.date} at {booking.time}",
        )

    def get_booking_slots(self, params: dict[str, Any], store_id: str) -> FunctionCallResult:
        """Services plus the next few days of availability, for the booking calendar widget."""
        services = self._gateway.read(store_id, SERVICES_TAB)
        names = [service_display_name(s) for s in services if service_display_name(s)]
        prefill = {
            k: params[k]
            for k in ("prefill_date", "prefill_time", "prefill_name", "prefill_email")
            if params.get(k)
        }
        service_name = first_value(params, "service_name", "serviceName", "name")

        if not service_name:
            return FunctionCallResult.ok(
                {"services": names, "prefill": prefill},
                message="Which service would you like to book?",
                components=[{"type": "BookingCalendar", "props": {"services": names, "prefill": prefill}}],
                awaiting_input=True,
            )

        service = find_service(services, service_name)
        if service is None:
            raise NotFoundError(f'Service "{service_name}" not found. Available services: {", ".join(names)}')

        bookings = self._read_bookings(store_id)
        hours = self._read_hours(store_id)
        start = self._today()
        prefill_date = parse_iso_date(prefill.get("prefill_date", "")) if prefill.get("prefill_date") else None
        if prefill_date is not None and prefill_date > start:
            start = prefill_date

        days = []
        for offset in range(self._booking_slot_days):
            day = start + timedelta(days=offset)
            hours_row = self._hours_for(hours, day)
            if is_closed(hours_row):
                days.append({"date": day.isoformat(), "day": weekday_name(day), "closed": True, "available_slots": []})
                continue
            availability = self._compute(service, bookings, hours_row, day)
            days.append(
                {
                    "date": day.isoformat(),
                    "day": availability.day,
                    "closed": False,
                    "available_slots": availability.available_slots,
                }
            )

        display = service_display_name(service)
        return FunctionCallResult.ok(
            {"service": display, "days": days, "services": names, "prefill": prefill},
            message=f"Pick a time for {display}.",
            components=[{"type": "BookingCalendar", "props": {"service": display, "days": days, "prefill": prefill}}],
        )

    def _availability(self, store_id: str, service_name: str, date_value: str, fresh: bool = False) -> Availability:
        day = parse_iso_date(date_value)
        if day is None:
            raise BookingValidationError(f"Invalid date {date_value!r}. Use YYYY-MM-DD.")

        services = self._gateway.read(store_id, SERVICES_TAB)
        service = find_service(services, service_name)
        if service is None:
            available = ", ".join(service_display_name(s) for s in services if service_display_name(s))
            raise NotFoundError(f'Service "{service_name}" not found. Available services: {available}')

        bookings = self._read_bookings(store_id, fresh=fresh)
        hours_row = self._hours_for(self._read_hours(store_id), day)
        if is_closed(hours_row):
            raise SlotNotAvailableError(f"Store is closed on {weekday_name(day)}")

        return self._compute(service, bookings, hours_row, day)

    def _compute(self, service: TabRow, bookings: TabDataset, hours_row: TabRow | None, day: date) -> Availability:
        name = service_display_name(service)
        booked = []
        for row in bookings:
            if row.get("date", "").strip() != day.isoformat():
                continue
            if not matches_ci(row.get("service") or row.get("serviceName"), name):
                continue
            if row.get("status", "").strip().lower() == "cancelled":
                continue
            booked_time = normalize_time(row.get("time", ""))
            if booked_time:
                booked.append(booked_time)

        candidates = self._slots.candidate_slots(service, hours_row)
        available = [slot for slot in candidates if slot not in booked]
        return Availability(
            service=service,
            service_name=name,
            date=day,
            day=weekday_name(day),
            available_slots=available,
            booked_times=sorted(set(booked)),
        )

    def _read_bookings(self, store_id: str, fresh: bool = False) -> TabDataset:
        try:
            return self._gateway.read(store_id, BOOKINGS_TAB, cache_type="none" if fresh else None)
        except TabNotFoundError:
            return []

    def _read_hours(self, store_id: str) -> TabDataset:
        try:
            return self._gateway.read(store_id, HOURS_TAB)
        except TabNotFoundError:
            return []

    @staticmethod
    def _hours_for(hours: TabDataset, day: date) -> TabRow | None:
        name = weekday_name(day)
        for row in hours:
            if matches_ci(row.get("day"), name):
                return row
        return None

    def _today(self) -> date:
        return self._clock().astimezone(self._timezone).date()

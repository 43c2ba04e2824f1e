from __future__ import annotations

from storebot.application.utils.slots import DEFAULT_SLOTS, HoursSlotStrategy

from conftest import STORE


def test_closed_day_reports_store_closed(executor):
    """2025-03-10 is a Monday and the Hours tab marks Monday closed."""
    result = executor.execute("check_availability", {"service_name": "Haircut", "date": "2025-03-10"}, STORE)

    assert result.success is False
    assert result.error == "Store is closed on Monday"
    assert result.error_kind.value == "NotAvailable"


def test_open_day_without_bookings_offers_all_fixed_slots(executor):
    """Test that an open day with no bookings offers all seven fixed slots."""
    result = executor.execute("check_availability", {"service_name": "haircut", "date": "2025-03-11"}, STORE)

    assert result.success is True
    assert result.data["available_slots"] == list(DEFAULT_SLOTS)
    assert result.data["day"] == "Tuesday"
    assert len(result.data["available_slots"]) == 7


def test_booked_times_are_excluded_from_slots(executor, source):
    """Test that confirmed bookings remove their slot and cancelled ones do not."""
    source.append_row(STORE, "Bookings", {"service": "Haircut", "date": "2025-03-11", "time": "10:00", "status": "confirmed"})
    source.append_row(STORE, "Bookings", {"service": "Haircut", "date": "2025-03-11", "time": "11:00", "status": "cancelled"})

    result = executor.execute("check_availability", {"service_name": "Haircut", "date": "2025-03-11"}, STORE)

    assert "10:00" not in result.data["available_slots"]
    assert "11:00" in result.data["available_slots"]


def test_unknown_service_lists_available_names(executor):
    """Test that an unknown service is NotFound and names the real services."""
    result = executor.execute("check_availability", {"service_name": "Massage", "date": "2025-03-11"}, STORE)

    assert result.success is False
    assert result.error_kind.value == "NotFound"
    assert "Haircut" in result.error


def test_invalid_date_is_a_validation_error(executor):
    """Test that an unparseable date is a ValidationError."""
    result = executor.execute("check_availability", {"service_name": "Haircut", "date": "next-ish"}, STORE)
    assert result.error_kind.value == "ValidationError"


def test_booking_succeeds_then_same_slot_is_not_available(executor, source):
    """Test that booking a slot twice fails the second time without a second row."""
    params = {
        "service_name": "Haircut",
        "date": "2025-03-11",
        "time": "09:00",
        "customer_name": "Ana",
        "customer_email": "ana@example.com",
    }

    first = executor.execute("create_booking", params, STORE)
    assert first.success is True
    booking = first.data["booking"]
    assert booking["status"] == "confirmed"
    assert booking["confirmation"].startswith("CONFIRMED-")
    assert source.rows(STORE, "Bookings")[0]["customerName"] == "Ana"

    second = executor.execute("create_booking", params, STORE)
    assert second.success is False
    assert "NotAvailable" in second.error
    assert len(source.rows(STORE, "Bookings")) == 1


def test_booking_revalidates_against_source_not_cache(executor, source, gateway):
    """Test that create_booking sees a slot taken after the Bookings cache was warmed."""
    # Warm the Bookings cache, then consume the slot behind the cache's back.
    gateway.read(STORE, "Bookings")
    source.append_row(STORE, "Bookings", {"service": "Haircut", "date": "2025-03-11", "time": "13:00", "status": "confirmed"})

    result = executor.execute(
        "create_booking",
        {
            "service_name": "Haircut",
            "date": "2025-03-11",
            "time": "1pm",
            "customer_name": "Bo",
            "email": "bo@example.com",
        },
        STORE,
    )

    assert result.success is False
    assert result.error_kind.value == "NotAvailable"


def test_invalid_email_appends_nothing(executor, source):
    """Test that an invalid email is rejected before any row is written."""
    result = executor.execute(
        "create_booking",
        {
            "service_name": "Haircut",
            "date": "2025-03-11",
            "time": "09:00",
            "customer_name": "Ana",
            "customer_email": "abc",
        },
        STORE,
    )

    assert result.success is False
    assert result.error_kind.value == "ValidationError"
    assert source.rows(STORE, "Bookings") == []


def test_missing_fields_are_listed(executor):
    """Test that every missing booking field is named in the error."""
    result = executor.execute("create_booking", {"service_name": "Haircut", "date": "2025-03-11"}, STORE)

    assert result.error_kind.value == "ValidationError"
    assert "time" in result.error
    assert "customer_email" in result.error


def test_booking_slots_without_service_asks_for_one(executor):
    """Test that the calendar asks for a service when none is given."""
    result = executor.execute("get_booking_slots", {}, STORE)

    assert result.success is True
    assert result.awaiting_input is True
    assert result.components[0]["type"] == "BookingCalendar"
    assert "Haircut" in result.data["services"]


def test_booking_slots_mark_closed_days(executor):
    """Test that closed days appear in the calendar with no slots."""
    result = executor.execute("get_booking_slots", {"service_name": "Haircut", "prefill_date": "2025-03-10"}, STORE)

    days = result.data["days"]
    assert len(days) == 7
    assert days[0] == {"date": "2025-03-10", "day": "Monday", "closed": True, "available_slots": []}
    assert days[1]["available_slots"] == list(DEFAULT_SLOTS)


def test_hours_strategy_uses_open_close_and_duration():
    """Test that the hours strategy steps from open to close by service duration."""
    strategy = HoursSlotStrategy()
    slots = strategy.candidate_slots(
        {"serviceName": "Haircut", "duration": "60 minutes"},
        {"day": "Tuesday", "openTime": "09:00", "closeTime": "12:00"},
    )
    assert slots == ["09:00", "10:00", "11:00"]

"""
Tests for translating marketplace JSON into domain models.
"""

import logging
from datetime import date, time

import pytest

from slotengine.adapters.payloads import (
    bookings_on,
    parse_booking,
    parse_bookings,
    parse_day_schedule,
    parse_provider_availability,
    parse_schedule_exceptions,
    parse_weekly_schedule,
)
from slotengine.domain.exceptions import InvalidScheduleError, InvalidTimeFormat
from slotengine.domain.models import BookingStatus


class TestParseDaySchedule:
    """Tests for parse_day_schedule."""

    def test_current_field_names(self):
        entry = {
            "isEnabled": True,
            "startTime": "09:00",
            "endTime": "17:00",
            "slotDuration": 45,
            "bufferTime": 15,
            "breakTimes": [{"start": "12:00", "end": "13:00"}],
        }

        day = parse_day_schedule(entry)

        assert day.start_time == time(9, 0)
        assert day.end_time == time(17, 0)
        assert day.stride == 60
        assert [(b.start, b.end) for b in day.break_times] == [(time(12, 0), time(13, 0))]

    def test_legacy_field_names(self):
        """Opening/closing time, single break and 'duration' as written by the old form."""
        entry = {
            "openingTime": "8:00 AM",
            "closingTime": "5:00 PM",
            "breakStartTime": "12:00 PM",
            "breakEndTime": "1:00 PM",
            "duration": 90,
        }

        day = parse_day_schedule(entry)

        assert day.start_time == time(8, 0)
        assert day.end_time == time(17, 0)
        assert day.slot_duration == 90
        assert day.buffer_time == 0
        assert day.break_times[0].start == time(12, 0)

    def test_defaults(self):
        day = parse_day_schedule({"startTime": "09:00", "endTime": "10:00"})

        assert day.is_enabled
        assert day.slot_duration == 60
        assert day.buffer_time == 0
        assert day.break_times == []

    def test_malformed_time_raises(self):
        with pytest.raises(InvalidTimeFormat):
            parse_day_schedule({"startTime": "nine", "endTime": "17:00"})

    def test_rule_violation_raises(self):
        with pytest.raises(InvalidScheduleError):
            parse_day_schedule({"startTime": "17:00", "endTime": "09:00"})

    def test_missing_hours_raise(self):
        with pytest.raises(KeyError):
            parse_day_schedule({"endTime": "17:00"})


class TestParseWeeklySchedule:
    """Tests for parse_weekly_schedule."""

    def test_list_form(self):
        raw = [
            {"dayOfWeek": 0, "startTime": "09:00", "endTime": "17:00"},
            {"dayOfWeek": 5, "isEnabled": False},
        ]

        weekly = parse_weekly_schedule(raw)

        assert set(weekly.days) == {0}

    def test_mapping_form_with_day_names(self):
        raw = {
            "Sunday": {"openingTime": "8:00 AM", "closingTime": "1:00 PM"},
            "thursday": {"openingTime": "8:00 AM", "closingTime": "1:00 PM"},
            "2": {"startTime": "09:00", "endTime": "10:00"},
        }

        weekly = parse_weekly_schedule(raw)

        assert set(weekly.days) == {0, 2, 4}

    def test_invalid_day_is_closed_not_defaulted(self, caplog):
        raw = [
            {"dayOfWeek": 0, "startTime": "09:00", "endTime": "17:00"},
            {"dayOfWeek": 1, "startTime": "17:00", "endTime": "09:00"},
            {"dayOfWeek": 2, "startTime": "bogus", "endTime": "17:00"},
            {"dayOfWeek": 9, "startTime": "09:00", "endTime": "17:00"},
        ]

        with caplog.at_level(logging.WARNING):
            weekly = parse_weekly_schedule(raw, provider_id="p1")

        assert set(weekly.days) == {0}
        assert "treated as closed" in caplog.text

    def test_string_flags_are_read_as_booleans(self, caplog):
        raw = [
            {"dayOfWeek": 0, "isEnabled": "true", "startTime": "09:00", "endTime": "17:00"},
            {"dayOfWeek": 1, "isEnabled": "false", "startTime": "09:00", "endTime": "17:00"},
            {"dayOfWeek": 2, "isEnabled": "FALSE", "startTime": "09:00", "endTime": "17:00"},
            {"dayOfWeek": 3, "isEnabled": "maybe", "startTime": "09:00", "endTime": "17:00"},
        ]

        with caplog.at_level(logging.WARNING):
            weekly = parse_weekly_schedule(raw, provider_id="p1")

        assert set(weekly.days) == {0}
        assert "Expected a boolean" in caplog.text

    def test_missing_schedule_is_empty(self):
        assert parse_weekly_schedule(None).days == {}


class TestParseScheduleExceptions:
    """Tests for parse_schedule_exceptions."""

    def test_closed_and_custom_hours(self):
        raw = [
            {"date": "16/12/2025", "isClosed": True, "reason": "National Day"},
            {"date": "2025-11-18", "isClosed": False, "startTime": "13:00", "endTime": "18:00"},
        ]

        closed, custom = parse_schedule_exceptions(raw)

        assert closed.date == date(2025, 12, 16)
        assert closed.is_closed
        assert closed.reason == "National Day"
        assert custom.date == date(2025, 11, 18)
        assert not custom.is_closed
        assert custom.day_schedule.start_time == time(13, 0)

    def test_exception_without_hours_closes_day(self):
        (exception,) = parse_schedule_exceptions([{"date": "2025-11-18"}])

        assert exception.is_closed

    def test_invalid_hours_close_day(self):
        raw = [{"date": "2025-11-18", "isClosed": False, "startTime": "18:00", "endTime": "13:00"}]

        (exception,) = parse_schedule_exceptions(raw)

        assert exception.is_closed
        assert exception.reason == "invalid schedule"

    def test_string_closed_flag(self):
        raw = [{"date": "2025-11-18", "isClosed": "false", "startTime": "13:00", "endTime": "18:00"}]

        (exception,) = parse_schedule_exceptions(raw)

        assert not exception.is_closed

    def test_unreadable_date_is_dropped(self):
        raw = [{"date": "someday", "isClosed": True}, {"isClosed": True}]

        assert parse_schedule_exceptions(raw) == []

    def test_month_first_dates(self):
        (exception,) = parse_schedule_exceptions([{"date": "12/16/2025"}], day_first=False)

        assert exception.date == date(2025, 12, 16)


class TestParseProviderAvailability:
    """Tests for parse_provider_availability."""

    def test_settings_defaults(self):
        availability = parse_provider_availability({"weeklySchedule": []}, provider_id="p1")

        assert availability.provider_id == "p1"
        assert availability.settings.timezone == "Asia/Bahrain"
        assert availability.settings.advance_booking_days == 30

    def test_populated_provider_reference(self):
        data = {
            "provider": {"_id": "p-7", "name": "Corner Salon"},
            "timezone": "UTC",
            "advanceBookingDays": 3,
            "weeklySchedule": [{"dayOfWeek": 1, "startTime": "09:00", "endTime": "12:00"}],
        }

        availability = parse_provider_availability(data)

        assert availability.provider_id == "p-7"
        assert availability.settings.timezone == "UTC"
        assert availability.settings.advance_booking_days == 3
        assert availability.resolve(date(2025, 11, 17)).end_time == time(12, 0)

    def test_unknown_timezone_raises(self):
        """A stored timezone pendulum does not know is rejected at load time."""
        with pytest.raises(ValueError, match="Unknown timezone 'Mars/Olympus'"):
            parse_provider_availability({"timezone": "Mars/Olympus", "weeklySchedule": []}, provider_id="p1")

    def test_non_object_raises(self):
        with pytest.raises(ValueError, match="JSON object"):
            parse_provider_availability([])


class TestParseBookings:
    """Tests for booking records."""

    def test_field_variants(self):
        booking = parse_booking(
            {
                "_id": "b-1",
                "provider": {"_id": "p1"},
                "date": "2025-11-17T00:00:00.000Z",
                "timeSlot": "2:00 PM",
                "status": "Confirmed",
            }
        )

        assert booking.booking_id == "b-1"
        assert booking.provider_id == "p1"
        assert booking.date == date(2025, 11, 17)
        assert booking.start_time == time(14, 0)
        assert booking.duration is None
        assert booking.status is BookingStatus.CONFIRMED

    def test_status_defaults_to_pending(self):
        booking = parse_booking({"date": "2025-11-17", "startTime": "09:00"}, provider_id="p1")

        assert booking.status is BookingStatus.PENDING
        assert booking.provider_id == "p1"

    def test_bad_records_are_skipped(self, caplog):
        raw = {
            "bookings": [
                {"providerId": "p1", "date": "2025-11-17", "startTime": "09:00", "duration": 30},
                {"providerId": "p1", "date": "2025-11-17", "startTime": "25:00"},
                {"providerId": "p1", "startTime": "11:00"},
            ]
        }

        with caplog.at_level(logging.WARNING):
            bookings = parse_bookings(raw)

        assert len(bookings) == 1
        assert bookings[0].duration == 30
        assert "skipping unreadable booking" in caplog.text

    def test_unknown_status_keeps_slot_occupied(self, caplog):
        """A status outside the known set still blocks; only cancelled frees."""
        with caplog.at_level(logging.WARNING):
            booking = parse_booking(
                {"_id": "b-9", "providerId": "p1", "date": "17/11/2025", "startTime": "10:00", "status": "rescheduled"}
            )

        assert booking.status is BookingStatus.PENDING
        assert booking.occupies_calendar
        assert "unknown status" in caplog.text

        cancelled = parse_booking({"date": "2025-11-17", "startTime": "10:00", "status": " CANCELLED "})
        assert not cancelled.occupies_calendar

    def test_non_list_raises(self):
        with pytest.raises(ValueError, match="JSON list"):
            parse_bookings("nope")

    def test_bookings_on(self):
        bookings = parse_bookings(
            [
                {"providerId": "p1", "date": "2025-11-17", "startTime": "09:00"},
                {"providerId": "p1", "date": "2025-11-18", "startTime": "09:00"},
                {"providerId": "p2", "date": "2025-11-17", "startTime": "09:00"},
            ]
        )

        kept = bookings_on(bookings, "p1", date(2025, 11, 17))

        assert [(b.provider_id, b.date) for b in kept] == [("p1", date(2025, 11, 17))]

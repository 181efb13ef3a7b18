"""
Tests for domain models.
"""

from datetime import date, time

import pytest

from slotengine.domain.exceptions import InvalidScheduleError
from slotengine.domain.models import (
    AvailabilitySettings,
    Booking,
    BookingStatus,
    BreakTime,
    DaySchedule,
    ProviderAvailability,
    ScheduleException,
    Slot,
    WeeklySchedule,
    resolve_day_schedule,
)


def _workday(**overrides) -> DaySchedule:
    values = dict(
        is_enabled=True,
        start_time=time(9, 0),
        end_time=time(17, 0),
        slot_duration=60,
        buffer_time=0,
        break_times=[BreakTime(time(12, 0), time(13, 0))],
    )
    values.update(overrides)
    return DaySchedule(**values)


class TestBreakTime:
    """Tests for BreakTime model."""

    def test_invalid_break_raises_error(self):
        """Test that a break ending before it starts raises ValueError."""
        with pytest.raises(ValueError, match="must be before break end"):
            BreakTime(start=time(13, 0), end=time(12, 0))

    def test_overlaps(self):
        """Any intersection counts, touching endpoints do not."""
        lunch = BreakTime(time(12, 0), time(13, 0))

        assert lunch.overlaps(time(11, 30), time(12, 30))
        assert lunch.overlaps(time(12, 15), time(12, 45))
        assert lunch.overlaps(time(11, 0), time(14, 0))
        assert not lunch.overlaps(time(11, 0), time(12, 0))
        assert not lunch.overlaps(time(13, 0), time(14, 0))


class TestDaySchedule:
    """Tests for DaySchedule validation."""

    def test_valid_schedule_passes(self):
        _workday().validate()

    def test_stride_includes_buffer(self):
        assert _workday(slot_duration=45, buffer_time=15).stride == 60

    def test_start_after_end_is_invalid(self):
        with pytest.raises(InvalidScheduleError, match="must be before end time"):
            _workday(start_time=time(17, 0), end_time=time(9, 0), break_times=[]).validate()

    def test_non_positive_duration_and_negative_buffer_are_invalid(self):
        with pytest.raises(InvalidScheduleError) as excinfo:
            _workday(slot_duration=0, buffer_time=-5).validate()

        assert "slot duration" in str(excinfo.value)
        assert "buffer time" in str(excinfo.value)

    def test_break_outside_window_is_invalid(self):
        schedule = _workday(break_times=[BreakTime(time(8, 0), time(9, 30))])

        with pytest.raises(InvalidScheduleError, match="strictly inside"):
            schedule.validate()

    def test_overlapping_breaks_are_invalid(self):
        schedule = _workday(
            break_times=[
                BreakTime(time(12, 0), time(13, 0)),
                BreakTime(time(12, 30), time(14, 0)),
            ]
        )

        with pytest.raises(InvalidScheduleError, match="overlap"):
            schedule.validate()


class TestResolveDaySchedule:
    """Tests for resolving the hours that apply on a date."""

    def setup_method(self):
        self.weekly = WeeklySchedule(
            days={
                0: _workday(),                  # Sunday
                1: _workday(is_enabled=False),  # Monday
            }
        )

    def test_weekly_entry_is_used(self):
        sunday = date(2025, 11, 16)
        assert resolve_day_schedule(self.weekly, [], sunday) is self.weekly.days[0]

    def test_disabled_day_is_closed(self):
        monday = date(2025, 11, 17)
        assert resolve_day_schedule(self.weekly, [], monday) is None

    def test_missing_day_is_closed(self):
        tuesday = date(2025, 11, 18)
        assert resolve_day_schedule(self.weekly, [], tuesday) is None

    def test_closed_exception_wins(self):
        sunday = date(2025, 11, 16)
        exceptions = [ScheduleException(date=sunday, is_closed=True, reason="Holiday")]

        assert resolve_day_schedule(self.weekly, exceptions, sunday) is None

    def test_custom_hours_exception_wins(self):
        monday = date(2025, 11, 17)
        custom = _workday(start_time=time(13, 0), end_time=time(18, 0), break_times=[])
        exceptions = [ScheduleException(date=monday, is_closed=False, day_schedule=custom)]

        assert resolve_day_schedule(self.weekly, exceptions, monday) is custom

    def test_exception_on_other_date_is_ignored(self):
        sunday = date(2025, 11, 16)
        exceptions = [ScheduleException(date=date(2025, 11, 23), is_closed=True)]

        assert resolve_day_schedule(self.weekly, exceptions, sunday) is self.weekly.days[0]

    def test_open_exception_needs_hours(self):
        with pytest.raises(ValueError, match="needs custom hours"):
            ScheduleException(date=date(2025, 11, 16), is_closed=False)

    def test_provider_availability_resolve(self):
        availability = ProviderAvailability(provider_id="p1", weekly_schedule=self.weekly)
        assert availability.resolve(date(2025, 11, 16)) is self.weekly.days[0]

    def test_invalid_weekday_key(self):
        with pytest.raises(ValueError, match="between 0 and 6"):
            WeeklySchedule(days={7: _workday()})


class TestSettingsAndBookings:
    """Tests for AvailabilitySettings and Booking."""

    def test_negative_advance_booking_days(self):
        with pytest.raises(ValueError):
            AvailabilitySettings(advance_booking_days=-1)

    def test_cancelled_booking_does_not_occupy(self):
        booking = Booking("p1", date(2025, 11, 16), time(10, 0), 60, BookingStatus.CANCELLED)
        assert not booking.occupies_calendar

        for status in (BookingStatus.PENDING, BookingStatus.CONFIRMED,
                       BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED):
            assert Booking("p1", date(2025, 11, 16), time(10, 0), 60, status).occupies_calendar

    def test_span_uses_default_duration(self):
        booking = Booking("p1", date(2025, 11, 16), time(10, 0))
        assert booking.span_minutes(45) == (600, 645)

        booking = Booking("p1", date(2025, 11, 16), time(10, 0), duration=90)
        assert booking.span_minutes(45) == (600, 690)

    def test_status_values(self):
        assert BookingStatus("in-progress") is BookingStatus.IN_PROGRESS


class TestSlot:
    """Tests for Slot model."""

    def test_invalid_slot_raises_error(self):
        with pytest.raises(ValueError, match="must be before end time"):
            Slot(date=date(2025, 11, 16), start_time=time(10, 0), end_time=time(9, 0))

    def test_starting_at(self):
        slot = Slot.starting_at(date(2025, 11, 16), time(9, 30), 45)

        assert slot.end_time == time(10, 15)
        assert slot.duration_minutes() == 45

    def test_format_display(self):
        slot = Slot(date=date(2025, 11, 16), start_time=time(9, 0), end_time=time(10, 0))

        assert slot.format_display() == "Sunday, 16/11/2025 | 9:00 AM – 10:00 AM (60 min)"
        assert slot.format_display("24h", "iso") == "Sunday, 2025-11-16 | 09:00 – 10:00 (60 min)"

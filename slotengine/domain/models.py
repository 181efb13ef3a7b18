"""
Domain models for provider schedules, bookings and bookable slots.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Dict, List, Optional

from .exceptions import InvalidScheduleError
from .timeutils import (
    add_minutes,
    day_of_week,
    format_calendar_date,
    format_time_of_day,
    minutes_since_midnight,
)

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap in minutes; touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class BreakTime:
    """
    A break inside a working day, e.g. lunch.

    Invariant: start must be before end.
    """
    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Break start {self.start} must be before break end {self.end}")

    def overlaps(self, start: time, end: time) -> bool:
        """Check if [start, end) intersects this break at all."""
        return intervals_overlap(
            minutes_since_midnight(self.start),
            minutes_since_midnight(self.end),
            minutes_since_midnight(start),
            minutes_since_midnight(end),
        )

    def __str__(self) -> str:
        return f"{format_time_of_day(self.start)}-{format_time_of_day(self.end)}"


@dataclass
class DaySchedule:
    """
    Working hours of one day of the week (or of one exceptional date).
    """
    is_enabled: bool
    start_time: time
    end_time: time
    slot_duration: int = 60
    buffer_time: int = 0
    break_times: List[BreakTime] = field(default_factory=list)

    @property
    def stride(self) -> int:
        """Minutes between consecutive slot starts."""
        return self.slot_duration + self.buffer_time

    def validate(self) -> None:
        """
        Check the rules a stored schedule has to satisfy.

        Raises:
            InvalidScheduleError: Listing every rule the schedule breaks
        """
        problems: List[str] = []

        if self.start_time >= self.end_time:
            problems.append(
                f"start time {format_time_of_day(self.start_time)} must be before "
                f"end time {format_time_of_day(self.end_time)}"
            )
        if self.slot_duration <= 0:
            problems.append(f"slot duration must be positive, got {self.slot_duration}")
        if self.buffer_time < 0:
            problems.append(f"buffer time must not be negative, got {self.buffer_time}")

        for brk in self.break_times:
            if brk.start <= self.start_time or brk.end >= self.end_time:
                problems.append(f"break {brk} must lie strictly inside the working hours")

        ordered = sorted(self.break_times, key=lambda b: b.start)
        for previous, current in zip(ordered, ordered[1:]):
            if current.start < previous.end:
                problems.append(f"breaks {previous} and {current} overlap")

        if problems:
            raise InvalidScheduleError("; ".join(problems))

    def overlaps_break(self, start: time, end: time) -> bool:
        return any(brk.overlaps(start, end) for brk in self.break_times)


@dataclass
class ScheduleException:
    """
    Date-specific override of the weekly pattern.

    Either the provider is closed that day, or ``day_schedule`` replaces the
    weekly entry entirely.
    """
    date: date
    is_closed: bool = True
    day_schedule: Optional[DaySchedule] = None
    reason: str = ""

    def __post_init__(self):
        if not self.is_closed and self.day_schedule is None:
            raise ValueError(f"Exception for {self.date} needs custom hours when it is not closed")


@dataclass
class WeeklySchedule:
    """
    Recurring availability keyed by day of week (0=Sunday, 6=Saturday).

    A weekday without an entry is closed.
    """
    days: Dict[int, DaySchedule] = field(default_factory=dict)

    def __post_init__(self):
        invalid_days = [day for day in self.days if day not in range(7)]
        if invalid_days:
            raise ValueError(f"Day of week must be between 0 and 6, got {invalid_days}")

    def for_date(self, target: date) -> DaySchedule | None:
        return self.days.get(day_of_week(target))


@dataclass
class AvailabilitySettings:
    """Provider-wide booking settings."""
    timezone: str = "Asia/Bahrain"
    advance_booking_days: int = 30

    def __post_init__(self):
        if self.advance_booking_days < 0:
            raise ValueError(
                f"advance_booking_days must not be negative, got {self.advance_booking_days}"
            )


@dataclass
class ProviderAvailability:
    """Everything the store knows about when one provider can be booked."""
    provider_id: str
    weekly_schedule: WeeklySchedule
    exceptions: List[ScheduleException] = field(default_factory=list)
    settings: AvailabilitySettings = field(default_factory=AvailabilitySettings)

    def resolve(self, target: date) -> DaySchedule | None:
        return resolve_day_schedule(self.weekly_schedule, self.exceptions, target)


def resolve_day_schedule(
    weekly_schedule: WeeklySchedule,
    exceptions: List[ScheduleException],
    target: date,
) -> DaySchedule | None:
    """
    Work out which hours apply on ``target``.

    An exception for that exact date wins over the weekly pattern.
    Returns None when the provider is closed.
    """
    for exception in exceptions:
        if exception.date == target:
            if exception.is_closed or exception.day_schedule is None:
                return None
            schedule = exception.day_schedule
            break
    else:
        schedule = weekly_schedule.for_date(target)

    if schedule is None or not schedule.is_enabled:
        return None
    return schedule


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Booking:
    """
    An existing appointment as read from the booking store.

    ``duration`` is in minutes; when the store does not record it the
    slot duration of the day is assumed.
    """
    provider_id: str
    date: date
    start_time: time
    duration: Optional[int] = None
    status: BookingStatus = BookingStatus.PENDING
    booking_id: str = ""

    @property
    def occupies_calendar(self) -> bool:
        """Cancelled bookings free their slot."""
        return self.status is not BookingStatus.CANCELLED

    def span_minutes(self, default_duration: int) -> tuple[int, int]:
        """Return the booking as a half-open [start, end) interval in minutes."""
        start = minutes_since_midnight(self.start_time)
        duration = self.duration if self.duration is not None else default_duration
        return start, start + duration


@dataclass(frozen=True)
class Slot:
    """
    A bookable slot on a given date.

    Invariant: start_time must be before end_time.
    """
    date: date
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(f"Start time {self.start_time} must be before end time {self.end_time}")

    @classmethod
    def starting_at(cls, on: date, start: time, duration: int) -> "Slot":
        return cls(date=on, start_time=start, end_time=add_minutes(start, duration))

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return minutes_since_midnight(self.end_time) - minutes_since_midnight(self.start_time)

    def overlaps(self, start_minutes: int, end_minutes: int) -> bool:
        return intervals_overlap(
            minutes_since_midnight(self.start_time),
            minutes_since_midnight(self.end_time),
            start_minutes,
            end_minutes,
        )

    def format_display(self, time_style: str = "12h", date_style: str = "dmy") -> str:
        """
        Format the slot for display.
        Format: Weekday, DD/MM/YYYY | h:mm AM – h:mm AM (N min)
        """
        weekday = WEEKDAY_NAMES[day_of_week(self.date)]
        date_str = format_calendar_date(self.date, date_style)
        start = format_time_of_day(self.start_time, time_style)
        end = format_time_of_day(self.end_time, time_style)

        return f"{weekday}, {date_str} | {start} – {end} ({self.duration_minutes()} min)"

    def __str__(self) -> str:
        return f"{format_calendar_date(self.date)} {format_time_of_day(self.start_time)}"

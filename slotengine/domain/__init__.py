"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    AvailabilityUnavailable,
    CredentialsError,
    InvalidDateFormat,
    InvalidScheduleError,
    InvalidTimeFormat,
    SlotEngineError,
    TimeOverflow,
)
from .models import (
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
from .slot_calculator import filter_available, generate_slots

__all__ = [
    "AvailabilitySettings",
    "AvailabilityUnavailable",
    "Booking",
    "BookingStatus",
    "BreakTime",
    "CredentialsError",
    "DaySchedule",
    "InvalidDateFormat",
    "InvalidScheduleError",
    "InvalidTimeFormat",
    "ProviderAvailability",
    "ScheduleException",
    "Slot",
    "SlotEngineError",
    "TimeOverflow",
    "WeeklySchedule",
    "filter_available",
    "generate_slots",
    "resolve_day_schedule",
]

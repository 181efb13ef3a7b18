"""
Clock-time and calendar-date primitives.

Provider configuration and bookings reach us in two time notations
("14:30" and "2:30 PM") and two date notations ("2025-11-16" and
"16/11/2025"). Parsing and formatting go through pendulum; the results are
plain ``datetime.time`` / ``datetime.date`` values and nothing in here reads
the clock.
"""

from datetime import date, time

import pendulum

from .exceptions import InvalidDateFormat, InvalidTimeFormat, TimeOverflow

MINUTES_PER_DAY = 24 * 60

TIME_STYLES = ("24h", "12h")
DATE_STYLES = ("iso", "dmy")

_TIME_FORMATS = {"24h": "HH:mm", "12h": "h:mm A"}
_DATE_FORMATS = {"iso": "YYYY-MM-DD", "dmy": "DD/MM/YYYY"}

_MERIDIEMS = ("AM", "PM")


def _parse_12_hour(text: str, value: str) -> time:
    clock, meridiem = text[:-2].rstrip(), text[-2:]
    hour_part = clock.split(":", 1)[0]
    if not hour_part.isdigit() or not 1 <= int(hour_part) <= 12:
        raise InvalidTimeFormat(f"Invalid 12-hour time: '{value}'")

    try:
        parsed = pendulum.from_format(f"{clock} {meridiem}", "h:mm A")
    except ValueError as exc:
        raise InvalidTimeFormat(f"Invalid 12-hour time: '{value}'") from exc
    return time(hour=parsed.hour, minute=parsed.minute)


def parse_time_of_day(value: str) -> time:
    """
    Parse "HH:MM" (24-hour) or "h:mm AM/PM" (12-hour) into a time.

    Raises:
        InvalidTimeFormat: If the value matches neither notation or is out of range
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"Time must be a string, got {type(value).__name__}")

    text = value.strip().upper()

    if text.endswith(_MERIDIEMS):
        return _parse_12_hour(text, value)

    try:
        parsed = pendulum.from_format(text, "H:mm")
    except ValueError as exc:
        raise InvalidTimeFormat(
            f"Unrecognised time format: '{value}' (expected HH:MM or h:mm AM/PM)"
        ) from exc
    return time(hour=parsed.hour, minute=parsed.minute)


def format_time_of_day(value: time, style: str = "24h") -> str:
    """Format a time as "09:05" (24h) or "9:05 AM" (12h)."""
    if style not in _TIME_FORMATS:
        raise ValueError(f"Unknown time style '{style}', expected one of {TIME_STYLES}")
    return pendulum.time(value.hour, value.minute).format(_TIME_FORMATS[style])


def parse_calendar_date(value: str, day_first: bool = True) -> date:
    """
    Parse an ISO ("2025-11-16") or slash-delimited ("16/11/2025") date.

    Slash dates follow the configured convention and are never guessed:
    day-first by default, month-first only when ``day_first`` is False.
    ISO timestamps ("2025-11-16T00:00:00.000Z") are reduced to their date part.

    Raises:
        InvalidDateFormat: If the value is in neither notation or names no real day
    """
    if not isinstance(value, str):
        raise InvalidDateFormat(f"Date must be a string, got {type(value).__name__}")

    text = value.strip().split("T", 1)[0]

    if "-" in text:
        fmt, year_part = "YYYY-M-D", text.split("-", 1)[0]
    elif "/" in text:
        fmt, year_part = ("D/M/YYYY" if day_first else "M/D/YYYY"), text.rsplit("/", 1)[-1]
    else:
        raise InvalidDateFormat(
            f"Unrecognised date format: '{value}' (expected YYYY-MM-DD or DD/MM/YYYY)"
        )

    # Two-digit years are never expanded
    if len(year_part) != 4:
        raise InvalidDateFormat(f"Invalid calendar date '{value}': year must have four digits")

    try:
        parsed = pendulum.from_format(text, fmt)
    except ValueError as exc:
        raise InvalidDateFormat(f"Invalid calendar date '{value}': {exc}") from exc
    return date(parsed.year, parsed.month, parsed.day)


def format_calendar_date(value: date, style: str = "iso") -> str:
    """Format a date as "2025-11-16" (iso) or "16/11/2025" (dmy)."""
    if style not in _DATE_FORMATS:
        raise ValueError(f"Unknown date style '{style}', expected one of {DATE_STYLES}")
    return pendulum.date(value.year, value.month, value.day).format(_DATE_FORMATS[style])


def _sign(delta: int) -> int:
    return (delta > 0) - (delta < 0)


def compare_calendar_date(a: date, b: date) -> int:
    """Return -1, 0 or 1 as ``a`` is before, equal to or after ``b``."""
    return _sign(a.toordinal() - b.toordinal())


def compare_time_of_day(a: time, b: time) -> int:
    """Return -1, 0 or 1 as ``a`` is earlier than, equal to or later than ``b``."""
    return _sign(minutes_since_midnight(a) - minutes_since_midnight(b))


def minutes_since_midnight(value: time) -> int:
    return value.hour * 60 + value.minute


def add_minutes(value: time, minutes: int) -> time:
    """
    Shift a time of day by ``minutes``.

    Raises:
        TimeOverflow: If the result would reach 24:00 or fall before 00:00
    """
    total = minutes_since_midnight(value) + minutes
    if not 0 <= total < MINUTES_PER_DAY:
        raise TimeOverflow(
            f"{format_time_of_day(value)} {'+' if minutes >= 0 else '-'} "
            f"{abs(minutes)} min leaves the day"
        )
    return time(hour=total // 60, minute=total % 60)


def day_of_week(value: date) -> int:
    """Day of week with 0=Sunday through 6=Saturday."""
    weekday = pendulum.date(value.year, value.month, value.day).day_of_week
    return (int(weekday) - int(pendulum.SUNDAY)) % 7

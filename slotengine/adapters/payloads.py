"""
Translation of marketplace JSON payloads into domain models.

Shared by the REST client and the mock store. Field names follow the
marketplace backend (camelCase); the older names written by the provider
availability form (openingTime, closingTime, breakStartTime, breakEndTime,
duration) are accepted as well.

A day entry that cannot be parsed or fails validation is logged and treated
as closed. It is never replaced by default hours.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pendulum
from pendulum.tz.exceptions import InvalidTimezone

from ..domain.exceptions import InvalidDateFormat, InvalidScheduleError, InvalidTimeFormat
from ..domain.models import (
    WEEKDAY_NAMES,
    AvailabilitySettings,
    Booking,
    BookingStatus,
    BreakTime,
    DaySchedule,
    ProviderAvailability,
    ScheduleException,
    WeeklySchedule,
)
from ..domain.timeutils import parse_calendar_date, parse_time_of_day

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Bahrain"
DEFAULT_ADVANCE_BOOKING_DAYS = 30

# Everything that can go wrong while reading one stored entry
ENTRY_ERRORS = (
    InvalidTimeFormat,
    InvalidDateFormat,
    InvalidScheduleError,
    AttributeError,
    KeyError,
    TypeError,
    ValueError,
)

_DAY_INDEX_BY_NAME = {name.lower(): index for index, name in enumerate(WEEKDAY_NAMES)}


def _first(entry: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-empty value among ``keys``."""
    for key in keys:
        value = entry.get(key)
        if value not in (None, ""):
            return value
    return default


def _identifier(value: Any) -> str:
    """Ids may arrive as plain strings or as populated documents."""
    if isinstance(value, Mapping):
        value = _first(value, "_id", "id", default="")
    return str(value)


def _flag(value: Any, default: bool) -> bool:
    """Read a stored boolean; the strings "true" and "false" are accepted too."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"Expected a boolean, got {value!r}")


def _timezone(value: Any) -> str:
    name = str(value)
    try:
        pendulum.timezone(name)
    except (InvalidTimezone, ValueError) as exc:
        raise ValueError(f"Unknown timezone '{name}'") from exc
    return name


def _require(entry: Mapping[str, Any], *keys: str) -> Any:
    value = _first(entry, *keys)
    if value is None:
        raise KeyError(keys[0])
    return value


def parse_break_times(entry: Mapping[str, Any]) -> List[BreakTime]:
    breaks: List[BreakTime] = []

    for item in entry.get("breakTimes") or []:
        breaks.append(
            BreakTime(
                start=parse_time_of_day(_require(item, "start", "startTime")),
                end=parse_time_of_day(_require(item, "end", "endTime")),
            )
        )

    # Single break as stored by the availability form
    legacy_start = _first(entry, "breakStartTime", "breakStart")
    legacy_end = _first(entry, "breakEndTime", "breakEnd")
    if legacy_start and legacy_end:
        breaks.append(
            BreakTime(start=parse_time_of_day(legacy_start), end=parse_time_of_day(legacy_end))
        )

    return sorted(breaks, key=lambda brk: brk.start)


def parse_day_schedule(entry: Mapping[str, Any]) -> DaySchedule:
    """
    Parse and validate one day entry.

    Raises:
        InvalidTimeFormat: If a time is malformed
        InvalidScheduleError: If the entry breaks a schedule rule
        KeyError: If opening or closing time is missing
    """
    schedule = DaySchedule(
        is_enabled=_flag(entry.get("isEnabled"), True),
        start_time=parse_time_of_day(_require(entry, "startTime", "openingTime")),
        end_time=parse_time_of_day(_require(entry, "endTime", "closingTime")),
        slot_duration=int(_first(entry, "slotDuration", "duration", default=60)),
        buffer_time=int(_first(entry, "bufferTime", default=0)),
        break_times=parse_break_times(entry),
    )
    schedule.validate()
    return schedule


def _day_index(key: Any) -> int:
    if isinstance(key, int):
        index = key
    elif isinstance(key, str) and key.strip().lower() in _DAY_INDEX_BY_NAME:
        index = _DAY_INDEX_BY_NAME[key.strip().lower()]
    else:
        index = int(key)

    if index not in range(7):
        raise ValueError(f"Day of week must be between 0 and 6, got {key!r}")
    return index


def _weekly_entries(raw: Any) -> Iterable[tuple]:
    """Yield (day key, entry) pairs from a list or a mapping of day entries."""
    if isinstance(raw, Mapping):
        yield from raw.items()
    else:
        for entry in raw or []:
            yield _first(entry, "dayOfWeek", "day"), entry


def parse_weekly_schedule(raw: Any, provider_id: str = "") -> WeeklySchedule:
    """
    Parse the weekly pattern. Disabled days are left out, malformed days are
    logged and left out, so both resolve as closed.
    """
    days: Dict[int, DaySchedule] = {}

    for key, entry in _weekly_entries(raw):
        try:
            if isinstance(entry, Mapping) and not _flag(entry.get("isEnabled"), True):
                continue
            index = _day_index(key)
            days[index] = parse_day_schedule(entry)
        except ENTRY_ERRORS as exc:
            logger.warning(
                "Provider %s: day %r has an invalid schedule and is treated as closed: %s",
                provider_id, key, exc,
            )

    return WeeklySchedule(days=days)


def parse_schedule_exception(entry: Mapping[str, Any], day_first: bool = True) -> ScheduleException:
    exception_date = parse_calendar_date(_require(entry, "date"), day_first=day_first)
    reason = str(entry.get("reason") or "")

    if _flag(entry.get("isClosed"), False) or not _first(entry, "startTime", "openingTime"):
        return ScheduleException(date=exception_date, is_closed=True, reason=reason)

    return ScheduleException(
        date=exception_date,
        is_closed=False,
        day_schedule=parse_day_schedule(entry),
        reason=reason,
    )


def parse_schedule_exceptions(
    raw: Optional[Iterable[Mapping[str, Any]]],
    provider_id: str = "",
    day_first: bool = True,
) -> List[ScheduleException]:
    """
    Parse date overrides.

    An override with a readable date but invalid hours closes that date;
    an override without a readable date is dropped.
    """
    exceptions: List[ScheduleException] = []

    for entry in raw or []:
        try:
            exceptions.append(parse_schedule_exception(entry, day_first=day_first))
        except ENTRY_ERRORS as exc:
            raw_date = entry.get("date") if isinstance(entry, Mapping) else None
            try:
                closed_date = parse_calendar_date(raw_date, day_first=day_first)
            except InvalidDateFormat:
                logger.warning("Provider %s: ignoring exception without valid date: %s", provider_id, exc)
                continue
            logger.warning(
                "Provider %s: exception on %s is invalid and treated as closed: %s",
                provider_id, closed_date, exc,
            )
            exceptions.append(ScheduleException(date=closed_date, is_closed=True, reason="invalid schedule"))

    return exceptions


def parse_provider_availability(
    data: Mapping[str, Any],
    provider_id: str = "",
    day_first: bool = True,
) -> ProviderAvailability:
    """
    Parse a provider availability document.

    Raises:
        ValueError: If the document itself (not a single day) is unusable
    """
    if not isinstance(data, Mapping):
        raise ValueError("Availability payload must be a JSON object")

    provider_id = _identifier(_first(data, "providerId", "provider", default=provider_id))

    settings = AvailabilitySettings(
        timezone=_timezone(_first(data, "timezone", default=DEFAULT_TIMEZONE)),
        advance_booking_days=int(
            _first(data, "advanceBookingDays", default=DEFAULT_ADVANCE_BOOKING_DAYS)
        ),
    )

    return ProviderAvailability(
        provider_id=provider_id,
        weekly_schedule=parse_weekly_schedule(data.get("weeklySchedule"), provider_id),
        exceptions=parse_schedule_exceptions(data.get("exceptions"), provider_id, day_first),
        settings=settings,
    )


def _booking_status(value: Any, booking_id: str) -> BookingStatus:
    """Unknown statuses keep the slot occupied; only 'cancelled' frees it."""
    text = str(value).strip().lower()
    try:
        return BookingStatus(text)
    except ValueError:
        logger.warning(
            "Booking %s has unknown status %r; treating it as pending", booking_id or "?", value
        )
        return BookingStatus.PENDING


def parse_booking(entry: Mapping[str, Any], provider_id: str = "", day_first: bool = True) -> Booking:
    """
    Parse one booking record.

    Raises:
        InvalidDateFormat, InvalidTimeFormat, KeyError, ValueError: If the record is malformed
    """
    duration = _first(entry, "duration")
    booking_id = str(_first(entry, "_id", "id", default=""))

    return Booking(
        provider_id=_identifier(_first(entry, "providerId", "provider", default=provider_id)),
        date=parse_calendar_date(_require(entry, "date"), day_first=day_first),
        start_time=parse_time_of_day(_require(entry, "startTime", "time", "timeSlot")),
        duration=int(duration) if duration is not None else None,
        status=_booking_status(_first(entry, "status", default="pending"), booking_id),
        booking_id=booking_id,
    )


def parse_bookings(
    raw: Any,
    provider_id: str = "",
    day_first: bool = True,
) -> List[Booking]:
    """Parse a booking list (or a {"bookings": [...]} envelope), skipping bad records."""
    if isinstance(raw, Mapping):
        raw = raw.get("bookings", [])
    if not isinstance(raw, list):
        raise ValueError("Bookings payload must be a JSON list")

    bookings: List[Booking] = []

    for entry in raw:
        try:
            bookings.append(parse_booking(entry, provider_id, day_first))
        except ENTRY_ERRORS as exc:
            logger.warning("Provider %s: skipping unreadable booking %r: %s", provider_id, entry, exc)

    return bookings


def bookings_on(bookings: Iterable[Booking], provider_id: str, target: date) -> List[Booking]:
    """Keep the bookings of one provider on one date."""
    return [
        booking for booking in bookings
        if booking.provider_id == provider_id and booking.date == target
    ]

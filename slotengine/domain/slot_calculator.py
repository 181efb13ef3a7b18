"""
Core business logic for turning a day's working hours into bookable slots.

Pure domain logic without any external dependencies (no API calls, no
database, no clock). The two steps are usable on their own:

1. ``generate_slots`` expands a day schedule into candidate slots
2. ``filter_available`` removes candidates that collide with bookings
"""

from datetime import date
from typing import Iterable, List, Optional

from .exceptions import TimeOverflow
from .models import Booking, DaySchedule, Slot
from .timeutils import add_minutes, minutes_since_midnight


def generate_slots(day_schedule: DaySchedule | None, target: date) -> List[Slot]:
    """
    Generate the candidate slots of one day.

    Algorithm:
    1. A closed day (None or disabled) has no slots
    2. Start at the opening time and step by slot duration + buffer time
    3. Emit every slot that ends by closing time and touches no break
    4. Stop at closing time, or when the next step would pass midnight

    Slots overlapping a break are skipped, not shifted to after the break,
    so the grid is the same on every day with the same hours.

    Returns:
        Slots ordered by start time
    """
    if day_schedule is None or not day_schedule.is_enabled:
        return []

    if day_schedule.slot_duration <= 0 or day_schedule.stride <= 0:
        return []

    slots: List[Slot] = []
    end_minutes = minutes_since_midnight(day_schedule.end_time)
    cursor = day_schedule.start_time

    while minutes_since_midnight(cursor) + day_schedule.slot_duration <= end_minutes:
        slot_end = add_minutes(cursor, day_schedule.slot_duration)

        if not day_schedule.overlaps_break(cursor, slot_end):
            slots.append(Slot(date=target, start_time=cursor, end_time=slot_end))

        try:
            cursor = add_minutes(cursor, day_schedule.stride)
        except TimeOverflow:
            break

    return slots


def filter_available(
    slots: Iterable[Slot],
    existing_bookings: Iterable[Booking],
    target: date,
    provider_id: Optional[str] = None,
    default_duration: Optional[int] = None,
) -> List[Slot]:
    """
    Drop slots that collide with an existing booking.

    Only bookings on ``target`` (and for ``provider_id`` when given) that are
    not cancelled count. A booking blocks every slot its [start, start+duration)
    interval intersects, not only the slot starting at the same minute.

    Args:
        slots: Candidate slots, typically from ``generate_slots``
        existing_bookings: Bookings read from the store
        target: Date the slots belong to
        provider_id: Restrict to this provider's bookings
        default_duration: Duration assumed for bookings without one;
            falls back to the length of the slot being checked

    Returns:
        The remaining slots in their original order
    """
    blocking = [
        booking for booking in existing_bookings
        if booking.occupies_calendar
        and booking.date == target
        and (provider_id is None or booking.provider_id == provider_id)
    ]

    if not blocking:
        return list(slots)

    available: List[Slot] = []

    for slot in slots:
        fallback = default_duration if default_duration is not None else slot.duration_minutes()
        taken = any(
            slot.overlaps(*booking.span_minutes(fallback))
            for booking in blocking
        )
        if not taken:
            available.append(slot)

    return available

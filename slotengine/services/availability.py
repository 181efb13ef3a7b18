"""
Application service answering "which slots can a customer book?".

The service fetches a provider's schedule and bookings through a store
adapter and delegates the slot arithmetic to the domain layer. Every booking
UI should call this instead of doing date/time math itself. The store is
injected as a simple protocol, so the REST client, the mock store or a test
stub can be plugged in.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Protocol

import pendulum

from ..domain.exceptions import AvailabilityUnavailable
from ..domain.models import Booking, ProviderAvailability, Slot
from ..domain.slot_calculator import filter_available, generate_slots
from ..domain.timeutils import (
    compare_calendar_date,
    format_calendar_date,
    minutes_since_midnight,
    parse_calendar_date,
    parse_time_of_day,
)

logger = logging.getLogger(__name__)


class AvailabilityStoreProtocol(Protocol):
    """Protocol describing the store behaviour needed by the service."""

    def fetch_weekly_schedule(self, provider_id: str) -> ProviderAvailability:
        """Return weekly schedule, exceptions and settings of a provider."""

    def fetch_bookings_for_provider_date(self, provider_id: str, target: date) -> List[Booking]:
        """Return the provider's bookings on ``target``."""


class AvailabilityService:
    """
    Orchestrates schedule/booking retrieval and slot calculation.

    Results are a snapshot of the store at fetch time; the booking endpoint
    stays the authority on whether a submitted slot is still free.
    """

    def __init__(self, store: AvailabilityStoreProtocol, day_first: bool = True) -> None:
        self._store = store
        self._day_first = day_first

    def get_available_slots(
        self,
        provider_id: str,
        target: date | str,
        now: datetime,
    ) -> List[Slot]:
        """
        Return the bookable slots of a provider on ``target``.

        Dates before today or past the advance-booking horizon and closed days
        give an empty list. On today, slots starting at or before ``now`` are
        dropped.

        Args:
            provider_id: Provider to query
            target: Date, or a string in ISO or slash notation
            now: Current time; naive values are read as provider-local time

        Raises:
            AvailabilityUnavailable: If schedule or bookings cannot be fetched
            InvalidDateFormat: If ``target`` is an unparseable string
        """
        target_date = self._coerce_date(target)
        availability = self.fetch_availability(provider_id)
        local_now = self._local_now(now, availability.settings.timezone)

        return self._slots_for_day(availability, target_date, local_now)

    def is_slot_still_available(
        self,
        provider_id: str,
        target: date | str,
        start_time: time | str,
        now: datetime,
    ) -> bool:
        """
        Re-check a selected slot just before submitting a booking.

        Only a client-side convenience; it cannot replace validation by the
        booking endpoint.
        """
        if isinstance(start_time, str):
            start_time = parse_time_of_day(start_time)

        wanted = minutes_since_midnight(start_time)
        slots = self.get_available_slots(provider_id, target, now)

        return any(minutes_since_midnight(slot.start_time) == wanted for slot in slots)

    def list_upcoming_slots(
        self,
        provider_id: str,
        now: datetime,
        days: int | None = None,
    ) -> Dict[date, List[Slot]]:
        """
        Collect bookable slots from today onwards.

        Args:
            provider_id: Provider to query
            now: Current time
            days: How many days after today to look at; capped by the
                provider's advance-booking horizon

        Returns:
            Mapping of date to slots, only for dates with at least one slot
        """
        availability = self.fetch_availability(provider_id)
        local_now = self._local_now(now, availability.settings.timezone)
        today = _calendar_day(local_now)

        horizon = availability.settings.advance_booking_days
        if days is not None:
            horizon = min(horizon, max(days, 0))

        upcoming: Dict[date, List[Slot]] = {}

        for offset in range(horizon + 1):
            current = today + timedelta(days=offset)
            slots = self._slots_for_day(availability, current, local_now)
            if slots:
                upcoming[current] = slots

        return upcoming

    def fetch_availability(self, provider_id: str) -> ProviderAvailability:
        """Fetch the provider's schedule, normalising transport failures."""
        try:
            return self._store.fetch_weekly_schedule(provider_id)
        except AvailabilityUnavailable:
            raise
        except OSError as exc:
            raise AvailabilityUnavailable(
                f"Could not fetch availability for provider {provider_id}: {exc}"
            ) from exc

    def fetch_bookings(self, provider_id: str, target: date) -> List[Booking]:
        """Fetch the provider's bookings on one date, normalising transport failures."""
        try:
            return self._store.fetch_bookings_for_provider_date(provider_id, target)
        except AvailabilityUnavailable:
            raise
        except OSError as exc:
            raise AvailabilityUnavailable(
                f"Could not fetch bookings for provider {provider_id} "
                f"on {format_calendar_date(target)}: {exc}"
            ) from exc

    def _slots_for_day(
        self,
        availability: ProviderAvailability,
        target: date,
        local_now: datetime,
    ) -> List[Slot]:
        provider_id = availability.provider_id
        today = _calendar_day(local_now)
        last_bookable = today + timedelta(days=availability.settings.advance_booking_days)

        if (
            compare_calendar_date(target, today) < 0
            or compare_calendar_date(target, last_bookable) > 0
        ):
            logger.debug(
                "Date %s outside booking window %s..%s for provider %s",
                target, today, last_bookable, provider_id,
            )
            return []

        day_schedule = availability.resolve(target)
        if day_schedule is None:
            logger.debug("Provider %s is closed on %s", provider_id, target)
            return []

        candidates = generate_slots(day_schedule, target)
        if not candidates:
            return []

        bookings = self.fetch_bookings(provider_id, target)
        slots = filter_available(
            candidates,
            bookings,
            target,
            provider_id=provider_id,
            default_duration=day_schedule.slot_duration,
        )

        if compare_calendar_date(target, today) == 0:
            current = minutes_since_midnight(local_now.time())
            slots = [
                slot for slot in slots
                if minutes_since_midnight(slot.start_time) > current
            ]

        logger.debug(
            "Provider %s on %s: %d candidate slot(s), %d booking(s), %d available",
            provider_id, target, len(candidates), len(bookings), len(slots),
        )

        return sorted(slots, key=lambda slot: slot.start_time)

    def _coerce_date(self, target: date | str) -> date:
        if isinstance(target, str):
            return parse_calendar_date(target, day_first=self._day_first)
        if isinstance(target, datetime):
            return target.date()
        return target

    @staticmethod
    def _local_now(now: datetime, timezone: str) -> datetime:
        """Express ``now`` as wall-clock time in the provider's timezone."""
        return pendulum.instance(now, tz=timezone).in_timezone(timezone)


def _calendar_day(moment: datetime) -> date:
    return date(moment.year, moment.month, moment.day)

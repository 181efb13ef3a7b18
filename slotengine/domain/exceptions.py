"""
Domain-specific exception hierarchy for the slot engine.
"""


class SlotEngineError(Exception):
    """Base class for all application-level errors."""


class InvalidTimeFormat(SlotEngineError, ValueError):
    """Raised when a clock time matches neither the 24-hour nor the 12-hour pattern."""


class InvalidDateFormat(SlotEngineError, ValueError):
    """Raised when a calendar date is not ISO or slash-delimited, or does not exist."""


class TimeOverflow(SlotEngineError):
    """Raised when time-of-day arithmetic would leave the 00:00-24:00 day."""


class InvalidScheduleError(SlotEngineError, ValueError):
    """Raised when a day schedule violates the rules enforced on write."""


class AvailabilityUnavailable(SlotEngineError):
    """Raised when schedule or booking data cannot be fetched from the store."""


class CredentialsError(SlotEngineError):
    """Raised when the API token cannot be stored or removed."""

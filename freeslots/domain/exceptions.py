"""
Domain-specific exception hierarchy for the freeslots application.
"""


class FreeSlotsError(Exception):
    """Base class for all application-level errors."""


class AuthenticationError(FreeSlotsError):
    """Raised when service account credentials are missing or rejected."""


class ConfigurationError(FreeSlotsError, ValueError):
    """Raised when configuration or credentials cannot be loaded."""


class InvalidTimezoneError(FreeSlotsError, ValueError):
    """Raised when a timezone identifier is not a known IANA name."""


class CalendarAPIError(FreeSlotsError):
    """Raised when calendar data cannot be fetched or written."""


class CalendarNotFoundError(CalendarAPIError):
    """The calendar identity is unknown to the calendar service."""


class CalendarForbiddenError(CalendarAPIError):
    """The credentials lack access to the calendar."""


class InvalidIdentityError(CalendarAPIError):
    """The calendar service rejected the calendar identity as malformed."""


class UpstreamError(CalendarAPIError):
    """Any other failure reported by the calendar service."""


class TimeConflictError(CalendarAPIError):
    """The requested event conflicts with an existing one."""

"""
Domain-specific exception hierarchy for the scheduling backend.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidRequestError(SchedulingError):
    """Raised when caller input is missing or malformed."""


class StoreError(SchedulingError):
    """Raised when the database cannot be queried or updated."""


class CalendarAPIError(SchedulingError):
    """Raised when calendar data cannot be fetched or parsed."""


class AuthenticationError(SchedulingError):
    """Raised when authentication or token handling fails."""

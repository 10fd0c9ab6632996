"""
Domain models for availability windows, bookings and slots.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from pendulum import DateTime

from .timezones import (
    DEFAULT_TIMEZONE,
    local_time_to_utc,
    parse_clock_time,
    parse_timestamp,
    to_utc_iso,
)

DEFAULT_BOOKING_DURATION_MINUTES = 30
DEFAULT_CALENDAR_ID = "primary"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeRange") -> bool:
        """Check if another range lies entirely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{to_utc_iso(self.start)} - {to_utc_iso(self.end)}"


# Busy periods from a connected calendar carry nothing beyond their bounds.
BusyPeriod = TimeRange


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    A recurring weekly range during which a user accepts bookings.

    ``day_of_week`` uses 0 = Sunday. Times are wall-clock in ``timezone``.
    """
    day_of_week: int
    start_time: str
    end_time: str
    timezone: str = DEFAULT_TIMEZONE
    is_active: bool = True

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")
        parse_clock_time(self.start_time)
        parse_clock_time(self.end_time)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AvailabilityWindow":
        """Build a window from a ``shout_availability_windows`` row."""
        return cls(
            day_of_week=int(row["day_of_week"]),
            start_time=str(row["start_time"]),
            end_time=str(row["end_time"]),
            timezone=row.get("timezone") or DEFAULT_TIMEZONE,
            is_active=bool(row.get("is_active", True)),
        )

    def occurrence_on(self, day: date) -> Optional[TimeRange]:
        """
        Resolve this window on a calendar date in its own timezone.

        Returns None when the window is empty (end not after start).
        """
        start = local_time_to_utc(day, self.start_time, self.timezone)
        end = local_time_to_utc(day, self.end_time, self.timezone)
        if end <= start:
            return None
        return TimeRange(start=start, end=end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dayOfWeek": self.day_of_week,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "timezone": self.timezone,
        }


@dataclass(frozen=True)
class ExistingBooking:
    """A scheduled call that already occupies part of the user's time."""
    scheduled_at: DateTime
    duration_minutes: int = DEFAULT_BOOKING_DURATION_MINUTES

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ExistingBooking":
        """Build a booking from a ``shout_scheduled_calls`` row."""
        return cls(
            scheduled_at=parse_timestamp(row["scheduled_at"]),
            duration_minutes=row.get("duration_minutes") or DEFAULT_BOOKING_DURATION_MINUTES,
        )

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(
            start=self.scheduled_at,
            end=self.scheduled_at.add(minutes=self.duration_minutes),
        )


@dataclass(frozen=True)
class CandidateSlot:
    """
    A bookable time range produced by the calculator.
    """
    start: DateTime
    end: DateTime

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    def to_dict(self) -> Dict[str, str]:
        """Serialize as UTC ISO-8601 strings."""
        return {"start": to_utc_iso(self.start), "end": to_utc_iso(self.end)}

    def format_display(self, timezone: str = DEFAULT_TIMEZONE) -> str:
        """
        Format the slot for display in the given timezone.
        Format: Weekday, YYYY-MM-DD | HH:MM - HH:MM
        """
        start = self.start.in_timezone(timezone)
        end = self.end.in_timezone(timezone)
        return (
            f"{start.format('dddd, YYYY-MM-DD')} | "
            f"{start.format('HH:mm')} - {end.format('HH:mm')}"
        )


@dataclass(frozen=True)
class DateRange:
    """The inclusive span of days a caller wants slots for."""
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Range end {self.end} is before range start {self.start}")


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation parameters resolved from a user's settings."""
    free_duration_minutes: int = 15
    paid_duration_minutes: int = 30
    buffer_minutes: int = 15
    advance_notice_hours: int = 24

    def __post_init__(self):
        if self.free_duration_minutes <= 0 or self.paid_duration_minutes <= 0:
            raise ValueError("Slot durations must be greater than zero")
        if self.buffer_minutes < 0:
            raise ValueError("buffer_minutes must not be negative")
        if self.advance_notice_hours < 0:
            raise ValueError("advance_notice_hours must not be negative")

    @property
    def slot_interval_minutes(self) -> int:
        """Distance between consecutive slot starts."""
        return self.free_duration_minutes + self.buffer_minutes


@dataclass
class SchedulingSettings:
    """Scheduling columns of a ``shout_user_settings`` row."""
    scheduling_enabled: bool = False
    duration_minutes: Optional[int] = None
    free_duration_minutes: Optional[int] = None
    paid_duration_minutes: Optional[int] = None
    buffer_minutes: Optional[int] = None
    advance_notice_hours: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SchedulingSettings":
        return cls(
            scheduling_enabled=bool(row.get("scheduling_enabled")),
            duration_minutes=row.get("scheduling_duration_minutes"),
            free_duration_minutes=row.get("scheduling_free_duration_minutes"),
            paid_duration_minutes=row.get("scheduling_paid_duration_minutes"),
            buffer_minutes=row.get("scheduling_buffer_minutes"),
            advance_notice_hours=row.get("scheduling_advance_notice_hours"),
        )

    def to_config(self, defaults: Optional[SchedulingConfig] = None) -> SchedulingConfig:
        """
        Resolve nullable columns to concrete generation parameters.

        Free and paid durations fall back to the legacy single duration
        column before their own defaults. Durations that are not positive
        count as unset, as do a zero or negative buffer and advance notice.
        """
        defaults = defaults or SchedulingConfig()
        legacy = _positive(self.duration_minutes)
        free = _first_set(
            _positive(self.free_duration_minutes), legacy, defaults.free_duration_minutes
        )
        paid = _first_set(
            _positive(self.paid_duration_minutes), legacy, defaults.paid_duration_minutes
        )
        return SchedulingConfig(
            free_duration_minutes=free,
            paid_duration_minutes=paid,
            buffer_minutes=_positive(self.buffer_minutes) or defaults.buffer_minutes,
            advance_notice_hours=(
                _positive(self.advance_notice_hours) or defaults.advance_notice_hours
            ),
        )

    @property
    def response_duration(self) -> int:
        """Duration reported alongside the slots."""
        return _positive(self.duration_minutes) or DEFAULT_BOOKING_DURATION_MINUTES


@dataclass
class CalendarConnection:
    """An active Google Calendar link stored in ``shout_calendar_connections``."""
    access_token: Optional[str]
    refresh_token: Optional[str] = None
    token_expires_at: Optional[DateTime] = None
    calendar_id: str = DEFAULT_CALENDAR_ID
    provider: str = "google"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CalendarConnection":
        expires_at = row.get("token_expires_at")
        return cls(
            access_token=row.get("access_token"),
            refresh_token=row.get("refresh_token"),
            token_expires_at=parse_timestamp(expires_at) if expires_at else None,
            calendar_id=row.get("calendar_id") or DEFAULT_CALENDAR_ID,
            provider=row.get("provider") or "google",
        )

    def is_expired(self, now: DateTime) -> bool:
        """True when an expiry is known and already passed."""
        return self.token_expires_at is not None and self.token_expires_at < now


@dataclass(frozen=True)
class TokenGrant:
    """A freshly issued access token."""
    access_token: str
    expires_at: DateTime


@dataclass
class AvailabilityResult:
    """Slots for one user plus the metadata the booking page shows."""
    available_slots: List[CandidateSlot] = field(default_factory=list)
    duration: int = DEFAULT_BOOKING_DURATION_MINUTES
    timezone: str = DEFAULT_TIMEZONE
    message: Optional[str] = None
    # Pricing is resolved when the call is booked
    price_cents: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "availableSlots": [slot.to_dict() for slot in self.available_slots],
            "duration": self.duration,
            "priceCents": self.price_cents,
            "timezone": self.timezone,
        }
        if self.message:
            payload["message"] = self.message
        return payload


def _first_set(*values: Optional[int]) -> int:
    for value in values:
        if value is not None:
            return value
    raise ValueError("No value set")


def _positive(value: Optional[int]) -> Optional[int]:
    return value if value is not None and value > 0 else None

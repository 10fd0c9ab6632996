"""
Timezone helpers for turning wall-clock window times into UTC instants.

Days of week follow the convention stored in ``shout_availability_windows``:
0 = Sunday, 1 = Monday, ..., 6 = Saturday.
"""

from datetime import date, time
from typing import Sequence

import pendulum
from pendulum import DateTime

DEFAULT_TIMEZONE = "UTC"


def parse_clock_time(value: str) -> time:
    """
    Parse an ``HH:MM`` (or Postgres ``HH:MM:SS``) string.

    Seconds are accepted but dropped.

    Raises:
        ValueError: If the value is not a valid wall-clock time
    """
    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from exc

    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise ValueError(f"Invalid time '{value}', hour or minute out of range")

    return time(hour=hour, minute=minute)


def local_date_in_timezone(instant: DateTime, timezone: str) -> date:
    """Return the calendar date an instant falls on in the given timezone."""
    return instant.in_timezone(timezone).date()


def day_of_week_in_timezone(instant: DateTime, timezone: str) -> int:
    """Return the day of week (0 = Sunday) of an instant in the given timezone."""
    return local_date_in_timezone(instant, timezone).isoweekday() % 7


def local_time_to_utc(day: date, clock: str, timezone: str) -> DateTime:
    """
    Convert a wall-clock time on a calendar date in ``timezone`` to UTC.

    Args:
        day: Calendar date in the target timezone
        clock: Time string (HH:MM) in the target timezone
        timezone: IANA timezone identifier (e.g. "America/New_York")

    Returns:
        The same instant expressed in UTC
    """
    wall = parse_clock_time(clock)
    local = pendulum.datetime(
        day.year,
        day.month,
        day.day,
        wall.hour,
        wall.minute,
        tz=timezone,
    )
    return local.in_timezone(DEFAULT_TIMEZONE)


def reference_timezone(windows: Sequence) -> str:
    """The user's display timezone: the first window's, else UTC."""
    for window in windows:
        return window.timezone or DEFAULT_TIMEZONE
    return DEFAULT_TIMEZONE


def parse_timestamp(value: str) -> DateTime:
    """
    Parse an ISO 8601 timestamp as returned by Postgres or Google.

    Naive values are taken to be UTC.

    Raises:
        ValueError: If the value does not describe a date and time
    """
    parsed = pendulum.parse(str(value), tz=DEFAULT_TIMEZONE)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse timestamp: {value}")
    return parsed


def to_utc_iso(instant: DateTime) -> str:
    """Render an instant as ``YYYY-MM-DDTHH:mm:ss.SSSZ`` in UTC."""
    return instant.in_timezone(DEFAULT_TIMEZONE).format("YYYY-MM-DDTHH:mm:ss.SSS[Z]")

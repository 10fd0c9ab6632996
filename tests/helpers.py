"""
Stubs matching the service protocols, shared by the test modules.
"""

import time
from typing import Dict, List, Optional

import pendulum

from spritz_scheduling.domain.exceptions import StoreError
from spritz_scheduling.domain.models import (
    AvailabilityWindow,
    CalendarConnection,
    ExistingBooking,
    SchedulingSettings,
    TimeRange,
    TokenGrant,
)

USER = "0xabcdef0000000000000000000000000000000001"


class StubStore:
    """In-memory SchedulingStoreProtocol with call recording."""

    def __init__(
        self,
        settings: Optional[SchedulingSettings] = None,
        windows: Optional[List[AvailabilityWindow]] = None,
        bookings: Optional[List[ExistingBooking]] = None,
        connection: Optional[CalendarConnection] = None,
        fail_on: tuple = (),
    ):
        self.settings = settings
        self.windows = windows or []
        self.bookings = bookings or []
        self.connection = connection
        self.fail_on = fail_on
        self.calls: List[tuple] = []
        self.token_updates: List[Dict] = []

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise StoreError(f"{name} failed")

    def get_settings(self, user_address):
        self._record("get_settings", user_address)
        return self.settings

    def get_active_windows(self, user_address):
        self._record("get_active_windows", user_address)
        return list(self.windows)

    def get_bookings(self, user_address, range_start, range_end):
        self._record("get_bookings", user_address, range_start, range_end)
        return list(self.bookings)

    def get_calendar_connection(self, user_address):
        self._record("get_calendar_connection", user_address)
        return self.connection

    def update_calendar_tokens(self, user_address, access_token, expires_at):
        self._record("update_calendar_tokens", user_address, access_token, expires_at)
        self.token_updates.append(
            {"user_address": user_address, "access_token": access_token, "expires_at": expires_at}
        )


class StubCalendarClient:
    """CalendarClientProtocol returning fixed busy periods, or failing."""

    def __init__(
        self,
        busy: Optional[List[TimeRange]] = None,
        error: Optional[Exception] = None,
        delay_seconds: float = 0.0,
    ):
        self.busy = busy or []
        self.error = error
        self.delay_seconds = delay_seconds
        self.calls: List[Dict] = []

    def get_busy_periods(self, access_token, calendar_id, start_time, end_time):
        self.calls.append(
            {
                "access_token": access_token,
                "calendar_id": calendar_id,
                "start": start_time,
                "end": end_time,
            }
        )
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if self.error:
            raise self.error
        return list(self.busy)


class StubTokenRefresher:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[str] = []

    def refresh(self, refresh_token):
        self.calls.append(refresh_token)
        if self.error:
            raise self.error
        return TokenGrant(
            access_token="fresh-token",
            expires_at=pendulum.datetime(2024, 11, 20, 1, 0, tz="UTC"),
        )


def utc(text: str):
    return pendulum.parse(text, tz="UTC")



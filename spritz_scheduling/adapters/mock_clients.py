"""
Mock store and calendar adapters for running without Supabase or Google.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.models import (
    AvailabilityWindow,
    CalendarConnection,
    ExistingBooking,
    SchedulingSettings,
    TimeRange,
    TokenGrant,
)
from ..domain.timezones import parse_timestamp

MOCK_DATA_FILE = Path(__file__).parent / "mock_scheduling_data.json"


def load_mock_data(data_file: Path = MOCK_DATA_FILE) -> Dict[str, Any]:
    """Load the bundled fixture; an absent file means no data."""
    if not data_file.exists():
        return {}
    with open(data_file, "r", encoding="utf-8") as f:
        return json.load(f)


class MockSchedulingStore:
    """
    In-memory store loaded from mock_scheduling_data.json.

    Rows use the same column names as the Supabase tables.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.users: Dict[str, Dict[str, Any]] = {
            address.lower(): user
            for address, user in (data if data is not None else load_mock_data()).get("users", {}).items()
        }
        self.token_updates: List[Dict[str, Any]] = []

    def get_settings(self, user_address: str) -> Optional[SchedulingSettings]:
        user = self.users.get(user_address)
        if not user or "settings" not in user:
            return None
        return SchedulingSettings.from_row(user["settings"])

    def get_active_windows(self, user_address: str) -> List[AvailabilityWindow]:
        rows = self.users.get(user_address, {}).get("windows", [])
        windows = [AvailabilityWindow.from_row(row) for row in rows]
        return [window for window in windows if window.is_active]

    def get_bookings(
        self,
        user_address: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ExistingBooking]:
        rows = self.users.get(user_address, {}).get("bookings", [])
        bookings: List[ExistingBooking] = []
        for row in rows:
            if row.get("status", "confirmed") not in ("pending", "confirmed"):
                continue
            booking = ExistingBooking.from_row(row)
            if range_start <= booking.scheduled_at <= range_end:
                bookings.append(booking)
        return bookings

    def get_calendar_connection(self, user_address: str) -> Optional[CalendarConnection]:
        row = self.users.get(user_address, {}).get("calendar")
        if not row or not row.get("is_active", True):
            return None
        return CalendarConnection.from_row(row)

    def update_calendar_tokens(
        self,
        user_address: str,
        access_token: str,
        expires_at: DateTime,
    ) -> None:
        self.token_updates.append(
            {"user_address": user_address, "access_token": access_token, "expires_at": expires_at}
        )


class MockCalendarClient:
    """
    Serves busy periods from the fixture's ``busy`` map, keyed by calendar id.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        source = data if data is not None else load_mock_data()
        self.busy: Dict[str, List[Dict[str, str]]] = source.get("busy", {})

    def get_busy_periods(
        self,
        access_token: str,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[TimeRange]:
        periods: List[TimeRange] = []
        for item in self.busy.get(calendar_id, []):
            period = TimeRange(start=parse_timestamp(item["start"]), end=parse_timestamp(item["end"]))
            if period.start < end_time and period.end > start_time:
                periods.append(period)
        return periods


class MockTokenRefresher:
    """Issues a fixed token valid for one hour."""

    def refresh(self, refresh_token: str) -> TokenGrant:
        return TokenGrant(
            access_token="mock_access_token_12345",
            expires_at=pendulum.now("UTC").add(hours=1),
        )

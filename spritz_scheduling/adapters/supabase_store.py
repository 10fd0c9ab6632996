"""
Scheduling data stored in Supabase tables.
"""

import logging
from typing import List, Optional

from pendulum import DateTime

from ..domain.exceptions import StoreError
from ..domain.models import (
    AvailabilityWindow,
    CalendarConnection,
    ExistingBooking,
    SchedulingSettings,
)
from ..domain.timezones import to_utc_iso
from .supabase_client import SupabaseRestClient

logger = logging.getLogger(__name__)

SETTINGS_TABLE = "shout_user_settings"
WINDOWS_TABLE = "shout_availability_windows"
CONNECTIONS_TABLE = "shout_calendar_connections"
CALLS_TABLE = "shout_scheduled_calls"

SETTINGS_COLUMNS = ",".join([
    "scheduling_enabled",
    "scheduling_duration_minutes",
    "scheduling_free_duration_minutes",
    "scheduling_paid_duration_minutes",
    "scheduling_buffer_minutes",
    "scheduling_advance_notice_hours",
])

BLOCKING_CALL_STATUSES = ("pending", "confirmed")


class SupabaseSchedulingStore:
    """
    Reads scheduling settings, windows, bookings and calendar links.

    All lookups are keyed by the lower-cased wallet address.
    """

    def __init__(self, client: SupabaseRestClient):
        self._client = client

    def get_settings(self, user_address: str) -> Optional[SchedulingSettings]:
        row = self._client.select_one(
            SETTINGS_TABLE,
            columns=SETTINGS_COLUMNS,
            filters=[("wallet_address", "eq", user_address)],
        )
        return SchedulingSettings.from_row(row) if row else None

    def get_active_windows(self, user_address: str) -> List[AvailabilityWindow]:
        """Active windows in stored order; the first one sets the display timezone."""
        rows = self._client.select(
            WINDOWS_TABLE,
            filters=[
                ("wallet_address", "eq", user_address),
                ("is_active", "eq", True),
            ],
        )

        windows: List[AvailabilityWindow] = []
        for row in rows:
            try:
                windows.append(AvailabilityWindow.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed availability window %s: %s", row.get("id"), e)
        return windows

    def get_bookings(
        self,
        user_address: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ExistingBooking]:
        """Pending and confirmed calls scheduled inside the range."""
        rows = self._client.select(
            CALLS_TABLE,
            columns="scheduled_at,duration_minutes",
            filters=[
                ("recipient_wallet_address", "eq", user_address),
                ("status", "in", BLOCKING_CALL_STATUSES),
                ("scheduled_at", "gte", to_utc_iso(range_start)),
                ("scheduled_at", "lte", to_utc_iso(range_end)),
            ],
        )

        bookings: List[ExistingBooking] = []
        for row in rows:
            try:
                bookings.append(ExistingBooking.from_row(row))
            except (KeyError, ValueError) as e:
                logger.warning("Skipping malformed scheduled call: %s", e)
        return bookings

    def get_calendar_connection(self, user_address: str) -> Optional[CalendarConnection]:
        row = self._client.select_one(
            CONNECTIONS_TABLE,
            filters=[
                ("wallet_address", "eq", user_address),
                ("provider", "eq", "google"),
                ("is_active", "eq", True),
            ],
        )
        if not row:
            return None

        try:
            return CalendarConnection.from_row(row)
        except ValueError as e:
            raise StoreError(f"Malformed calendar connection for {user_address}: {e}") from e

    def update_calendar_tokens(
        self,
        user_address: str,
        access_token: str,
        expires_at: DateTime,
    ) -> None:
        """Persist a refreshed Google access token."""
        self._client.update(
            CONNECTIONS_TABLE,
            values={
                "access_token": access_token,
                "token_expires_at": to_utc_iso(expires_at),
            },
            filters=[
                ("wallet_address", "eq", user_address),
                ("provider", "eq", "google"),
            ],
        )

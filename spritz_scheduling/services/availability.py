"""
Application service answering "when can I book a call with this user?".

The service fetches a user's settings, windows, bookings and calendar busy
periods through narrow protocols and delegates the slot computation to the
domain-level ``SlotCalculator``. The calendar is advisory: when it cannot be
reached every slot is offered rather than none.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Protocol, TypeVar

import pendulum
from pendulum import DateTime

from ..domain.exceptions import (
    AuthenticationError,
    CalendarAPIError,
    InvalidRequestError,
    StoreError,
)
from ..domain.models import (
    AvailabilityResult,
    AvailabilityWindow,
    CalendarConnection,
    DateRange,
    ExistingBooking,
    SchedulingConfig,
    SchedulingSettings,
    TimeRange,
    TokenGrant,
)
from ..domain.slot_calculator import SlotCalculator, slot_search_span
from ..domain.timezones import DEFAULT_TIMEZONE, parse_timestamp, reference_timezone

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEDULING_DISABLED_MESSAGE = "User does not have scheduling enabled"
NO_WINDOWS_MESSAGE = "No availability windows configured"


class SchedulingStoreProtocol(Protocol):
    """Persistence needed to answer availability requests."""

    def get_settings(self, user_address: str) -> Optional[SchedulingSettings]:
        """Return the user's scheduling settings, or None if they have none."""

    def get_active_windows(self, user_address: str) -> List[AvailabilityWindow]:
        """Return the user's active weekly windows."""

    def get_bookings(
        self,
        user_address: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[ExistingBooking]:
        """Return calls already booked with the user inside the range."""

    def get_calendar_connection(self, user_address: str) -> Optional[CalendarConnection]:
        """Return the user's active Google Calendar connection."""

    def update_calendar_tokens(
        self,
        user_address: str,
        access_token: str,
        expires_at: DateTime,
    ) -> None:
        """Persist a refreshed access token."""


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    def get_busy_periods(
        self,
        access_token: str,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[TimeRange]:
        """Return busy time ranges for one calendar."""


class TokenRefresherProtocol(Protocol):
    def refresh(self, refresh_token: str) -> TokenGrant:
        """Exchange a refresh token for a new access token."""


def parse_date_param(value: Optional[str], name: str) -> Optional[DateTime]:
    """
    Parse a ``startDate``/``endDate`` query value.

    Raises:
        InvalidRequestError: If the value is not an ISO 8601 date or timestamp
    """
    if value is None or not value.strip():
        return None
    try:
        return parse_timestamp(value.strip())
    except ValueError as exc:
        raise InvalidRequestError(f"Invalid {name}: {value}") from exc


class AvailabilityService:
    """
    Orchestrates data retrieval and slot calculation for one user.

    Dependency inversion toward protocols makes it easy to plug in the
    Supabase and Google adapters or the mock implementations in tests.
    """

    def __init__(
        self,
        store: SchedulingStoreProtocol,
        calendar_client: CalendarClientProtocol,
        token_refresher: Optional[TokenRefresherProtocol] = None,
        *,
        defaults: Optional[SchedulingConfig] = None,
        store_timeout_seconds: float = 15.0,
        calendar_timeout_seconds: float = 10.0,
        default_range_days: int = 30,
    ) -> None:
        self._store = store
        self._calendar_client = calendar_client
        self._token_refresher = token_refresher
        self._defaults = defaults or SchedulingConfig()
        self._store_timeout = store_timeout_seconds
        self._calendar_timeout = calendar_timeout_seconds
        self._default_range_days = default_range_days

    async def get_availability(
        self,
        user_address: Optional[str],
        start_date: Optional[DateTime] = None,
        end_date: Optional[DateTime] = None,
        now: Optional[DateTime] = None,
    ) -> AvailabilityResult:
        """
        Compute the bookable slots for a user.

        Args:
            user_address: Wallet address of the user being booked
            start_date: Start of the search range (defaults to now)
            end_date: End of the search range (defaults to now + range days)
            now: Current instant, injectable for deterministic results

        Raises:
            InvalidRequestError: If the address is missing or the range is inverted
            StoreError: If settings or windows cannot be loaded
        """
        if not user_address or not user_address.strip():
            raise InvalidRequestError("User address required")

        address = user_address.strip().lower()
        now = now or pendulum.now(DEFAULT_TIMEZONE)
        date_range = self.resolve_range(start_date, end_date, now)
        search_span = slot_search_span(date_range)

        settings = await self._run_store(self._store.get_settings, address)
        if settings is None or not settings.scheduling_enabled:
            logger.info("Scheduling disabled for %s", address)
            return AvailabilityResult(message=SCHEDULING_DISABLED_MESSAGE)

        windows, connection, bookings = await asyncio.gather(
            self._run_store(self._store.get_active_windows, address),
            self._fetch_connection(address),
            self._fetch_bookings(address, search_span),
        )

        if not windows:
            return AvailabilityResult(
                duration=settings.response_duration,
                message=NO_WINDOWS_MESSAGE,
            )

        busy_periods = await self.fetch_busy_periods(address, connection, search_span, now)

        calculator = SlotCalculator(settings.to_config(self._defaults))
        slots = calculator.compute_available_slots(
            windows=windows,
            busy_periods=busy_periods,
            existing_bookings=bookings,
            date_range=date_range,
            now=now,
        )

        logger.info(
            "Found %d slots for %s (%d windows, %d busy periods, %d bookings)",
            len(slots),
            address,
            len(windows),
            len(busy_periods),
            len(bookings),
        )

        return AvailabilityResult(
            available_slots=slots,
            duration=settings.response_duration,
            timezone=reference_timezone(windows),
        )

    def list_windows(self, user_address: Optional[str]) -> List[AvailabilityWindow]:
        """Active windows for a user, as the booking page lists them."""
        if not user_address or not user_address.strip():
            raise InvalidRequestError("User address required")
        return self._store.get_active_windows(user_address.strip().lower())

    def resolve_range(
        self,
        start_date: Optional[DateTime],
        end_date: Optional[DateTime],
        now: DateTime,
    ) -> DateRange:
        """Fill in a missing start (now) or end (now + default range)."""
        start = start_date or now
        end = end_date or now.add(days=self._default_range_days)
        try:
            return DateRange(start=start, end=end)
        except ValueError as exc:
            raise InvalidRequestError(str(exc)) from exc

    async def fetch_busy_periods(
        self,
        user_address: str,
        connection: Optional[CalendarConnection],
        span: TimeRange,
        now: DateTime,
    ) -> List[TimeRange]:
        """
        Fetch busy periods from the connected calendar, failing open.

        An expired token is refreshed once before the lookup. Any error
        raised by the calendar client or the refresher yields an empty list.
        ``span`` should come from ``slot_search_span`` so that every busy
        period touching a generated slot is returned.
        """
        if connection is None or not connection.access_token:
            logger.debug("No Google Calendar connected for %s", user_address)
            return []

        access_token = await self._refresh_if_expired(user_address, connection, now)

        try:
            return await self._with_timeout(
                self._calendar_timeout,
                self._calendar_client.get_busy_periods,
                access_token,
                connection.calendar_id,
                span.start,
                span.end,
            )
        except (CalendarAPIError, AuthenticationError) as exc:
            logger.warning("Google Calendar lookup failed for %s: %s", user_address, exc)
        except asyncio.TimeoutError:
            logger.warning(
                "Google Calendar lookup for %s timed out after %ss",
                user_address,
                self._calendar_timeout,
            )
        except Exception:
            logger.warning(
                "Unexpected error from Google Calendar for %s", user_address, exc_info=True
            )
        return []

    async def _refresh_if_expired(
        self,
        user_address: str,
        connection: CalendarConnection,
        now: DateTime,
    ) -> str:
        """Return a usable access token, refreshing it at most once."""
        access_token = connection.access_token
        if not connection.is_expired(now) or not connection.refresh_token:
            return access_token
        if self._token_refresher is None:
            return access_token

        logger.info("Refreshing expired Google token for %s", user_address)
        try:
            grant = await self._with_timeout(
                self._calendar_timeout,
                self._token_refresher.refresh,
                connection.refresh_token,
            )
        except AuthenticationError as exc:
            logger.warning("Token refresh failed for %s: %s", user_address, exc)
            return access_token
        except asyncio.TimeoutError:
            logger.warning("Token refresh for %s timed out", user_address)
            return access_token
        except Exception:
            logger.warning(
                "Unexpected error refreshing token for %s", user_address, exc_info=True
            )
            return access_token

        try:
            await self._run_store(
                self._store.update_calendar_tokens,
                user_address,
                grant.access_token,
                grant.expires_at,
            )
        except StoreError as exc:
            logger.warning("Could not store refreshed token for %s: %s", user_address, exc)

        return grant.access_token

    async def _fetch_connection(self, user_address: str) -> Optional[CalendarConnection]:
        try:
            return await self._run_store(self._store.get_calendar_connection, user_address)
        except StoreError as exc:
            logger.warning("Could not load calendar connection for %s: %s", user_address, exc)
            return None

    async def _fetch_bookings(
        self,
        user_address: str,
        span: TimeRange,
    ) -> List[ExistingBooking]:
        try:
            return await self._run_store(
                self._store.get_bookings,
                user_address,
                span.start,
                span.end,
            )
        except StoreError as exc:
            logger.warning("Could not load scheduled calls for %s: %s", user_address, exc)
            return []

    async def _run_store(self, func: Callable[..., T], *args) -> T:
        """Run a store call; a timeout is reported as a StoreError."""
        try:
            return await self._with_timeout(self._store_timeout, func, *args)
        except asyncio.TimeoutError as exc:
            raise StoreError(
                f"{func.__name__} timed out after {self._store_timeout}s"
            ) from exc

    @staticmethod
    async def _with_timeout(timeout: float, func: Callable[..., T], *args) -> T:
        """Run a blocking adapter call in a worker thread, bounded by ``timeout``."""
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)

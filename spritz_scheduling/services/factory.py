"""
Wiring of concrete adapters into an ``AvailabilityService``.
"""

import logging

from ..adapters.google_authenticator import GoogleTokenRefresher
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.mock_clients import MockCalendarClient, MockSchedulingStore, MockTokenRefresher
from ..adapters.supabase_client import SupabaseRestClient
from ..adapters.supabase_store import SupabaseSchedulingStore
from ..config import AppConfig
from .availability import AvailabilityService

logger = logging.getLogger(__name__)


def build_availability_service(config: AppConfig, mock: bool = False) -> AvailabilityService:
    """
    Build the service against Supabase and Google, or the bundled mock data.

    Raises:
        ValueError: If Supabase is not configured and mock mode is off
    """
    if mock:
        logger.info("Using mock scheduling data")
        store = MockSchedulingStore()
        calendar_client = MockCalendarClient()
        token_refresher = MockTokenRefresher()
    else:
        if not config.supabase.is_configured():
            raise ValueError(
                "Supabase is not configured. Set supabase.url and supabase.service_role_key "
                "in config.yaml or SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY."
            )
        store = SupabaseSchedulingStore(
            SupabaseRestClient(
                url=config.supabase.url,
                service_role_key=config.supabase.service_role_key,
                timeout=config.timeouts.http_seconds,
            )
        )
        calendar_client = GoogleCalendarClient(timeout=config.timeouts.http_seconds)
        token_refresher = GoogleTokenRefresher(
            client_id=config.google.client_id,
            client_secret=config.google.client_secret,
            timeout=config.timeouts.http_seconds,
        )

    return AvailabilityService(
        store=store,
        calendar_client=calendar_client,
        token_refresher=token_refresher,
        defaults=config.defaults.to_scheduling_config(),
        store_timeout_seconds=config.timeouts.store_seconds,
        calendar_timeout_seconds=config.timeouts.calendar_seconds,
        default_range_days=config.defaults.range_days,
    )

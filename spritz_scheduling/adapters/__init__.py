"""
Adapters layer - External integrations (Supabase, Google Calendar).
"""

from .google_authenticator import GoogleTokenRefresher
from .google_calendar_client import GoogleCalendarClient
from .mock_clients import MockCalendarClient, MockSchedulingStore, MockTokenRefresher
from .supabase_client import SupabaseRestClient
from .supabase_store import SupabaseSchedulingStore

__all__ = [
    "GoogleTokenRefresher",
    "GoogleCalendarClient",
    "MockCalendarClient",
    "MockSchedulingStore",
    "MockTokenRefresher",
    "SupabaseRestClient",
    "SupabaseSchedulingStore",
]

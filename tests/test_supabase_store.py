"""
Tests for the Supabase REST client and scheduling store.
"""

import json

import pytest
import requests

from spritz_scheduling.adapters.supabase_client import SupabaseRestClient
from spritz_scheduling.adapters.supabase_store import SupabaseSchedulingStore
from spritz_scheduling.domain.exceptions import StoreError

from tests.helpers import USER, utc


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.status_code = status_code
        self.content = b"" if payload is None else json.dumps(payload).encode()
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self._payload


class FakeSession:
    """Returns queued responses per table and records every request."""

    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.requests = []

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.requests.append(
            {"method": method, "url": url, "headers": headers, "params": params, "json": json, "timeout": timeout}
        )
        if self.error:
            raise self.error
        table = url.rsplit("/", 1)[-1]
        return self.responses.get(table, FakeResponse([]))


def _store(responses=None, error=None):
    session = FakeSession(responses, error)
    client = SupabaseRestClient("https://project.supabase.co/", "service-key", timeout=3, session=session)
    return SupabaseSchedulingStore(client), session


class TestSupabaseRestClient:
    """Tests for request building."""

    def test_select_builds_postgrest_query(self):
        session = FakeSession({"things": FakeResponse([{"id": 1}])})
        client = SupabaseRestClient("https://project.supabase.co", "service-key", session=session)

        rows = client.select(
            "things",
            columns="id,name",
            filters=[("owner", "eq", "0xabc"), ("status", "in", ["a", "b"]), ("active", "eq", True)],
        )

        assert rows == [{"id": 1}]
        request = session.requests[0]
        assert request["method"] == "GET"
        assert request["url"] == "https://project.supabase.co/rest/v1/things"
        assert request["headers"]["apikey"] == "service-key"
        assert request["headers"]["Authorization"] == "Bearer service-key"
        assert request["params"] == [
            ("select", "id,name"),
            ("owner", "eq.0xabc"),
            ("status", "in.(a,b)"),
            ("active", "eq.true"),
        ]

    def test_select_one_returns_none_when_empty(self):
        client = SupabaseRestClient("https://p.supabase.co", "k", session=FakeSession())

        assert client.select_one("things") is None

    def test_update_requires_filters(self):
        client = SupabaseRestClient("https://p.supabase.co", "k", session=FakeSession())

        with pytest.raises(StoreError):
            client.update("things", {"a": 1}, filters=[])

    def test_http_errors_become_store_errors(self):
        session = FakeSession({"things": FakeResponse({"message": "nope"}, status_code=500)})
        client = SupabaseRestClient("https://p.supabase.co", "k", session=session)

        with pytest.raises(StoreError, match="GET things"):
            client.select("things")

    def test_connection_errors_become_store_errors(self):
        client = SupabaseRestClient(
            "https://p.supabase.co", "k", session=FakeSession(error=requests.exceptions.ConnectionError("down"))
        )

        with pytest.raises(StoreError):
            client.select("things")


class TestSupabaseSchedulingStore:
    """Tests for table mapping."""

    def test_get_settings(self):
        store, session = _store(
            {
                "shout_user_settings": FakeResponse(
                    [{"scheduling_enabled": True, "scheduling_free_duration_minutes": 20}]
                )
            }
        )

        settings = store.get_settings(USER)

        assert settings.scheduling_enabled
        assert settings.free_duration_minutes == 20
        assert ("wallet_address", f"eq.{USER}") in session.requests[0]["params"]
        assert ("limit", "1") in session.requests[0]["params"]

    def test_get_settings_missing_row(self):
        store, _ = _store()

        assert store.get_settings(USER) is None

    def test_get_active_windows_skips_malformed_rows(self):
        store, session = _store(
            {
                "shout_availability_windows": FakeResponse(
                    [
                        {"id": 1, "day_of_week": 1, "start_time": "09:00:00", "end_time": "12:00:00", "timezone": "Europe/Berlin", "is_active": True},
                        {"id": 2, "day_of_week": 9, "start_time": "09:00", "end_time": "12:00"},
                        {"id": 3, "day_of_week": 2},
                    ]
                )
            }
        )

        windows = store.get_active_windows(USER)

        assert len(windows) == 1
        assert windows[0].timezone == "Europe/Berlin"
        assert ("is_active", "eq.true") in session.requests[0]["params"]

    def test_get_bookings_filters_status_and_range(self):
        store, session = _store(
            {
                "shout_scheduled_calls": FakeResponse(
                    [
                        {"scheduled_at": "2024-11-25T09:00:00+00:00", "duration_minutes": 45},
                        {"scheduled_at": "2024-11-25T12:00:00+00:00", "duration_minutes": None},
                    ]
                )
            }
        )

        bookings = store.get_bookings(USER, utc("2024-11-25T00:00:00"), utc("2024-11-26T00:00:00"))

        assert [booking.duration_minutes for booking in bookings] == [45, 30]
        params = session.requests[0]["params"]
        assert ("recipient_wallet_address", f"eq.{USER}") in params
        assert ("status", "in.(pending,confirmed)") in params
        assert ("scheduled_at", "gte.2024-11-25T00:00:00.000Z") in params
        assert ("scheduled_at", "lte.2024-11-26T00:00:00.000Z") in params

    def test_get_calendar_connection(self):
        store, session = _store(
            {
                "shout_calendar_connections": FakeResponse(
                    [
                        {
                            "provider": "google",
                            "access_token": "a",
                            "refresh_token": "r",
                            "token_expires_at": "2024-11-20T10:00:00+00:00",
                            "calendar_id": "me@example.com",
                        }
                    ]
                )
            }
        )

        connection = store.get_calendar_connection(USER)

        assert connection.access_token == "a"
        assert connection.calendar_id == "me@example.com"
        assert connection.token_expires_at == utc("2024-11-20T10:00:00")
        assert ("provider", "eq.google") in session.requests[0]["params"]

    def test_update_calendar_tokens(self):
        store, session = _store()

        store.update_calendar_tokens(USER, "fresh", utc("2024-11-20T11:00:00"))

        request = session.requests[0]
        assert request["method"] == "PATCH"
        assert request["json"] == {
            "access_token": "fresh",
            "token_expires_at": "2024-11-20T11:00:00.000Z",
        }
        assert request["headers"]["Prefer"] == "return=minimal"
        assert ("wallet_address", f"eq.{USER}") in request["params"]

"""
Google Calendar API client for fetching free/busy data.
"""

import logging
from typing import Any, Dict, List

import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import TimeRange
from ..domain.timezones import parse_timestamp, to_utc_iso

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar free/busy lookups.

    Uses the /freeBusy endpoint, which returns busy ranges without event details.
    """

    CALENDAR_API_ENDPOINT = "https://www.googleapis.com/calendar/v3"

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def get_busy_periods(
        self,
        access_token: str,
        calendar_id: str,
        start_time: DateTime,
        end_time: DateTime,
    ) -> List[TimeRange]:
        """
        Get busy periods for one calendar.

        Args:
            access_token: Valid Google OAuth access token
            calendar_id: Calendar to query ("primary" for the user's main calendar)
            start_time: Start of the time window
            end_time: End of the time window

        Returns:
            Busy TimeRange objects in UTC

        Raises:
            CalendarAPIError: If the API call fails or reports a calendar error
        """
        url = f"{self.CALENDAR_API_ENDPOINT}/freeBusy"
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        payload = {
            "timeMin": to_utc_iso(start_time),
            "timeMax": to_utc_iso(end_time),
            "items": [{"id": calendar_id}],
        }

        try:
            response = requests.post(url, headers=headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Failed to fetch free/busy from Google Calendar: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Invalid JSON from Google Calendar: {e}") from e

        return self._parse_freebusy_response(data, calendar_id)

    def _parse_freebusy_response(
        self,
        response_data: Dict[str, Any],
        calendar_id: str,
    ) -> List[TimeRange]:
        """
        Parse the freeBusy API response into our domain model.

        Response format:
        {
            "calendars": {
                "primary": {
                    "busy": [{"start": "2024-11-25T10:00:00Z", "end": "2024-11-25T11:00:00Z"}],
                    "errors": [{"domain": "global", "reason": "notFound"}]
                }
            }
        }
        """
        calendars = response_data.get("calendars") if isinstance(response_data, dict) else None
        if not isinstance(calendars, dict):
            logger.warning("freeBusy response has no calendars mapping: %r", response_data)
            return []

        calendar = calendars.get(calendar_id)
        if not isinstance(calendar, dict):
            return []

        errors = calendar.get("errors") or []
        if errors:
            reasons = ", ".join(
                str(error.get("reason", "unknown")) if isinstance(error, dict) else str(error)
                for error in errors
            )
            raise CalendarAPIError(f"Google Calendar reported errors for {calendar_id}: {reasons}")

        busy_ranges: List[TimeRange] = []
        busy_items = calendar.get("busy") or []
        if not isinstance(busy_items, list):
            logger.warning("Ignoring non-list busy value for %s: %r", calendar_id, busy_items)
            return []

        for item in busy_items:
            try:
                busy_ranges.append(
                    TimeRange(
                        start=parse_timestamp(item["start"]),
                        end=parse_timestamp(item["end"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Could not parse busy period %s: %s", item, e)
                continue

        return busy_ranges

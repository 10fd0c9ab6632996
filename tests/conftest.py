"""
Shared fixtures.
"""

import pytest

from spritz_scheduling.domain.exceptions import CalendarAPIError
from spritz_scheduling.domain.models import AvailabilityWindow, SchedulingSettings

from .helpers import StubCalendarClient, utc


@pytest.fixture
def now():
    return utc("2024-11-20T00:00:00")


@pytest.fixture
def enabled_settings():
    return SchedulingSettings(
        scheduling_enabled=True,
        duration_minutes=30,
        free_duration_minutes=15,
        paid_duration_minutes=30,
        buffer_minutes=15,
        advance_notice_hours=24,
    )


@pytest.fixture
def monday_window():
    # 2024-11-25 is a Monday
    return AvailabilityWindow(day_of_week=1, start_time="09:00", end_time="10:00", timezone="UTC")


@pytest.fixture
def failing_calendar():
    return StubCalendarClient(error=CalendarAPIError("boom"))

"""
Tests for timezone helpers.
"""

from datetime import time

import pendulum
import pytest

from spritz_scheduling.domain.models import AvailabilityWindow
from spritz_scheduling.domain.timezones import (
    day_of_week_in_timezone,
    local_time_to_utc,
    parse_clock_time,
    parse_timestamp,
    reference_timezone,
    to_utc_iso,
)

from tests.helpers import utc


def test_parse_clock_time_drops_seconds():
    assert parse_clock_time("09:30:45") == time(9, 30)


def test_local_time_to_utc_winter_and_summer():
    assert local_time_to_utc(pendulum.date(2024, 1, 15), "14:30", "America/New_York") == utc(
        "2024-01-15T19:30:00"
    )
    assert local_time_to_utc(pendulum.date(2024, 7, 15), "14:30", "America/New_York") == utc(
        "2024-07-15T18:30:00"
    )


def test_day_of_week_uses_sunday_as_zero():
    sunday_noon = utc("2024-11-24T12:00:00")

    assert day_of_week_in_timezone(sunday_noon, "UTC") == 0
    assert day_of_week_in_timezone(sunday_noon, "Pacific/Auckland") == 1
    assert day_of_week_in_timezone(utc("2024-11-24T02:00:00"), "America/Los_Angeles") == 6


def test_reference_timezone_uses_first_window():
    windows = [
        AvailabilityWindow(day_of_week=1, start_time="09:00", end_time="10:00", timezone="Asia/Tokyo"),
        AvailabilityWindow(day_of_week=2, start_time="09:00", end_time="10:00", timezone="Europe/Paris"),
    ]

    assert reference_timezone(windows) == "Asia/Tokyo"
    assert reference_timezone([]) == "UTC"


def test_parse_timestamp_treats_naive_values_as_utc():
    assert parse_timestamp("2024-11-25T09:00:00") == utc("2024-11-25T09:00:00")
    assert parse_timestamp("2024-11-25T10:00:00+01:00") == utc("2024-11-25T09:00:00")


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        parse_timestamp("not a date")


def test_to_utc_iso():
    instant = pendulum.datetime(2024, 11, 25, 10, 0, 0, tz="Europe/Berlin")

    assert to_utc_iso(instant) == "2024-11-25T09:00:00.000Z"

"""
Tests for the command line interface, run against the bundled mock data.
"""

import json

import pendulum
import pytest
import typer
from typer.testing import CliRunner

from spritz_scheduling import __version__
from spritz_scheduling.cli.app import _parse_bound, app

runner = CliRunner()

NEW_YORK_USER = "0x1111111111111111111111111111111111111111"
DISABLED_USER = "0x2222222222222222222222222222222222222222"


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "config.yaml"
    path.write_text("log_level: WARNING\n", encoding="utf-8")
    return str(path)


def test_availability_json(config_file):
    result = runner.invoke(
        app,
        [
            "availability",
            NEW_YORK_USER,
            "--start", "2027-01-04",
            "--end", "2027-01-08",
            "--json",
            "--mock",
            "--config", config_file,
        ],
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["timezone"] == "America/New_York"
    assert payload["duration"] == 30
    starts = [slot["start"] for slot in payload["availableSlots"]]
    # Monday 09:00-12:00 New York is 14:00-17:00Z, busy 15:00-16:00Z
    assert [start for start in starts if start.startswith("2027-01-04")] == [
        "2027-01-04T14:00:00.000Z",
        "2027-01-04T14:30:00.000Z",
        "2027-01-04T16:00:00.000Z",
        "2027-01-04T16:30:00.000Z",
    ]
    # confirmed booking at 14:30Z on Tuesday
    assert "2027-01-05T14:30:00.000Z" not in starts
    assert starts == sorted(starts)


def test_availability_table(config_file):
    result = runner.invoke(
        app,
        ["availability", NEW_YORK_USER, "--start", "2027-01-04", "--end", "2027-01-04", "--mock", "--config", config_file],
    )

    assert result.exit_code == 0
    assert "America/New_York" in result.stdout
    assert "4 slot(s)" in result.stdout


def test_availability_for_disabled_user(config_file):
    result = runner.invoke(app, ["availability", DISABLED_USER, "--mock", "--config", config_file])

    assert result.exit_code == 0
    assert "User does not have scheduling enabled" in result.stdout


def test_availability_rejects_bad_date(config_file):
    result = runner.invoke(
        app, ["availability", NEW_YORK_USER, "--start", "someday", "--mock", "--config", config_file]
    )

    assert result.exit_code == 1
    assert "Invalid --start" in result.stdout


def test_windows(config_file):
    result = runner.invoke(app, ["windows", NEW_YORK_USER, "--mock", "--config", config_file])

    assert result.exit_code == 0
    assert "Monday" in result.stdout
    assert "Friday" in result.stdout
    assert "Saturday" not in result.stdout


def test_missing_config_file(tmp_path):
    result = runner.invoke(
        app, ["availability", NEW_YORK_USER, "--mock", "--config", str(tmp_path / "nope.yaml")]
    )

    assert result.exit_code == 1
    assert "Config file not found" in result.stdout


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


class TestParseBound:
    """Tests for --start/--end parsing."""

    def test_date_is_a_utc_day_boundary(self):
        assert _parse_bound("2027-01-04", "--start") == pendulum.datetime(2027, 1, 4, tz="UTC")
        assert _parse_bound("2027-01-04", "--end", end_of_day=True) == pendulum.datetime(
            2027, 1, 4, tz="UTC"
        ).end_of("day")

    def test_timestamp_is_kept(self):
        assert _parse_bound("2027-01-04T10:00:00+01:00", "--start") == pendulum.datetime(
            2027, 1, 4, 9, tz="UTC"
        )
        assert _parse_bound("2027-01-04T10:00:00", "--end", end_of_day=True) == pendulum.datetime(
            2027, 1, 4, 10, tz="UTC"
        )

    def test_empty_is_none(self):
        assert _parse_bound(None, "--start") is None
        assert _parse_bound("  ", "--start") is None

    @pytest.mark.parametrize("value", ["10:00", "2027-13-01", "someday"])
    def test_invalid_values_exit(self, value):
        with pytest.raises(typer.Exit):
            _parse_bound(value, "--start")


def test_availability_with_timestamp_bounds(config_file):
    result = runner.invoke(
        app,
        [
            "availability",
            NEW_YORK_USER,
            "--start", "2027-01-04T00:00:00Z",
            "--end", "2027-01-04T23:00:00Z",
            "--json",
            "--mock",
            "--config", config_file,
        ],
    )

    assert result.exit_code == 0
    assert len(json.loads(result.stdout)["availableSlots"]) == 4

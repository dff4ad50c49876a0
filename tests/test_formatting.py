"""Tests for focus_tracker.utils.formatting."""

import pytest

from focus_tracker.utils.formatting import (
    format_duration,
    format_hours_minutes,
    format_minutes_hhmm,
    format_time,
    to_percent,
)


@pytest.mark.parametrize("ms,expected", [
    (25 * 60 * 1000, "25:00"),
    (59_001, "01:00"),
    (59_000, "00:59"),
    (1, "00:01"),
    (0, "00:00"),
    (-500, "00:00"),
    (90 * 60 * 1000, "90:00"),
])
def test_format_time(ms, expected):
    assert format_time(ms) == expected


@pytest.mark.parametrize("minutes,expected", [
    (0, "0m"),
    (45, "45m"),
    (60, "1h"),
    (85, "1h 25m"),
    (120, "2h"),
])
def test_format_hours_minutes(minutes, expected):
    assert format_hours_minutes(minutes) == expected


def test_format_duration_truncates_partial_minutes():
    assert format_duration(90 * 60 * 1000 + 59_999) == "1h 30m"


def test_format_minutes_hhmm():
    assert format_minutes_hhmm(125) == "2:05"


def test_to_percent():
    assert to_percent(66.5) == "67%"
    assert to_percent(12.4) == "12%"

"""Tests for focus_tracker.utils.week_utils."""

from datetime import datetime

from focus_tracker.utils.week_utils import (
    current_week,
    format_range,
    is_current_week,
    next_week,
    previous_week,
    start_of_week,
    week_bounds,
)


def test_start_of_week_is_monday_midnight():
    assert start_of_week(datetime(2025, 9, 17, 15, 30)) == datetime(2025, 9, 15)
    assert start_of_week(datetime(2025, 9, 15, 0, 0)) == datetime(2025, 9, 15)
    assert start_of_week(datetime(2025, 9, 21, 23, 59)) == datetime(2025, 9, 15)


def test_week_bounds():
    week = week_bounds(datetime(2025, 9, 17))
    assert week.start == datetime(2025, 9, 15)
    assert week.end == datetime(2025, 9, 21, 23, 59, 59, 999000)


def test_week_crossing_year():
    week = week_bounds(datetime(2025, 1, 1))
    assert week.start == datetime(2024, 12, 30)
    assert week.end.date() == datetime(2025, 1, 5).date()


def test_previous_and_next():
    start = datetime(2025, 9, 15)
    assert previous_week(start).start == datetime(2025, 9, 8)
    assert next_week(start).start == datetime(2025, 9, 22)


def test_current_week():
    now = datetime(2025, 9, 18, 8)
    assert current_week(now).start == datetime(2025, 9, 15)
    assert is_current_week(datetime(2025, 9, 21, 22), now=now)
    assert not is_current_week(datetime(2025, 9, 22), now=now)


def test_format_range():
    week = week_bounds(datetime(2025, 9, 17))
    assert format_range(week.start, week.end) == "Mon 15 Sep 2025 - Sun 21 Sep 2025"

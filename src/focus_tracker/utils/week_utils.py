"""Monday-start week boundaries in local time."""

from datetime import datetime, timedelta

from focus_tracker.types.analytics import Range


def start_of_week(dt: datetime) -> datetime:
    day = dt.replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=day.weekday())


def week_bounds(dt: datetime) -> Range:
    """Monday 00:00:00.000 through Sunday 23:59:59.999 of the week containing ``dt``."""
    start = start_of_week(dt)
    end = start + timedelta(days=6, hours=23, minutes=59, seconds=59, microseconds=999000)
    return Range(start=start, end=end)


def current_week(now: datetime | None = None) -> Range:
    return week_bounds(now or datetime.now())


def previous_week(current_start: datetime) -> Range:
    return week_bounds(current_start - timedelta(weeks=1))


def next_week(current_start: datetime) -> Range:
    return week_bounds(current_start + timedelta(weeks=1))


def is_current_week(dt: datetime, now: datetime | None = None) -> bool:
    week = current_week(now)
    return week.start <= dt <= week.end


def format_range(start: datetime, end: datetime) -> str:
    """e.g. ``Mon 15 Sep 2025 - Sun 21 Sep 2025``."""
    return f"{start:%a %d %b %Y} - {end:%a %d %b %Y}"

"""Human-readable formatting for durations and percentages."""

import math


def format_time(milliseconds: int) -> str:
    """Countdown display, e.g. ``24:59``. Partial seconds round up."""
    total_seconds = math.ceil(max(0, milliseconds) / 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_duration(milliseconds: int) -> str:
    minutes = max(0, milliseconds) // 60000
    return format_hours_minutes(minutes)


def format_hours_minutes(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_minutes_hhmm(total_minutes: int) -> str:
    hours, mins = divmod(int(total_minutes), 60)
    return f"{hours}:{mins:02d}"


def to_percent(n: float) -> str:
    return f"{math.floor(n + 0.5)}%"

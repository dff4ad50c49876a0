"""Pure aggregation functions over a session log.

None of these functions mutate their input or keep state between calls; empty
or missing data yields zero-valued results. Range filters apply to each
session's start time. Minute rounding is half-up, matching how the totals are
displayed elsewhere.
"""

import math
from datetime import date, datetime, timedelta
from typing import Iterable

from focus_tracker.types import (
    AnalyticsSummary,
    Distribution,
    DistributionEntry,
    Range,
    Session,
    SessionMode,
    SessionStatus,
    StreakStats,
)
from focus_tracker.utils.week_utils import start_of_week

MS_PER_MINUTE = 60000
COMPLETION_THRESHOLD = 0.9
HEATMAP_ROW_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _round_minutes(ms: float) -> int:
    return int(round_half_up(ms / MS_PER_MINUTE))


def _local_date(ts_ms: int) -> date:
    return datetime.fromtimestamp(ts_ms / 1000).date()


def in_range(ts: int, date_range: Range) -> bool:
    """Inclusive on both ends."""
    return date_range.start_ms <= ts <= date_range.end_ms


def actual_ms(session: Session) -> int:
    """Recorded duration; 0 unless the session completed with an end time."""
    if session.ended_at is None or session.status != SessionStatus.COMPLETED:
        return 0
    return session.ended_at - session.started_at


def focus_sessions(log: Iterable[Session]) -> list[Session]:
    """Completed sessions whose mode is not break."""
    return [
        s for s in log
        if s.mode != SessionMode.BREAK and s.status == SessionStatus.COMPLETED
    ]


def _filtered_focus(log: Iterable[Session], date_range: Range | None) -> list[Session]:
    return [
        s for s in focus_sessions(log)
        if date_range is None or in_range(s.started_at, date_range)
    ]


def total_focus_time(log: Iterable[Session], date_range: Range | None = None) -> int:
    """Minutes, rounded once on the summed duration."""
    total = sum(actual_ms(s) for s in _filtered_focus(log, date_range))
    return _round_minutes(total)


def sessions_completed(log: Iterable[Session], date_range: Range | None = None) -> int:
    """Completed sessions of any mode, breaks included."""
    return sum(
        1 for s in log
        if s.status == SessionStatus.COMPLETED
        and (date_range is None or in_range(s.started_at, date_range))
    )


def avg_session_length(log: Iterable[Session], date_range: Range | None = None) -> float:
    """Mean focus session length in minutes, one decimal place."""
    filtered = _filtered_focus(log, date_range)
    if not filtered:
        return 0.0
    avg_ms = sum(actual_ms(s) for s in filtered) / len(filtered)
    return round_half_up(avg_ms / MS_PER_MINUTE, 1)


def completion_rate(log: Iterable[Session], date_range: Range | None = None) -> int:
    """Percent of focus sessions that ran at least 90% of their planned time."""
    filtered = _filtered_focus(log, date_range)
    if not filtered:
        return 0
    well_completed = sum(
        1 for s in filtered if actual_ms(s) >= COMPLETION_THRESHOLD * s.planned_ms
    )
    return int(round_half_up(well_completed / len(filtered) * 100))


def distribution_by_mode(log: Iterable[Session], date_range: Range | None = None) -> Distribution:
    """Minutes per mode. Each session is rounded before it is added."""
    distribution: Distribution = {}
    for s in _filtered_focus(log, date_range):
        key = s.mode.value if isinstance(s.mode, SessionMode) else str(s.mode)
        distribution[key] = distribution.get(key, 0) + _round_minutes(actual_ms(s))
    return distribution


def distribution_by_tag(
    log: Iterable[Session],
    date_range: Range | None = None,
    top_n: int = 10,
) -> tuple[Distribution, int]:
    """Minutes per tag, limited to the ``top_n`` largest, plus the remainder.

    A session's full duration is credited to every tag it carries, so the tag
    totals can add up to more than the total focus time. Ties keep the order in
    which tags were first seen.
    """
    distribution: Distribution = {}
    for s in _filtered_focus(log, date_range):
        minutes = _round_minutes(actual_ms(s))
        for tag in dict.fromkeys(s.tags):
            distribution[tag] = distribution.get(tag, 0) + minutes

    ranked = sorted(distribution.items(), key=lambda item: item[1], reverse=True)
    top = dict(ranked[:max(0, top_n)])
    other = sum(minutes for _, minutes in ranked[max(0, top_n):])
    return top, other


def weekly_heatmap(
    log: Iterable[Session],
    weeks: int,
    now: datetime | None = None,
) -> list[list[int]]:
    """7 x ``weeks`` matrix of focus minutes.

    Rows are Monday..Sunday, the last column is the week containing ``now``.
    Sessions outside the window are ignored.
    """
    weeks = max(0, weeks)
    now = now or datetime.now()
    current_week_start = start_of_week(now).date()
    matrix = [[0] * weeks for _ in range(7)]

    for s in focus_sessions(log):
        day = _local_date(s.started_at)
        week_start = day - timedelta(days=day.weekday())
        column = weeks - 1 - (current_week_start - week_start).days // 7
        if 0 <= column < weeks:
            matrix[day.weekday()][column] += _round_minutes(actual_ms(s))

    return matrix


def heatmap_column_labels(weeks: int, now: datetime | None = None) -> list[str]:
    """Week start dates as ``M/d``, oldest first."""
    current_week_start = start_of_week(now or datetime.now())
    labels = []
    for i in range(max(0, weeks)):
        week_start = current_week_start - timedelta(weeks=weeks - 1 - i)
        labels.append(f"{week_start.month}/{week_start.day}")
    return labels


def streaks(log: Iterable[Session], today: date | None = None) -> StreakStats:
    """Current and longest runs of consecutive days with a focus session."""
    days = {_local_date(s.started_at) for s in focus_sessions(log)}
    if not days:
        return StreakStats(current=0, longest=0)

    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()

    current = 0
    check = today
    while check in days:
        current += 1
        check -= timedelta(days=1)

    longest = 0
    run = 0
    previous = None
    for day in sorted(days):
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day

    return StreakStats(current=current, longest=longest)


def summarize(
    log: Iterable[Session],
    date_range: Range | None = None,
    weeks: int = 6,
    top_n: int = 10,
    now: datetime | None = None,
) -> AnalyticsSummary:
    """Every dashboard figure for one log snapshot."""
    sessions = list(log)
    now = now or datetime.now()

    mode_entries = [
        DistributionEntry(label, value)
        for label, value in sorted(
            distribution_by_mode(sessions, date_range).items(),
            key=lambda item: item[1], reverse=True,
        )
    ]
    top_tags, other_minutes = distribution_by_tag(sessions, date_range, top_n)
    tag_entries = [DistributionEntry(label, value) for label, value in top_tags.items()]
    if other_minutes > 0:
        tag_entries.append(DistributionEntry("Other", other_minutes))

    streak = streaks(sessions, today=now.date())
    return AnalyticsSummary(
        total_focus_time=total_focus_time(sessions, date_range),
        sessions_completed=sessions_completed(sessions, date_range),
        avg_session_length=avg_session_length(sessions, date_range),
        completion_rate=completion_rate(sessions, date_range),
        mode_distribution=mode_entries,
        tag_distribution=tag_entries,
        heatmap_matrix=weekly_heatmap(sessions, weeks, now=now),
        heatmap_row_labels=list(HEATMAP_ROW_LABELS),
        heatmap_col_labels=heatmap_column_labels(weeks, now=now),
        current_streak=streak.current,
        longest_streak=streak.longest,
    )

"""Type definitions for Focus Tracker."""

from focus_tracker.types.sessions import (
    LinkRef,
    METADATA_FIELDS,
    LinkType,
    Session,
    SessionMode,
    SessionStatus,
    TimerPreset,
    TIMER_PRESETS,
    preset_for,
    transition_status,
)
from focus_tracker.types.timer import CycleMode, CycleSettings, CycleState, TimerState
from focus_tracker.types.analytics import (
    AnalyticsSummary,
    Distribution,
    DistributionEntry,
    Range,
    StreakStats,
)

__all__ = [
    "LinkRef",
    "METADATA_FIELDS",
    "LinkType",
    "Session",
    "SessionMode",
    "SessionStatus",
    "TimerPreset",
    "TIMER_PRESETS",
    "preset_for",
    "transition_status",
    "CycleMode",
    "CycleSettings",
    "CycleState",
    "TimerState",
    "AnalyticsSummary",
    "Distribution",
    "DistributionEntry",
    "Range",
    "StreakStats",
]

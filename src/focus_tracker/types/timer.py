"""Ephemeral timer and work/break cycle state."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TimerState:
    remaining_ms: int
    elapsed_ms: int
    is_running: bool = False
    is_paused: bool = False
    is_completed: bool = False


class CycleMode(str, Enum):
    WORK = "work"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"

    @property
    def is_break(self) -> bool:
        return self is not CycleMode.WORK


@dataclass
class CycleSettings:
    work_duration_ms: int = 25 * 60 * 1000
    short_break_duration_ms: int = 5 * 60 * 1000
    long_break_duration_ms: int = 15 * 60 * 1000
    sessions_per_cycle: int = 4
    auto_start_breaks: bool = False
    auto_start_work: bool = False
    auto_start_delay_ms: int = 1000

    def duration_for(self, mode: CycleMode) -> int:
        if mode is CycleMode.SHORT_BREAK:
            return self.short_break_duration_ms
        if mode is CycleMode.LONG_BREAK:
            return self.long_break_duration_ms
        return self.work_duration_ms

    def auto_starts(self, mode: CycleMode) -> bool:
        return self.auto_start_breaks if mode.is_break else self.auto_start_work


@dataclass(frozen=True)
class CycleState:
    current_mode: CycleMode
    current_session_index: int
    completed_pomodoros: int
    completed_cycles: int
    progress_pct: float
    remaining_ms: int
    is_running: bool = False
    is_paused: bool = False

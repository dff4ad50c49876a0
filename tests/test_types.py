"""Tests for focus_tracker.types."""

import pytest

from focus_tracker.errors import FocusTrackerError, InvalidTransition
from focus_tracker.types import (
    CycleMode,
    CycleSettings,
    SessionMode,
    SessionStatus,
    TIMER_PRESETS,
    preset_for,
    transition_status,
)
from helpers import make_session


class TestTransitionStatus:
    @pytest.mark.parametrize("requested", [SessionStatus.COMPLETED, SessionStatus.CANCELLED])
    def test_running_to_terminal(self, requested):
        assert transition_status(SessionStatus.RUNNING, requested) is requested

    @pytest.mark.parametrize("current", [SessionStatus.COMPLETED, SessionStatus.CANCELLED])
    @pytest.mark.parametrize("requested", list(SessionStatus))
    def test_terminal_is_final(self, current, requested):
        with pytest.raises(InvalidTransition) as exc:
            transition_status(current, requested)
        assert exc.value.current == current.value
        assert str(exc.value) == f"Cannot transition from {current.value!r} to {requested.value!r}"

    def test_running_to_running_rejected(self):
        with pytest.raises(InvalidTransition):
            transition_status(SessionStatus.RUNNING, SessionStatus.RUNNING)

    def test_is_focus_tracker_error(self):
        assert issubclass(InvalidTransition, FocusTrackerError)


class TestPresets:
    def test_preset_durations(self):
        minutes = {p.id: p.duration for p in TIMER_PRESETS}
        assert minutes == {
            SessionMode.LIT: 25,
            SessionMode.ANALYSIS: 45,
            SessionMode.WRITING: 30,
            SessionMode.DEEP: 90,
            SessionMode.BREAK: 15,
        }

    def test_preset_for_accepts_strings(self):
        assert preset_for("deep").name == "Deep Work"
        assert preset_for("unknown") is None

    def test_duration_ms(self):
        assert preset_for(SessionMode.LIT).duration_ms == 25 * 60 * 1000


class TestCycleSettings:
    def test_duration_for(self):
        settings = CycleSettings(work_duration_ms=1, short_break_duration_ms=2, long_break_duration_ms=3)
        assert settings.duration_for(CycleMode.WORK) == 1
        assert settings.duration_for(CycleMode.SHORT_BREAK) == 2
        assert settings.duration_for(CycleMode.LONG_BREAK) == 3

    def test_auto_starts(self):
        settings = CycleSettings(auto_start_breaks=True)
        assert settings.auto_starts(CycleMode.LONG_BREAK)
        assert not settings.auto_starts(CycleMode.WORK)

    def test_mode_values(self):
        assert [m.value for m in CycleMode] == ["work", "shortBreak", "longBreak"]


def test_is_focus():
    assert make_session(0).is_focus
    assert not make_session(0, mode=SessionMode.BREAK).is_focus
    assert not make_session(0, status=SessionStatus.CANCELLED).is_focus

"""Work / short break / long break cycle built on AccurateTimer."""

import dataclasses
import logging
from typing import Callable

from PySide6.QtCore import QObject, Signal, Slot, QTimer

from focus_tracker.services.accurate_timer import AccurateTimer, DEFAULT_INTERVAL_MS
from focus_tracker.types.timer import CycleMode, CycleSettings, CycleState

logger = logging.getLogger(__name__)


class PomodoroCycle(QObject):
    """Sequences work and break phases.

    The mode only advances when the underlying timer completes (or on ``skip()``).
    When the auto-start flag for the next phase is off, the mode still changes but
    the timer waits for an explicit ``start()``.
    """

    state_changed = Signal(object)   # CycleState
    phase_completed = Signal(str)    # mode that just finished
    mode_changed = Signal(str)       # mode now current

    def __init__(
        self,
        settings: CycleSettings | None = None,
        parent=None,
        timer: AccurateTimer | None = None,
        clock: Callable[[], int] | None = None,
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ):
        super().__init__(parent)
        self._settings = settings or CycleSettings()
        self._mode = CycleMode.WORK
        self._session_index = 1
        self._completed_pomodoros = 0
        self._completed_cycles = 0

        if timer is None:
            timer = AccurateTimer(
                self._settings.work_duration_ms, self,
                interval_ms=interval_ms, clock=clock,
            )
        self._timer = timer
        self._timer.set_duration(self._settings.duration_for(self._mode))
        self._timer.completed.connect(self._on_timer_completed)
        self._timer.state_changed.connect(lambda _state: self._emit_state())

        self._auto_start_timer = QTimer(self)
        self._auto_start_timer.setSingleShot(True)
        self._auto_start_timer.timeout.connect(self._on_auto_start)

    @property
    def timer(self) -> AccurateTimer:
        return self._timer

    @property
    def settings(self) -> CycleSettings:
        return self._settings

    @property
    def current_mode(self) -> CycleMode:
        return self._mode

    def state(self) -> CycleState:
        timer_state = self._timer.state()
        return CycleState(
            current_mode=self._mode,
            current_session_index=self._session_index,
            completed_pomodoros=self._completed_pomodoros,
            completed_cycles=self._completed_cycles,
            progress_pct=self._progress_pct(),
            remaining_ms=timer_state.remaining_ms,
            is_running=timer_state.is_running,
            is_paused=timer_state.is_paused,
        )

    def _progress_pct(self) -> float:
        target = self._timer.duration_ms
        if target <= 0:
            return 0.0
        pct = self._timer.state().elapsed_ms / target * 100
        return max(0.0, min(100.0, pct))

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    @Slot()
    def start(self):
        self._auto_start_timer.stop()
        self._timer.start()

    @Slot()
    def pause(self):
        self._auto_start_timer.stop()
        self._timer.pause()

    @Slot()
    def resume(self):
        self._timer.resume()

    @Slot()
    def restart_phase(self):
        """Rewind the current phase to its full duration without changing mode."""
        self._auto_start_timer.stop()
        self._timer.reset()

    @Slot()
    def reset(self):
        """Return to the first work phase with all counters cleared."""
        self._auto_start_timer.stop()
        self._mode = CycleMode.WORK
        self._session_index = 1
        self._completed_pomodoros = 0
        self._completed_cycles = 0
        self._timer.stop()
        self._timer.set_duration(self._settings.duration_for(self._mode))
        self.mode_changed.emit(self._mode.value)
        self._emit_state()

    @Slot()
    def skip(self):
        """Finish the current phase now, as if its timer had run out."""
        self._auto_start_timer.stop()
        self._timer.stop()
        self._advance()

    def update_settings(self, **changes):
        self._settings = dataclasses.replace(self._settings, **changes)
        if not self._timer.is_running and not self._timer.is_paused:
            self._timer.set_duration(self._settings.duration_for(self._mode))
        self._emit_state()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_timer_completed(self):
        self._advance()

    def _advance(self):
        finished = self._mode
        if finished is CycleMode.WORK:
            self._completed_pomodoros += 1
            per_cycle = max(1, self._settings.sessions_per_cycle)
            if self._completed_pomodoros % per_cycle == 0:
                next_mode = CycleMode.LONG_BREAK
                self._completed_cycles += 1
            else:
                next_mode = CycleMode.SHORT_BREAK
        else:
            next_mode = CycleMode.WORK
            self._session_index += 1

        logger.info("Phase %s finished, next is %s", finished.value, next_mode.value)
        self.phase_completed.emit(finished.value)

        self._mode = next_mode
        self._timer.set_duration(self._settings.duration_for(next_mode))
        self.mode_changed.emit(next_mode.value)
        self._emit_state()

        if self._settings.auto_starts(next_mode):
            delay = self._settings.auto_start_delay_ms
            if delay <= 0:
                self._timer.start()
            else:
                self._auto_start_timer.start(delay)

    def _on_auto_start(self):
        if self._timer.is_running or self._timer.is_paused:
            return
        self._timer.start()

    def _emit_state(self):
        self.state_changed.emit(self.state())

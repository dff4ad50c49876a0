"""Drift-corrected countdown timer driven by a periodic Qt tick."""

import logging
import time
from typing import Callable

from PySide6.QtCore import QObject, Signal, Slot, Property, QTimer

from focus_tracker.errors import InvalidTransition
from focus_tracker.types.timer import TimerState

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000
DEFAULT_UPDATE_THRESHOLD_MS = 100


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class AccurateTimer(QObject):
    """Countdown that recomputes elapsed time from the wall clock on every tick.

    Elapsed time is ``now - start_time - paused_accumulator`` rather than a sum of
    tick increments, so irregular tick delivery never accumulates error. Ticks are
    bound to a generation number; stop/reset/pause bump the generation so a tick
    scheduled before them is ignored.
    """

    state_changed = Signal(object)   # TimerState, throttled
    ticked = Signal(object)          # TimerState, every recomputation
    completed = Signal()
    running_changed = Signal()

    def __init__(
        self,
        duration_ms: int = 0,
        parent=None,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        update_threshold_ms: int = DEFAULT_UPDATE_THRESHOLD_MS,
        clock: Callable[[], int] | None = None,
        strict: bool = False,
    ):
        super().__init__(parent)
        self._clock = clock or wall_clock_ms
        self._strict = strict
        self._update_threshold_ms = update_threshold_ms

        self._duration_ms = max(0, int(duration_ms))
        self._remaining_ms = self._duration_ms
        self._elapsed_ms = 0
        self._is_running = False
        self._is_paused = False
        self._is_completed = False

        self._start_time: int | None = None
        self._paused_accumulator = 0
        self._pause_began_at: int | None = None
        self._generation = 0
        self._tick_connected = False

        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(max(1, int(interval_ms)))

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    def _get_remaining_ms(self) -> int:
        return self._remaining_ms

    remainingMs = Property(int, _get_remaining_ms, notify=running_changed)

    def _get_elapsed_ms(self) -> int:
        return self._elapsed_ms

    elapsedMs = Property(int, _get_elapsed_ms, notify=running_changed)

    def _get_running(self) -> bool:
        return self._is_running

    running = Property(bool, _get_running, notify=running_changed)

    @property
    def duration_ms(self) -> int:
        return self._duration_ms

    @property
    def interval_ms(self) -> int:
        return self._tick_timer.interval()

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def is_completed(self) -> bool:
        return self._is_completed

    def state(self) -> TimerState:
        """Last observed state (what observers were last told)."""
        return TimerState(
            remaining_ms=self._remaining_ms,
            elapsed_ms=self._elapsed_ms,
            is_running=self._is_running,
            is_paused=self._is_paused,
            is_completed=self._is_completed,
        )

    def active_elapsed_ms(self) -> int:
        """Unpaused time since start, read from the clock rather than the last tick."""
        if self._is_completed:
            return self._duration_ms
        if self._start_time is None:
            return self._elapsed_ms
        end = self._pause_began_at if self._pause_began_at is not None else self._clock()
        return min(max(0, end - self._start_time - self._paused_accumulator), self._duration_ms)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    @Slot()
    def start(self):
        if self._is_completed:
            self._reject("start")
            return

        self._start_time = self._clock()
        self._paused_accumulator = 0
        self._pause_began_at = None
        self._remaining_ms = self._duration_ms
        self._elapsed_ms = 0
        self._is_running = True
        self._is_paused = False
        self._schedule_ticks()
        logger.debug("Timer started (%d ms)", self._duration_ms)
        self._push_state()

    @Slot()
    def pause(self):
        if not self._is_running or self._is_paused:
            self._reject("pause")
            return

        now = self._clock()
        # Settle the displayed values at the pause instant; this may complete.
        self._recompute(now)
        if self._is_completed:
            return

        self._cancel_ticks()
        self._pause_began_at = now
        self._is_paused = True
        self._is_running = False
        logger.debug("Timer paused at %d ms remaining", self._remaining_ms)
        self._push_state()

    @Slot()
    def resume(self):
        if not self._is_paused or self._pause_began_at is None:
            self._reject("resume")
            return

        self._paused_accumulator += self._clock() - self._pause_began_at
        self._pause_began_at = None
        self._is_paused = False
        self._is_running = True
        self._schedule_ticks()
        logger.debug("Timer resumed (paused total %d ms)", self._paused_accumulator)
        self._push_state()

    @Slot()
    def reset(self):
        self._cancel_ticks()
        self._start_time = None
        self._paused_accumulator = 0
        self._pause_began_at = None
        self._remaining_ms = self._duration_ms
        self._elapsed_ms = 0
        self._is_running = False
        self._is_paused = False
        self._is_completed = False
        self._push_state()

    @Slot()
    def stop(self):
        """Halt ticking without marking completion."""
        self._cancel_ticks()
        self._pause_began_at = None
        self._is_running = False
        self._is_paused = False
        self._push_state()

    @Slot(int)
    def set_duration(self, duration_ms: int):
        if self._is_running:
            self._reject("set_duration")
            return

        self._cancel_ticks()
        self._duration_ms = max(0, int(duration_ms))
        self._remaining_ms = self._duration_ms
        self._elapsed_ms = 0
        self._start_time = None
        self._paused_accumulator = 0
        self._pause_began_at = None
        self._is_paused = False
        self._is_completed = False
        self._push_state()

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def _schedule_ticks(self):
        """(Re)arm the periodic tick bound to a fresh generation."""
        self._generation += 1
        generation = self._generation
        if self._tick_connected:
            self._tick_timer.timeout.disconnect()
        self._tick_timer.timeout.connect(lambda: self._tick(generation))
        self._tick_connected = True
        self._tick_timer.start()

    def _cancel_ticks(self):
        self._generation += 1
        self._tick_timer.stop()

    def _tick(self, generation: int):
        if generation != self._generation or not self._is_running:
            logger.debug("Dropping stale tick (generation %d)", generation)
            return
        self._recompute(self._clock())

    def _recompute(self, now: int):
        if self._start_time is None:
            return

        raw_elapsed = now - self._start_time - self._paused_accumulator
        elapsed = min(max(0, raw_elapsed), self._duration_ms)
        remaining = self._duration_ms - elapsed

        elapsed_diff = abs(elapsed - self._elapsed_ms)
        remaining_diff = abs(remaining - self._remaining_ms)
        if (
            elapsed_diff >= self._update_threshold_ms
            or remaining_diff >= self._update_threshold_ms
            or remaining == 0
        ):
            self._elapsed_ms = elapsed
            self._remaining_ms = remaining
            if remaining != 0:
                self._push_state()

        self.ticked.emit(TimerState(
            remaining_ms=remaining,
            elapsed_ms=elapsed,
            is_running=self._is_running,
            is_paused=self._is_paused,
            is_completed=self._is_completed or remaining == 0,
        ))

        if remaining == 0 and not self._is_completed:
            self._complete()

    def _complete(self):
        self._cancel_ticks()
        self._is_completed = True
        self._is_running = False
        self._is_paused = False
        logger.debug("Timer completed after %d ms", self._duration_ms)
        self._push_state()
        self.completed.emit()

    def _push_state(self):
        self.state_changed.emit(self.state())
        self.running_changed.emit()

    def _status_name(self) -> str:
        if self._is_completed:
            return "completed"
        if self._is_running:
            return "running"
        if self._is_paused:
            return "paused"
        return "idle"

    def _reject(self, operation: str):
        if self._strict:
            raise InvalidTransition(self._status_name(), operation)
        logger.debug("Ignoring %s() while timer is %s", operation, self._status_name())

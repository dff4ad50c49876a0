"""Session lifecycle: create, annotate and finalize session records around a timer."""

import logging
import uuid
from typing import Any, Callable

from PySide6.QtCore import QObject, Signal, Slot, QTimer

from focus_tracker.errors import InvalidTransition, PersistenceError
from focus_tracker.services.accurate_timer import AccurateTimer, wall_clock_ms
from focus_tracker.services.session_repository import SessionRepository
from focus_tracker.types import (
    METADATA_FIELDS,
    Session,
    SessionMode,
    SessionStatus,
    TimerPreset,
    TimerState,
    transition_status,
)
from focus_tracker.utils.db_retry import clean_db_error, retry_db_operation

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DELAY_MS = 800


class SessionRunner(QObject):
    """Drives one session at a time through running -> completed/cancelled.

    The record is created before the timer starts. Metadata edits are applied
    in memory right away and written to the repository after a quiet period;
    any edits still pending when the session ends go out in the same write as
    the final status.
    """

    session_started = Signal(object)     # Session
    session_updated = Signal(object)     # Session
    session_completed = Signal(object)   # Session, once, status completed
    session_cancelled = Signal(object)   # Session
    persistence_failed = Signal(str)     # user-facing message
    completion_failed = Signal(str)      # final write after timer completion failed
    state_changed = Signal(object)       # TimerState

    def __init__(
        self,
        repository: SessionRepository,
        parent=None,
        autosave_delay_ms: int = DEFAULT_AUTOSAVE_DELAY_MS,
        clock: Callable[[], int] | None = None,
        timer: AccurateTimer | None = None,
        interval_ms: int = 100,
        max_retries: int = 2,
        retry_base_delay: float = 0.1,
    ):
        super().__init__(parent)
        self._repository = repository
        self._clock = clock or wall_clock_ms
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

        self._timer = timer or AccurateTimer(parent=self, interval_ms=interval_ms, clock=self._clock)
        self._timer.state_changed.connect(self.state_changed)
        self._timer.completed.connect(self._on_timer_completed)

        self._current: Session | None = None
        self._pending: dict[str, Any] = {}
        self._ran_to_completion = False

        self._autosave_timer = QTimer(self)
        self._autosave_timer.setSingleShot(True)
        self._autosave_timer.setInterval(max(0, int(autosave_delay_ms)))
        self._autosave_timer.timeout.connect(self._on_autosave)

    @property
    def current_session(self) -> Session | None:
        return self._current

    @property
    def state(self) -> TimerState:
        return self._timer.state()

    @property
    def timer(self) -> AccurateTimer:
        return self._timer

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(self, duration_ms: int, mode: SessionMode | str) -> Session:
        """Create a running session and start the countdown.

        A session that is still running is cancelled first. If the record
        cannot be created the error propagates and the timer is left alone.
        """
        if self._current is not None and self._current.status == SessionStatus.RUNNING:
            logger.info("Cancelling session %s to start a new one", self._current.id)
            self.stop_session(cancelled=True)

        now = self._clock()
        session = Session(
            id=str(uuid.uuid4()),
            mode=SessionMode(mode),
            planned_ms=int(duration_ms),
            started_at=now,
            created_at=now,
            updated_at=now,
        )
        self._write(lambda: self._repository.create(session))

        self._autosave_timer.stop()
        self._pending.clear()
        self._current = session
        self._ran_to_completion = False

        self._timer.reset()
        self._timer.set_duration(session.planned_ms)
        self._timer.start()

        logger.info("Session %s started (%s, %d ms)", session.id, session.mode.value, session.planned_ms)
        self.session_started.emit(session)
        return session

    def start_preset(self, preset: TimerPreset, custom_duration_ms: int | None = None) -> Session:
        duration_ms = custom_duration_ms if custom_duration_ms is not None else preset.duration_ms
        return self.start_session(duration_ms, preset.id)

    @Slot()
    def pause_session(self):
        if self._is_running_session():
            self._timer.pause()

    @Slot()
    def resume_session(self):
        if self._is_running_session():
            self._timer.resume()

    def stop_session(self, cancelled: bool = False) -> Session | None:
        """Finalize the current session and stop the timer.

        Raises InvalidTransition if the session already ended, and
        PersistenceError if the final write fails; in that case the session is
        still running and the call can be repeated.
        """
        if self._current is None:
            logger.debug("stop_session() with no current session")
            return None
        requested = SessionStatus.CANCELLED if cancelled else SessionStatus.COMPLETED
        return self._finalize(requested)

    def reset_session(self):
        """Forget the current session and reset the timer.

        A running session is cancelled in the store first.
        """
        if self._is_running_session():
            self.stop_session(cancelled=True)
        self._autosave_timer.stop()
        self._pending.clear()
        self._current = None
        self._ran_to_completion = False
        self._timer.reset()

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def update_metadata(self, **fields):
        """Edit goal/notes/tags/links on the running session.

        Changes show up in ``current_session`` immediately; the repository
        write is debounced.
        """
        if self._current is None:
            logger.debug("update_metadata() with no current session")
            return
        if self._current.status.is_terminal:
            raise InvalidTransition(self._current.status.value, "update_metadata")
        unknown = set(fields) - METADATA_FIELDS
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")
        if not fields:
            return

        now = self._clock()
        for name, value in fields.items():
            if name in ("tags", "links"):
                value = list(value or [])
            setattr(self._current, name, value)
            self._pending[name] = value
        self._current.updated_at = now
        self._pending["updated_at"] = now

        self._autosave_timer.start()
        self.session_updated.emit(self._current)

    def flush_pending(self) -> bool:
        """Write pending metadata now instead of waiting for the debounce."""
        self._autosave_timer.stop()
        return self._save_pending()

    def cancel_pending(self):
        """Drop pending metadata without writing it."""
        self._autosave_timer.stop()
        self._pending.clear()

    def cleanup(self):
        self._autosave_timer.stop()
        self._timer.stop()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_running_session(self) -> bool:
        return self._current is not None and self._current.status == SessionStatus.RUNNING

    def _write(self, operation: Callable[[], Any], base_delay: float | None = None) -> Any:
        return retry_db_operation(
            operation,
            max_retries=self._max_retries,
            base_delay=self._retry_base_delay if base_delay is None else base_delay,
        )

    def _active_ms(self) -> int:
        if self._ran_to_completion:
            return self._current.planned_ms
        return self._timer.active_elapsed_ms()

    def _finalize(self, requested: SessionStatus) -> Session:
        session = self._current
        status = transition_status(session.status, requested)

        # ended_at - started_at is the focused time; pauses are left out.
        ended_at = session.started_at + self._active_ms()
        now = max(self._clock(), ended_at)
        fields = dict(self._pending)
        fields.update(status=status, ended_at=ended_at, updated_at=now)

        self._autosave_timer.stop()
        try:
            self._write(lambda: self._repository.update(session.id, fields))
        except PersistenceError:
            logger.warning("Failed to finalize session %s as %s", session.id, status.value)
            raise

        session.status = status
        session.ended_at = ended_at
        session.updated_at = now
        self._pending.clear()
        self._timer.stop()

        logger.info("Session %s %s", session.id, status.value)
        if status == SessionStatus.COMPLETED:
            self.session_completed.emit(session)
        else:
            self.session_cancelled.emit(session)
        return session

    @Slot()
    def _on_timer_completed(self):
        if not self._is_running_session():
            return
        self._ran_to_completion = True
        try:
            self._finalize(SessionStatus.COMPLETED)
        except PersistenceError as e:
            message = clean_db_error(e)
            self.persistence_failed.emit(message)
            self.completion_failed.emit(message)

    @Slot()
    def _on_autosave(self):
        self._save_pending()

    def _save_pending(self) -> bool:
        if self._current is None or not self._pending:
            return True
        session_id = self._current.id
        fields = dict(self._pending)
        try:
            # Runs on the event loop: retry without sleeping between attempts.
            self._write(lambda: self._repository.update(session_id, fields), base_delay=0)
        except PersistenceError as e:
            logger.warning("Autosave failed for session %s: %s", session_id, e)
            self.persistence_failed.emit(clean_db_error(e))
            return False

        # Only drop what was written; anything edited since stays pending.
        for name, value in fields.items():
            if self._pending.get(name) is value:
                del self._pending[name]
        logger.debug("Saved %s for session %s", ", ".join(sorted(fields)), session_id)
        return True

"""Shared test helpers."""

import copy
import time
import uuid

from PySide6.QtCore import QCoreApplication

from focus_tracker.errors import PersistenceError
from focus_tracker.services.session_repository import SessionRepository
from focus_tracker.types import Session, SessionMode, SessionStatus

MINUTE = 60 * 1000


class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


class InMemorySessionRepository(SessionRepository):
    """Dict-backed repository recording every call.

    Set ``fail_create`` / ``fail_update`` to a number of calls that should
    raise PersistenceError before succeeding again.
    """

    def __init__(self):
        self.sessions: dict[str, Session] = {}
        self.create_calls: list[Session] = []
        self.update_calls: list[tuple[str, dict]] = []
        self.fail_create = 0
        self.fail_update = 0
        self.failure_message = "database is locked"

    def create(self, session: Session) -> str:
        self.create_calls.append(copy.deepcopy(session))
        if self.fail_create > 0:
            self.fail_create -= 1
            raise PersistenceError(self.failure_message, session_id=session.id)
        self.sessions[session.id] = copy.deepcopy(session)
        return session.id

    def update(self, session_id: str, fields: dict) -> None:
        self.update_calls.append((session_id, copy.deepcopy(fields)))
        if self.fail_update > 0:
            self.fail_update -= 1
            raise PersistenceError(self.failure_message, session_id=session_id)
        stored = self.sessions.get(session_id)
        if stored is None:
            raise PersistenceError(f"Session not found: {session_id}", session_id=session_id)
        for name, value in fields.items():
            setattr(stored, name, copy.deepcopy(value))

    def get(self, session_id: str) -> Session | None:
        stored = self.sessions.get(session_id)
        return copy.deepcopy(stored) if stored is not None else None

    def query(self, date_range=None, predicate=None) -> list[Session]:
        result = [copy.deepcopy(s) for s in self.sessions.values()]
        if date_range is not None:
            result = [s for s in result if date_range.start_ms <= s.started_at <= date_range.end_ms]
        if predicate is not None:
            result = [s for s in result if predicate(s)]
        return sorted(result, key=lambda s: s.started_at, reverse=True)


def process_events_for(ms: int):
    """Run the Qt event loop for roughly ``ms`` milliseconds."""
    deadline = time.monotonic() + ms / 1000
    while time.monotonic() < deadline:
        QCoreApplication.processEvents()
        time.sleep(0.005)
    QCoreApplication.processEvents()


def make_session(
    started_at: int,
    minutes: float = 25,
    mode: SessionMode = SessionMode.DEEP,
    status: SessionStatus = SessionStatus.COMPLETED,
    planned_minutes: float | None = None,
    tags: list[str] | None = None,
    **kwargs,
) -> Session:
    """A finished session lasting ``minutes`` from ``started_at``."""
    planned = planned_minutes if planned_minutes is not None else minutes
    ended_at = None if status == SessionStatus.RUNNING else started_at + int(minutes * MINUTE)
    return Session(
        id=kwargs.pop("id", str(uuid.uuid4())),
        mode=mode,
        planned_ms=int(planned * MINUTE),
        started_at=started_at,
        ended_at=ended_at,
        status=status,
        tags=tags or [],
        created_at=started_at,
        updated_at=ended_at or started_at,
        **kwargs,
    )

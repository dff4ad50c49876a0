"""Session persistence boundary and its SQLite implementation."""

import logging
import sqlite3
import uuid
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import orjson

from focus_tracker.errors import PersistenceError
from focus_tracker.types import LinkRef, LinkType, Range, Session, SessionMode, SessionStatus
from focus_tracker.utils.link_utils import parse_link

logger = logging.getLogger(__name__)

DATA_DIR = Path.home() / ".local" / "share" / "focus-tracker"


class SessionRepository:
    """Storage for session records.

    Implementations raise PersistenceError for any storage failure. ``create``
    returns the stored id; ``update`` applies a partial set of fields.
    """

    def create(self, session: Session) -> str:
        raise NotImplementedError

    def update(self, session_id: str, fields: dict[str, Any]) -> None:
        raise NotImplementedError

    def get(self, session_id: str) -> Session | None:
        raise NotImplementedError

    def query(
        self,
        date_range: Range | None = None,
        predicate: Callable[[Session], bool] | None = None,
    ) -> list[Session]:
        raise NotImplementedError

    def close(self):
        pass


# Session attribute -> column. JSON columns hold orjson-encoded values.
_COLUMNS = {
    "mode": "mode",
    "planned_ms": "planned_ms",
    "started_at": "started_at",
    "ended_at": "ended_at",
    "status": "status",
    "tags": "tags",
    "goal": "goal",
    "notes": "notes",
    "links": "links",
    "journal": "journal",
    "ai_summary": "ai_summary",
    "created_at": "created_at",
    "updated_at": "updated_at",
}
_JSON_COLUMNS = {"tags", "links", "journal"}


def _encode_value(field_name: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if field_name == "links":
        return orjson.dumps([_link_to_dict(link) for link in value or []]).decode()
    if field_name in _JSON_COLUMNS:
        return orjson.dumps(value).decode() if value is not None else None
    return value


def _link_to_dict(link: LinkRef | dict) -> dict:
    if isinstance(link, dict):
        return link
    data = asdict(link)
    data["type"] = link.type.value
    return data


def _dict_to_link(d: dict) -> LinkRef:
    return LinkRef(
        id=d["id"],
        type=LinkType(d.get("type", "url")),
        url=d.get("url", ""),
        added_at=d.get("added_at", 0),
        title=d.get("title", ""),
        description=d.get("description", ""),
    )


class SqliteSessionRepository(SessionRepository):
    """Stores sessions in a local SQLite database."""

    def __init__(self, db_path: str | None = None):
        if db_path is None:
            DATA_DIR.mkdir(parents=True, exist_ok=True)
            db_path = str(DATA_DIR / "sessions.db")
        self._db_path = db_path
        try:
            self._conn = sqlite3.connect(db_path)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.row_factory = sqlite3.Row
            self._create_table()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open session database {db_path}: {e}", cause=e) from e

    @property
    def db_path(self) -> str:
        return self._db_path

    def _create_table(self):
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                mode TEXT NOT NULL,
                planned_ms INTEGER NOT NULL,
                started_at INTEGER NOT NULL,
                ended_at INTEGER,
                status TEXT NOT NULL,
                tags TEXT NOT NULL DEFAULT '[]',
                goal TEXT NOT NULL DEFAULT '',
                notes TEXT NOT NULL DEFAULT '',
                link TEXT,
                links TEXT NOT NULL DEFAULT '[]',
                journal TEXT,
                ai_summary TEXT,
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_sessions_started_at
            ON sessions(started_at)
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_sessions_status
            ON sessions(status)
        """)
        self._conn.commit()

    def create(self, session: Session) -> str:
        try:
            self._conn.execute("""
                INSERT INTO sessions
                (id, mode, planned_ms, started_at, ended_at, status, tags,
                 goal, notes, links, journal, ai_summary, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                session.id,
                _encode_value("mode", session.mode),
                session.planned_ms,
                session.started_at,
                session.ended_at,
                _encode_value("status", session.status),
                _encode_value("tags", session.tags),
                session.goal,
                session.notes,
                _encode_value("links", session.links),
                _encode_value("journal", session.journal),
                session.ai_summary,
                session.created_at,
                session.updated_at,
            ))
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise PersistenceError(f"Failed to create session: {e}", session_id=session.id, cause=e) from e
        return session.id

    def update(self, session_id: str, fields: dict[str, Any]) -> None:
        if not fields:
            return
        unknown = set(fields) - set(_COLUMNS)
        if unknown:
            raise PersistenceError(
                f"Invalid session fields: {', '.join(sorted(unknown))}", session_id=session_id,
            )

        assignments = ", ".join(f"{_COLUMNS[name]} = ?" for name in fields)
        values = [_encode_value(name, value) for name, value in fields.items()]
        try:
            cursor = self._conn.execute(
                f"UPDATE sessions SET {assignments} WHERE id = ?",
                (*values, session_id),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise PersistenceError(f"Failed to update session: {e}", session_id=session_id, cause=e) from e
        if cursor.rowcount == 0:
            raise PersistenceError(f"Session not found: {session_id}", session_id=session_id)

    def get(self, session_id: str) -> Session | None:
        try:
            row = self._conn.execute(
                "SELECT * FROM sessions WHERE id = ?", (session_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read session: {e}", session_id=session_id, cause=e) from e
        if row is None:
            return None
        return self._row_to_session(row)

    def query(
        self,
        date_range: Range | None = None,
        predicate: Callable[[Session], bool] | None = None,
    ) -> list[Session]:
        """Sessions newest first, optionally limited to a start-time range."""
        sql = "SELECT * FROM sessions"
        params: tuple = ()
        if date_range is not None:
            sql += " WHERE started_at >= ? AND started_at <= ?"
            params = (date_range.start_ms, date_range.end_ms)
        sql += " ORDER BY started_at DESC"
        try:
            rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to query sessions: {e}", cause=e) from e

        sessions = [self._row_to_session(r) for r in rows]
        if predicate is not None:
            sessions = [s for s in sessions if predicate(s)]
        return sessions

    def delete(self, session_id: str):
        try:
            self._conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to delete session: {e}", session_id=session_id, cause=e) from e

    def migrate_legacy_links(self) -> int:
        """Rewrite rows that only carry the legacy single ``link`` column.

        Returns the number of migrated sessions.
        """
        rows = self._conn.execute(
            "SELECT * FROM sessions WHERE link IS NOT NULL AND link != '' AND links = '[]'"
        ).fetchall()
        migrated = 0
        for row in rows:
            session = self._row_to_session(row)
            try:
                self.update(session.id, {"links": session.links})
                migrated += 1
            except PersistenceError:
                logger.warning("Failed to migrate link for session %s", session.id, exc_info=True)
        if migrated:
            logger.info("Migrated %d legacy session links", migrated)
        return migrated

    def close(self):
        self._conn.close()

    def _row_to_session(self, row: sqlite3.Row) -> Session:
        links = [_dict_to_link(d) for d in orjson.loads(row["links"] or "[]")]
        legacy = row["link"]
        if legacy and not links:
            # Stable id so repeated reads of an unmigrated row agree.
            link_id = str(uuid.uuid5(uuid.NAMESPACE_URL, f"{row['id']}:{legacy}"))
            links = [parse_link(legacy, added_at=row["created_at"], link_id=link_id)]

        journal = row["journal"]
        return Session(
            id=row["id"],
            mode=SessionMode(row["mode"]),
            planned_ms=row["planned_ms"],
            started_at=row["started_at"],
            ended_at=row["ended_at"],
            status=SessionStatus(row["status"]),
            tags=list(orjson.loads(row["tags"] or "[]")),
            goal=row["goal"],
            notes=row["notes"],
            links=links,
            journal=orjson.loads(journal) if journal else None,
            ai_summary=row["ai_summary"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

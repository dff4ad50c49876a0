"""Session-complete notifications with D-Bus desktop notification dispatch."""

import logging
import threading
import uuid as uuid_mod
from datetime import datetime, timezone
from pathlib import Path

import orjson
from PySide6.QtCore import QObject, Signal, Slot

from focus_tracker.services.analytics import round_half_up
from focus_tracker.types import Session, SessionMode, preset_for

logger = logging.getLogger(__name__)

MAX_HISTORY = 200
DATA_DIR = Path.home() / ".local" / "share" / "focus-tracker"
HISTORY_FILE = DATA_DIR / "notifications.json"

COMPLETE_TITLE = "Session Complete!"


def completion_message(session: Session) -> str:
    """e.g. ``Deep Work session finished (90 minutes)``."""
    preset = preset_for(session.mode)
    if preset is not None:
        name = preset.name
    else:
        mode = session.mode.value if isinstance(session.mode, SessionMode) else str(session.mode)
        name = mode.capitalize()
    minutes = int(round_half_up(session.planned_ms / 60000))
    return f"{name} session finished ({minutes} minutes)"


class NotificationManager(QObject):
    """Records and dispatches a notification for every completed session."""

    notification_fired = Signal(dict)
    history_changed = Signal()

    def __init__(self, parent=None, enabled: bool = True, desktop: bool = True):
        super().__init__(parent)
        self._enabled = enabled
        self._desktop = desktop
        self._history: list[dict] = []
        self._load_history()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool):
        self._enabled = enabled

    @Slot(object)
    def on_session_completed(self, session: Session):
        if not self._enabled:
            return
        self.notify(COMPLETE_TITLE, completion_message(session), session_id=session.id)

    def notify(self, title: str, body: str, session_id: str = "") -> dict:
        """Record a notification and send it to the desktop."""
        entry = {
            "id": str(uuid_mod.uuid4()),
            "title": title,
            "body": body,
            "session_id": session_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        self._history.append(entry)
        if len(self._history) > MAX_HISTORY:
            self._history = self._history[-MAX_HISTORY:]
        self._save_history()

        self.notification_fired.emit(entry)
        self.history_changed.emit()

        if self._desktop:
            self._send_dbus_notification(title, body)
        return entry

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @Slot(result=list)
    def get_history(self) -> list[dict]:
        """Return notification history (newest first)."""
        return list(reversed(self._history))

    @Slot()
    def clear_history(self):
        self._history = []
        self._save_history()
        self.history_changed.emit()

    # ------------------------------------------------------------------
    # D-Bus notification
    # ------------------------------------------------------------------

    def _send_dbus_notification(self, summary: str, body: str):
        """Send a desktop notification via D-Bus in a background thread."""

        def _notify():
            try:
                import asyncio
                from dbus_next.aio import MessageBus

                async def _send():
                    bus = await MessageBus().connect()
                    introspection = await bus.introspect(
                        "org.freedesktop.Notifications",
                        "/org/freedesktop/Notifications",
                    )
                    proxy = bus.get_proxy_object(
                        "org.freedesktop.Notifications",
                        "/org/freedesktop/Notifications",
                        introspection,
                    )
                    iface = proxy.get_interface("org.freedesktop.Notifications")
                    await iface.call_notify(
                        "Focus Tracker",  # app_name
                        0,                # replaces_id
                        "",               # app_icon
                        summary,
                        body[:200],
                        [],               # actions
                        {},               # hints
                        5000,             # timeout_ms
                    )
                    bus.disconnect()

                asyncio.run(_send())
            except Exception:
                logger.debug("D-Bus notification failed", exc_info=True)

        thread = threading.Thread(target=_notify, daemon=True)
        thread.start()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load_history(self):
        if HISTORY_FILE.exists():
            try:
                data = orjson.loads(HISTORY_FILE.read_bytes())
                self._history = data if isinstance(data, list) else []
            except (orjson.JSONDecodeError, OSError):
                logger.warning("Failed to read notification history, starting empty")
                self._history = []
        else:
            self._history = []

    def _save_history(self):
        try:
            DATA_DIR.mkdir(parents=True, exist_ok=True)
            HISTORY_FILE.write_bytes(orjson.dumps(self._history))
        except OSError:
            logger.warning("Failed to save notification history", exc_info=True)

"""Application configuration manager wrapping QSettings."""

import logging

from PySide6.QtCore import QObject, Signal, Slot, QSettings

from focus_tracker.types.timer import CycleSettings

logger = logging.getLogger(__name__)

# Default values
DEFAULTS = {
    "timer/workMinutes": 25,
    "timer/shortBreakMinutes": 5,
    "timer/longBreakMinutes": 15,
    "timer/sessionsPerCycle": 4,
    "timer/autoStartBreaks": False,
    "timer/autoStartWork": False,
    "timer/tickIntervalMs": 1000,
    "timer/updateThresholdMs": 100,
    "sessions/autosaveDelayMs": 800,
    "sessions/databasePath": "",
    "analytics/heatmapWeeks": 6,
    "analytics/topTags": 10,
    "notifications/enabled": True,
    "advanced/debugLogging": False,
}

_MINUTE_MS = 60 * 1000


class ConfigManager(QObject):
    """Centralized application settings."""

    settings_changed = Signal(str)  # key

    def __init__(self, parent=None):
        super().__init__(parent)
        self._settings = QSettings()

    @Slot(str, result=str)
    def get_string(self, key: str) -> str:
        return str(self._settings.value(key, DEFAULTS.get(key, "")))

    @Slot(str, result=int)
    def get_int(self, key: str) -> int:
        val = self._settings.value(key, DEFAULTS.get(key, 0))
        try:
            return int(val)
        except (ValueError, TypeError):
            logger.debug("Bad integer for %s: %r", key, val)
            return DEFAULTS.get(key, 0)

    @Slot(str, result=bool)
    def get_bool(self, key: str) -> bool:
        val = self._settings.value(key, DEFAULTS.get(key, False))
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val.lower() in ("true", "1", "yes")
        return bool(val)

    @Slot(str, str)
    def set_string(self, key: str, value: str):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    @Slot(str, int)
    def set_int(self, key: str, value: int):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    @Slot(str, bool)
    def set_bool(self, key: str, value: bool):
        self._settings.setValue(key, value)
        self.settings_changed.emit(key)

    def cycle_settings(self) -> CycleSettings:
        """Build the work/break cycle settings from the stored minute values."""
        return CycleSettings(
            work_duration_ms=self.get_int("timer/workMinutes") * _MINUTE_MS,
            short_break_duration_ms=self.get_int("timer/shortBreakMinutes") * _MINUTE_MS,
            long_break_duration_ms=self.get_int("timer/longBreakMinutes") * _MINUTE_MS,
            sessions_per_cycle=max(1, self.get_int("timer/sessionsPerCycle")),
            auto_start_breaks=self.get_bool("timer/autoStartBreaks"),
            auto_start_work=self.get_bool("timer/autoStartWork"),
        )

    def database_path(self) -> str | None:
        """Configured database file, or None for the default location."""
        path = self.get_string("sessions/databasePath").strip()
        return path or None

    @Slot()
    def reset_to_defaults(self):
        for key in DEFAULTS:
            self._settings.remove(key)
        self.settings_changed.emit("")

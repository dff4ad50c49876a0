"""Services for Focus Tracker."""

from focus_tracker.services.accurate_timer import AccurateTimer
from focus_tracker.services.pomodoro_cycle import PomodoroCycle
from focus_tracker.services.session_repository import SessionRepository, SqliteSessionRepository
from focus_tracker.services.session_runner import SessionRunner
from focus_tracker.services.notification_manager import NotificationManager
from focus_tracker.services.config_manager import ConfigManager
from focus_tracker.services.weekly_report import generate_weekly_report_md

__all__ = [
    "AccurateTimer",
    "PomodoroCycle",
    "SessionRepository",
    "SqliteSessionRepository",
    "SessionRunner",
    "NotificationManager",
    "ConfigManager",
    "generate_weekly_report_md",
]

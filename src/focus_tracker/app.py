"""Application entry point: headless Qt event loop and command dispatch."""

import argparse
import logging
import signal
import sys
from datetime import datetime, timedelta

from PySide6.QtCore import QCoreApplication, QTimer
from PySide6.QtNetwork import QLocalSocket, QLocalServer

from focus_tracker.errors import FocusTrackerError, PersistenceError
from focus_tracker.services import analytics
from focus_tracker.services.config_manager import ConfigManager
from focus_tracker.services.notification_manager import NotificationManager
from focus_tracker.services.pomodoro_cycle import PomodoroCycle
from focus_tracker.services.session_repository import SqliteSessionRepository
from focus_tracker.services.session_runner import SessionRunner
from focus_tracker.services.weekly_report import generate_weekly_report_md
from focus_tracker.types import CycleMode, SessionMode, preset_for
from focus_tracker.utils.formatting import format_hours_minutes, format_time
from focus_tracker.utils.week_utils import current_week

logger = logging.getLogger(__name__)

SOCKET_NAME = "focus-tracker-instance"


def _check_single_instance() -> QLocalServer | None:
    """Enforce single instance via QLocalSocket. Returns server if we're the first instance."""
    socket = QLocalSocket()
    socket.connectToServer(SOCKET_NAME)
    if socket.waitForConnected(500):
        # Another instance is running
        socket.close()
        return None

    server = QLocalServer()
    server.removeServer(SOCKET_NAME)
    server.listen(SOCKET_NAME)
    return server


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="focus-tracker", description="Research focus timer")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    parser.add_argument("--db", default=None, help="session database path")
    sub = parser.add_subparsers(dest="command")

    run_p = sub.add_parser("run", help="run work/break phases")
    run_p.add_argument(
        "--mode", default=SessionMode.DEEP.value,
        choices=[m.value for m in SessionMode if m is not SessionMode.BREAK],
        help="mode recorded for work phases",
    )
    run_p.add_argument("--pomodoros", type=int, default=None, help="work phases to run")
    run_p.add_argument("--work-minutes", type=float, default=None)
    run_p.add_argument("--tag", action="append", default=[], dest="tags")
    run_p.add_argument("--goal", default="")

    stats_p = sub.add_parser("stats", help="print analytics for the stored sessions")
    stats_p.add_argument("--weeks", type=int, default=None, help="heatmap width")

    report_p = sub.add_parser("report", help="print the weekly Markdown report")
    report_p.add_argument("--weeks-ago", type=int, default=0)
    report_p.add_argument("--name", default=None)
    report_p.add_argument("--affiliation", default=None)
    return parser


class FocusLoop:
    """Runs work and break phases, recording work phases as sessions."""

    def __init__(self, app: QCoreApplication, config: ConfigManager, runner: SessionRunner,
                 mode: SessionMode, pomodoros: int, work_ms: int | None = None,
                 tags: list[str] | None = None, goal: str = ""):
        self._app = app
        self._runner = runner
        self._mode = mode
        self._pomodoros = pomodoros
        self._tags = tags or []
        self._goal = goal

        settings = config.cycle_settings()
        if work_ms is not None:
            settings.work_duration_ms = work_ms
        self._delay_ms = settings.auto_start_delay_ms
        # Phases are started here so work phases go through the runner.
        settings.auto_start_breaks = False
        settings.auto_start_work = False

        self._cycle = PomodoroCycle(settings, timer=runner.timer)
        self._cycle.mode_changed.connect(self._on_mode_changed)
        self._cycle.phase_completed.connect(self._on_phase_completed)
        runner.timer.state_changed.connect(self._print_progress)
        runner.persistence_failed.connect(self._on_persistence_failed)
        runner.completion_failed.connect(self._on_completion_failed)

    def start(self):
        self._start_phase()

    def _start_phase(self):
        mode = self._cycle.current_mode
        if mode is CycleMode.WORK:
            duration = self._cycle.settings.duration_for(mode)
            self._runner.start_session(duration, self._mode)
            if self._tags or self._goal:
                self._runner.update_metadata(tags=self._tags, goal=self._goal)
        else:
            self._cycle.start()

    def _on_phase_completed(self, mode: str):
        print()
        if mode == CycleMode.WORK.value:
            print(f"Work phase done ({self._cycle.state().completed_pomodoros}/{self._pomodoros})")

    def _on_mode_changed(self, mode: str):
        if self._cycle.state().completed_pomodoros >= self._pomodoros:
            self._app.quit()
            return
        QTimer.singleShot(max(0, self._delay_ms), self._start_phase)

    def _print_progress(self, state):
        label = self._cycle.current_mode.value
        print(f"\r{label:<10} {format_time(state.remaining_ms)}", end="", flush=True)

    def _on_persistence_failed(self, message: str):
        print(f"\n{message}", file=sys.stderr)

    def _on_completion_failed(self, message: str):
        # The phase already ended; retry the final write once.
        try:
            self._runner.stop_session(cancelled=False)
        except PersistenceError:
            logger.exception("Could not save the completed session")

    def shutdown(self):
        session = self._runner.current_session
        if session is not None and not session.status.is_terminal:
            try:
                self._runner.stop_session(cancelled=True)
            except PersistenceError:
                logger.exception("Could not cancel session %s", session.id)
        self._runner.cleanup()


def _cmd_run(app: QCoreApplication, args, config: ConfigManager, repo: SqliteSessionRepository) -> int:
    instance_server = _check_single_instance()
    if instance_server is None:
        print("Another instance is already running.", file=sys.stderr)
        return 0

    runner = SessionRunner(
        repo,
        autosave_delay_ms=config.get_int("sessions/autosaveDelayMs"),
        interval_ms=config.get_int("timer/tickIntervalMs"),
    )
    notifications = NotificationManager(enabled=config.get_bool("notifications/enabled"))
    runner.session_completed.connect(notifications.on_session_completed)

    pomodoros = args.pomodoros or config.get_int("timer/sessionsPerCycle")
    work_ms = int(args.work_minutes * 60000) if args.work_minutes else None
    loop = FocusLoop(app, config, runner, SessionMode(args.mode), pomodoros,
                     work_ms=work_ms, tags=args.tags, goal=args.goal)

    # Let Python see SIGINT while the Qt loop is running.
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(200)

    try:
        loop.start()
        ret = app.exec()
    finally:
        loop.shutdown()
        instance_server.close()
    print()
    return ret


def _cmd_stats(args, config: ConfigManager, repo: SqliteSessionRepository) -> int:
    weeks = args.weeks or config.get_int("analytics/heatmapWeeks")
    summary = analytics.summarize(
        repo.query(), weeks=weeks, top_n=config.get_int("analytics/topTags"),
    )

    print(f"Total focus time:   {format_hours_minutes(summary.total_focus_time)}")
    print(f"Sessions completed: {summary.sessions_completed}")
    print(f"Average length:     {summary.avg_session_length:.1f} minutes")
    print(f"Completion rate:    {summary.completion_rate}%")
    print(f"Streak:             {summary.current_streak} days (longest {summary.longest_streak})")

    if summary.mode_distribution:
        print("\nBy mode:")
        for entry in summary.mode_distribution:
            preset = preset_for(entry.label)
            name = preset.name if preset else entry.label
            print(f"  {name:<12} {format_hours_minutes(entry.value)}")
    if summary.tag_distribution:
        print("\nBy tag:")
        for entry in summary.tag_distribution:
            print(f"  {entry.label:<12} {format_hours_minutes(entry.value)}")

    print("\nHeatmap (minutes):")
    print("     " + " ".join(f"{label:>6}" for label in summary.heatmap_col_labels))
    for label, row in zip(summary.heatmap_row_labels, summary.heatmap_matrix):
        print(f"{label:<4} " + " ".join(f"{value:>6}" for value in row))
    return 0


def _cmd_report(args, repo: SqliteSessionRepository) -> int:
    week = current_week(datetime.now() - timedelta(weeks=max(0, args.weeks_ago)))
    researcher = {"name": args.name, "affiliation": args.affiliation}
    print(generate_weekly_report_md(repo.query(week), week.start, week.end, researcher=researcher))
    return 0


def run(argv: list[str] | None = None) -> int:
    """Launch the application."""
    argv = sys.argv[1:] if argv is None else argv
    args = build_parser().parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication([sys.argv[0]])
    app.setApplicationName("Focus Tracker")
    app.setOrganizationName("focus-tracker")
    app.setOrganizationDomain("focus-tracker.local")

    config = ConfigManager()
    debug = args.debug or config.get_bool("advanced/debugLogging")
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        repo = SqliteSessionRepository(args.db or config.database_path())
    except PersistenceError as e:
        print(e, file=sys.stderr)
        return 1

    try:
        repo.migrate_legacy_links()
        command = args.command or "run"
        if command == "stats":
            return _cmd_stats(args, config, repo)
        if command == "report":
            return _cmd_report(args, repo)
        if args.command is None:
            args = build_parser().parse_args([*argv, "run"])
        return _cmd_run(app, args, config, repo)
    except FocusTrackerError as e:
        logger.debug("Command failed", exc_info=True)
        print(e, file=sys.stderr)
        return 1
    finally:
        repo.close()

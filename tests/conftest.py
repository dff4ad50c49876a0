"""Shared test fixtures for Focus Tracker."""

import os
import sys
from datetime import datetime

import pytest

from helpers import FakeClock, InMemorySessionRepository

# A Wednesday morning, local time
BASE_TIME_MS = int(datetime(2025, 9, 17, 10, 0).timestamp() * 1000)


@pytest.fixture(scope="session")
def qapp():
    """Create a QCoreApplication for tests that need Qt."""
    os.environ["QT_QPA_PLATFORM"] = "offscreen"
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv or ["test"])
    yield app


@pytest.fixture
def isolated_settings(qapp, tmp_path):
    """Point QSettings at a temporary directory."""
    from PySide6.QtCore import QSettings
    QSettings.setDefaultFormat(QSettings.IniFormat)
    QSettings.setPath(QSettings.IniFormat, QSettings.UserScope, str(tmp_path / "config"))
    return tmp_path / "config"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(BASE_TIME_MS)


@pytest.fixture
def memory_repo() -> InMemorySessionRepository:
    return InMemorySessionRepository()

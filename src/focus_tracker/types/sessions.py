"""Session record types and the one-way status transition."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from focus_tracker.errors import InvalidTransition


class SessionMode(str, Enum):
    LIT = "lit"
    ANALYSIS = "analysis"
    WRITING = "writing"
    DEEP = "deep"
    BREAK = "break"


class SessionStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.RUNNING


class LinkType(str, Enum):
    DOI = "doi"
    ARXIV = "arxiv"
    URL = "url"
    GITHUB = "github"
    OVERLEAF = "overleaf"
    ZOTERO = "zotero"
    LOCAL = "local"


@dataclass
class LinkRef:
    id: str
    type: LinkType
    url: str
    added_at: int
    title: str = ""
    description: str = ""


@dataclass
class Session:
    id: str
    mode: SessionMode
    planned_ms: int
    started_at: int                     # epoch ms
    status: SessionStatus = SessionStatus.RUNNING
    ended_at: Optional[int] = None      # epoch ms, None while running
    tags: list[str] = field(default_factory=list)
    goal: str = ""
    notes: str = ""
    links: list[LinkRef] = field(default_factory=list)
    journal: Optional[dict[str, Any]] = None
    ai_summary: Optional[str] = None
    created_at: int = 0
    updated_at: int = 0

    @property
    def is_focus(self) -> bool:
        """True for completed, non-break sessions."""
        return self.mode != SessionMode.BREAK and self.status == SessionStatus.COMPLETED


# Fields a caller may edit on a running session through the runner.
METADATA_FIELDS = frozenset({"goal", "notes", "tags", "links"})


def transition_status(current: SessionStatus, requested: SessionStatus) -> SessionStatus:
    """Validate a status change. Only running -> completed/cancelled is allowed."""
    if current.is_terminal or not requested.is_terminal:
        raise InvalidTransition(current.value, requested.value)
    return requested


@dataclass
class TimerPreset:
    id: SessionMode
    name: str
    duration: int       # minutes
    description: str

    @property
    def duration_ms(self) -> int:
        return self.duration * 60 * 1000


TIMER_PRESETS: list[TimerPreset] = [
    TimerPreset(SessionMode.LIT, "Lit Review", 25, "Literature review and reading"),
    TimerPreset(SessionMode.ANALYSIS, "Analysis", 45, "Data analysis and research"),
    TimerPreset(SessionMode.WRITING, "Writing", 30, "Writing and documentation"),
    TimerPreset(SessionMode.DEEP, "Deep Work", 90, "Deep focus sessions"),
    TimerPreset(SessionMode.BREAK, "Break", 15, "Rest and recovery"),
]


def preset_for(mode: SessionMode | str) -> TimerPreset | None:
    for preset in TIMER_PRESETS:
        if preset.id == mode:
            return preset
    return None

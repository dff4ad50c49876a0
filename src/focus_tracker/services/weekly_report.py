"""Markdown weekly report built from a week's session log."""

import re
from datetime import datetime
from typing import Iterable

from focus_tracker.services import analytics
from focus_tracker.types import Range, Session, SessionStatus, preset_for
from focus_tracker.utils.formatting import format_hours_minutes
from focus_tracker.utils.link_utils import get_link_ref_title
from focus_tracker.utils.week_utils import format_range

MAX_HIGHLIGHTS = 3
MAX_BULLETS = 5
MAX_NOTE_BULLETS = 3
MAX_PLAN_ITEMS = 10

_TODO = re.compile(r"TODO:\s*(.+)", re.IGNORECASE)

# Journal kind -> (key, label) pairs rendered as highlight bullets.
_JOURNAL_FIELDS = {
    "lit": [("keyClaim", "Key Claim"), ("method", "Method"), ("limitation", "Limitation")],
    "writing": [("wordsAdded", "Words Added"), ("sectionsTouched", "Sections")],
    "analysis": [("nextStep", "Next Step"), ("scriptOrNotebook", "Script"), ("datasetRef", "Dataset")],
    "deep": [("whatMoved", "Progress")],
    "break": [("whatMoved", "Progress")],
}


def _mode_name(mode) -> str:
    preset = preset_for(mode)
    if preset is not None:
        return preset.name
    return getattr(mode, "value", str(mode))


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit - 3]}..."


def _short_date(ts_ms: int) -> str:
    return f"{datetime.fromtimestamp(ts_ms / 1000):%b %d}"


def escape_table_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("`", "\\`").replace("\n", " ").strip()


def _ai_bullets(ai_summary: str) -> list[str]:
    lines = [line.strip() for line in ai_summary.split("\n")]
    return [line for line in lines if line][:MAX_BULLETS]


def _journal_bullets(journal: dict) -> list[str]:
    bullets = []
    for key, label in _JOURNAL_FIELDS.get(journal.get("kind"), []):
        value = journal.get(key)
        if value is None or value == "":
            continue
        bullets.append(f"**{label}:** {value}")
    return bullets[:MAX_BULLETS]


def _note_bullets(notes: str) -> list[str]:
    lines = [line.strip() for line in notes.split("\n") if line.strip()]
    return [_truncate(line, 200) for line in lines[:MAX_NOTE_BULLETS]]


def _highlight_score(session: Session) -> float:
    score = 0.0
    if session.ai_summary:
        score += 1000
    elif session.journal:
        score += 100
    elif session.notes:
        score += 10
    return score + min(analytics.actual_ms(session) / 60000, 90)


def select_highlights(sessions: Iterable[Session]) -> list[Session]:
    """Up to three completed sessions with links, richest annotations first."""
    linked = [
        s for s in sessions
        if s.status == SessionStatus.COMPLETED and s.links
    ]
    linked.sort(key=_highlight_score, reverse=True)
    return linked[:MAX_HIGHLIGHTS]


def next_week_plan(sessions: Iterable[Session]) -> list[str]:
    """Analysis next steps and ``TODO:`` lines from notes, de-duplicated."""
    items: list[str] = []
    for session in sessions:
        journal = session.journal or {}
        if journal.get("kind") == "analysis" and journal.get("nextStep"):
            items.append(journal["nextStep"])
        for match in _TODO.finditer(session.notes or ""):
            text = match.group(1).strip()
            if text:
                items.append(text)

    unique = list(dict.fromkeys(items))[:MAX_PLAN_ITEMS]
    return [_truncate(item, 150) for item in unique]


def generate_weekly_report_md(
    sessions: Iterable[Session],
    start: datetime,
    end: datetime,
    researcher: dict | None = None,
    top_n: int = 10,
) -> str:
    """Render the report for sessions started between ``start`` and ``end``.

    ``researcher`` may carry ``name`` and ``affiliation``.
    """
    week = Range(start=start, end=end)
    sessions = [s for s in sessions if analytics.in_range(s.started_at, week)]

    lines = ["# Weekly Report", "", f"**Week:** {format_range(start, end)}", ""]

    researcher = researcher or {}
    who = ", ".join(v for v in (researcher.get("name"), researcher.get("affiliation")) if v)
    if who:
        lines += [f"**Researcher:** {who}", ""]

    lines += [
        "## Summary",
        "",
        f"- **Total Focus Time:** {format_hours_minutes(analytics.total_focus_time(sessions))}",
        f"- **Sessions Completed:** {analytics.sessions_completed(sessions)}",
        f"- **Average Session Length:** {analytics.avg_session_length(sessions):.1f} minutes",
        f"- **Completion Rate:** {analytics.completion_rate(sessions)}%",
        "",
        "## Time Distribution",
        "",
    ]

    mode_dist = analytics.distribution_by_mode(sessions)
    if mode_dist:
        lines += ["### By Mode", ""]
        for mode, minutes in sorted(mode_dist.items(), key=lambda item: item[1], reverse=True):
            lines.append(f"- **{_mode_name(mode)}:** {format_hours_minutes(minutes)}")
        lines.append("")

    tag_dist, other = analytics.distribution_by_tag(sessions, top_n=top_n)
    if tag_dist:
        lines += ["### Top Focus Areas", ""]
        for tag, minutes in tag_dist.items():
            lines.append(f"- **{tag}:** {format_hours_minutes(minutes)}")
        if other > 0:
            lines.append(f"- **Other:** {format_hours_minutes(other)}")
        lines.append("")

    highlights = select_highlights(sessions)
    if highlights:
        lines += ["## Highlights", ""]
        for session in highlights:
            link_title = get_link_ref_title(session.links[0])
            heading = f"### {_mode_name(session.mode)} - {_short_date(session.started_at)}"
            if link_title:
                heading += f" ({link_title})"
            lines += [heading, ""]
            if session.goal:
                lines += [f"**Goal:** {session.goal}", ""]

            if session.ai_summary:
                bullets = _ai_bullets(session.ai_summary)
            elif session.journal:
                bullets = _journal_bullets(session.journal)
            elif session.notes:
                bullets = _note_bullets(session.notes)
            else:
                bullets = []
            for bullet in bullets:
                lines.append(bullet if bullet.startswith(("•", "-")) else f"• {bullet}")
            if bullets and session.ai_summary:
                lines += ["", "*AI-assisted summary*"]
            lines.append("")

    lines += ["## Session Log (Appendix)", ""]
    completed = sorted(
        (s for s in sessions if s.status == SessionStatus.COMPLETED),
        key=lambda s: s.started_at, reverse=True,
    )
    if completed:
        lines.append("| Date | Mode | Goal | Tags | Links | Duration | Journal |")
        lines.append("|------|------|------|------|-------|----------|---------|")
        for s in completed:
            goal = escape_table_cell(s.goal or "-")
            tags = escape_table_cell(", ".join(s.tags) or "-")
            links = escape_table_cell(", ".join(get_link_ref_title(l) for l in s.links) or "-")
            duration = analytics.actual_ms(s) // 60000
            if s.journal:
                badge = "AI+Journal" if s.ai_summary else "Journal"
            else:
                badge = "AI" if s.ai_summary else "-"
            lines.append(
                f"| {_short_date(s.started_at)} | {_mode_name(s.mode)} | {goal} | {tags} "
                f"| {links} | {duration}m | {badge} |"
            )
    else:
        lines.append("*No completed sessions this week.*")
    lines.append("")

    lines += ["## Next Week Plan", ""]
    plan = next_week_plan(sessions)
    if plan:
        lines += [f"- [ ] {item}" for item in plan]
    else:
        lines += [
            "*No specific plans identified from this week's sessions.*",
            "",
            "Consider adding TODO items in your session notes or next steps in analysis journals.",
        ]

    lines += ["", "---", "*Generated by Focus Tracker*"]
    return "\n".join(lines)

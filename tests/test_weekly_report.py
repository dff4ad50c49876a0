"""Tests for focus_tracker.services.weekly_report."""

from datetime import datetime

import pytest

from focus_tracker.services.weekly_report import (
    escape_table_cell,
    generate_weekly_report_md,
    next_week_plan,
    select_highlights,
)
from focus_tracker.types import SessionMode, SessionStatus
from focus_tracker.utils.link_utils import parse_link
from focus_tracker.utils.week_utils import week_bounds
from helpers import make_session

WEEK = week_bounds(datetime(2024, 1, 10))


def at(day, hour=10) -> int:
    return int(datetime(2024, 1, day, hour).timestamp() * 1000)


@pytest.fixture
def sessions():
    return [
        make_session(
            at(10), 25, SessionMode.LIT,
            tags=["#research", "#literature"],
            goal="Review transformer papers",
            notes="Found interesting papers\nTODO: read the appendix",
            links=[parse_link("https://arxiv.org/abs/1706.03762", added_at=at(10))],
        ),
        make_session(at(11), 60, SessionMode.WRITING, tags=["#research"], notes="TODO: draft intro"),
        make_session(at(12), 15, SessionMode.BREAK),
    ]


def report(sessions, **kwargs) -> str:
    return generate_weekly_report_md(sessions, WEEK.start, WEEK.end, **kwargs)


class TestHeader:
    def test_title_and_range(self, sessions):
        md = report(sessions)
        assert md.startswith("# Weekly Report")
        assert "**Week:** Mon 08 Jan 2024 - Sun 14 Jan 2024" in md

    def test_researcher(self, sessions):
        md = report(sessions, researcher={"name": "Dr. Jane Smith", "affiliation": "MIT"})
        assert "**Researcher:** Dr. Jane Smith, MIT" in md

    def test_researcher_name_only(self, sessions):
        md = report(sessions, researcher={"name": "Dr. Jane Smith"})
        assert "**Researcher:** Dr. Jane Smith\n" in md

    def test_no_researcher(self, sessions):
        assert "**Researcher:**" not in report(sessions)


class TestSummary:
    def test_kpis(self, sessions):
        md = report(sessions)
        assert "- **Total Focus Time:** 1h 25m" in md
        assert "- **Sessions Completed:** 3" in md
        assert "- **Average Session Length:** 42.5 minutes" in md
        assert "- **Completion Rate:** 100%" in md

    def test_mode_distribution_uses_preset_names(self, sessions):
        md = report(sessions)
        assert md.index("- **Writing:** 1h") < md.index("- **Lit Review:** 25m")

    def test_top_focus_areas_with_other(self, sessions):
        md = report(sessions, top_n=1)
        assert "### Top Focus Areas" in md
        assert "- **#research:** 1h 25m" in md
        assert "- **Other:** 25m" in md

    def test_sessions_outside_week_ignored(self, sessions):
        sessions.append(make_session(at(20), 120, SessionMode.DEEP))
        assert "Deep Work" not in report(sessions)


class TestHighlights:
    def test_only_linked_sessions(self, sessions):
        highlights = select_highlights(sessions)
        assert [s.mode for s in highlights] == [SessionMode.LIT]

    def test_heading_and_notes_bullets(self, sessions):
        md = report(sessions)
        assert "### Lit Review - Jan 10 (arXiv:1706.03762)" in md
        assert "**Goal:** Review transformer papers" in md
        assert "• Found interesting papers" in md

    def test_ai_summary_preferred(self, sessions):
        sessions[0].ai_summary = "- Attention is enough\n\n- Scales well"
        sessions[0].journal = {"kind": "lit", "keyClaim": "ignored"}
        md = report(sessions)
        assert "- Attention is enough\n- Scales well" in md
        assert "*AI-assisted summary*" in md
        assert "ignored" not in md

    def test_journal_bullets(self, sessions):
        sessions[0].journal = {"kind": "lit", "keyClaim": "Attention", "method": "Survey"}
        md = report(sessions)
        assert "• **Key Claim:** Attention" in md
        assert "• **Method:** Survey" in md

    def test_richer_annotations_rank_first(self):
        link = [parse_link("https://example.com/a", added_at=0)]
        plain = make_session(at(9), 90, links=link)
        summarized = make_session(at(10), 5, links=link, ai_summary="x")
        assert select_highlights([plain, summarized])[0] is summarized

    def test_at_most_three(self):
        link = [parse_link("https://example.com/a", added_at=0)]
        many = [make_session(at(9, h), 25, links=link) for h in range(8, 14)]
        assert len(select_highlights(many)) == 3


class TestSessionLog:
    def test_table_rows_newest_first(self, sessions):
        md = report(sessions)
        rows = [line for line in md.splitlines() if line.startswith("| Jan")]
        assert len(rows) == 3
        assert rows[0].startswith("| Jan 12 | Break |")
        assert "| 25m |" in rows[2]
        assert "arXiv:1706.03762" in rows[2]

    def test_cells_escaped(self):
        s = make_session(at(10), 25, goal="a | b\nwith `code`")
        md = report([s])
        assert "a \\| b with \\`code\\`" in md

    def test_escape_table_cell(self):
        assert escape_table_cell(" x|y ") == "x\\|y"

    def test_journal_badge(self, sessions):
        sessions[1].journal = {"kind": "writing", "wordsAdded": 500}
        sessions[1].ai_summary = "done"
        md = report(sessions)
        assert "| AI+Journal |" in md

    def test_empty_week(self):
        md = report([])
        assert "*No completed sessions this week.*" in md
        assert "*No specific plans identified from this week's sessions.*" in md
        assert md.endswith("*Generated by Focus Tracker*")

    def test_cancelled_not_logged(self):
        s = make_session(at(10), 25, status=SessionStatus.CANCELLED)
        assert "*No completed sessions this week.*" in report([s])


class TestPlan:
    def test_todo_lines(self, sessions):
        md = report(sessions)
        assert "- [ ] read the appendix" in md
        assert "- [ ] draft intro" in md

    def test_analysis_next_step_and_dedup(self):
        s1 = make_session(at(10), journal={"kind": "analysis", "nextStep": "rerun model"})
        s2 = make_session(at(11), notes="todo: rerun model\nTODO:   ")
        assert next_week_plan([s1, s2]) == ["rerun model"]

    def test_limit_and_truncate(self):
        notes = "\n".join(f"TODO: item {i}" for i in range(15))
        long = "TODO: " + "x" * 200
        plan = next_week_plan([make_session(at(10), notes=notes), make_session(at(11), notes=long)])
        assert len(plan) == 10
        assert plan[-1] == "item 9"

        plan = next_week_plan([make_session(at(11), notes=long)])
        assert len(plan[0]) == 150
        assert plan[0].endswith("...")

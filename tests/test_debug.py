"""Tests for the ASCII timeline view."""

from __future__ import annotations

from conftest import day_date, dt, make_interval
from shop_scheduling.debug import (
    CHARS_PER_DAY,
    render_timeline,
    show_machines,
    show_timeline,
)
from shop_scheduling.types import CascadeMove


def _cell(time_label: str) -> int:
    hours, minutes = map(int, time_label.split(":"))
    return (hours * 60 + minutes) // 30


def _row(view: str, index: int) -> str:
    return view.splitlines()[index][12:]


class TestRenderTimeline:

    def test_layout(self, calendar, busy_timeline):
        view = render_timeline(
            busy_timeline, calendar, "M1", day_date("mon"), day_date("wed")
        )
        lines = view.splitlines()
        assert lines[1].startswith("Mon 06 Jan")
        assert lines[2].startswith("Tue 07 Jan")
        assert len(_row(view, 1)) == CHARS_PER_DAY

    def test_cells(self, calendar, busy_timeline):
        view = render_timeline(
            busy_timeline, calendar, "M1", day_date("mon"), day_date("tue")
        )
        row = _row(view, 1)
        assert row[_cell("00:00")] == "."
        assert row[_cell("07:00")] == "-"
        assert row[_cell("09:00")] == "A"
        assert row[_cell("10:30")] == "A"
        assert row[_cell("11:00")] == "B"
        assert row[_cell("16:00")] == "."
        assert "A=J1, B=J2" in view

    def test_moves_drawn_at_destination(self, calendar, busy_timeline):
        j1 = busy_timeline.get("J1")
        move = CascadeMove(j1, dt("mon", "13:00"), dt("mon", "15:00"), 1)
        view = render_timeline(
            busy_timeline, calendar, "M1", day_date("mon"), day_date("tue"), [move]
        )
        row = _row(view, 1)
        assert row[_cell("09:00")] == "-"
        assert row[_cell("13:30")] == "*"
        assert row[_cell("15:00")] == "-"

    def test_empty_machine_has_no_legend(self, calendar, busy_timeline):
        view = render_timeline(
            busy_timeline, calendar, "M9", day_date("mon"), day_date("tue")
        )
        assert "Legend" not in view


class TestShow:

    def test_show_timeline_prints(self, calendar, busy_timeline, capsys):
        result = show_timeline(
            busy_timeline, calendar, "M2", day_date("mon"), day_date("tue")
        )
        assert capsys.readouterr().out.strip() == result.strip()
        assert "A=J3" in result

    def test_show_machines(self, calendar, capsys):
        from shop_scheduling.timeline import TimelineIndex

        timeline = TimelineIndex([
            make_interval("J1", "mon", "09:00", 60),
            make_interval("J2", "mon", "09:00", 60, machine_id="M2"),
        ])
        result = show_machines(timeline, calendar, day_date("mon"), day_date("tue"))
        assert "=== M1 ===" in result
        assert "=== M2 ===" in result
        assert capsys.readouterr().out

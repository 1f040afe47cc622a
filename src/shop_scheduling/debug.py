"""ASCII visualisation for development-time verification.

This module is dev-only and not imported by production code.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from shop_scheduling.calendar import ShiftCalendar
    from shop_scheduling.timeline import TimelineIndex
    from shop_scheduling.types import CascadeMove

_DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_LABELS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# 24-hour timeline, each char = 30 minutes (48 chars per day)
CHARS_PER_DAY = 48
MINUTES_PER_CHAR = 30


def _header() -> str:
    hours = "".join(f"{h:02d}" if h % 3 == 0 else "  " for h in range(24))
    return f"{'':>10s}  {hours}"


def render_timeline(
    timeline: TimelineIndex,
    calendar: ShiftCalendar,
    machine_id: str,
    start: date,
    end: date,
    moves: Iterable[CascadeMove] = (),
) -> str:
    """Build the ASCII view of one machine for dates [start, end).

    Legend: '.' = off-shift, '-' = free in shift, 'A'-'Z' = scheduled job,
    '*' = cascade destination.
    """
    moves = list(moves)
    moved_ids = {m.job_id for m in moves}

    labels: dict[str, str] = {}
    blocks: list[tuple[datetime, datetime, str]] = []
    for interval in timeline.intervals_for(machine_id):
        label = _LABELS[len(labels) % len(_LABELS)]
        labels[interval.job_id] = label
        if interval.job_id not in moved_ids:
            blocks.append((interval.start, interval.end, label))
    for move in moves:
        blocks.append((move.new_start, move.new_end, "*"))

    lines = [_header()]
    current = start
    while current < end:
        day_start = datetime.combine(current, time(0, 0))
        row = []
        for i in range(CHARS_PER_DAY):
            cell_start = day_start + timedelta(minutes=i * MINUTES_PER_CHAR)
            cell_end = cell_start + timedelta(minutes=MINUTES_PER_CHAR)
            char = "-" if calendar.is_within_shift(cell_start) else "."
            for b_start, b_end, label in blocks:
                if b_start < cell_end and b_end > cell_start:
                    char = label
            row.append(char)

        day_label = f"{_DAY_NAMES[current.weekday()]} {current.strftime('%d %b')}"
        lines.append(f"{day_label:>10s}  {''.join(row)}")
        current += timedelta(days=1)

    if labels:
        legend = ", ".join(f"{v}={k}" for k, v in labels.items())
        lines.append(f"\nLegend: . = off-shift, - = free, * = moved, {legend}")

    return "\n".join(lines)


def show_timeline(
    timeline: TimelineIndex,
    calendar: ShiftCalendar,
    machine_id: str,
    start: date,
    end: date,
    moves: Iterable[CascadeMove] = (),
) -> str:
    """Print the ASCII view of one machine and return it."""
    result = render_timeline(timeline, calendar, machine_id, start, end, moves)
    print(result)
    return result


def show_machines(
    timeline: TimelineIndex,
    calendar: ShiftCalendar,
    start: date,
    end: date,
) -> str:
    """Print one section per machine in the snapshot and return it."""
    sections: list[str] = []
    for machine_id in timeline.machine_ids():
        sections.append(f"=== {machine_id} ===")
        sections.append(render_timeline(timeline, calendar, machine_id, start, end))
        sections.append("")

    result = "\n".join(sections)
    print(result)
    return result

"""Layer 2: TimelineIndex, a read-only per-machine view of a job snapshot.

Also provides shift utilization figures computed from the same snapshot.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Iterable, Iterator

from shop_scheduling.types import ScheduledInterval

if TYPE_CHECKING:
    from shop_scheduling.calendar import ShiftCalendar


class TimelineIndex:
    """Immutable snapshot of scheduled intervals, grouped by machine.

    Read once at the start of a scheduling interaction. Nothing here
    mutates; the external store applies changes and a fresh index is built.
    """

    def __init__(self, intervals: Iterable[ScheduledInterval] = ()) -> None:
        by_machine: dict[str, list[ScheduledInterval]] = defaultdict(list)
        by_job: dict[str, ScheduledInterval] = {}

        for interval in intervals:
            if interval.job_id in by_job:
                raise ValueError(f"Duplicate job in snapshot: {interval.job_id!r}")
            by_job[interval.job_id] = interval
            by_machine[interval.machine_id].append(interval)

        self._by_machine: dict[str, tuple[ScheduledInterval, ...]] = {
            machine_id: tuple(sorted(items, key=lambda iv: (iv.start, iv.job_id)))
            for machine_id, items in by_machine.items()
        }
        self._by_job = by_job

    @classmethod
    def from_records(
        cls, records: Iterable[dict], default_duration_minutes: int = 60
    ) -> TimelineIndex:
        """Build from external job records, skipping unscheduled ones."""
        return cls(
            ScheduledInterval.from_record(r, default_duration_minutes)
            for r in records
            if r.get("machine_id") and r.get("start")
        )

    def __len__(self) -> int:
        return len(self._by_job)

    def __iter__(self) -> Iterator[ScheduledInterval]:
        for machine_id in sorted(self._by_machine):
            yield from self._by_machine[machine_id]

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._by_job

    def get(self, job_id: str) -> ScheduledInterval | None:
        return self._by_job.get(job_id)

    def machine_ids(self) -> list[str]:
        return sorted(self._by_machine)

    def intervals_for(
        self, machine_id: str, exclude_job_id: str | None = None
    ) -> list[ScheduledInterval]:
        """All intervals on a machine sorted by start.

        exclude_job_id drops one job so a reschedule never conflicts with
        its own prior placement.
        """
        items = self._by_machine.get(machine_id, ())
        return [iv for iv in items if iv.job_id != exclude_job_id]


# ----------------------------------------------------------------------
# Utilization
# ----------------------------------------------------------------------


def scheduled_minutes_for_day(
    timeline: TimelineIndex,
    calendar: ShiftCalendar,
    machine_id: str,
    d: date,
) -> int:
    """Minutes of scheduled work on a machine that fall inside d's shift."""
    day_start = datetime.combine(d, time(0, 0))
    day_end = day_start + timedelta(days=1)

    total = 0
    for interval in timeline.intervals_for(machine_id):
        if interval.start >= day_end or interval.end <= day_start:
            continue
        total += calendar.shift_minutes_between(interval.start, interval.end, d)
    return total


def day_utilization(
    timeline: TimelineIndex,
    calendar: ShiftCalendar,
    machine_id: str,
    d: date,
) -> int:
    """Shift utilization for one machine-day, as a rounded percentage."""
    minutes = scheduled_minutes_for_day(timeline, calendar, machine_id, d)
    return round(minutes * 100 / calendar.shift_minutes)


def week_utilization(
    timeline: TimelineIndex,
    calendar: ShiftCalendar,
    machine_id: str,
    days: Iterable[date],
) -> int:
    """Utilization across several days, as a rounded percentage."""
    days = list(days)
    if not days:
        return 0
    minutes = sum(
        scheduled_minutes_for_day(timeline, calendar, machine_id, d) for d in days
    )
    return round(minutes * 100 / (calendar.shift_minutes * len(days)))

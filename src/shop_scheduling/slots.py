"""Slot finding: bounded forward search for the first free start on a machine.

The search is read-only, like a walk over occupancy: it never mutates the
timeline and is deterministic for a given snapshot and clock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING

from shop_scheduling.clock import SYSTEM_CLOCK
from shop_scheduling.types import InputError, NoSlotAvailable, ScheduledInterval

if TYPE_CHECKING:
    from shop_scheduling.calendar import ShiftCalendar
    from shop_scheduling.clock import Clock
    from shop_scheduling.timeline import TimelineIndex

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 30


@dataclass(frozen=True)
class Slot:
    """A free, shift-aligned [start, end) on one machine."""

    machine_id: str
    start: datetime
    end: datetime

    @property
    def date(self) -> date:
        return self.start.date()

    @property
    def time(self) -> time:
        return self.start.time()


def _first_overlap(
    intervals: list[ScheduledInterval], start: datetime, end: datetime
) -> ScheduledInterval | None:
    """First interval (by start) overlapping [start, end), or None."""
    for existing in intervals:
        if existing.end <= start:
            continue
        if existing.start >= end:
            # Sorted by start: nothing later can overlap either.
            return None
        return existing
    return None


def _earliest_candidate(
    calendar: ShiftCalendar, day: date, now: datetime
) -> datetime:
    shift_start = calendar.shift_start_on(day)
    if day == now.date():
        return max(shift_start, calendar.ceil_to_granularity(now))
    return shift_start


def find_next_available(
    timeline: TimelineIndex,
    calendar: ShiftCalendar,
    machine_id: str,
    from_date: date,
    duration_minutes: int,
    exclude_job_id: str | None = None,
    clock: Clock | None = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> Slot:
    """Earliest non-conflicting slot on machine_id, scanning horizon_days days.

    Day by day from from_date: today starts at max(shift start, now rounded
    up to granularity), other days at shift start. A from_date in the past
    is moved up to today before the horizon is counted. Within a day the
    candidate jumps to the end of each overlapping interval (rounded up to
    granularity) until it fits or reaches shift end. Only the start must lie
    inside the shift.

    Raises:
        InputError: duration_minutes < 1 or from_date missing.
        NoSlotAvailable: the horizon is exhausted.
    """
    if duration_minutes < 1:
        raise InputError(
            "duration_minutes",
            f"Duration must be greater than 0, got {duration_minutes}",
        )
    if from_date is None:
        raise InputError("start", "Select a start date")
    if isinstance(from_date, datetime):
        from_date = from_date.date()

    now = (clock or SYSTEM_CLOCK).now()
    from_date = max(from_date, now.date())
    duration = timedelta(minutes=duration_minutes)
    intervals = timeline.intervals_for(machine_id, exclude_job_id)

    for day_offset in range(horizon_days):
        day = from_date + timedelta(days=day_offset)
        shift_end = calendar.shift_end_on(day)
        candidate = _earliest_candidate(calendar, day, now)

        while candidate < shift_end:
            blocker = _first_overlap(intervals, candidate, candidate + duration)
            if blocker is None:
                logger.debug(
                    "slot on %s for %d min: %s", machine_id, duration_minutes,
                    candidate.isoformat(),
                )
                return Slot(machine_id, candidate, candidate + duration)
            candidate = calendar.ceil_to_granularity(blocker.end)

    logger.debug(
        "no slot on %s for %d min within %d days of %s",
        machine_id, duration_minutes, horizon_days, from_date.isoformat(),
    )
    raise NoSlotAvailable(
        machine_id=machine_id,
        from_date=from_date,
        duration_minutes=duration_minutes,
        horizon_days=horizon_days,
    )

"""Cascade resolution: breadth-first push-back of conflicting intervals.

Pushing one job back can land it on the next job, which must then move
too. The resolver computes the whole chain up front so nothing is written
until the user has seen every consequence.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from shop_scheduling.conflicts import overlaps
from shop_scheduling.types import CascadeMove, CascadeResult, ScheduledInterval

if TYPE_CHECKING:
    from shop_scheduling.calendar import ShiftCalendar
    from shop_scheduling.conflicts import ConflictSet
    from shop_scheduling.timeline import TimelineIndex

logger = logging.getLogger(__name__)

MAX_CASCADE_DEPTH = 3
MAX_SETTLE_ITERATIONS = 500


@dataclass
class _Pending:
    interval: ScheduledInterval
    push_after: datetime
    depth: int


def _settle(
    calendar: ShiftCalendar,
    start: datetime,
    duration: timedelta,
    moves: list[CascadeMove],
    max_iterations: int,
) -> datetime | None:
    """Advance start until [start, start+duration) clears every accepted move.

    Returns None if the iteration guard trips.
    """
    for _ in range(max_iterations):
        end = start + duration
        blocker = next(
            (m for m in moves if overlaps(start, end, m.new_start, m.new_end)),
            None,
        )
        if blocker is None:
            return start
        start = calendar.snap_to_shift_start(blocker.new_end)
    return None


def resolve_cascade(
    timeline: TimelineIndex,
    calendar: ShiftCalendar,
    machine_id: str,
    candidate_start: datetime,
    candidate_end: datetime,
    conflict_set: ConflictSet,
    exclude_job_id: str | None = None,
    max_depth: int = MAX_CASCADE_DEPTH,
    max_settle_iterations: int = MAX_SETTLE_ITERATIONS,
) -> CascadeResult:
    """Compute every move needed so no two intervals on the machine overlap.

    Conflicts resolved as return_to_queue (and exclude_job_id) vanish from
    the timeline. Push-back conflicts seed a breadth-first queue at depth 1,
    placed after candidate_end. Each accepted move may displace further
    untouched intervals at depth + 1. Items deeper than max_depth are
    discarded and flag too_deep, but processing continues so the full
    extent of the problem is reported.
    """
    skip: set[str] = {c.job_id for c in conflict_set.returned_to_queue()}
    if exclude_job_id is not None:
        skip.add(exclude_job_id)
    processed: set[str] = set(skip)

    queue: deque[_Pending] = deque()
    for interval in sorted(
        conflict_set.pushed_back(), key=lambda iv: (iv.start, iv.job_id)
    ):
        processed.add(interval.job_id)
        queue.append(_Pending(interval, candidate_end, 1))

    remaining = [
        iv for iv in timeline.intervals_for(machine_id) if iv.job_id not in skip
    ]

    moves: list[CascadeMove] = []
    overflow: list[ScheduledInterval] = []

    while queue:
        item = queue.popleft()

        if item.depth > max_depth:
            logger.debug(
                "cascade on %s: %s exceeds depth %d",
                machine_id, item.interval.job_id, max_depth,
            )
            overflow.append(item.interval)
            continue

        duration = timedelta(minutes=item.interval.duration_minutes)
        new_start = _settle(
            calendar,
            calendar.snap_to_shift_start(item.push_after),
            duration,
            moves,
            max_settle_iterations,
        )
        if new_start is None:
            logger.warning(
                "cascade on %s: could not settle %s within %d iterations",
                machine_id, item.interval.job_id, max_settle_iterations,
            )
            overflow.append(item.interval)
            continue

        new_end = new_start + duration
        moves.append(CascadeMove(item.interval, new_start, new_end, item.depth))

        for existing in remaining:
            if existing.job_id in processed:
                continue
            if overlaps(new_start, new_end, existing.start, existing.end):
                processed.add(existing.job_id)
                queue.append(_Pending(existing, new_end, item.depth + 1))

    if overflow:
        logger.warning(
            "cascade on %s too deep: %d job(s) beyond depth %d",
            machine_id, len(overflow), max_depth,
        )

    return CascadeResult(
        moves=tuple(moves),
        too_deep=bool(overflow),
        overflow=tuple(overflow),
    )

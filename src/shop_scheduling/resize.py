"""Interactive resize: continuous edge drags, validated once on release."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from shop_scheduling.config import DEFAULT_CONFIG, EngineConfig
from shop_scheduling.conflicts import find_conflicts
from shop_scheduling.placement import PlacementWrite
from shop_scheduling.types import UnresolvedConflict

if TYPE_CHECKING:
    from shop_scheduling.calendar import ShiftCalendar
    from shop_scheduling.timeline import TimelineIndex
    from shop_scheduling.types import ScheduledInterval


class ResizeEdge(str, Enum):
    START = "start"
    END = "end"


@dataclass(frozen=True)
class ResizePreview:
    job_id: str
    new_start: datetime
    new_end: datetime

    @property
    def duration_minutes(self) -> int:
        return round((self.new_end - self.new_start).total_seconds() / 60)


def preview_resize(
    interval: ScheduledInterval,
    edge: ResizeEdge | str,
    delta: timedelta,
    calendar: ShiftCalendar,
    min_minutes: int | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> ResizePreview:
    """Candidate interval while one edge is dragged by delta.

    The moved edge snaps to the nearest granularity step and stays within
    the start day. The job keeps at least min_minutes (default
    config.min_duration_minutes); when the end edge hits midnight, the start
    is pulled back to keep that length.
    """
    edge = ResizeEdge(edge)
    if min_minutes is None:
        min_minutes = config.min_duration_minutes
    minimum = timedelta(minutes=min_minutes)
    day_start = datetime.combine(interval.start.date(), time(0, 0))
    day_end = day_start + timedelta(days=1)

    new_start = interval.start
    new_end = interval.end

    if edge is ResizeEdge.START:
        new_start = calendar.round_to_granularity(interval.start + delta)
        if new_start > new_end - minimum:
            new_start = new_end - minimum
        new_start = max(new_start, day_start)
    else:
        new_end = calendar.round_to_granularity(interval.end + delta)
        if new_end < new_start + minimum:
            new_end = new_start + minimum
        new_end = min(new_end, day_end)
        if new_end - new_start < minimum:
            new_start = new_end - minimum

    return ResizePreview(interval.job_id, new_start, new_end)


def commit_resize(
    timeline: TimelineIndex,
    interval: ScheduledInterval,
    preview: ResizePreview,
) -> PlacementWrite:
    """Validate the released preview and return the write for it.

    Raises UnresolvedConflict if the resized interval overlaps another job;
    resizing offers no push-back, so the caller discards the preview.
    """
    conflicts = find_conflicts(
        timeline,
        interval.machine_id,
        preview.new_start,
        preview.new_end,
        exclude_job_id=interval.job_id,
    )
    if conflicts:
        raise UnresolvedConflict([c.job_id for c in conflicts])

    return PlacementWrite(
        job_id=interval.job_id,
        machine_id=interval.machine_id,
        start=preview.new_start,
        end=preview.new_end,
        duration_minutes=preview.duration_minutes,
    )

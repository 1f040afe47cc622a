"""Conflict detection: half-open overlap tests against a timeline snapshot."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping

from shop_scheduling.timeline import TimelineIndex
from shop_scheduling.types import InputError, Resolution, ScheduledInterval


def overlaps(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open overlap of [start_a, end_a) and [start_b, end_b).

    Touching endpoints do not overlap.
    """
    return start_a < end_b and end_a > start_b


def find_conflicts(
    timeline: TimelineIndex,
    machine_id: str,
    start: datetime,
    end: datetime,
    exclude_job_id: str | None = None,
) -> list[ScheduledInterval]:
    """Existing intervals on machine_id that overlap [start, end), by start."""
    result: list[ScheduledInterval] = []
    for existing in timeline.intervals_for(machine_id, exclude_job_id):
        if existing.start >= end:
            break
        if overlaps(start, end, existing.start, existing.end):
            result.append(existing)
    return result


def has_conflict(
    timeline: TimelineIndex,
    machine_id: str,
    start: datetime,
    end: datetime,
    exclude_job_id: str | None = None,
) -> bool:
    return bool(find_conflicts(timeline, machine_id, start, end, exclude_job_id))


class ConflictSet:
    """Conflicting intervals for one candidate, each awaiting a Resolution.

    Every member must carry a resolution before the candidate can commit.
    """

    def __init__(
        self,
        conflicts: Iterable[ScheduledInterval] = (),
        resolutions: Mapping[str, Resolution] | None = None,
    ) -> None:
        self._conflicts: tuple[ScheduledInterval, ...] = tuple(conflicts)
        ids = {c.job_id for c in self._conflicts}
        self._resolutions: dict[str, Resolution] = {
            job_id: Resolution(value)
            for job_id, value in (resolutions or {}).items()
            if job_id in ids
        }

    def __len__(self) -> int:
        return len(self._conflicts)

    def __iter__(self):
        return iter(self._conflicts)

    def __bool__(self) -> bool:
        return bool(self._conflicts)

    def __repr__(self) -> str:
        return (
            f"ConflictSet({[c.job_id for c in self._conflicts]!r}, "
            f"resolved={len(self._resolutions)})"
        )

    @property
    def conflicts(self) -> tuple[ScheduledInterval, ...]:
        return self._conflicts

    @property
    def resolutions(self) -> dict[str, Resolution]:
        return dict(self._resolutions)

    def job_ids(self) -> list[str]:
        return [c.job_id for c in self._conflicts]

    def resolve(self, job_id: str, resolution: Resolution | str) -> None:
        """Record a resolution.

        Raises InputError (field "conflicts") for a job not in the set or an
        unknown resolution value.
        """
        if job_id not in self.job_ids():
            raise InputError("conflicts", f"Job {job_id!r} is not in conflict")
        try:
            self._resolutions[job_id] = Resolution(resolution)
        except ValueError as exc:
            raise InputError(
                "conflicts",
                f"Unknown resolution {resolution!r} for job {job_id!r}; "
                f"choose push_back or return_to_queue",
            ) from exc

    def resolution_for(self, job_id: str) -> Resolution | None:
        return self._resolutions.get(job_id)

    def unresolved(self) -> list[ScheduledInterval]:
        return [c for c in self._conflicts if c.job_id not in self._resolutions]

    @property
    def is_resolved(self) -> bool:
        return not self.unresolved()

    def pushed_back(self) -> list[ScheduledInterval]:
        return [
            c for c in self._conflicts
            if self._resolutions.get(c.job_id) is Resolution.PUSH_BACK
        ]

    def returned_to_queue(self) -> list[ScheduledInterval]:
        return [
            c for c in self._conflicts
            if self._resolutions.get(c.job_id) is Resolution.RETURN_TO_QUEUE
        ]


def recompute(
    timeline: TimelineIndex,
    machine_id: str,
    start: datetime,
    end: datetime,
    exclude_job_id: str | None = None,
    previous: ConflictSet | None = None,
) -> ConflictSet:
    """Recompute conflicts after any candidate change.

    Resolutions from `previous` survive for jobs that still conflict;
    stale ones are dropped.
    """
    conflicts = find_conflicts(timeline, machine_id, start, end, exclude_job_id)
    kept = previous.resolutions if previous is not None else None
    return ConflictSet(conflicts, kept)

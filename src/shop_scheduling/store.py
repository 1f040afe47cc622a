"""Reference job store: applying a commit payload to persisted state.

The engine never writes. This module shows how a caller applies a
CommitPayload to its own store, and ships an in-memory store that tests
and offline planning runs use in place of the real database.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Protocol

from shop_scheduling.placement import (
    CommitPayload,
    MoveWrite,
    PlacementWrite,
    QueueReturn,
)
from shop_scheduling.timeline import TimelineIndex
from shop_scheduling.types import CommitFailure, ScheduledInterval

logger = logging.getLogger(__name__)


class JobStore(Protocol):
    """The three set-to-value writes a commit needs."""

    def set_schedule(
        self,
        job_id: str,
        machine_id: str,
        start: datetime,
        end: datetime,
        duration_minutes: int,
    ) -> None: ...

    def set_times(self, job_id: str, start: datetime, end: datetime) -> None: ...

    def clear_schedule(self, job_id: str) -> None: ...


class InMemoryJobStore:
    """Dict-backed store of scheduled intervals plus the unscheduled pool."""

    def __init__(
        self,
        intervals: Iterable[ScheduledInterval] = (),
        unscheduled: Iterable[str] = (),
    ) -> None:
        self._scheduled: dict[str, ScheduledInterval] = {
            iv.job_id: iv for iv in intervals
        }
        self._unscheduled: set[str] = set(unscheduled) - set(self._scheduled)

    def snapshot(self) -> TimelineIndex:
        """Fresh read-only view for the next scheduling interaction."""
        return TimelineIndex(self._scheduled.values())

    @property
    def unscheduled(self) -> frozenset[str]:
        return frozenset(self._unscheduled)

    def get(self, job_id: str) -> ScheduledInterval | None:
        return self._scheduled.get(job_id)

    def state(self) -> tuple[dict[str, ScheduledInterval], frozenset[str]]:
        """Comparable view of everything the store holds."""
        return dict(self._scheduled), frozenset(self._unscheduled)

    def set_schedule(
        self,
        job_id: str,
        machine_id: str,
        start: datetime,
        end: datetime,
        duration_minutes: int,
    ) -> None:
        current = self._scheduled.get(job_id)
        if current is None:
            current = ScheduledInterval(job_id, machine_id, start, duration_minutes, end)
        self._scheduled[job_id] = replace(
            current,
            machine_id=machine_id,
            start=start,
            explicit_end=end,
            duration_minutes=duration_minutes,
        )
        self._unscheduled.discard(job_id)

    def set_times(self, job_id: str, start: datetime, end: datetime) -> None:
        current = self._scheduled.get(job_id)
        if current is None:
            raise KeyError(f"Job {job_id!r} is not scheduled")
        self._scheduled[job_id] = replace(current, start=start, explicit_end=end)

    def clear_schedule(self, job_id: str) -> None:
        self._scheduled.pop(job_id, None)
        self._unscheduled.add(job_id)


def _apply_one(
    store: JobStore, mutation: PlacementWrite | MoveWrite | QueueReturn
) -> None:
    if isinstance(mutation, QueueReturn):
        store.clear_schedule(mutation.job_id)
    elif isinstance(mutation, MoveWrite):
        store.set_times(mutation.job_id, mutation.new_start, mutation.new_end)
    else:
        store.set_schedule(
            mutation.job_id,
            mutation.machine_id,
            mutation.start,
            mutation.end,
            mutation.duration_minutes,
        )


def apply_commit(store: JobStore, payload: CommitPayload) -> list[str]:
    """Apply every write in order: returns, moves, then the placement.

    Returns the job ids written. The first failing write raises
    CommitFailure; earlier writes are left in place and the payload can be
    re-applied unchanged.
    """
    applied: list[str] = []
    for mutation in payload.mutations():
        try:
            _apply_one(store, mutation)
        except Exception as exc:
            logger.error(
                "commit failed on job %s after %d write(s): %s",
                mutation.job_id, len(applied), exc,
            )
            raise CommitFailure(mutation.job_id, applied, str(exc)) from exc
        applied.append(mutation.job_id)

    logger.info("commit applied %d write(s)", len(applied))
    return applied


def unschedule(store: JobStore, job_id: str) -> None:
    """Return a single job to the unscheduled pool."""
    try:
        store.clear_schedule(job_id)
    except Exception as exc:
        logger.error("unschedule failed on job %s: %s", job_id, exc)
        raise CommitFailure(job_id, (), str(exc)) from exc

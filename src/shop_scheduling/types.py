"""Shared types: machines, scheduled intervals, cascade moves and the error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from shop_scheduling.clock import reject_aware


class Resolution(str, Enum):
    """How a user chose to relieve one conflict."""

    PUSH_BACK = "push_back"
    RETURN_TO_QUEUE = "return_to_queue"


@dataclass(frozen=True)
class Machine:
    """A machine as seen by the scheduler. Owned by the machine registry."""

    machine_id: str
    is_active: bool = True
    display_order: int | None = None
    name: str = ""

    @classmethod
    def from_record(cls, record: dict) -> Machine:
        return cls(
            machine_id=record["id"],
            is_active=record.get("is_active", True),
            display_order=record.get("display_order"),
            name=record.get("name", ""),
        )


@dataclass(frozen=True)
class ScheduledInterval:
    """Immutable placement of one job on one machine.

    Invariants:
        - duration_minutes >= 1
        - end > start
        - end == explicit_end when stored, else start + duration_minutes
    """

    job_id: str
    machine_id: str
    start: datetime
    duration_minutes: int
    explicit_end: datetime | None = None
    job_number: str = ""
    part_number: str = ""
    priority: str | None = None
    requires_attendance: bool = False

    def __post_init__(self) -> None:
        reject_aware(self.start, "start")
        if self.explicit_end is not None:
            reject_aware(self.explicit_end, "explicit_end")
        if self.duration_minutes < 1:
            raise ValueError(
                f"job {self.job_id!r}: duration_minutes must be >= 1, "
                f"got {self.duration_minutes}"
            )
        if self.end <= self.start:
            raise ValueError(
                f"job {self.job_id!r}: end {self.end.isoformat()} must be after "
                f"start {self.start.isoformat()}"
            )

    @property
    def end(self) -> datetime:
        if self.explicit_end is not None:
            return self.explicit_end
        return self.start + timedelta(minutes=self.duration_minutes)

    @property
    def label(self) -> str:
        """Human-facing name: job number when known, else the id."""
        return self.job_number or self.job_id

    @classmethod
    def from_record(
        cls, record: dict, default_duration_minutes: int = 60
    ) -> ScheduledInterval:
        """Build from an external job record.

        Duration comes from 'duration_minutes', else from a stored end,
        else falls back to default_duration_minutes.
        """
        start = datetime.fromisoformat(record["start"])
        end = datetime.fromisoformat(record["end"]) if record.get("end") else None

        duration = record.get("duration_minutes")
        if not duration:
            if end is not None:
                duration = max(1, int((end - start).total_seconds()) // 60)
            else:
                duration = default_duration_minutes

        return cls(
            job_id=record["id"],
            machine_id=record["machine_id"],
            start=start,
            duration_minutes=duration,
            explicit_end=end,
            job_number=record.get("job_number", ""),
            part_number=record.get("part_number", ""),
            priority=record.get("priority"),
            requires_attendance=record.get("requires_attendance", False),
        )


@dataclass(frozen=True)
class CascadeMove:
    """One computed relocation. depth 1 = displaced directly by the candidate."""

    interval: ScheduledInterval
    new_start: datetime
    new_end: datetime
    depth: int

    @property
    def job_id(self) -> str:
        return self.interval.job_id


@dataclass(frozen=True)
class CascadeResult:
    """Outcome of a cascade computation.

    moves are in acceptance order (breadth-first by depth, then original
    start). overflow holds intervals that were discarded because their
    depth exceeded the limit; too_deep is set whenever overflow is non-empty.
    """

    moves: tuple[CascadeMove, ...] = ()
    too_deep: bool = False
    overflow: tuple[ScheduledInterval, ...] = ()

    def move_for(self, job_id: str) -> CascadeMove | None:
        return next((m for m in self.moves if m.job_id == job_id), None)

    @property
    def side_effects(self) -> tuple[CascadeMove, ...]:
        """Moves not chosen by the user directly (depth > 1)."""
        return tuple(m for m in self.moves if m.depth > 1)


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------


class SchedulingError(Exception):
    """Base for every structured error the engine reports."""

    field: str | None = None

    def as_dict(self) -> dict:
        """Field-attributable form for display layers."""
        return {
            "error": type(self).__name__,
            "field": self.field,
            "message": str(self),
        }


class InputError(SchedulingError):
    """A required field is missing or malformed. Blocks all computation."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(message)


class NoSlotAvailable(SchedulingError):
    """Raised when the slot search exhausts its horizon."""

    field = "start"

    def __init__(
        self,
        machine_id: str,
        from_date: date,
        duration_minutes: int,
        horizon_days: int,
    ) -> None:
        self.machine_id = machine_id
        self.from_date = from_date
        self.duration_minutes = duration_minutes
        self.horizon_days = horizon_days
        super().__init__(
            f"No available slot found in the next {horizon_days} days on "
            f"machine {machine_id!r} for {duration_minutes} minutes "
            f"(searched from {from_date.isoformat()})"
        )


class UnresolvedConflict(SchedulingError):
    """Raised when a commit is attempted while conflicts lack a resolution."""

    field = "conflicts"

    def __init__(self, job_ids: list[str] | tuple[str, ...]) -> None:
        self.job_ids = tuple(job_ids)
        super().__init__(
            "Please resolve all schedule conflicts before saving: "
            + ", ".join(self.job_ids)
        )


class CascadeTooDeep(SchedulingError):
    """Raised when pushing back would cascade past the depth limit."""

    field = "conflicts"

    def __init__(
        self, max_depth: int, job_ids: list[str] | tuple[str, ...] = ()
    ) -> None:
        self.max_depth = max_depth
        self.job_ids = tuple(job_ids)
        super().__init__(
            f"Push-back cascade exceeds {max_depth} levels. "
            f"Return some jobs to queue instead."
        )


class CommitFailure(SchedulingError):
    """Raised when one write of a commit batch fails.

    Writes already applied stay applied; the batch can be re-run as-is
    because every write sets absolute values.
    """

    def __init__(
        self,
        job_id: str,
        applied: list[str] | tuple[str, ...],
        reason: str,
    ) -> None:
        self.job_id = job_id
        self.field = job_id
        self.applied = tuple(applied)
        self.reason = reason
        super().__init__(
            f"Failed to update job {job_id!r} "
            f"({len(self.applied)} earlier writes applied): {reason}"
        )

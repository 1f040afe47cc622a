"""Placement validation: decide whether a proposed placement can commit.

Composes the slot finder, conflict detector and cascade resolver into the
state machine a scheduling dialog drives:

    DRAFT -> CHECKING -> CLEAN | CONFLICTED -> RESOLVING -> RESOLVED -> COMMITTED

Every input change re-runs recompute(); nothing is reactive.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Mapping

from shop_scheduling.cascade import resolve_cascade
from shop_scheduling.clock import SYSTEM_CLOCK, reject_aware
from shop_scheduling.config import DEFAULT_CONFIG, EngineConfig
from shop_scheduling.conflicts import ConflictSet, recompute
from shop_scheduling.slots import find_next_available
from shop_scheduling.types import (
    CascadeResult,
    CascadeTooDeep,
    InputError,
    Machine,
    NoSlotAvailable,
    Resolution,
    ScheduledInterval,
    UnresolvedConflict,
)

if TYPE_CHECKING:
    from shop_scheduling.calendar import ShiftCalendar
    from shop_scheduling.clock import Clock
    from shop_scheduling.timeline import TimelineIndex

logger = logging.getLogger(__name__)

_UNSET = object()


class PlacementState(str, Enum):
    DRAFT = "draft"
    CHECKING = "checking"
    CLEAN = "clean"
    CONFLICTED = "conflicted"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    COMMITTED = "committed"


# ----------------------------------------------------------------------
# Commit payload
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class PlacementWrite:
    """New or rescheduled placement of the job being edited."""

    job_id: str
    machine_id: str
    start: datetime
    end: datetime
    duration_minutes: int


@dataclass(frozen=True)
class MoveWrite:
    """New times for a pushed-back job."""

    job_id: str
    new_start: datetime
    new_end: datetime


@dataclass(frozen=True)
class QueueReturn:
    """Clear a job's machine and schedule, returning it to the pool."""

    job_id: str
    clear_machine: bool = True
    clear_schedule: bool = True


@dataclass(frozen=True)
class CommitPayload:
    """Every write a committed placement asks the external store to make."""

    placement: PlacementWrite
    moves: tuple[MoveWrite, ...] = ()
    returns: tuple[QueueReturn, ...] = ()

    def mutations(self) -> Iterator[PlacementWrite | MoveWrite | QueueReturn]:
        """Writes in application order: returns, moves, then the placement."""
        yield from self.returns
        yield from self.moves
        yield self.placement

    def as_records(self) -> list[dict]:
        """Plain dicts with ISO timestamps, one per mutation."""
        records = []
        for mutation in self.mutations():
            record = {
                key: value.isoformat() if isinstance(value, datetime) else value
                for key, value in asdict(mutation).items()
            }
            record["kind"] = type(mutation).__name__
            records.append(record)
        return records


# ----------------------------------------------------------------------
# Next-available suggestion
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class StartSuggestion:
    """Suggested start plus an optional advisory note for the user."""

    start: datetime
    note: str | None = None
    found: bool = True


def _format_time(t: datetime) -> str:
    return f"{t.hour % 12 or 12}:{t.minute:02d} {'PM' if t.hour >= 12 else 'AM'}"


def suggest_start(
    timeline: TimelineIndex,
    machine_id: str,
    requested_date: date,
    duration_minutes: int | None,
    exclude_job_id: str | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
    clock: Clock | None = None,
    calendar: ShiftCalendar | None = None,
) -> StartSuggestion:
    """Next available start for the grid drop and the reschedule dialog.

    A slot on a later day carries a "Next available" note. When the horizon
    is exhausted, falls back to shift start of requested_date with an
    advisory note instead of failing.
    """
    calendar = calendar or config.calendar()
    duration = duration_minutes or config.default_duration_minutes
    try:
        slot = find_next_available(
            timeline,
            calendar,
            machine_id,
            requested_date,
            duration,
            exclude_job_id=exclude_job_id,
            clock=clock,
            horizon_days=config.search_horizon_days,
        )
    except NoSlotAvailable as exc:
        logger.info("%s; falling back to shift start", exc)
        return StartSuggestion(
            start=calendar.shift_start_on(requested_date),
            note=(
                f"No available slot found in the next "
                f"{config.search_horizon_days} days on this machine"
            ),
            found=False,
        )

    if slot.date != requested_date:
        note = (
            f"Next available: {slot.start.strftime('%a, %b')} "
            f"{slot.start.day} at {_format_time(slot.start)}"
        )
        return StartSuggestion(start=slot.start, note=note)
    return StartSuggestion(start=slot.start)


# ----------------------------------------------------------------------
# Validator
# ----------------------------------------------------------------------


@dataclass
class PlacementCandidate:
    """The placement the user is currently editing."""

    job_id: str
    machine_id: str | None = None
    start: datetime | None = None
    duration_minutes: int | None = None

    @property
    def end(self) -> datetime | None:
        if self.start is None or not self.duration_minutes:
            return None
        return self.start + timedelta(minutes=self.duration_minutes)


@dataclass
class PlacementValidator:
    """Drives one scheduling interaction for one job.

    The snapshot is read once; conflicts and the cascade preview are
    recomputed on every change. commit() is refused while any conflict
    lacks a resolution or the cascade is too deep.
    """

    timeline: TimelineIndex
    job_id: str
    config: EngineConfig = DEFAULT_CONFIG
    clock: Clock | None = None
    machines: Mapping[str, Machine] | None = None
    edit_mode: bool = False
    calendar: ShiftCalendar = field(init=False)
    candidate: PlacementCandidate = field(init=False)
    state: PlacementState = field(init=False, default=PlacementState.DRAFT)
    conflict_set: ConflictSet = field(init=False, default_factory=ConflictSet)
    cascade: CascadeResult = field(init=False, default_factory=CascadeResult)

    def __post_init__(self) -> None:
        self.calendar = self.config.calendar()
        self.candidate = PlacementCandidate(self.job_id)

    @classmethod
    def for_reschedule(
        cls,
        timeline: TimelineIndex,
        interval: ScheduledInterval,
        config: EngineConfig = DEFAULT_CONFIG,
        clock: Clock | None = None,
        machines: Mapping[str, Machine] | None = None,
    ) -> PlacementValidator:
        """Pre-fill from an existing placement, clamped into the shift."""
        validator = cls(
            timeline, interval.job_id, config, clock, machines, edit_mode=True
        )
        validator.update(
            machine_id=interval.machine_id,
            start=validator.calendar.nearest_valid_start(interval.start),
            duration_minutes=interval.duration_minutes,
        )
        return validator

    @property
    def exclude_job_id(self) -> str | None:
        return self.job_id if self.edit_mode else None

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _check_inputs(self) -> None:
        """Field-level checks that gate conflict computation."""
        c = self.candidate
        if not c.machine_id:
            raise InputError("machine_id", "Select a machine")
        if self.machines is not None:
            machine = self.machines.get(c.machine_id)
            if machine is None:
                raise InputError("machine_id", f"Unknown machine {c.machine_id!r}")
            if not machine.is_active:
                raise InputError(
                    "machine_id", f"Machine {c.machine_id!r} is not active"
                )
        if c.start is None:
            raise InputError("start", "Select a start date and time")
        if c.duration_minutes is None or c.duration_minutes <= 0:
            raise InputError("duration_minutes", "Duration must be greater than 0.")

    def update(
        self,
        machine_id=_UNSET,
        start=_UNSET,
        duration_minutes=_UNSET,
    ) -> PlacementState:
        """Apply edits to the candidate and recompute conflicts.

        Raises InputError (state DRAFT) when a required field is missing.
        """
        if self.state is PlacementState.COMMITTED:
            raise RuntimeError("Placement already committed")

        if machine_id is not _UNSET:
            self.candidate.machine_id = machine_id
        if start is not _UNSET:
            if start is not None:
                reject_aware(start, "start")
            self.candidate.start = start
        if duration_minutes is not _UNSET:
            self.candidate.duration_minutes = duration_minutes

        self.state = PlacementState.DRAFT
        try:
            self._check_inputs()
        except InputError:
            self.conflict_set = ConflictSet()
            self.cascade = CascadeResult()
            raise

        self.state = PlacementState.CHECKING
        self.conflict_set = recompute(
            self.timeline,
            self.candidate.machine_id,
            self.candidate.start,
            self.candidate.end,
            exclude_job_id=self.exclude_job_id,
            previous=self.conflict_set,
        )
        self._refresh()
        return self.state

    def set_resolution(
        self, job_id: str, resolution: Resolution | str
    ) -> PlacementState:
        """Assign a resolution to one conflict and refresh the cascade."""
        if self.state not in (
            PlacementState.CONFLICTED,
            PlacementState.RESOLVING,
            PlacementState.RESOLVED,
        ):
            raise RuntimeError(f"No conflicts to resolve in state {self.state.value}")
        self.conflict_set.resolve(job_id, resolution)
        self.state = PlacementState.RESOLVING
        self._refresh()
        return self.state

    def resolve_all(self, resolution: Resolution | str) -> PlacementState:
        """Apply the same resolution to every conflict still lacking one."""
        for interval in self.conflict_set.unresolved():
            self.set_resolution(interval.job_id, resolution)
        return self.state

    def _refresh(self) -> None:
        if not self.conflict_set:
            self.cascade = CascadeResult()
            self.state = PlacementState.CLEAN
            return

        self.cascade = resolve_cascade(
            self.timeline,
            self.calendar,
            self.candidate.machine_id,
            self.candidate.start,
            self.candidate.end,
            self.conflict_set,
            exclude_job_id=self.exclude_job_id,
            max_depth=self.config.max_cascade_depth,
            max_settle_iterations=self.config.max_settle_iterations,
        )
        if self.conflict_set.is_resolved and not self.cascade.too_deep:
            self.state = PlacementState.RESOLVED
        elif self.state is PlacementState.CHECKING:
            self.state = PlacementState.CONFLICTED
        else:
            self.state = PlacementState.RESOLVING

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @property
    def can_commit(self) -> bool:
        return not self.errors() and self.state in (
            PlacementState.CLEAN,
            PlacementState.RESOLVED,
        )

    def errors(self) -> list[dict]:
        """Structured, field-attributable messages blocking commit."""
        try:
            self._check_blockers()
        except (InputError, UnresolvedConflict, CascadeTooDeep) as exc:
            return [exc.as_dict()]
        return []

    def _check_blockers(self) -> None:
        self._check_inputs()
        message = self.calendar.validate_start_time(self.candidate.start)
        if message:
            raise InputError("start", message)
        unresolved = self.conflict_set.unresolved()
        if unresolved:
            raise UnresolvedConflict([c.job_id for c in unresolved])
        if self.cascade.too_deep:
            raise CascadeTooDeep(
                self.config.max_cascade_depth,
                [iv.job_id for iv in self.cascade.overflow],
            )

    def commit(self) -> CommitPayload:
        """Emit the writes for this placement. Terminal on success."""
        if self.state is PlacementState.COMMITTED:
            raise RuntimeError("Placement already committed")
        self._check_blockers()

        c = self.candidate
        payload = CommitPayload(
            placement=PlacementWrite(
                job_id=c.job_id,
                machine_id=c.machine_id,
                start=c.start,
                end=c.end,
                duration_minutes=c.duration_minutes,
            ),
            moves=tuple(
                MoveWrite(m.job_id, m.new_start, m.new_end)
                for m in self.cascade.moves
            ),
            returns=tuple(
                QueueReturn(iv.job_id)
                for iv in self.conflict_set.returned_to_queue()
            ),
        )
        self.state = PlacementState.COMMITTED
        logger.info(
            "placement %s on %s at %s: %d move(s), %d return(s)",
            c.job_id, c.machine_id, c.start.isoformat(),
            len(payload.moves), len(payload.returns),
        )
        return payload

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def suggest(self, requested_date: date) -> StartSuggestion:
        """Next available start for the current machine and duration."""
        if not self.candidate.machine_id:
            raise InputError("machine_id", "Select a machine")
        if requested_date is None:
            raise InputError("start", "Select a start date")
        return suggest_start(
            self.timeline,
            self.candidate.machine_id,
            requested_date,
            self.candidate.duration_minutes,
            exclude_job_id=self.exclude_job_id,
            config=self.config,
            clock=self.clock or SYSTEM_CLOCK,
            calendar=self.calendar,
        )

    def auto_place(self, requested_date: date) -> StartSuggestion:
        """Move the candidate start to the next available slot."""
        suggestion = self.suggest(requested_date)
        self.update(start=suggestion.start)
        return suggestion

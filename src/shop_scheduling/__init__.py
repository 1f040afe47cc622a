"""shop-floor-scheduling: Machine timelines, slot search and cascading conflict resolution."""

from shop_scheduling.calendar import ShiftCalendar
from shop_scheduling.cascade import resolve_cascade
from shop_scheduling.clock import Clock, FixedClock, SystemClock
from shop_scheduling.config import DEFAULT_CONFIG, EngineConfig
from shop_scheduling.conflicts import (
    ConflictSet,
    find_conflicts,
    has_conflict,
    overlaps,
    recompute,
)
from shop_scheduling.hints import MachineHint, MachineOption, rank_machines
from shop_scheduling.loaders import Snapshot, load_config_json, load_snapshot_json
from shop_scheduling.placement import (
    CommitPayload,
    MoveWrite,
    PlacementState,
    PlacementValidator,
    PlacementWrite,
    QueueReturn,
    StartSuggestion,
    suggest_start,
)
from shop_scheduling.resize import ResizeEdge, commit_resize, preview_resize
from shop_scheduling.slots import Slot, find_next_available
from shop_scheduling.store import InMemoryJobStore, apply_commit, unschedule
from shop_scheduling.timeline import TimelineIndex
from shop_scheduling.types import (
    CascadeMove,
    CascadeResult,
    CascadeTooDeep,
    CommitFailure,
    InputError,
    Machine,
    NoSlotAvailable,
    Resolution,
    ScheduledInterval,
    SchedulingError,
    UnresolvedConflict,
)

__all__ = [
    "CascadeMove",
    "CascadeResult",
    "CascadeTooDeep",
    "Clock",
    "CommitFailure",
    "CommitPayload",
    "ConflictSet",
    "DEFAULT_CONFIG",
    "EngineConfig",
    "FixedClock",
    "InMemoryJobStore",
    "InputError",
    "Machine",
    "MachineHint",
    "MachineOption",
    "MoveWrite",
    "NoSlotAvailable",
    "PlacementState",
    "PlacementValidator",
    "PlacementWrite",
    "QueueReturn",
    "ResizeEdge",
    "Resolution",
    "ScheduledInterval",
    "SchedulingError",
    "ShiftCalendar",
    "Slot",
    "Snapshot",
    "StartSuggestion",
    "SystemClock",
    "TimelineIndex",
    "UnresolvedConflict",
    "apply_commit",
    "commit_resize",
    "find_conflicts",
    "find_next_available",
    "has_conflict",
    "load_config_json",
    "load_snapshot_json",
    "overlaps",
    "preview_resize",
    "rank_machines",
    "recompute",
    "resolve_cascade",
    "suggest_start",
    "unschedule",
]

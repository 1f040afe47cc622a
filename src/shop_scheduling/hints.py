"""Machine hints: pre-fill duration and rank machine choices for a part.

Hints never affect conflict or cascade correctness; they only decide which
machine and duration a scheduling dialog starts from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from shop_scheduling.config import DEFAULT_CONFIG, EngineConfig
from shop_scheduling.types import Machine

_UNRANKED = 99


@dataclass(frozen=True)
class MachineHint:
    """Estimated run time of one part on one machine."""

    machine_id: str
    estimated_minutes: int | None = None
    base_quantity: int | None = None
    is_preferred: bool = False
    preference_order: int | None = None

    @classmethod
    def from_record(cls, record: dict) -> MachineHint:
        return cls(
            machine_id=record["machine_id"],
            estimated_minutes=record.get("estimated_minutes"),
            base_quantity=record.get("base_quantity"),
            is_preferred=record.get("is_preferred", False),
            preference_order=record.get("preference_order"),
        )


@dataclass(frozen=True)
class MachineOption:
    """A machine offered to the user, with its tier and optional hint."""

    machine: Machine
    tier: str
    hint: MachineHint | None = None

    @property
    def machine_id(self) -> str:
        return self.machine.machine_id

    @property
    def is_preferred(self) -> bool:
        return self.tier == "preferred"


def scaled_duration(
    hint: MachineHint | None,
    quantity: int | None,
    minimum: int | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> int | None:
    """Estimated minutes scaled by quantity / base_quantity.

    Scaled results are floored at minimum (default
    config.min_duration_minutes). Unscaled when either quantity is missing
    or non-positive. None when the hint carries no estimate.
    """
    if hint is None or not hint.estimated_minutes:
        return None
    if minimum is None:
        minimum = config.min_duration_minutes
    minutes = hint.estimated_minutes
    if hint.base_quantity and hint.base_quantity > 0 and quantity and quantity > 0:
        minutes = max(minimum, round(quantity / hint.base_quantity * minutes))
    return minutes


def _order(value: int | None, fallback: int) -> int:
    return value if value is not None else fallback


def rank_machines(
    machines: Iterable[Machine], hints: Iterable[MachineHint]
) -> list[MachineOption]:
    """Active machines in three tiers: preferred, secondary, other.

    Preferred and secondary machines have a hint for the part; secondary
    ties break on the shorter estimate. Others are ordered by display order,
    then name.
    """
    active = {m.machine_id: m for m in machines if m.is_active}
    hints = [h for h in hints if h.machine_id in active]
    hinted = {h.machine_id for h in hints}

    preferred = sorted(
        (h for h in hints if h.is_preferred),
        key=lambda h: _order(h.preference_order, _UNRANKED),
    )
    secondary = sorted(
        (h for h in hints if not h.is_preferred),
        key=lambda h: (
            _order(h.preference_order, _UNRANKED),
            _order(h.estimated_minutes, 9999),
        ),
    )
    others = sorted(
        (m for m in active.values() if m.machine_id not in hinted),
        key=lambda m: (_order(m.display_order, 999), m.name),
    )

    options = [MachineOption(active[h.machine_id], "preferred", h) for h in preferred]
    options += [MachineOption(active[h.machine_id], "secondary", h) for h in secondary]
    options += [MachineOption(m, "other") for m in others]
    return options


def default_machine(options: list[MachineOption]) -> MachineOption | None:
    """First preferred option, else the first option at all."""
    for option in options:
        if option.is_preferred:
            return option
    return options[0] if options else None

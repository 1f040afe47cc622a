"""Data loading utilities for engine configs and job snapshots."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from shop_scheduling.config import EngineConfig
from shop_scheduling.schema import validate_config, validate_jobs, validate_machines
from shop_scheduling.timeline import TimelineIndex
from shop_scheduling.types import Machine


@dataclass(frozen=True)
class Snapshot:
    """Machines and jobs as read from the external store for one interaction."""

    machines: dict[str, Machine]
    timeline: TimelineIndex
    unscheduled: tuple[str, ...] = field(default=())

    def active_machines(self) -> list[Machine]:
        """Active machines by display order, then id."""
        return sorted(
            (m for m in self.machines.values() if m.is_active),
            key=lambda m: (
                m.display_order if m.display_order is not None else 999,
                m.machine_id,
            ),
        )


def _read_json(path: Path):
    with open(path) as f:
        return json.load(f)


def _raise_if_errors(errors: list[str], path: Path) -> None:
    if errors:
        raise ValueError(
            f"Validation errors in {path.name}:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def load_config_json(path: str | Path) -> EngineConfig:
    """Load an EngineConfig from a JSON file.

    Accepts either a bare mapping of settings or
    {
        "id": "...",
        "config": { "shift_start_hour": 7, ... }
    }
    Missing keys take their defaults. Raises ValueError if validation fails.
    """
    path = Path(path)
    data = _read_json(path)
    settings = data.get("config", data)
    settings = {k: v for k, v in settings.items() if k != "id"}

    _raise_if_errors(validate_config(settings), path)
    return EngineConfig(**settings)


def load_snapshot_json(
    path: str | Path, default_duration_minutes: int = 60
) -> Snapshot:
    """Load machines and jobs from a JSON file.

    The JSON must have the shape:
    {
        "machines": [ {"id": "M1", "is_active": true, "display_order": 1}, ... ],
        "jobs": [ {"id": "J1", "machine_id": "M1", "start": "...", ...}, ... ]
    }
    Jobs without a machine or start are collected as unscheduled.
    Raises ValueError if validation fails.
    """
    path = Path(path)
    data = _read_json(path)
    machine_records = data.get("machines", [])
    job_records = data.get("jobs", [])

    errors = validate_machines(machine_records)
    errors.extend(validate_jobs(job_records))
    _raise_if_errors(errors, path)

    machines = {r["id"]: Machine.from_record(r) for r in machine_records}
    unknown = sorted(
        {r["machine_id"] for r in job_records if r.get("machine_id")} - machines.keys()
    )
    if machines and unknown:
        _raise_if_errors([f"Unknown machine {m!r}" for m in unknown], path)

    timeline = TimelineIndex.from_records(job_records, default_duration_minutes)
    unscheduled = tuple(
        r["id"] for r in job_records
        if not (r.get("machine_id") and r.get("start"))
    )
    return Snapshot(machines, timeline, unscheduled)

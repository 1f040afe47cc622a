"""Shared test fixtures and data loading for shop-floor-scheduling.

All test data lives in data/fixtures/ as JSON files.  This module loads
that data and exposes helper functions + pytest fixtures for the tests.

Reference week: Mon 2025-01-06 through Sun 2025-01-12.
Shift: 07:00-16:00 in 15-minute steps unless a test says otherwise.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time
from pathlib import Path

import pytest

from shop_scheduling.calendar import ShiftCalendar
from shop_scheduling.clock import FixedClock
from shop_scheduling.timeline import TimelineIndex
from shop_scheduling.types import ScheduledInterval

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
FIXTURES_DIR = Path(__file__).resolve().parent.parent / "data" / "fixtures"
SCENARIOS_DIR = FIXTURES_DIR / "scenarios"
CONFIGS_DIR = FIXTURES_DIR / "configs"


# ---------------------------------------------------------------------------
# Data loaders
# ---------------------------------------------------------------------------
def _load_json(path: Path):
    with open(path) as f:
        return json.load(f)


_reference = _load_json(FIXTURES_DIR / "reference.json")


# ---------------------------------------------------------------------------
# Reference constants derived from reference.json
# ---------------------------------------------------------------------------
EPOCH = datetime.fromisoformat(_reference["epoch"])

# Day lookup:  DAYS["mon"] → {"date": date(...), "weekday": 0}
DAYS: dict[str, dict] = {}
for _d in _reference["days"]:
    DAYS[_d["name"]] = {
        "date": date.fromisoformat(_d["date"]),
        "weekday": _d["weekday"],
    }


# ---------------------------------------------------------------------------
# Convenience helpers (importable by test modules)
# ---------------------------------------------------------------------------
def day_date(day: str) -> date:
    """Date object for a named day."""
    return DAYS[day]["date"]


def dt(day: str, time_label: str) -> datetime:
    """Datetime from day name and time label.

    >>> dt("mon", "09:00")
    datetime(2025, 1, 6, 9, 0)
    """
    return datetime.combine(day_date(day), time.fromisoformat(time_label))


def make_interval(
    job_id: str,
    day: str,
    time_label: str,
    duration_minutes: int,
    machine_id: str = "M1",
    **kwargs,
) -> ScheduledInterval:
    """ScheduledInterval starting at a named day and time."""
    return ScheduledInterval(
        job_id, machine_id, dt(day, time_label), duration_minutes, **kwargs
    )


def make_timeline(records: list[dict]) -> TimelineIndex:
    """TimelineIndex from scenario job records."""
    return TimelineIndex.from_records(records)


# ---------------------------------------------------------------------------
# Scenario loader
# ---------------------------------------------------------------------------
def load_scenarios(name: str):
    """Load a scenario file from data/fixtures/scenarios/{name}.json."""
    return _load_json(SCENARIOS_DIR / f"{name}.json")


# ---------------------------------------------------------------------------
# pytest fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def calendar() -> ShiftCalendar:
    return ShiftCalendar()


@pytest.fixture
def clock() -> FixedClock:
    """Monday 06:00, before the first shift of the reference week."""
    return FixedClock(dt("mon", "06:00"))


@pytest.fixture
def snapshot_path() -> Path:
    return FIXTURES_DIR / "snapshot.json"


@pytest.fixture
def busy_timeline() -> TimelineIndex:
    """M1: 09:00-11:00 and 11:00-12:00 Monday. M2: 13:00-14:00 Monday."""
    return TimelineIndex([
        make_interval("J1", "mon", "09:00", 120),
        make_interval("J2", "mon", "11:00", 60),
        make_interval("J3", "mon", "13:00", 60, machine_id="M2"),
    ])

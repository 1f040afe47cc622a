"""Tests for machine ranking and duration hints."""

from __future__ import annotations

import pytest

from shop_scheduling.config import EngineConfig
from shop_scheduling.hints import (
    MachineHint,
    default_machine,
    rank_machines,
    scaled_duration,
)
from shop_scheduling.types import Machine

MACHINES = [
    Machine("M1", display_order=3, name="Haas VF-2"),
    Machine("M2", display_order=1, name="Okuma LB3000"),
    Machine("M3", display_order=2, name="Doosan"),
    Machine("M4", name="Brother"),
    Machine("M5", display_order=1, name="Mazak", is_active=False),
]


class TestRankMachines:

    def test_without_hints_orders_by_display_then_name(self):
        options = rank_machines(MACHINES, [])
        assert [o.machine_id for o in options] == ["M2", "M3", "M1", "M4"]
        assert {o.tier for o in options} == {"other"}

    def test_tiers(self):
        hints = [
            MachineHint("M4", estimated_minutes=90),
            MachineHint("M1", estimated_minutes=60, is_preferred=True, preference_order=2),
            MachineHint("M3", estimated_minutes=45, is_preferred=True, preference_order=1),
        ]
        options = rank_machines(MACHINES, hints)
        assert [(o.machine_id, o.tier) for o in options] == [
            ("M3", "preferred"),
            ("M1", "preferred"),
            ("M4", "secondary"),
            ("M2", "other"),
        ]
        assert options[0].hint.estimated_minutes == 45

    def test_secondary_ties_break_on_estimate(self):
        hints = [
            MachineHint("M1", estimated_minutes=120),
            MachineHint("M2", estimated_minutes=40),
            MachineHint("M3"),
        ]
        options = rank_machines(MACHINES, hints)
        assert [o.machine_id for o in options if o.tier == "secondary"] == ["M2", "M1", "M3"]

    def test_inactive_machine_never_offered(self):
        hints = [MachineHint("M5", estimated_minutes=30, is_preferred=True)]
        options = rank_machines(MACHINES, hints)
        assert "M5" not in [o.machine_id for o in options]
        assert not any(o.is_preferred for o in options)


class TestDefaultMachine:

    def test_first_preferred(self):
        hints = [
            MachineHint("M4", estimated_minutes=30),
            MachineHint("M1", is_preferred=True),
        ]
        assert default_machine(rank_machines(MACHINES, hints)).machine_id == "M1"

    def test_falls_back_to_first_option(self):
        assert default_machine(rank_machines(MACHINES, [])).machine_id == "M2"

    def test_nothing_to_offer(self):
        assert default_machine([]) is None


class TestScaledDuration:

    @pytest.mark.parametrize(
        "hint, quantity, expected",
        [
            (MachineHint("M1", estimated_minutes=60, base_quantity=10), 25, 150),
            (MachineHint("M1", estimated_minutes=60, base_quantity=10), 1, 15),
            (MachineHint("M1", estimated_minutes=60, base_quantity=10), None, 60),
            (MachineHint("M1", estimated_minutes=60), 25, 60),
            (MachineHint("M1", estimated_minutes=60, base_quantity=0), 25, 60),
            (MachineHint("M1"), 25, None),
            (None, 25, None),
        ],
        ids=["scaled", "minimum", "no_quantity", "no_base", "zero_base",
             "no_estimate", "no_hint"],
    )
    def test_scaling(self, hint, quantity, expected):
        assert scaled_duration(hint, quantity) == expected

    def test_minimum_from_config(self):
        hint = MachineHint("M1", estimated_minutes=60, base_quantity=10)
        assert scaled_duration(hint, 1, config=EngineConfig(min_duration_minutes=30)) == 30
        assert scaled_duration(hint, 1, minimum=5) == 6

    def test_from_record(self):
        hint = MachineHint.from_record(
            {"machine_id": "M1", "estimated_minutes": 30, "is_preferred": True}
        )
        assert hint == MachineHint("M1", 30, None, True, None)

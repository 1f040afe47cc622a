"""Tests for overlap detection and ConflictSet bookkeeping."""

from __future__ import annotations

import pytest

from conftest import dt, make_interval
from shop_scheduling.conflicts import (
    ConflictSet,
    find_conflicts,
    has_conflict,
    overlaps,
    recompute,
)
from shop_scheduling.timeline import TimelineIndex
from shop_scheduling.types import InputError, Resolution


class TestOverlaps:

    @pytest.mark.parametrize(
        "a, b, expected",
        [
            (("09:00", "10:00"), ("09:30", "10:30"), True),
            (("09:00", "10:00"), ("10:00", "11:00"), False),
            (("10:00", "11:00"), ("09:00", "10:00"), False),
            (("09:00", "12:00"), ("10:00", "11:00"), True),
            (("10:00", "11:00"), ("09:00", "12:00"), True),
            (("09:00", "10:00"), ("09:00", "10:00"), True),
            (("09:00", "10:00"), ("11:00", "12:00"), False),
        ],
        ids=[
            "partial", "touching_after", "touching_before", "contains",
            "contained", "identical", "disjoint",
        ],
    )
    def test_half_open(self, a, b, expected):
        assert overlaps(
            dt("mon", a[0]), dt("mon", a[1]), dt("mon", b[0]), dt("mon", b[1])
        ) is expected


class TestFindConflicts:

    def test_returns_overlapping_in_start_order(self, busy_timeline):
        found = find_conflicts(busy_timeline, "M1", dt("mon", "10:30"), dt("mon", "11:30"))
        assert [iv.job_id for iv in found] == ["J1", "J2"]

    def test_touching_is_clean(self, busy_timeline):
        assert not has_conflict(busy_timeline, "M1", dt("mon", "12:00"), dt("mon", "13:00"))
        assert not has_conflict(busy_timeline, "M1", dt("mon", "08:00"), dt("mon", "09:00"))

    def test_other_machine_ignored(self, busy_timeline):
        assert not has_conflict(busy_timeline, "M2", dt("mon", "09:00"), dt("mon", "12:00"))

    def test_exclude_self(self, busy_timeline):
        found = find_conflicts(
            busy_timeline, "M1", dt("mon", "09:30"), dt("mon", "10:30"),
            exclude_job_id="J1",
        )
        assert found == []

    def test_dark_run_conflicts_next_morning(self):
        timeline = TimelineIndex([
            make_interval("J1", "mon", "14:00", 60, explicit_end=dt("tue", "08:00")),
        ])
        assert has_conflict(timeline, "M1", dt("tue", "07:00"), dt("tue", "07:15"))


class TestConflictSet:

    def _set(self, busy_timeline, **resolutions):
        conflicts = find_conflicts(
            busy_timeline, "M1", dt("mon", "10:00"), dt("mon", "11:30")
        )
        return ConflictSet(conflicts, resolutions)

    def test_starts_unresolved(self, busy_timeline):
        cs = self._set(busy_timeline)
        assert len(cs) == 2
        assert cs
        assert cs.job_ids() == ["J1", "J2"]
        assert not cs.is_resolved
        assert [iv.job_id for iv in cs.unresolved()] == ["J1", "J2"]

    def test_resolve_and_partition(self, busy_timeline):
        cs = self._set(busy_timeline)
        cs.resolve("J1", Resolution.PUSH_BACK)
        cs.resolve("J2", "return_to_queue")
        assert cs.is_resolved
        assert [iv.job_id for iv in cs.pushed_back()] == ["J1"]
        assert [iv.job_id for iv in cs.returned_to_queue()] == ["J2"]
        assert cs.resolution_for("J2") is Resolution.RETURN_TO_QUEUE

    def test_resolve_unknown_job(self, busy_timeline):
        cs = self._set(busy_timeline)
        with pytest.raises(InputError, match="not in conflict") as excinfo:
            cs.resolve("J3", Resolution.PUSH_BACK)
        assert excinfo.value.field == "conflicts"

    def test_invalid_resolution_value(self, busy_timeline):
        cs = self._set(busy_timeline)
        with pytest.raises(InputError, match="Unknown resolution 'delete'") as excinfo:
            cs.resolve("J1", "delete")
        assert excinfo.value.as_dict()["field"] == "conflicts"
        assert cs.resolution_for("J1") is None

    def test_stale_resolutions_dropped(self, busy_timeline):
        cs = self._set(busy_timeline, J1="push_back", J9="push_back")
        assert cs.resolutions == {"J1": Resolution.PUSH_BACK}

    def test_resolutions_copy(self, busy_timeline):
        cs = self._set(busy_timeline, J1="push_back")
        cs.resolutions["J2"] = Resolution.PUSH_BACK
        assert cs.resolution_for("J2") is None

    def test_empty(self):
        cs = ConflictSet()
        assert not cs
        assert cs.is_resolved


class TestRecompute:

    def test_keeps_resolutions_that_still_apply(self, busy_timeline):
        first = recompute(busy_timeline, "M1", dt("mon", "10:00"), dt("mon", "11:30"))
        first.resolve("J1", Resolution.PUSH_BACK)
        first.resolve("J2", Resolution.RETURN_TO_QUEUE)

        second = recompute(
            busy_timeline, "M1", dt("mon", "10:30"), dt("mon", "10:45"),
            previous=first,
        )
        assert second.job_ids() == ["J1"]
        assert second.resolutions == {"J1": Resolution.PUSH_BACK}
        assert second.is_resolved

    def test_new_conflict_needs_resolution(self, busy_timeline):
        first = recompute(busy_timeline, "M1", dt("mon", "10:00"), dt("mon", "10:30"))
        first.resolve("J1", Resolution.PUSH_BACK)
        second = recompute(
            busy_timeline, "M1", dt("mon", "10:00"), dt("mon", "11:30"),
            previous=first,
        )
        assert [iv.job_id for iv in second.unresolved()] == ["J2"]

"""Layer 1: ShiftCalendar, one fixed shift window per day."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from shop_scheduling.clock import reject_aware
from shop_scheduling.schema import validate_shift


def _midnight(t: datetime) -> datetime:
    return datetime.combine(t.date(), time(0, 0))


def _format_hour(hour: int) -> str:
    """Format an hour of day as '7:00 AM'."""
    h = hour % 24
    suffix = "PM" if h >= 12 else "AM"
    return f"{h % 12 or 12}:00 {suffix}"


class ShiftCalendar:
    """Daily shift window with a fixed start-time granularity.

    Every day carries exactly one window [shift_start_hour, shift_end_hour).
    New placements must start inside it on a granularity boundary; intervals
    themselves may run past shift end (dark runs).
    All datetimes are naive (facility local time).
    """

    def __init__(
        self,
        shift_start_hour: int = 7,
        shift_end_hour: int = 16,
        granularity_minutes: int = 15,
    ) -> None:
        errors = validate_shift(shift_start_hour, shift_end_hour, granularity_minutes)
        if errors:
            raise ValueError(
                "Invalid shift calendar:\n" + "\n".join(f"  - {e}" for e in errors)
            )
        self.shift_start_hour = shift_start_hour
        self.shift_end_hour = shift_end_hour
        self.granularity_minutes = granularity_minutes

        self._start_offset = timedelta(hours=shift_start_hour)
        self._end_offset = timedelta(hours=shift_end_hour)
        self._step = timedelta(minutes=granularity_minutes)

    def __repr__(self) -> str:
        return (
            f"ShiftCalendar({self.shift_start_hour}, {self.shift_end_hour}, "
            f"{self.granularity_minutes})"
        )

    @property
    def shift_minutes(self) -> int:
        """Length of one shift in minutes."""
        return (self.shift_end_hour - self.shift_start_hour) * 60

    # ------------------------------------------------------------------
    # Window boundaries
    # ------------------------------------------------------------------

    def shift_start_on(self, d: date) -> datetime:
        return datetime.combine(d, time(0, 0)) + self._start_offset

    def shift_end_on(self, d: date) -> datetime:
        return datetime.combine(d, time(0, 0)) + self._end_offset

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_within_shift(self, t: datetime) -> bool:
        """True if t falls in [shift start, shift end) of its own day."""
        reject_aware(t, "t")
        offset = t - _midnight(t)
        return self._start_offset <= offset < self._end_offset

    def is_aligned(self, t: datetime) -> bool:
        """True if t sits exactly on a granularity boundary."""
        reject_aware(t, "t")
        return (t - _midnight(t)) % self._step == timedelta(0)

    def is_valid_start_time(self, t: datetime) -> bool:
        """Window membership and granularity alignment."""
        return self.is_within_shift(t) and self.is_aligned(t)

    def validate_start_time(self, t: datetime) -> str | None:
        """Return a user-facing message if t is not a valid start, else None."""
        if not self.is_within_shift(t):
            return (
                f"Start time must be between {_format_hour(self.shift_start_hour)} "
                f"and {_format_hour(self.shift_end_hour)}"
            )
        if not self.is_aligned(t):
            return (
                f"Start time must be in {self.granularity_minutes}-minute increments"
            )
        return None

    # ------------------------------------------------------------------
    # Rounding
    # ------------------------------------------------------------------

    def ceil_to_granularity(self, t: datetime) -> datetime:
        """Round up to the next granularity boundary (identity when aligned)."""
        reject_aware(t, "t")
        remainder = (t - _midnight(t)) % self._step
        if remainder:
            return t + (self._step - remainder)
        return t

    def round_to_granularity(self, t: datetime) -> datetime:
        """Round to the nearest granularity boundary, halves rounding up."""
        reject_aware(t, "t")
        midnight = _midnight(t)
        steps, remainder = divmod(t - midnight, self._step)
        if remainder * 2 >= self._step:
            steps += 1
        return midnight + steps * self._step

    def snap_to_shift_start(self, t: datetime) -> datetime:
        """Next valid start time at or after t.

        Before the shift: shift start the same day. At or after shift end:
        shift start the next day. Inside the shift: round up to the next
        granularity boundary, rolling to the next day if that lands on
        shift end.
        """
        reject_aware(t, "t")
        day = t.date()
        if t < self.shift_start_on(day):
            return self.shift_start_on(day)
        if t >= self.shift_end_on(day):
            return self.shift_start_on(day + timedelta(days=1))

        snapped = self.ceil_to_granularity(t)
        if snapped >= self.shift_end_on(day):
            return self.shift_start_on(day + timedelta(days=1))
        return snapped

    def nearest_valid_start(self, t: datetime) -> datetime:
        """Clamp an existing placement's start into the window for editing.

        Off-shift times fall back to shift start of the same day; in-shift
        times round to the nearest granularity step that is still in shift.
        """
        reject_aware(t, "t")
        day = t.date()
        if not self.is_within_shift(t):
            return self.shift_start_on(day)
        rounded = self.round_to_granularity(t)
        if rounded >= self.shift_end_on(day):
            rounded -= self._step
        return rounded

    # ------------------------------------------------------------------
    # Capacity arithmetic
    # ------------------------------------------------------------------

    def shift_minutes_between(
        self, start: datetime, end: datetime, d: date
    ) -> int:
        """Minutes of [start, end) that fall inside the shift on date d."""
        effective_start = max(start, self.shift_start_on(d))
        effective_end = min(end, self.shift_end_on(d))
        if effective_end <= effective_start:
            return 0
        return int((effective_end - effective_start).total_seconds()) // 60

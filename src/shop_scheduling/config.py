"""Engine tuning constants."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from shop_scheduling.calendar import ShiftCalendar
from shop_scheduling.schema import validate_config


@dataclass(frozen=True)
class EngineConfig:
    """Immutable tuning knobs for one scheduling engine.

    Invariants:
        - shift_start_hour < shift_end_hour, both within a single day
        - granularity_minutes divides an hour evenly
        - every limit is a positive integer
    """

    shift_start_hour: int = 7
    shift_end_hour: int = 16
    granularity_minutes: int = 15
    search_horizon_days: int = 30
    max_cascade_depth: int = 3
    max_settle_iterations: int = 500
    default_duration_minutes: int = 60
    min_duration_minutes: int = 15

    def __post_init__(self) -> None:
        errors = validate_config(asdict(self))
        if errors:
            raise ValueError(
                "Invalid engine config:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    def calendar(self) -> ShiftCalendar:
        """Build the ShiftCalendar described by this config."""
        return ShiftCalendar(
            self.shift_start_hour,
            self.shift_end_hour,
            self.granularity_minutes,
        )


DEFAULT_CONFIG = EngineConfig()

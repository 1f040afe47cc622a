"""Boundary: Clock, the engine's only source of "now".

All datetimes are naive (facility local time). Aware datetimes are rejected
at every entry point instead of being silently converted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


def reject_aware(dt: datetime, name: str) -> None:
    """Reject timezone-aware datetimes."""
    if dt.tzinfo is not None:
        raise TypeError(
            f"{name} must be a naive datetime (no tzinfo), "
            f"got tzinfo={dt.tzinfo!r}. "
            f"All datetimes are assumed to be in facility local time."
        )


class Clock(Protocol):
    """Anything that can answer "what time is it on the shop floor"."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in facility local time."""

    def now(self) -> datetime:
        return datetime.now()


@dataclass(frozen=True)
class FixedClock:
    """Clock pinned to one instant. Used by tests and offline planning runs."""

    instant: datetime

    def __post_init__(self) -> None:
        reject_aware(self.instant, "instant")

    def now(self) -> datetime:
        return self.instant


SYSTEM_CLOCK = SystemClock()

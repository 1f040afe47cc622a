"""Input validation for engine configuration, machine and job records."""

from __future__ import annotations

from datetime import datetime

_INT_FIELDS = (
    "shift_start_hour",
    "shift_end_hour",
    "granularity_minutes",
    "search_horizon_days",
    "max_cascade_depth",
    "max_settle_iterations",
    "default_duration_minutes",
    "min_duration_minutes",
)


def validate_shift(
    shift_start_hour: int, shift_end_hour: int, granularity_minutes: int
) -> list[str]:
    """Validate the shift window. Returns list of error messages (empty = valid)."""
    errors: list[str] = []

    if not 0 <= shift_start_hour <= 23:
        errors.append(
            f"shift_start_hour must be 0-23, got {shift_start_hour}"
        )
    if not 1 <= shift_end_hour <= 24:
        errors.append(f"shift_end_hour must be 1-24, got {shift_end_hour}")
    if shift_start_hour >= shift_end_hour:
        errors.append(
            f"shift_start_hour ({shift_start_hour}) must be before "
            f"shift_end_hour ({shift_end_hour})"
        )
    if granularity_minutes < 1 or 60 % granularity_minutes != 0:
        errors.append(
            f"granularity_minutes must divide 60 evenly, got {granularity_minutes}"
        )

    return errors


def validate_config(config: dict) -> list[str]:
    """Validate an engine configuration mapping.

    Checks:
    - Known keys only, all integers (bools rejected)
    - Shift window and granularity are coherent
    - Horizon, depth and iteration limits are positive
    """
    errors: list[str] = []

    for key in config:
        if key not in _INT_FIELDS:
            errors.append(f"Unknown config key: {key!r}")

    for key in _INT_FIELDS:
        if key not in config:
            continue
        value = config[key]
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"{key} must be an integer, got {value!r}")

    if errors:
        return errors

    if {"shift_start_hour", "shift_end_hour", "granularity_minutes"} <= config.keys():
        errors.extend(
            validate_shift(
                config["shift_start_hour"],
                config["shift_end_hour"],
                config["granularity_minutes"],
            )
        )

    for key in (
        "search_horizon_days",
        "max_cascade_depth",
        "max_settle_iterations",
        "default_duration_minutes",
        "min_duration_minutes",
    ):
        if key in config and config[key] < 1:
            errors.append(f"{key} must be >= 1, got {config[key]}")

    return errors


def _check_timestamp(value, label: str, errors: list[str]) -> None:
    if value is None:
        return
    try:
        parsed = datetime.fromisoformat(value)
    except (ValueError, TypeError):
        errors.append(f"{label}: invalid timestamp {value!r}")
        return
    if parsed.tzinfo is not None:
        errors.append(f"{label}: timestamp {value!r} must be naive local time")


def validate_machines(machines: list[dict]) -> list[str]:
    """Validate machine records. Returns list of error messages."""
    errors: list[str] = []
    seen: set[str] = set()

    for i, record in enumerate(machines):
        machine_id = record.get("id")
        if not machine_id:
            errors.append(f"Machine {i}: missing 'id'")
            continue
        if machine_id in seen:
            errors.append(f"Machine {machine_id}: duplicate id")
        seen.add(machine_id)

        if "is_active" in record and not isinstance(record["is_active"], bool):
            errors.append(f"Machine {machine_id}: 'is_active' must be boolean")

    return errors


def validate_jobs(jobs: list[dict]) -> list[str]:
    """Validate job records.

    Checks:
    - Each job has a unique id
    - Timestamps parse as naive ISO datetimes
    - Durations are positive integers
    - A stored end lies after the stored start
    - Scheduled jobs (start set) name a machine
    """
    errors: list[str] = []
    seen: set[str] = set()

    for i, record in enumerate(jobs):
        job_id = record.get("id")
        if not job_id:
            errors.append(f"Job {i}: missing 'id'")
            continue
        if job_id in seen:
            errors.append(f"Job {job_id}: duplicate id")
        seen.add(job_id)

        label = f"Job {job_id}"
        before = len(errors)
        _check_timestamp(record.get("start"), f"{label} start", errors)
        _check_timestamp(record.get("end"), f"{label} end", errors)

        duration = record.get("duration_minutes")
        if duration is not None and (
            isinstance(duration, bool) or not isinstance(duration, int) or duration < 1
        ):
            errors.append(
                f"{label}: 'duration_minutes' must be a positive integer, "
                f"got {duration!r}"
            )

        if len(errors) == before and record.get("start") and record.get("end"):
            start = datetime.fromisoformat(record["start"])
            end = datetime.fromisoformat(record["end"])
            if end <= start:
                errors.append(f"{label}: end must be after start")

        if record.get("start") and not record.get("machine_id"):
            errors.append(f"{label}: scheduled job has no 'machine_id'")

    return errors

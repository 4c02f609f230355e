"""Scheduling configuration rules and resource-exclusivity checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from timetable_engine.domain.models import Assignment


@dataclass(frozen=True)
class SchedulingConfig:
    include_weekends: bool
    session_duration_minutes: int
    day_start_hour: int
    day_end_hour: int
    max_backtracks: int


def validate_scheduling_config(config: SchedulingConfig) -> None:
    if config.session_duration_minutes <= 0:
        raise ValueError("session_duration_minutes must be > 0")
    if not 0 <= config.day_start_hour <= 24:
        raise ValueError("day_start_hour must be between 0 and 24")
    if not 0 <= config.day_end_hour <= 24:
        raise ValueError("day_end_hour must be between 0 and 24")
    if config.day_start_hour >= config.day_end_hour:
        raise ValueError("day_start_hour must be less than day_end_hour")
    if config.max_backtracks < 0:
        raise ValueError("max_backtracks must be >= 0")


def conflicts(candidate: Assignment, committed: Iterable[Assignment]) -> bool:
    """Return True when a committed booking claims the candidate's venue or lecturer.

    Only identical (day, start, end) triples are compared; partially
    overlapping windows are not treated as clashes.
    """
    return any(
        candidate.same_time_as(existing)
        and (
            existing.venue_id == candidate.venue_id
            or existing.lecturer_id == candidate.lecturer_id
        )
        for existing in committed
    )


def find_conflicts(
    assignments: Sequence[Assignment],
    committed: Sequence[Assignment] = (),
) -> list[tuple[Assignment, Assignment]]:
    """List every clashing pair within ``assignments`` and against ``committed``."""
    clashes: list[tuple[Assignment, Assignment]] = []
    for index, first in enumerate(assignments):
        for second in assignments[index + 1:]:
            if conflicts(first, (second,)):
                clashes.append((first, second))
        for booking in committed:
            if conflicts(first, (booking,)):
                clashes.append((first, booking))
    return clashes

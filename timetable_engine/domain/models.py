"""Domain models for weekly timetable assignment and scoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional


ANY_VENUE_TYPE = "any"


class Weekday(IntEnum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_label(cls, label: str) -> "Weekday":
        try:
            return cls[label.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown weekday: {label!r}") from exc


WORKING_DAYS: tuple[Weekday, ...] = (
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
)
WEEKEND_DAYS: tuple[Weekday, ...] = (Weekday.SATURDAY, Weekday.SUNDAY)


def time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` string to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    return f"{value // 60:02d}:{value % 60:02d}"


@dataclass(frozen=True)
class TimeRange:
    start: int
    end: int

    def contains(self, minute: int) -> bool:
        return self.start <= minute < self.end


@dataclass(frozen=True)
class SubjectDemand:
    """One teaching obligation to place once in the weekly grid."""

    subject_id: str
    lecturer_id: str
    priority: int = 0
    session_duration_minutes: Optional[int] = None
    preferred_days: frozenset[Weekday] = frozenset()
    preferred_time_ranges: tuple[TimeRange, ...] = ()
    required_venue_types: tuple[str, ...] = ()
    department: str = ""

    @property
    def accepts_any_venue(self) -> bool:
        return not self.required_venue_types or ANY_VENUE_TYPE in self.required_venue_types

    def accepts_venue(self, venue: "VenueResource") -> bool:
        return self.accepts_any_venue or venue.venue_type in self.required_venue_types


@dataclass(frozen=True)
class VenueResource:
    venue_id: str
    venue_type: str
    # Not checked during assignment.
    capacity: int = 0


@dataclass(frozen=True)
class CandidateSlot:
    day: Weekday
    start: int
    end: int

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Assignment:
    day: Weekday
    start: int
    end: int
    subject_id: str
    venue_id: str
    lecturer_id: str
    is_locked: bool = False
    manually_assigned: bool = False
    score: Optional[float] = None

    def same_time_as(self, other: "Assignment") -> bool:
        return self.day == other.day and self.start == other.start and self.end == other.end


@dataclass(frozen=True)
class ScoreBreakdown:
    gap_score: float
    distribution_score: float
    preference_score: float
    total: float

    @classmethod
    def zero(cls) -> "ScoreBreakdown":
        return cls(gap_score=0.0, distribution_score=0.0, preference_score=0.0, total=0.0)


class SearchStatus(str, Enum):
    COMPLETE = "complete"
    BUDGET_EXHAUSTED = "budget_exhausted"
    SPACE_EXHAUSTED = "space_exhausted"
    INFEASIBLE_INPUT = "infeasible_input"


@dataclass(frozen=True)
class SearchOutcome:
    assignments: list[Assignment]
    status: SearchStatus
    backtracks: int
    attempt_order: list[str] = field(default_factory=list)
    unplaced_subject_ids: list[str] = field(default_factory=list)
    infeasible_subject_ids: list[str] = field(default_factory=list)
    message: str = ""

    @property
    def complete(self) -> bool:
        return self.status is SearchStatus.COMPLETE


@dataclass(frozen=True)
class OptimizedTimetable:
    timetable_id: str
    assignments: list[Assignment]
    score: ScoreBreakdown
    outcome: SearchOutcome

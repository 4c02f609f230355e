"""Budgeted backtracking search that places subject sessions into the weekly grid."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence

from timetable_engine.domain.constraints import conflicts
from timetable_engine.domain.models import (
    Assignment,
    CandidateSlot,
    SearchOutcome,
    SearchStatus,
    SubjectDemand,
    VenueResource,
)
from timetable_engine.utils.logger import get_logger


logger = get_logger(__name__)


class SchedulingInputError(ValueError):
    """Raised when search inputs are structurally invalid."""


@dataclass
class SearchState:
    """Mutable state owned by a single search call."""

    assignments: list[Assignment]
    max_backtracks: int
    backtracks: int = 0
    attempt_order: list[str] = field(default_factory=list)
    best: list[Assignment] = field(default_factory=list)

    def enter(self, demand: SubjectDemand) -> bool:
        """Count a new choice point; False once the budget is spent."""
        self.backtracks += 1
        if self.backtracks > self.max_backtracks:
            return False
        self.attempt_order.append(demand.subject_id)
        return True

    def place(self, assignment: Assignment) -> None:
        self.assignments.append(assignment)
        if len(self.assignments) > len(self.best):
            self.best = list(self.assignments)

    def unplace(self) -> None:
        self.assignments.pop()


@dataclass
class _Frame:
    demand: SubjectDemand
    options: Iterator[tuple[CandidateSlot, VenueResource]]
    placed: bool = False


def eligible_slots(demand: SubjectDemand, slots: Sequence[CandidateSlot]) -> Iterator[CandidateSlot]:
    for slot in slots:
        if (
            demand.session_duration_minutes
            and slot.duration_minutes != demand.session_duration_minutes
        ):
            continue
        if demand.preferred_days and slot.day not in demand.preferred_days:
            continue
        yield slot


def candidate_pairs(
    demand: SubjectDemand,
    slots: Sequence[CandidateSlot],
    venues: Sequence[VenueResource],
) -> Iterator[tuple[CandidateSlot, VenueResource]]:
    """Yield statically admissible (slot, venue) pairs in slot-major order."""
    for slot in eligible_slots(demand, slots):
        for venue in venues:
            if demand.accepts_venue(venue):
                yield slot, venue


def _has_candidate(
    demand: SubjectDemand,
    slots: Sequence[CandidateSlot],
    venues: Sequence[VenueResource],
) -> bool:
    return next(candidate_pairs(demand, slots, venues), None) is not None


def _ensure_unique_subjects(demands: Sequence[SubjectDemand]) -> None:
    duplicates = sorted(
        subject_id
        for subject_id, count in Counter(demand.subject_id for demand in demands).items()
        if count > 1
    )
    if duplicates:
        raise SchedulingInputError(
            f"Duplicate subject demands: {', '.join(duplicates)}"
        )


def _next_placement(
    frame: _Frame,
    state: SearchState,
    committed_elsewhere: Sequence[Assignment],
) -> Optional[Assignment]:
    demand = frame.demand
    for slot, venue in frame.options:
        candidate = Assignment(
            day=slot.day,
            start=slot.start,
            end=slot.end,
            subject_id=demand.subject_id,
            venue_id=venue.venue_id,
            lecturer_id=demand.lecturer_id,
        )
        if conflicts(candidate, state.assignments):
            continue
        if conflicts(candidate, committed_elsewhere):
            continue
        return candidate
    return None


def _build_outcome(
    *,
    assignments: list[Assignment],
    status: SearchStatus,
    state: SearchState,
    remaining: Sequence[SubjectDemand],
    infeasible_subject_ids: Optional[list[str]] = None,
    message: str = "",
) -> SearchOutcome:
    placed = {assignment.subject_id for assignment in assignments}
    unplaced = [demand.subject_id for demand in remaining if demand.subject_id not in placed]
    logger.info(
        "Search finished | status=%s | assignments=%s | unplaced=%s | backtracks=%s",
        status.value,
        len(assignments),
        len(unplaced),
        state.backtracks,
    )
    return SearchOutcome(
        assignments=assignments,
        status=status,
        backtracks=state.backtracks,
        attempt_order=list(state.attempt_order),
        unplaced_subject_ids=unplaced,
        infeasible_subject_ids=infeasible_subject_ids or [],
        message=message,
    )


def search_assignments(
    demands: Sequence[SubjectDemand],
    venues: Sequence[VenueResource],
    slots: Sequence[CandidateSlot],
    locked: Iterable[Assignment] = (),
    committed_elsewhere: Iterable[Assignment] = (),
    max_backtracks: int = 1000,
) -> SearchOutcome:
    """Place every unlocked demand into a conflict-free (slot, venue) pair.

    Demands are tried in descending priority (stable on ties) and each is
    placed at the first admissible pair; a demand that cannot be placed forces
    the previous placement to be withdrawn and its next alternative tried.

    Every choice point entered counts against ``max_backtracks``. When the
    budget runs out the search stops and returns the assignments accumulated
    at that moment. When the whole space is exhausted without a full solution
    the largest consistent partial schedule seen is returned. Neither case
    raises; inspect ``SearchOutcome.status`` and ``unplaced_subject_ids``.
    """
    if max_backtracks < 0:
        raise SchedulingInputError("max_backtracks must be >= 0")
    _ensure_unique_subjects(demands)

    locked = list(locked)
    committed_elsewhere = tuple(committed_elsewhere)
    locked_subjects = {assignment.subject_id for assignment in locked}
    ordered = sorted(demands, key=lambda demand: demand.priority, reverse=True)
    remaining = [demand for demand in ordered if demand.subject_id not in locked_subjects]

    state = SearchState(
        assignments=list(locked),
        max_backtracks=max_backtracks,
        best=list(locked),
    )

    if not remaining:
        return _build_outcome(
            assignments=list(state.assignments),
            status=SearchStatus.COMPLETE,
            state=state,
            remaining=remaining,
        )

    infeasible = [
        demand.subject_id
        for demand in remaining
        if not _has_candidate(demand, slots, venues)
    ]
    if infeasible:
        if not slots:
            message = "No candidate slots were generated"
        else:
            message = "No admissible slot and venue for subjects: " + ", ".join(infeasible)
        logger.warning("Search skipped | reason=%s", message)
        return _build_outcome(
            assignments=list(state.assignments),
            status=SearchStatus.INFEASIBLE_INPUT,
            state=state,
            remaining=remaining,
            infeasible_subject_ids=infeasible,
            message=message,
        )

    frames: list[_Frame] = []
    next_demand: Optional[SubjectDemand] = remaining[0]
    while True:
        if next_demand is not None:
            if not state.enter(next_demand):
                logger.warning(
                    "Backtrack budget exhausted | max_backtracks=%s | placed=%s/%s",
                    max_backtracks,
                    len(state.assignments) - len(locked),
                    len(remaining),
                )
                return _build_outcome(
                    assignments=list(state.assignments),
                    status=SearchStatus.BUDGET_EXHAUSTED,
                    state=state,
                    remaining=remaining,
                    message=f"Stopped after {max_backtracks} backtracks",
                )
            logger.debug(
                "Choice point | depth=%s | subject_id=%s", len(frames), next_demand.subject_id
            )
            frames.append(
                _Frame(demand=next_demand, options=candidate_pairs(next_demand, slots, venues))
            )
            next_demand = None

        if not frames:
            break

        frame = frames[-1]
        if frame.placed:
            state.unplace()
            frame.placed = False

        candidate = _next_placement(frame, state, committed_elsewhere)
        if candidate is None:
            frames.pop()
            continue

        state.place(candidate)
        frame.placed = True
        if len(frames) == len(remaining):
            return _build_outcome(
                assignments=list(state.assignments),
                status=SearchStatus.COMPLETE,
                state=state,
                remaining=remaining,
            )
        next_demand = remaining[len(frames)]

    return _build_outcome(
        assignments=list(state.best),
        status=SearchStatus.SPACE_EXHAUSTED,
        state=state,
        remaining=remaining,
        message="Search space exhausted before every subject was placed",
    )


def assign(
    demands: Sequence[SubjectDemand],
    venues: Sequence[VenueResource],
    slots: Sequence[CandidateSlot],
    locked: Iterable[Assignment] = (),
    committed_elsewhere: Iterable[Assignment] = (),
    max_backtracks: int = 1000,
) -> list[Assignment]:
    """Return only the assignment list of :func:`search_assignments`."""
    return search_assignments(
        demands=demands,
        venues=venues,
        slots=slots,
        locked=locked,
        committed_elsewhere=committed_elsewhere,
        max_backtracks=max_backtracks,
    ).assignments

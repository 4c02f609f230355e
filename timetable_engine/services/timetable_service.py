"""Per-group timetable optimisation: filter, generate, search, score."""

from __future__ import annotations

from typing import Optional, Sequence

from timetable_engine.domain.constraints import (
    SchedulingConfig,
    find_conflicts,
    validate_scheduling_config,
)
from timetable_engine.domain.models import (
    Assignment,
    CandidateSlot,
    OptimizedTimetable,
    ScoreBreakdown,
    SubjectDemand,
    VenueResource,
)
from timetable_engine.services.assignment_service import (
    SchedulingInputError,
    search_assignments,
)
from timetable_engine.services.scoring_service import score_schedule
from timetable_engine.services.slot_service import generate_candidate_slots
from timetable_engine.utils.config import Settings, get_settings
from timetable_engine.utils.logger import get_logger


logger = get_logger(__name__)


class TimetableValidationError(Exception):
    """Raised when an optimisation request is malformed."""


def filter_demands_for_group(
    demands: Sequence[SubjectDemand],
    department: str,
    shared_departments: Sequence[str] = (),
) -> list[SubjectDemand]:
    """Keep demands owned by the group's department or a shared department."""
    allowed = {department, *shared_departments}
    return [demand for demand in demands if demand.department in allowed]


class TimetableOptimizationService:
    """Runs one independent scheduling pass for a single student group.

    Instances hold only read-only settings, so separate groups may be
    optimised concurrently by the caller.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    @property
    def settings(self) -> Settings:
        return self._settings

    def build_config(
        self,
        *,
        include_weekends: Optional[bool] = None,
        session_duration_minutes: Optional[int] = None,
        day_start_hour: Optional[int] = None,
        day_end_hour: Optional[int] = None,
        max_backtracks: Optional[int] = None,
    ) -> SchedulingConfig:
        settings = self._settings
        config = SchedulingConfig(
            include_weekends=(
                include_weekends
                if include_weekends is not None
                else settings.schedule_include_weekends
            ),
            session_duration_minutes=(
                session_duration_minutes
                if session_duration_minutes is not None
                else settings.schedule_session_duration_minutes
            ),
            day_start_hour=(
                day_start_hour if day_start_hour is not None else settings.schedule_day_start_hour
            ),
            day_end_hour=(
                day_end_hour if day_end_hour is not None else settings.schedule_day_end_hour
            ),
            max_backtracks=(
                max_backtracks if max_backtracks is not None else settings.schedule_max_backtracks
            ),
        )
        try:
            validate_scheduling_config(config)
        except ValueError as exc:
            raise TimetableValidationError(str(exc)) from exc
        return config

    def candidate_slots(self, config: SchedulingConfig) -> list[CandidateSlot]:
        return generate_candidate_slots(
            include_weekends=config.include_weekends,
            session_duration_minutes=config.session_duration_minutes,
            day_start_hour=config.day_start_hour,
            day_end_hour=config.day_end_hour,
        )

    def optimize_timetable(
        self,
        *,
        timetable_id: str,
        group_department: str,
        demands: Sequence[SubjectDemand],
        venues: Sequence[VenueResource],
        existing_assignments: Sequence[Assignment] = (),
        committed_elsewhere: Sequence[Assignment] = (),
        include_weekends: Optional[bool] = None,
        session_duration_minutes: Optional[int] = None,
        day_start_hour: Optional[int] = None,
        day_end_hour: Optional[int] = None,
        max_backtracks: Optional[int] = None,
    ) -> OptimizedTimetable:
        """Rebuild a timetable around its locked slots and score the result.

        Unlocked slots in ``existing_assignments`` are discarded and
        re-planned. An incomplete result is returned, not raised; compare
        ``outcome.unplaced_subject_ids`` to decide how to present it.
        """
        config = self.build_config(
            include_weekends=include_weekends,
            session_duration_minutes=session_duration_minutes,
            day_start_hour=day_start_hour,
            day_end_hour=day_end_hour,
            max_backtracks=max_backtracks,
        )
        relevant_demands = filter_demands_for_group(
            demands,
            group_department,
            self._settings.shared_departments,
        )
        locked = [assignment for assignment in existing_assignments if assignment.is_locked]
        slots = self.candidate_slots(config)

        logger.info(
            (
                "Optimizing timetable | timetable_id=%s | department=%s | demands=%s | "
                "venues=%s | locked=%s | committed_elsewhere=%s | slots=%s"
            ),
            timetable_id,
            group_department,
            len(relevant_demands),
            len(venues),
            len(locked),
            len(committed_elsewhere),
            len(slots),
        )

        try:
            outcome = search_assignments(
                demands=relevant_demands,
                venues=venues,
                slots=slots,
                locked=locked,
                committed_elsewhere=committed_elsewhere,
                max_backtracks=config.max_backtracks,
            )
        except SchedulingInputError as exc:
            raise TimetableValidationError(str(exc)) from exc

        clashes = find_conflicts(
            [item for item in outcome.assignments if not item.is_locked],
            [*locked, *committed_elsewhere],
        )
        if clashes:
            logger.error(
                "Optimized timetable violates exclusivity | timetable_id=%s | clashes=%s",
                timetable_id,
                len(clashes),
            )

        score = score_schedule(outcome.assignments, relevant_demands)
        logger.info(
            (
                "Timetable optimized | timetable_id=%s | status=%s | total=%.4f | "
                "gap=%.4f | distribution=%.4f | preference=%.4f | unplaced=%s"
            ),
            timetable_id,
            outcome.status.value,
            score.total,
            score.gap_score,
            score.distribution_score,
            score.preference_score,
            outcome.unplaced_subject_ids,
        )
        return OptimizedTimetable(
            timetable_id=timetable_id,
            assignments=outcome.assignments,
            score=score,
            outcome=outcome,
        )

    def score_timetable(
        self,
        assignments: Sequence[Assignment],
        demands: Optional[Sequence[SubjectDemand]] = None,
    ) -> ScoreBreakdown:
        return score_schedule(assignments, demands)

    def validate_timetable(
        self,
        assignments: Sequence[Assignment],
        committed_elsewhere: Sequence[Assignment] = (),
    ) -> list[tuple[Assignment, Assignment]]:
        return find_conflicts(assignments, committed_elsewhere)

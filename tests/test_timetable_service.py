from __future__ import annotations

from dataclasses import replace

import pytest

from timetable_engine.domain.models import (
    Assignment,
    SearchStatus,
    SubjectDemand,
    VenueResource,
    Weekday,
)
from timetable_engine.services.timetable_service import (
    TimetableOptimizationService,
    TimetableValidationError,
    filter_demands_for_group,
)
from timetable_engine.utils.config import get_settings


def _build_test_settings(**overrides):
    get_settings.cache_clear()
    base = get_settings()
    values = {
        "schedule_include_weekends": False,
        "schedule_session_duration_minutes": 120,
        "schedule_day_start_hour": 8,
        "schedule_day_end_hour": 18,
        "schedule_max_backtracks": 500,
        "shared_departments": ("Mathematics",),
    }
    values.update(overrides)
    return replace(base, **values)


def _build_service(**overrides) -> TimetableOptimizationService:
    return TimetableOptimizationService(settings=_build_test_settings(**overrides))


def _demands() -> list[SubjectDemand]:
    return [
        SubjectDemand(
            subject_id="CS101",
            lecturer_id="L-ADA",
            priority=3,
            session_duration_minutes=120,
            required_venue_types=("lecture",),
            department="Computing",
        ),
        SubjectDemand(
            subject_id="CS102",
            lecturer_id="L-ALAN",
            priority=2,
            session_duration_minutes=120,
            preferred_days=frozenset({Weekday.WEDNESDAY}),
            required_venue_types=("lab",),
            department="Computing",
        ),
        SubjectDemand(
            subject_id="MA101",
            lecturer_id="L-EMMY",
            priority=1,
            session_duration_minutes=120,
            department="Mathematics",
        ),
        SubjectDemand(
            subject_id="PH101",
            lecturer_id="L-MARIE",
            priority=5,
            session_duration_minutes=120,
            department="Physics",
        ),
    ]


def _venues() -> list[VenueResource]:
    return [
        VenueResource(venue_id="HALL-A", venue_type="lecture", capacity=150),
        VenueResource(venue_id="LAB-1", venue_type="lab", capacity=30),
    ]


def test_filter_keeps_group_and_shared_departments():
    kept = filter_demands_for_group(_demands(), "Computing", ("Mathematics",))

    assert [demand.subject_id for demand in kept] == ["CS101", "CS102", "MA101"]


def test_filter_without_shared_departments():
    kept = filter_demands_for_group(_demands(), "Physics")

    assert [demand.subject_id for demand in kept] == ["PH101"]


def test_optimize_timetable_places_group_subjects_and_scores():
    service = _build_service()

    result = service.optimize_timetable(
        timetable_id="tt-1",
        group_department="Computing",
        demands=_demands(),
        venues=_venues(),
    )

    assert result.timetable_id == "tt-1"
    assert result.outcome.status is SearchStatus.COMPLETE
    assert {item.subject_id for item in result.assignments} == {"CS101", "CS102", "MA101"}
    by_subject = {item.subject_id: item for item in result.assignments}
    assert by_subject["CS102"].day is Weekday.WEDNESDAY
    assert by_subject["CS102"].venue_id == "LAB-1"
    assert by_subject["CS101"].venue_id == "HALL-A"
    assert 0.0 <= result.score.total <= 10.0
    assert service.validate_timetable(result.assignments) == []


def test_optimize_timetable_keeps_locked_and_replans_unlocked_slots():
    service = _build_service()
    locked = Assignment(
        day=Weekday.FRIDAY,
        start=960,
        end=1080,
        subject_id="CS101",
        venue_id="HALL-A",
        lecturer_id="L-ADA",
        is_locked=True,
        manually_assigned=True,
    )
    stale = Assignment(
        day=Weekday.THURSDAY,
        start=480,
        end=600,
        subject_id="MA101",
        venue_id="HALL-A",
        lecturer_id="L-EMMY",
    )

    result = service.optimize_timetable(
        timetable_id="tt-2",
        group_department="Computing",
        demands=_demands(),
        venues=_venues(),
        existing_assignments=[locked, stale],
    )

    assert result.assignments[0] == locked
    assert stale not in result.assignments
    assert [item.subject_id for item in result.assignments].count("CS101") == 1
    assert "CS101" not in result.outcome.attempt_order


def test_optimize_timetable_avoids_other_group_bookings():
    service = _build_service()
    elsewhere = [
        Assignment(
            day=Weekday.MONDAY,
            start=480,
            end=600,
            subject_id="OTHER",
            venue_id="HALL-A",
            lecturer_id="L-OTHER",
        )
    ]

    result = service.optimize_timetable(
        timetable_id="tt-3",
        group_department="Computing",
        demands=_demands(),
        venues=_venues(),
        committed_elsewhere=elsewhere,
    )

    assert service.validate_timetable(result.assignments, elsewhere) == []
    assert result.outcome.complete


def test_per_call_overrides_take_precedence_over_settings():
    service = _build_service(schedule_max_backtracks=1000)

    result = service.optimize_timetable(
        timetable_id="tt-4",
        group_department="Computing",
        demands=_demands(),
        venues=_venues(),
        max_backtracks=0,
    )

    assert result.outcome.status is SearchStatus.BUDGET_EXHAUSTED
    assert result.assignments == []
    assert result.score.total == 0.0


def test_invalid_config_override_raises_validation_error():
    service = _build_service()

    with pytest.raises(TimetableValidationError):
        service.optimize_timetable(
            timetable_id="tt-5",
            group_department="Computing",
            demands=_demands(),
            venues=_venues(),
            day_start_hour=18,
            day_end_hour=8,
        )


def test_duplicate_demands_raise_validation_error():
    service = _build_service()
    demands = _demands()

    with pytest.raises(TimetableValidationError):
        service.optimize_timetable(
            timetable_id="tt-6",
            group_department="Computing",
            demands=demands + [demands[0]],
            venues=_venues(),
        )


def test_session_duration_mismatch_is_reported_as_infeasible_input():
    service = _build_service(schedule_session_duration_minutes=60)

    result = service.optimize_timetable(
        timetable_id="tt-7",
        group_department="Computing",
        demands=_demands(),
        venues=_venues(),
    )

    assert result.outcome.status is SearchStatus.INFEASIBLE_INPUT
    assert set(result.outcome.infeasible_subject_ids) == {"CS101", "CS102", "MA101"}
    assert result.assignments == []


def test_weekend_generation_follows_settings():
    weekday_service = _build_service()
    weekend_service = _build_service(schedule_include_weekends=True)

    weekday_slots = weekday_service.candidate_slots(weekday_service.build_config())
    weekend_slots = weekend_service.candidate_slots(weekend_service.build_config())

    assert len(weekday_slots) == 25
    assert len(weekend_slots) == 35

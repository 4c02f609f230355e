from __future__ import annotations

import pytest

from timetable_engine.domain.models import (
    Assignment,
    ScoreBreakdown,
    SubjectDemand,
    TimeRange,
    Weekday,
)
from timetable_engine.services.scoring_service import (
    compute_distribution_score,
    compute_gap_score,
    compute_preference_score,
    score_schedule,
)


def _slot(subject_id: str, day: Weekday, start: int, end: int) -> Assignment:
    return Assignment(
        day=day,
        start=start,
        end=end,
        subject_id=subject_id,
        venue_id=f"venue-{subject_id}",
        lecturer_id=f"lecturer-{subject_id}",
    )


def test_empty_schedule_scores_zero():
    assert score_schedule([]) == ScoreBreakdown.zero()
    assert score_schedule([], [SubjectDemand(subject_id="S1", lecturer_id="L1")]) == ScoreBreakdown.zero()


def test_monday_only_schedule_with_one_hour_gap():
    assignments = [
        _slot("S1", Weekday.MONDAY, 480, 600),
        _slot("S2", Weekday.MONDAY, 660, 780),
    ]

    breakdown = score_schedule(assignments)

    assert breakdown.gap_score == pytest.approx(8.0)
    assert breakdown.distribution_score == pytest.approx(8.4)
    assert breakdown.preference_score == pytest.approx(5.0)
    assert breakdown.total == pytest.approx(0.4 * 8.0 + 0.3 * 8.4 + 0.3 * 5.0)


def test_gaps_of_two_hours_or_more_are_not_penalised():
    assignments = [
        _slot("S1", Weekday.TUESDAY, 480, 600),
        _slot("S2", Weekday.TUESDAY, 720, 840),
    ]

    assert compute_gap_score(assignments) == pytest.approx(10.0)


def test_gap_average_ignores_days_with_a_single_class():
    assignments = [
        _slot("S1", Weekday.MONDAY, 780, 840),
        _slot("S2", Weekday.MONDAY, 480, 540),
        _slot("S3", Weekday.MONDAY, 570, 630),
        _slot("S4", Weekday.WEDNESDAY, 480, 540),
        _slot("S5", Weekday.THURSDAY, 480, 540),
        _slot("S6", Weekday.THURSDAY, 630, 690),
    ]

    # Monday gaps: 30 + 150 (ignored) -> 30; Thursday gap: 90. Average over two days = 60.
    assert compute_gap_score(assignments) == pytest.approx(8.0)


def test_gap_score_floors_at_zero():
    assignments = []
    for index in range(8):
        start = 420 + index * 179
        assignments.append(_slot(f"S{index}", Weekday.FRIDAY, start, start + 60))

    assert compute_gap_score(assignments) == 0.0


def test_back_to_back_classes_have_no_gap_penalty():
    assignments = [
        _slot("S1", Weekday.MONDAY, 480, 600),
        _slot("S2", Weekday.MONDAY, 600, 720),
    ]

    assert compute_gap_score(assignments) == 10.0


def test_even_weekday_distribution_scores_full_marks():
    assignments = [_slot(f"S{day.value}", day, 480, 600) for day in list(Weekday)[:5]]

    assert compute_distribution_score(assignments) == pytest.approx(10.0)


def test_weekend_classes_are_ignored_by_distribution():
    weekday_only = [_slot(f"S{day.value}", day, 480, 600) for day in list(Weekday)[:5]]
    with_weekend = weekday_only + [
        _slot("SAT", Weekday.SATURDAY, 480, 600),
        _slot("SUN", Weekday.SUNDAY, 480, 600),
    ]

    assert compute_distribution_score(with_weekend) == compute_distribution_score(weekday_only)


def test_distribution_score_floors_at_zero():
    assignments = [_slot(f"S{index}", Weekday.MONDAY, 480 + index, 481 + index) for index in range(20)]

    assert compute_distribution_score(assignments) == 0.0


def test_preference_points_for_day_and_time():
    demands = [
        SubjectDemand(
            subject_id="BOTH",
            lecturer_id="L1",
            preferred_days=frozenset({Weekday.MONDAY}),
            preferred_time_ranges=(TimeRange(start=480, end=600),),
        ),
        SubjectDemand(
            subject_id="DAY-ONLY",
            lecturer_id="L2",
            preferred_days=frozenset({Weekday.TUESDAY}),
            preferred_time_ranges=(TimeRange(start=900, end=960),),
        ),
        SubjectDemand(subject_id="NONE", lecturer_id="L3"),
    ]
    assignments = [
        _slot("BOTH", Weekday.MONDAY, 480, 600),
        _slot("DAY-ONLY", Weekday.TUESDAY, 600, 720),
        _slot("NONE", Weekday.WEDNESDAY, 480, 600),
        _slot("UNKNOWN", Weekday.THURSDAY, 480, 600),
    ]

    # (10 + 5 + 0) / 3 matched assignments
    assert compute_preference_score(assignments, demands) == pytest.approx(5.0)


def test_preferred_range_end_is_exclusive():
    demand = SubjectDemand(
        subject_id="S1",
        lecturer_id="L1",
        preferred_time_ranges=(TimeRange(start=480, end=600),),
    )

    assert compute_preference_score([_slot("S1", Weekday.MONDAY, 600, 720)], [demand]) == 0.0
    assert compute_preference_score([_slot("S1", Weekday.MONDAY, 599, 720)], [demand]) == 5.0


def test_preference_defaults_to_neutral_without_matches():
    assignments = [_slot("S1", Weekday.MONDAY, 480, 600)]

    assert compute_preference_score(assignments, None) == 5.0
    assert compute_preference_score(assignments, []) == 5.0
    other = SubjectDemand(subject_id="OTHER", lecturer_id="L1")
    assert compute_preference_score(assignments, [other]) == 5.0


def test_scoring_is_deterministic():
    demands = [
        SubjectDemand(
            subject_id=f"S{index}",
            lecturer_id="L1",
            preferred_days=frozenset({Weekday(index % 5)}),
            preferred_time_ranges=(TimeRange(start=480, end=720),),
        )
        for index in range(6)
    ]
    assignments = [
        _slot(f"S{index}", Weekday(index % 5), 480 + 90 * index, 540 + 90 * index)
        for index in range(6)
    ]

    assert score_schedule(assignments, demands) == score_schedule(list(assignments), list(demands))

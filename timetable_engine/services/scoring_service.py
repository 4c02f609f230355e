"""Soft-preference scoring of weekly timetables.

Each sub-score lives on a 0-10 scale where higher is better:

- gap: short idle windows between consecutive classes on the same day
- distribution: how evenly classes spread over the working week
- preference: how often classes land on preferred days and start times

The weighted total is ``0.4 * gap + 0.3 * distribution + 0.3 * preference``.
Values are never rounded here.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from timetable_engine.domain.models import (
    WORKING_DAYS,
    Assignment,
    ScoreBreakdown,
    SubjectDemand,
    Weekday,
)


GAP_WEIGHT = 0.4
DISTRIBUTION_WEIGHT = 0.3
PREFERENCE_WEIGHT = 0.3

MAX_SCORE = 10.0
NEUTRAL_PREFERENCE_SCORE = 5.0
# Gaps of two hours or more count as a deliberate break.
MAX_PENALISED_GAP_MINUTES = 120
GAP_MINUTES_PER_POINT = 30.0
DISTRIBUTION_STDDEV_PENALTY = 2.0
DAY_PREFERENCE_POINTS = 5.0
TIME_PREFERENCE_POINTS = 5.0


def _bucket_by_day(assignments: Sequence[Assignment]) -> list[list[Assignment]]:
    buckets: list[list[Assignment]] = [[] for _ in Weekday]
    for assignment in assignments:
        buckets[assignment.day].append(assignment)
    return buckets


def compute_gap_score(assignments: Sequence[Assignment]) -> float:
    total_gap_minutes = 0
    days_counted = 0
    for day_assignments in _bucket_by_day(assignments):
        if len(day_assignments) < 2:
            continue
        ordered = sorted(day_assignments, key=lambda item: item.start)
        for previous, current in zip(ordered, ordered[1:]):
            gap = current.start - previous.end
            if 0 < gap < MAX_PENALISED_GAP_MINUTES:
                total_gap_minutes += gap
        days_counted += 1

    average_gap = total_gap_minutes / days_counted if days_counted else 0.0
    return max(0.0, MAX_SCORE - average_gap / GAP_MINUTES_PER_POINT)


def compute_distribution_score(assignments: Sequence[Assignment]) -> float:
    """Penalise uneven weekday loads; weekend classes are not counted."""
    buckets = _bucket_by_day(assignments)
    counts = np.array([len(buckets[day]) for day in WORKING_DAYS], dtype=float)
    stddev = float(np.std(counts))
    return max(0.0, MAX_SCORE - stddev * DISTRIBUTION_STDDEV_PENALTY)


def compute_preference_score(
    assignments: Sequence[Assignment],
    demands: Optional[Sequence[SubjectDemand]],
) -> float:
    if not demands:
        return NEUTRAL_PREFERENCE_SCORE

    demand_by_subject: dict[str, SubjectDemand] = {}
    for demand in demands:
        demand_by_subject.setdefault(demand.subject_id, demand)

    total_points = 0.0
    matched = 0
    for assignment in assignments:
        demand = demand_by_subject.get(assignment.subject_id)
        if demand is None:
            continue
        points = 0.0
        if assignment.day in demand.preferred_days:
            points += DAY_PREFERENCE_POINTS
        if any(time_range.contains(assignment.start) for time_range in demand.preferred_time_ranges):
            points += TIME_PREFERENCE_POINTS
        total_points += points
        matched += 1

    if matched == 0:
        return NEUTRAL_PREFERENCE_SCORE
    return total_points / matched


def score_schedule(
    assignments: Sequence[Assignment],
    demands: Optional[Sequence[SubjectDemand]] = None,
) -> ScoreBreakdown:
    """Rate a complete or partial schedule; an empty one scores zero everywhere."""
    if not assignments:
        return ScoreBreakdown.zero()

    gap_score = compute_gap_score(assignments)
    distribution_score = compute_distribution_score(assignments)
    preference_score = compute_preference_score(assignments, demands)
    total = (
        gap_score * GAP_WEIGHT
        + distribution_score * DISTRIBUTION_WEIGHT
        + preference_score * PREFERENCE_WEIGHT
    )
    return ScoreBreakdown(
        gap_score=gap_score,
        distribution_score=distribution_score,
        preference_score=preference_score,
        total=total,
    )

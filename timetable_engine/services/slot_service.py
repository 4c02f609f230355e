"""Enumeration of bookable weekly time windows."""

from __future__ import annotations

from timetable_engine.domain.models import WEEKEND_DAYS, WORKING_DAYS, CandidateSlot, Weekday


def active_days(include_weekends: bool) -> tuple[Weekday, ...]:
    if include_weekends:
        return WORKING_DAYS + WEEKEND_DAYS
    return WORKING_DAYS


def generate_candidate_slots(
    include_weekends: bool = False,
    session_duration_minutes: int = 120,
    day_start_hour: int = 8,
    day_end_hour: int = 18,
) -> list[CandidateSlot]:
    """Split each active day into back-to-back windows of equal length.

    Slots are ordered by day, then start time; the assigner tries them in this
    order. A trailing window shorter than the session duration is dropped.
    """
    if session_duration_minutes <= 0:
        raise ValueError("session_duration_minutes must be > 0")
    if not 0 <= day_start_hour < day_end_hour <= 24:
        raise ValueError("day hours must satisfy 0 <= start < end <= 24")

    day_start = day_start_hour * 60
    slots_per_day = (day_end_hour * 60 - day_start) // session_duration_minutes

    slots: list[CandidateSlot] = []
    for day in active_days(include_weekends):
        for index in range(slots_per_day):
            start = day_start + index * session_duration_minutes
            slots.append(
                CandidateSlot(day=day, start=start, end=start + session_duration_minutes)
            )
    return slots

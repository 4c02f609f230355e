"""HTTP controller layer for timetable optimisation and scoring."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator, model_validator

from timetable_engine.controllers.dependencies import get_timetable_service
from timetable_engine.domain.models import (
    Assignment,
    CandidateSlot,
    ScoreBreakdown,
    SubjectDemand,
    TimeRange,
    VenueResource,
    Weekday,
    minutes_to_time,
    time_to_minutes,
)
from timetable_engine.services.timetable_service import (
    TimetableOptimizationService,
    TimetableValidationError,
)
from timetable_engine.utils.config import get_settings
from timetable_engine.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["timetable"])


def _parse_day(value: str) -> str:
    return Weekday.from_label(value).label


class TimeRangeDTO(BaseModel):
    start_time: str = Field(pattern=settings.time_format_regex)
    end_time: str = Field(pattern=settings.time_format_regex)

    @model_validator(mode="after")
    def validate_bounds(self) -> "TimeRangeDTO":
        if time_to_minutes(self.start_time) >= time_to_minutes(self.end_time):
            raise ValueError("start_time must be earlier than end_time")
        return self

    def to_domain(self) -> TimeRange:
        return TimeRange(
            start=time_to_minutes(self.start_time),
            end=time_to_minutes(self.end_time),
        )


class SubjectDemandDTO(BaseModel):
    subject_id: str = Field(min_length=1)
    lecturer_id: str = Field(min_length=1)
    priority: int = 0
    session_duration_minutes: Optional[int] = Field(default=None, gt=0)
    preferred_days: list[str] = Field(default_factory=list)
    preferred_time_ranges: list[TimeRangeDTO] = Field(default_factory=list)
    required_venue_types: list[str] = Field(default_factory=list)
    department: str = ""

    @field_validator("preferred_days")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        return [_parse_day(day) for day in value]

    def to_domain(self) -> SubjectDemand:
        return SubjectDemand(
            subject_id=self.subject_id,
            lecturer_id=self.lecturer_id,
            priority=self.priority,
            session_duration_minutes=self.session_duration_minutes,
            preferred_days=frozenset(Weekday.from_label(day) for day in self.preferred_days),
            preferred_time_ranges=tuple(item.to_domain() for item in self.preferred_time_ranges),
            required_venue_types=tuple(self.required_venue_types),
            department=self.department,
        )


class VenueDTO(BaseModel):
    venue_id: str = Field(min_length=1)
    venue_type: str = Field(min_length=1)
    capacity: int = Field(default=0, ge=0)

    def to_domain(self) -> VenueResource:
        return VenueResource(
            venue_id=self.venue_id,
            venue_type=self.venue_type,
            capacity=self.capacity,
        )


class AssignmentDTO(BaseModel):
    day: str
    start_time: str = Field(pattern=settings.time_format_regex)
    end_time: str = Field(pattern=settings.time_format_regex)
    subject_id: str = Field(min_length=1)
    venue_id: str = Field(min_length=1)
    lecturer_id: str = Field(min_length=1)
    is_locked: bool = False
    manually_assigned: bool = False
    score: Optional[float] = None

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return _parse_day(value)

    @model_validator(mode="after")
    def validate_bounds(self) -> "AssignmentDTO":
        if time_to_minutes(self.start_time) >= time_to_minutes(self.end_time):
            raise ValueError("start_time must be earlier than end_time")
        return self

    def to_domain(self) -> Assignment:
        return Assignment(
            day=Weekday.from_label(self.day),
            start=time_to_minutes(self.start_time),
            end=time_to_minutes(self.end_time),
            subject_id=self.subject_id,
            venue_id=self.venue_id,
            lecturer_id=self.lecturer_id,
            is_locked=self.is_locked,
            manually_assigned=self.manually_assigned,
            score=self.score,
        )

    @classmethod
    def from_domain(cls, assignment: Assignment) -> "AssignmentDTO":
        return cls(
            day=assignment.day.label,
            start_time=minutes_to_time(assignment.start),
            end_time=minutes_to_time(assignment.end),
            subject_id=assignment.subject_id,
            venue_id=assignment.venue_id,
            lecturer_id=assignment.lecturer_id,
            is_locked=assignment.is_locked,
            manually_assigned=assignment.manually_assigned,
            score=assignment.score,
        )


class ScoreBreakdownResponse(BaseModel):
    gap_score: float = Field(ge=0.0, le=10.0)
    distribution_score: float = Field(ge=0.0, le=10.0)
    preference_score: float = Field(ge=0.0, le=10.0)
    total: float = Field(ge=0.0, le=10.0)

    @classmethod
    def from_domain(cls, score: ScoreBreakdown) -> "ScoreBreakdownResponse":
        return cls(
            gap_score=score.gap_score,
            distribution_score=score.distribution_score,
            preference_score=score.preference_score,
            total=score.total,
        )


class SchedulingOptionsDTO(BaseModel):
    include_weekends: Optional[bool] = None
    session_duration_minutes: Optional[int] = Field(default=None, gt=0)
    day_start_hour: Optional[int] = Field(default=None, ge=0, le=24)
    day_end_hour: Optional[int] = Field(default=None, ge=0, le=24)
    max_backtracks: Optional[int] = Field(default=None, ge=0)


class OptimizeTimetableRequest(BaseModel):
    timetable_id: str = Field(min_length=1)
    group_department: str
    demands: list[SubjectDemandDTO] = Field(default_factory=list)
    venues: list[VenueDTO] = Field(default_factory=list)
    existing_assignments: list[AssignmentDTO] = Field(default_factory=list)
    committed_elsewhere: list[AssignmentDTO] = Field(default_factory=list)
    options: SchedulingOptionsDTO = Field(default_factory=SchedulingOptionsDTO)


class OptimizeTimetableResponse(BaseModel):
    timetable_id: str
    assignments: list[AssignmentDTO]
    score: ScoreBreakdownResponse
    status: str
    complete: bool
    backtracks: int = Field(ge=0)
    unplaced_subject_ids: list[str]
    message: str


class ScoreTimetableRequest(BaseModel):
    assignments: list[AssignmentDTO] = Field(default_factory=list)
    demands: list[SubjectDemandDTO] = Field(default_factory=list)


class CandidateSlotDTO(BaseModel):
    day: str
    start_time: str
    end_time: str

    @classmethod
    def from_domain(cls, slot: CandidateSlot) -> "CandidateSlotDTO":
        return cls(
            day=slot.day.label,
            start_time=minutes_to_time(slot.start),
            end_time=minutes_to_time(slot.end),
        )


class CandidateSlotsResponse(BaseModel):
    slots: list[CandidateSlotDTO]


class ValidateTimetableRequest(BaseModel):
    assignments: list[AssignmentDTO] = Field(default_factory=list)
    committed_elsewhere: list[AssignmentDTO] = Field(default_factory=list)


class ConflictDTO(BaseModel):
    first: AssignmentDTO
    second: AssignmentDTO


class ValidateTimetableResponse(BaseModel):
    valid: bool
    conflicts: list[ConflictDTO]


@router.post(
    "/optimize_timetable",
    response_model=OptimizeTimetableResponse,
    status_code=status.HTTP_200_OK,
)
async def optimize_timetable(
    payload: OptimizeTimetableRequest,
    service: TimetableOptimizationService = Depends(get_timetable_service),
) -> OptimizeTimetableResponse:
    """Re-plan unlocked slots of one group's timetable and score the result."""
    try:
        result = service.optimize_timetable(
            timetable_id=payload.timetable_id,
            group_department=payload.group_department,
            demands=[item.to_domain() for item in payload.demands],
            venues=[item.to_domain() for item in payload.venues],
            existing_assignments=[item.to_domain() for item in payload.existing_assignments],
            committed_elsewhere=[item.to_domain() for item in payload.committed_elsewhere],
            include_weekends=payload.options.include_weekends,
            session_duration_minutes=payload.options.session_duration_minutes,
            day_start_hour=payload.options.day_start_hour,
            day_end_hour=payload.options.day_end_hour,
            max_backtracks=payload.options.max_backtracks,
        )
        return OptimizeTimetableResponse(
            timetable_id=result.timetable_id,
            assignments=[AssignmentDTO.from_domain(item) for item in result.assignments],
            score=ScoreBreakdownResponse.from_domain(result.score),
            status=result.outcome.status.value,
            complete=result.outcome.complete,
            backtracks=result.outcome.backtracks,
            unplaced_subject_ids=result.outcome.unplaced_subject_ids,
            message=result.outcome.message,
        )
    except TimetableValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected timetable optimization failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to optimize timetable",
        ) from exc


@router.post(
    "/score_timetable",
    response_model=ScoreBreakdownResponse,
    status_code=status.HTTP_200_OK,
)
async def score_timetable(
    payload: ScoreTimetableRequest,
    service: TimetableOptimizationService = Depends(get_timetable_service),
) -> ScoreBreakdownResponse:
    score = service.score_timetable(
        [item.to_domain() for item in payload.assignments],
        [item.to_domain() for item in payload.demands],
    )
    return ScoreBreakdownResponse.from_domain(score)


@router.post(
    "/candidate_slots",
    response_model=CandidateSlotsResponse,
    status_code=status.HTTP_200_OK,
)
async def candidate_slots(
    payload: SchedulingOptionsDTO,
    service: TimetableOptimizationService = Depends(get_timetable_service),
) -> CandidateSlotsResponse:
    try:
        config = service.build_config(
            include_weekends=payload.include_weekends,
            session_duration_minutes=payload.session_duration_minutes,
            day_start_hour=payload.day_start_hour,
            day_end_hour=payload.day_end_hour,
            max_backtracks=payload.max_backtracks,
        )
    except TimetableValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return CandidateSlotsResponse(
        slots=[CandidateSlotDTO.from_domain(slot) for slot in service.candidate_slots(config)]
    )


@router.post(
    "/validate_timetable",
    response_model=ValidateTimetableResponse,
    status_code=status.HTTP_200_OK,
)
async def validate_timetable(
    payload: ValidateTimetableRequest,
    service: TimetableOptimizationService = Depends(get_timetable_service),
) -> ValidateTimetableResponse:
    """Report venue and lecturer double-bookings in a submitted timetable."""
    clashes = service.validate_timetable(
        [item.to_domain() for item in payload.assignments],
        [item.to_domain() for item in payload.committed_elsewhere],
    )
    return ValidateTimetableResponse(
        valid=not clashes,
        conflicts=[
            ConflictDTO(
                first=AssignmentDTO.from_domain(first),
                second=AssignmentDTO.from_domain(second),
            )
            for first, second in clashes
        ],
    )

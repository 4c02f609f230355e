"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from timetable_engine.services.timetable_service import TimetableOptimizationService


def get_timetable_service(request: Request) -> TimetableOptimizationService:
    service = getattr(request.app.state, "timetable_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Timetable service is not initialized",
        )
    return service

"""
app.py: FastAPI application factory.

This is the ASGI application object imported by uvicorn. It wires the
timetable optimisation service into app.state and registers the router.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from timetable_engine.controllers.timetable_controller import router as timetable_router
from timetable_engine.services.timetable_service import TimetableOptimizationService
from timetable_engine.utils.config import Settings, get_settings
from timetable_engine.utils.logger import get_logger


logger = get_logger("timetable_engine.app")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    The scheduler is stateless between requests, so there is no startup
    sequence beyond constructing the service.
    """
    settings = settings or get_settings()
    timetable_service = TimetableOptimizationService(settings=settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
    )
    app.include_router(timetable_router)
    app.state.timetable_service = timetable_service

    logger.info(
        "Application created | session_duration_minutes=%s | max_backtracks=%s",
        settings.schedule_session_duration_minutes,
        settings.schedule_max_backtracks,
    )
    return app


# Module-level app object for uvicorn
app = create_app()

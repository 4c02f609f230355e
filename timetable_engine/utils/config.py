"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


ENV_PREFIX = "TIMETABLE_"


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, "true" if default else "false")
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def _env_tuple(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = _env(name, ",".join(default))
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    schedule_include_weekends: bool
    schedule_session_duration_minutes: int
    schedule_day_start_hour: int
    schedule_day_end_hour: int
    schedule_max_backtracks: int
    shared_departments: tuple[str, ...]
    time_format_regex: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from ``TIMETABLE_*`` variables."""
    return Settings(
        app_name=_env("APP_NAME", "Timetable Engine"),
        app_version=_env("APP_VERSION", "0.1.0"),
        log_level=_env("LOG_LEVEL", "INFO"),
        schedule_include_weekends=_env_bool("INCLUDE_WEEKENDS", False),
        schedule_session_duration_minutes=_env_int("SESSION_DURATION_MINUTES", 120),
        schedule_day_start_hour=_env_int("DAY_START_HOUR", 8),
        schedule_day_end_hour=_env_int("DAY_END_HOUR", 18),
        schedule_max_backtracks=_env_int("MAX_BACKTRACKS", 1000),
        shared_departments=_env_tuple("SHARED_DEPARTMENTS", ("Mathematics",)),
        time_format_regex=r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$",
    )

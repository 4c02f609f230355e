#!/usr/bin/env python3
"""Validate local timetable engine environment readiness."""

from __future__ import annotations

import importlib
import sys
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from timetable_engine.domain.models import SubjectDemand, VenueResource, Weekday
from timetable_engine.services.timetable_service import TimetableOptimizationService
from timetable_engine.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def _smoke_demands() -> list[SubjectDemand]:
    return [
        SubjectDemand(
            subject_id=f"SUBJ-{index}",
            lecturer_id=f"LEC-{index % 3}",
            priority=index % 4,
            session_duration_minutes=120,
            preferred_days=frozenset({Weekday(index % 5)}),
            required_venue_types=("lab",) if index % 2 else ("lecture",),
            department="Computing",
        )
        for index in range(8)
    ]


def _smoke_venues() -> list[VenueResource]:
    return [
        VenueResource(venue_id="HALL-1", venue_type="lecture", capacity=120),
        VenueResource(venue_id="LAB-1", venue_type="lab", capacity=40),
    ]


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    from importlib.metadata import PackageNotFoundError, version

    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 3: Smoke schedule
    try:
        settings = replace(get_settings(), schedule_max_backtracks=500)
        service = TimetableOptimizationService(settings=settings)
        result = service.optimize_timetable(
            timetable_id="smoke",
            group_department="Computing",
            demands=_smoke_demands(),
            venues=_smoke_venues(),
        )
        clashes = service.validate_timetable(result.assignments)
        if clashes:
            raise RuntimeError(f"{len(clashes)} exclusivity violations")
        ok, line = _print_result(
            "Smoke schedule",
            True,
            (
                f": placed={len(result.assignments)} status={result.outcome.status.value} "
                f"total={result.score.total:.4f}"
            ),
        )
    except Exception as exc:
        ok, line = _print_result("Smoke schedule", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" Timetable Engine Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())

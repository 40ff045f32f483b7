"""
Daily Report API Endpoints.

Reports are computed from stored samples on demand: listing a date range
creates the missing days, regeneration recomputes them explicitly.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ReportUnavailableError, ResourceNotFoundError
from backend.app.core.timeutils import local_date, utcnow
from backend.app.db.session import get_db
from backend.app.schemas.report import (
    DailyReportResponse, DailyReportListResponse, ReportStats,
    RegenerateRequest, RegenerateResponse
)
from backend.app.services.reporting import (
    ReportUpsertCoordinator, filter_by_time_of_day, parse_time_of_day, summarize_reports
)
from backend.app.services.telemetry_store import TelemetryStore

router = APIRouter(prefix="/reports", tags=["Daily Reports"])


def _parse_vehicle_filter(vehicle_id: Optional[str]) -> Optional[int]:
    if vehicle_id is None or vehicle_id.strip() in ("", "all"):
        return None
    try:
        return int(vehicle_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="vehicle_id must be an integer or 'all'"
        )


def _parse_time_filter(value: Optional[str], name: str):
    try:
        return parse_time_of_day(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{name} must be HH:MM"
        )


@router.get("", response_model=DailyReportListResponse)
async def list_reports(
    vehicle_id: Optional[str] = Query(None, description="Vehicle ID or 'all'"),
    start_date: Optional[date] = Query(None, description="First day (inclusive)"),
    end_date: Optional[date] = Query(None, description="Last day (inclusive)"),
    start_time: Optional[str] = Query(None, description="HH:MM, drop days with no activity after it"),
    end_time: Optional[str] = Query(None, description="HH:MM, drop days with no activity before it"),
    db: AsyncSession = Depends(get_db)
):
    """
    List daily reports, newest day first, with totals.

    When a date range is given, days in it that have samples but no report
    yet are generated first. Existing reports are returned as stored.
    """
    selected_vehicle = _parse_vehicle_filter(vehicle_id)
    from_time = _parse_time_filter(start_time, "start_time")
    to_time = _parse_time_filter(end_time, "end_time")

    store = TelemetryStore(db)
    vehicle_ids = [selected_vehicle] if selected_vehicle is not None else None

    if start_date or end_date:
        # A one-sided range runs up to today, or covers just the given end day
        range_end = end_date or local_date(utcnow())
        range_start = start_date or range_end
        if range_start > range_end:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="start_date must not be after end_date"
            )
        targets = vehicle_ids if vehicle_ids is not None else await store.list_vehicle_ids()
        await ReportUpsertCoordinator(store).backfill_range(targets, range_start, range_end)
        reports = await store.list_reports(vehicle_ids, range_start, range_end)
    else:
        reports = await store.list_reports(vehicle_ids)

    reports = filter_by_time_of_day(reports, from_time, to_time)

    return DailyReportListResponse(
        reports=[DailyReportResponse.model_validate(r) for r in reports],
        stats=ReportStats(**summarize_reports(reports))
    )


@router.get("/{vehicle_id}/{day}", response_model=DailyReportResponse)
async def get_daily_report(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    day: date = Path(..., description="Day, YYYY-MM-DD"),
    force: bool = Query(False, description="Recompute even if a report exists"),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the report of one vehicle-day, computing it if needed.

    The current day is always recomputed since samples are still arriving.
    """
    store = TelemetryStore(db)
    if not await store.get_vehicle(vehicle_id):
        raise ResourceNotFoundError("Vehicle", vehicle_id)

    recompute = force or day >= local_date(utcnow())
    try:
        report = await ReportUpsertCoordinator(store).ensure_report(vehicle_id, day, force=recompute)
    except SQLAlchemyError:
        raise ReportUnavailableError(vehicle_id, day)

    if report is None:
        raise ResourceNotFoundError("DailyReport", message="Report unavailable for this day")
    return report


@router.post("/regenerate", response_model=RegenerateResponse)
async def regenerate_reports(
    request: RegenerateRequest,
    db: AsyncSession = Depends(get_db)
):
    """Recompute every day in the range, replacing stored reports."""
    end = request.end_date or request.start_date
    if request.start_date > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date"
        )

    store = TelemetryStore(db)
    if not await store.get_vehicle(request.vehicle_id):
        raise ResourceNotFoundError("Vehicle", request.vehicle_id)

    result = await ReportUpsertCoordinator(store).regenerate(request.vehicle_id, request.start_date, end)

    return RegenerateResponse(
        vehicle_id=result.vehicle_id,
        regenerated=[DailyReportResponse.model_validate(r) for r in result.regenerated],
        empty_days=result.empty_days
    )

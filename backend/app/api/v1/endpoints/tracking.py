"""
Tracking History API Endpoints.

Raw sample history for playback and a per-day activity summary.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.timeutils import day_window, local_date, to_utc_naive, utcnow
from backend.app.db.session import get_db
from backend.app.domain.telemetry.motion import is_moving
from backend.app.schemas.telemetry import TelemetrySampleResponse
from backend.app.schemas.tracking import TrackingDay, TrackingPointsResponse, TrackingSummaryResponse
from backend.app.services.telemetry_store import TelemetryStore

router = APIRouter(prefix="/tracking", tags=["Tracking"])


@router.get("", response_model=TrackingPointsResponse)
async def list_tracking_points(
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    start_date: Optional[datetime] = Query(None, description="From (inclusive)"),
    end_date: Optional[datetime] = Query(None, description="To (inclusive)"),
    limit: Optional[int] = Query(None, ge=1, le=10000, description="Maximum samples"),
    db: AsyncSession = Depends(get_db)
):
    """List stored samples, newest first."""
    samples = await TelemetryStore(db).list_samples(
        vehicle_id=vehicle_id,
        from_ts=to_utc_naive(start_date) if start_date else None,
        to_ts=to_utc_naive(end_date) if end_date else None,
        limit=limit or settings.tracking_points_default_limit
    )
    return TrackingPointsResponse(
        samples=[TelemetrySampleResponse.model_validate(s) for s in samples],
        total=len(samples)
    )


@router.get("/summary", response_model=TrackingSummaryResponse)
async def tracking_summary(
    vehicle_id: int = Query(..., description="Vehicle ID"),
    days: Optional[int] = Query(None, ge=1, le=366, description="Number of days back, today included"),
    limit: Optional[int] = Query(None, ge=1, le=100000, description="Maximum samples scanned"),
    db: AsyncSession = Depends(get_db)
):
    """
    Days on which the vehicle reported, with first/last sample time,
    sample count and moving sample count. Newest day first.
    """
    store = TelemetryStore(db)
    if not await store.get_vehicle(vehicle_id):
        raise ResourceNotFoundError("Vehicle", vehicle_id)

    days = days or settings.tracking_summary_days
    since, _ = day_window(local_date(utcnow()) - timedelta(days=days - 1))

    samples = await store.list_samples(
        vehicle_id=vehicle_id,
        from_ts=since,
        limit=limit or settings.tracking_summary_max_points,
        newest_first=False
    )

    by_day: Dict[str, TrackingDay] = {}
    for sample in samples:
        key = local_date(sample.timestamp).isoformat()
        entry = by_day.get(key)
        if entry is None:
            entry = by_day[key] = TrackingDay(
                date=key, start=sample.timestamp, end=sample.timestamp, count=0, moving_count=0
            )
        entry.count += 1
        if is_moving(sample.speed):
            entry.moving_count += 1
        entry.start = min(entry.start, sample.timestamp)
        entry.end = max(entry.end, sample.timestamp)

    summary: List[TrackingDay] = sorted(by_day.values(), key=lambda d: d.date, reverse=True)
    return TrackingSummaryResponse(vehicle_id=vehicle_id, days=summary)

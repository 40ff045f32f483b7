"""
GPS Ingestion API Endpoints.

Devices push one sample per request, as a JSON body or as query parameters.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.timeutils import utcnow
from backend.app.db.session import get_db
from backend.app.schemas.telemetry import TelemetrySampleResponse
from backend.app.schemas.vehicle import IngestResponse, VehicleResponse
from backend.app.services.ingestion import IngestionService, IngestResult

router = APIRouter(prefix="/gps", tags=["GPS Ingestion"])


def _ingest_response(result: IngestResult) -> IngestResponse:
    return IngestResponse(
        success=True,
        sample=TelemetrySampleResponse.model_validate(result.sample),
        vehicle=VehicleResponse.model_validate(result.vehicle),
        stop_interval_closed=result.stop_interval_closed,
        arrived_trip_ids=result.arrived_trip_ids
    )


@router.post("", response_model=IngestResponse, status_code=status.HTTP_201_CREATED)
async def ingest_sample(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """
    Ingest one GPS sample.

    Accepts deviceImei/imei/id, latitude/lat, longitude/lng/lon, speed/spd,
    batteryLevel/battery/bat and timestamp/time/date.
    """
    result = await IngestionService.ingest(db, payload, received_at=utcnow())
    return _ingest_response(result)


@router.post("/update", response_model=IngestResponse)
async def update_location(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """Location update; same contract as POST /gps."""
    result = await IngestionService.ingest(db, payload, received_at=utcnow())
    return _ingest_response(result)


@router.get("")
async def ingest_sample_from_query(
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Ingest one GPS sample sent as query parameters.

    For trackers that can only issue GET requests; answers tersely.
    """
    await IngestionService.ingest(db, dict(request.query_params), received_at=utcnow())
    return {"success": True, "message": "OK"}

"""
Trip API Endpoints.

Trips with a destination are watched for arrival by the ingestion pipeline
until they are closed with an end_time.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ArrivalRegressionError, ResourceNotFoundError
from backend.app.core.timeutils import to_utc_naive, utcnow
from backend.app.db.session import get_db
from backend.app.models.enums import ArrivalStatus
from backend.app.models.trip import Trip
from backend.app.schemas.trip import (
    TripCreate, TripDetailResponse, TripListResponse, TripResponse, TripStats,
    TripUpdate, TripVehicleSummary
)
from backend.app.services.reporting import summarize_trips
from backend.app.services.telemetry_store import TelemetryStore

router = APIRouter(prefix="/trips", tags=["Trips"])

# Columns that may be cleared with an explicit null
NULLABLE_FIELDS = {"end_time", "notes", "destination_lat", "destination_lng", "destination_name"}
DESTINATION_FIELDS = {"destination_lat", "destination_lng"}


def _initial_arrival_status(destination_lat, destination_lng) -> ArrivalStatus:
    if destination_lat is not None and destination_lng is not None:
        return ArrivalStatus.IN_PROGRESS
    return ArrivalStatus.NOT_SET


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Create a trip for a vehicle.

    arrival_status starts IN_PROGRESS when both destination coordinates are
    given, NOT_SET otherwise.
    """
    vehicle = await TelemetryStore(db).get_vehicle(trip_data.vehicle_id)
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", trip_data.vehicle_id)

    trip = Trip(
        vehicle_id=trip_data.vehicle_id,
        start_time=to_utc_naive(trip_data.start_time),
        end_time=to_utc_naive(trip_data.end_time) if trip_data.end_time else None,
        distance=trip_data.distance,
        avg_speed=trip_data.avg_speed,
        max_speed=trip_data.max_speed,
        stops=trip_data.stops,
        notes=trip_data.notes,
        destination_lat=trip_data.destination_lat,
        destination_lng=trip_data.destination_lng,
        destination_name=trip_data.destination_name,
        arrival_status=_initial_arrival_status(trip_data.destination_lat, trip_data.destination_lng)
    )
    db.add(trip)
    await db.commit()
    await db.refresh(trip)

    return trip


@router.get("", response_model=TripListResponse)
async def list_trips(
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    start_date: Optional[datetime] = Query(None, description="Trips starting at or after"),
    end_date: Optional[datetime] = Query(None, description="Trips starting at or before"),
    db: AsyncSession = Depends(get_db)
):
    """List trips, newest first, with distance, speed and stop totals."""
    query = select(Trip)

    if vehicle_id is not None:
        query = query.where(Trip.vehicle_id == vehicle_id)
    if start_date is not None:
        query = query.where(Trip.start_time >= to_utc_naive(start_date))
    if end_date is not None:
        query = query.where(Trip.start_time <= to_utc_naive(end_date))

    result = await db.execute(query.order_by(Trip.start_time.desc()))
    trips = result.scalars().all()

    return TripListResponse(
        trips=[TripResponse.model_validate(trip) for trip in trips],
        total=len(trips),
        stats=TripStats(**summarize_trips(trips))
    )


@router.get("/{trip_id}", response_model=TripDetailResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get one trip with its vehicle."""
    store = TelemetryStore(db)
    trip = await store.get_trip(trip_id)
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)

    vehicle = await store.get_vehicle(trip.vehicle_id)
    return TripDetailResponse(
        **TripResponse.model_validate(trip).model_dump(),
        vehicle=TripVehicleSummary.model_validate(vehicle) if vehicle else None
    )


@router.put("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_data: TripUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a trip.

    Setting end_time closes the trip, after which arrival is no longer
    detected for it. Arrival only moves forward:
    - an ARRIVED trip cannot be set back to NOT_SET or IN_PROGRESS (409)
    - setting ARRIVED by hand stamps arrival_time with the current time
    - changing the destination of a trip that has not arrived resets its
      status from the new coordinates unless a status is given
    """
    store = TelemetryStore(db)
    trip = await store.get_trip(trip_id, for_update=True)
    if not trip:
        raise ResourceNotFoundError("Trip", trip_id)

    changes = {
        name: value for name, value in trip_data.model_dump(exclude_unset=True).items()
        if value is not None or name in NULLABLE_FIELDS
    }

    if "vehicle_id" in changes and changes["vehicle_id"] != trip.vehicle_id:
        if not await store.get_vehicle(changes["vehicle_id"]):
            raise ResourceNotFoundError("Vehicle", changes["vehicle_id"])

    for name in ("start_time", "end_time"):
        if changes.get(name) is not None:
            changes[name] = to_utc_naive(changes[name])

    start_time = changes.get("start_time", trip.start_time)
    end_time = changes.get("end_time", trip.end_time)
    if end_time is not None and end_time < start_time:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_time must not be before start_time"
        )

    requested = changes.pop("arrival_status", None)
    if trip.arrival_status == ArrivalStatus.ARRIVED:
        if requested is not None and requested != ArrivalStatus.ARRIVED:
            raise ArrivalRegressionError(trip.id, requested.value)
    elif requested == ArrivalStatus.ARRIVED:
        trip.arrival_status = ArrivalStatus.ARRIVED
        trip.arrival_time = utcnow()
    elif requested is not None:
        trip.arrival_status = requested
    elif DESTINATION_FIELDS & changes.keys():
        trip.arrival_status = _initial_arrival_status(
            changes.get("destination_lat", trip.destination_lat),
            changes.get("destination_lng", trip.destination_lng)
        )

    for name, value in changes.items():
        setattr(trip, name, value)

    await db.commit()
    await db.refresh(trip)
    return trip


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    db: AsyncSession = Depends(get_db)
):
    """Delete a trip."""
    store = TelemetryStore(db)
    if not await store.get_trip(trip_id):
        raise ResourceNotFoundError("Trip", trip_id)

    await store.delete_trip(trip_id)
    await db.commit()

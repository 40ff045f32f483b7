"""
Vehicle API Endpoints.

Registration, live status and deletion of tracked vehicles.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.timeutils import utcnow
from backend.app.db.session import get_db
from backend.app.domain.telemetry.motion import derive_display_status
from backend.app.models.enums import VehicleStatus
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.telemetry import TelemetrySampleResponse
from backend.app.schemas.vehicle import (
    VehicleCreate, VehicleResponse, VehicleUpdate, VehicleWithTrackingResponse, VehicleListResponse
)
from backend.app.services.telemetry_store import TelemetryStore
from backend.app.services.vehicle_status import VehicleStatusService

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


async def _with_tracking(store: TelemetryStore, vehicle: Vehicle, now) -> VehicleWithTrackingResponse:
    last_sample = await store.latest_sample(vehicle.id)
    response = VehicleResponse.model_validate(vehicle)
    return VehicleWithTrackingResponse(
        **response.model_dump(),
        display_status=derive_display_status(vehicle, now),
        last_sample=TelemetrySampleResponse.model_validate(last_sample) if last_sample else None
    )


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a vehicle.

    New vehicles start POWERED_OFF until their first moving sample.
    """
    vehicle = Vehicle(
        name=vehicle_data.name,
        plate_number=vehicle_data.plate_number,
        device_imei=vehicle_data.device_imei.strip(),
        driver_name=vehicle_data.driver_name,
        driver_phone=vehicle_data.driver_phone,
        status=VehicleStatus.POWERED_OFF,
        total_stopped_time=0
    )
    db.add(vehicle)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Vehicle with IMEI {vehicle_data.device_imei} already exists"
        )

    await db.refresh(vehicle)
    return vehicle


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(db: AsyncSession = Depends(get_db)):
    """
    List vehicles with their display status and most recent sample.

    Silent vehicles are reconciled to POWERED_OFF on the way.
    """
    result = await db.execute(select(Vehicle).order_by(Vehicle.id))
    vehicles = result.scalars().all()

    now = utcnow()
    vehicles = await VehicleStatusService.refresh_all(db, vehicles, now)

    store = TelemetryStore(db)
    items = [await _with_tracking(store, vehicle, now) for vehicle in vehicles]
    return VehicleListResponse(vehicles=items, total=len(items))


@router.get("/{vehicle_id}", response_model=VehicleWithTrackingResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get one vehicle with its live status."""
    store = TelemetryStore(db)
    vehicle = await store.get_vehicle(vehicle_id)
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)

    now = utcnow()
    vehicle = await VehicleStatusService.refresh(db, vehicle, now)
    return await _with_tracking(store, vehicle, now)


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Update registration details.

    Live state (status, position, stopped time) is not editable here; it only
    changes through ingestion and the power-off check.
    """
    vehicle = await TelemetryStore(db).get_vehicle(vehicle_id)
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)

    changes = vehicle_data.model_dump(exclude_unset=True)
    for name in ("name", "device_imei"):
        if changes.get(name) is None:
            changes.pop(name, None)
    if "device_imei" in changes:
        changes["device_imei"] = changes["device_imei"].strip()

    for name, value in changes.items():
        setattr(vehicle, name, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Vehicle with IMEI {changes.get('device_imei')} already exists"
        )

    await db.refresh(vehicle)
    return vehicle


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Delete a vehicle with its samples, trips and daily reports."""
    store = TelemetryStore(db)
    vehicle = await store.get_vehicle(vehicle_id)
    if not vehicle:
        raise ResourceNotFoundError("Vehicle", vehicle_id)

    await store.delete_vehicle(vehicle_id)
    await db.commit()

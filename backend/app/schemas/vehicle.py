"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle registration and live status.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from backend.app.models.enums import VehicleStatus
from backend.app.schemas.telemetry import TelemetrySampleResponse


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    plate_number: Optional[str] = Field(None, max_length=50, description="Registration plate")
    device_imei: str = Field(..., min_length=1, max_length=50, description="Unique tracking device IMEI")
    driver_name: Optional[str] = Field(None, max_length=100)
    driver_phone: Optional[str] = Field(None, max_length=50)


class VehicleUpdate(BaseModel):
    """Partial update of registration details; live state is owned by ingestion."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    plate_number: Optional[str] = Field(None, max_length=50)
    device_imei: Optional[str] = Field(None, min_length=1, max_length=50)
    driver_name: Optional[str] = Field(None, max_length=100)
    driver_phone: Optional[str] = Field(None, max_length=50)


class VehicleResponse(BaseModel):
    """Schema for vehicle response with live state."""
    id: int
    name: str
    plate_number: Optional[str]
    device_imei: str
    driver_name: Optional[str]
    driver_phone: Optional[str]
    status: VehicleStatus
    last_latitude: Optional[float]
    last_longitude: Optional[float]
    last_speed: Optional[float]
    last_update: Optional[datetime]
    stopped_at: Optional[datetime]
    total_stopped_time: int

    class Config:
        from_attributes = True


class VehicleWithTrackingResponse(VehicleResponse):
    """Vehicle with its display status and most recent sample."""
    display_status: VehicleStatus
    last_sample: Optional[TelemetrySampleResponse] = None


class VehicleListResponse(BaseModel):
    """Schema for vehicle list."""
    vehicles: List[VehicleWithTrackingResponse]
    total: int


class IngestResponse(BaseModel):
    """Response after ingesting one GPS sample."""
    success: bool = True
    sample: TelemetrySampleResponse
    vehicle: VehicleResponse
    stop_interval_closed: bool
    arrived_trip_ids: List[int] = []

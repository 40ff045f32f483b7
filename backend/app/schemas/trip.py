"""
Trip schemas.

Schemas for trip creation and visibility.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from backend.app.models.enums import ArrivalStatus


class TripCreate(BaseModel):
    """Schema for creating a trip."""
    vehicle_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    distance: float = Field(0.0, ge=0)
    avg_speed: float = Field(0.0, ge=0)
    max_speed: float = Field(0.0, ge=0)
    stops: int = Field(0, ge=0)
    notes: Optional[str] = None
    destination_lat: Optional[float] = Field(None, ge=-90, le=90)
    destination_lng: Optional[float] = Field(None, ge=-180, le=180)
    destination_name: Optional[str] = Field(None, max_length=255)


class TripUpdate(BaseModel):
    """
    Partial trip update.

    Only fields present in the body change. null clears end_time, notes and
    the destination; it is ignored for the other fields.
    """
    vehicle_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    distance: Optional[float] = Field(None, ge=0)
    avg_speed: Optional[float] = Field(None, ge=0)
    max_speed: Optional[float] = Field(None, ge=0)
    stops: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    destination_lat: Optional[float] = Field(None, ge=-90, le=90)
    destination_lng: Optional[float] = Field(None, ge=-180, le=180)
    destination_name: Optional[str] = Field(None, max_length=255)
    arrival_status: Optional[ArrivalStatus] = None


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    vehicle_id: int
    start_time: datetime
    end_time: Optional[datetime]
    distance: float
    avg_speed: float
    max_speed: float
    stops: int
    notes: Optional[str]
    destination_lat: Optional[float]
    destination_lng: Optional[float]
    destination_name: Optional[str]
    arrival_status: ArrivalStatus
    arrival_time: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class TripVehicleSummary(BaseModel):
    """Vehicle fields shown alongside a trip."""
    id: int
    name: str
    plate_number: Optional[str]
    driver_name: Optional[str]

    class Config:
        from_attributes = True


class TripDetailResponse(TripResponse):
    """Trip with its vehicle."""
    vehicle: Optional[TripVehicleSummary] = None


class TripStats(BaseModel):
    """Totals over a list of trips."""
    total_distance: float
    total_trips: int
    avg_speed: float
    total_stops: int


class TripListResponse(BaseModel):
    """Schema for trip list."""
    trips: List[TripResponse]
    total: int
    stats: TripStats

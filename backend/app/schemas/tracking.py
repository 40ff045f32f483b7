"""
Tracking history schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List

from backend.app.schemas.telemetry import TelemetrySampleResponse


class TrackingPointsResponse(BaseModel):
    """Samples for a vehicle, newest first."""
    samples: List[TelemetrySampleResponse]
    total: int


class TrackingDay(BaseModel):
    """Activity summary for one day."""
    date: str  # YYYY-MM-DD
    start: datetime
    end: datetime
    count: int
    moving_count: int


class TrackingSummaryResponse(BaseModel):
    vehicle_id: int
    days: List[TrackingDay]

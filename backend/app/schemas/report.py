"""
Daily report schemas.
"""

from pydantic import BaseModel, Field, field_serializer
from datetime import date, datetime
from typing import List, Optional


class DailyReportResponse(BaseModel):
    """Schema for a daily report."""
    id: int
    vehicle_id: int
    date: date
    total_distance: float
    total_duration: int
    total_stopped_time: int
    total_moving_time: int
    max_speed: float
    avg_speed: float
    number_of_stops: int
    longest_stop: int
    first_movement: Optional[datetime]
    last_movement: Optional[datetime]
    start_lat: Optional[float]
    start_lng: Optional[float]
    end_lat: Optional[float]
    end_lng: Optional[float]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_serializer("total_distance")
    def round_distance(self, value: float) -> float:
        return round(value, 2)


class ReportStats(BaseModel):
    """Totals over a list of daily reports."""
    total_distance: float
    total_reports: int
    avg_speed: float
    total_stops: int


class DailyReportListResponse(BaseModel):
    """Schema for report range listing."""
    reports: List[DailyReportResponse]
    stats: ReportStats


class RegenerateRequest(BaseModel):
    """Explicit request to recompute reports for a date range."""
    vehicle_id: int
    start_date: date
    end_date: Optional[date] = None


class RegenerateResponse(BaseModel):
    vehicle_id: int
    regenerated: List[DailyReportResponse]
    empty_days: List[date] = Field(default_factory=list)

"""
Trip database model.

Trips are planned externally; the telemetry engine only moves
arrival_status from IN_PROGRESS/NOT_SET to ARRIVED.
"""

from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import ArrivalStatus


class Trip(Base):
    """
    Trip model.

    A trip with no end_time is open. When destination coordinates are set,
    arrival is detected from incoming samples.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="CASCADE"), nullable=False, index=True)

    # Timing
    start_time = Column(DateTime(), nullable=False, index=True)
    end_time = Column(DateTime(), nullable=True)  # None => open / in progress

    # Planned figures
    distance = Column(Float, default=0.0, nullable=False)
    avg_speed = Column(Float, default=0.0, nullable=False)
    max_speed = Column(Float, default=0.0, nullable=False)
    stops = Column(Integer, default=0, nullable=False)
    notes = Column(Text, nullable=True)

    # Destination & arrival
    destination_lat = Column(Float, nullable=True)
    destination_lng = Column(Float, nullable=True)
    destination_name = Column(String(255), nullable=True)
    arrival_status = Column(Enum(ArrivalStatus), default=ArrivalStatus.NOT_SET, nullable=False)
    arrival_time = Column(DateTime(), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, vehicle_id={self.vehicle_id}, arrival='{self.arrival_status.value}')>"

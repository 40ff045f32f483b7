"""
Daily Report database model.

One derived aggregate per vehicle per local calendar day.
"""

from sqlalchemy import Column, Integer, Float, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base


class DailyReport(Base):
    """
    Daily Report model.

    Always a deterministic function of the day's samples. Written only
    through the (vehicle_id, date) upsert.
    """
    __tablename__ = "daily_reports"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    # Distance (km) and speeds (km/h)
    total_distance = Column(Float, default=0.0, nullable=False)
    max_speed = Column(Float, default=0.0, nullable=False)
    avg_speed = Column(Float, default=0.0, nullable=False)

    # Durations (minutes)
    total_duration = Column(Integer, default=0, nullable=False)
    total_stopped_time = Column(Integer, default=0, nullable=False)
    total_moving_time = Column(Integer, default=0, nullable=False)
    longest_stop = Column(Integer, default=0, nullable=False)
    number_of_stops = Column(Integer, default=0, nullable=False)

    # Span
    first_movement = Column(DateTime(), nullable=True)
    last_movement = Column(DateTime(), nullable=True)
    start_lat = Column(Float, nullable=True)
    start_lng = Column(Float, nullable=True)
    end_lat = Column(Float, nullable=True)
    end_lng = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('vehicle_id', 'date', name='uq_daily_reports_vehicle_date'),
    )

    def __repr__(self):
        return f"<DailyReport(vehicle_id={self.vehicle_id}, date={self.date}, distance={self.total_distance})>"

"""
Telemetry Sample database model.

Append-only GPS log per vehicle.
"""

from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, Index
from sqlalchemy.sql import func
from backend.app.db.session import Base


class TelemetrySample(Base):
    """
    Telemetry Sample model.

    One GPS/speed/battery reading from a device at an instant.
    Never mutated; removed only when its vehicle is deleted.
    """
    __tablename__ = "telemetry_samples"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey('vehicles.id', ondelete="CASCADE"), nullable=False)

    # GPS reading
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    speed = Column(Float, default=0.0, nullable=False)  # km/h
    battery_level = Column(Integer, default=100, nullable=False)  # 0-100

    # Timing
    timestamp = Column(DateTime(), nullable=False)  # When the device recorded it
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)  # When inserted to DB

    __table_args__ = (
        Index('ix_telemetry_samples_vehicle_timestamp', 'vehicle_id', 'timestamp'),
    )

    def __repr__(self):
        return f"<TelemetrySample(vehicle_id={self.vehicle_id}, lat={self.latitude}, lng={self.longitude}, speed={self.speed})>"

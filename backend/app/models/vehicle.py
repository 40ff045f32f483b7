"""
Vehicle database model.

A vehicle is identified by its tracking device IMEI and carries its own
continuously overwritten live state.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    Live state columns are mutated only by the status updater, once per
    ingested sample, or by the read-time POWERED_OFF reconciliation.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    name = Column(String(100), nullable=False)
    plate_number = Column(String(50), nullable=True)
    device_imei = Column(String(50), unique=True, nullable=False, index=True)
    driver_name = Column(String(100), nullable=True)
    driver_phone = Column(String(50), nullable=True)

    # Live state
    last_latitude = Column(Float, nullable=True)
    last_longitude = Column(Float, nullable=True)
    last_speed = Column(Float, nullable=True)
    status = Column(Enum(VehicleStatus), default=VehicleStatus.POWERED_OFF, nullable=False, index=True)
    last_update = Column(DateTime(), nullable=True)
    stopped_at = Column(DateTime(), nullable=True)  # open stop interval start
    total_stopped_time = Column(Integer, default=0, nullable=False)  # seconds, closed intervals only

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, imei='{self.device_imei}', status='{self.status.value}')>"

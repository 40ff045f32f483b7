"""
Telemetry ingestion schemas.

Devices send the same logical field under several names and omit optional
ones. normalize_gps_payload() resolves aliases and defaults into a fully
populated TelemetryInput before any business logic runs.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from backend.app.core.exceptions import MissingFieldError, TelemetryValidationError
from backend.app.core.timeutils import to_utc_naive, utcnow
from backend.app.domain.telemetry.status_updater import Reading

# Canonical wire names, in the order errors report them
FIELD_NAMES = {
    "device_imei": "deviceImei",
    "latitude": "latitude",
    "longitude": "longitude",
    "speed": "speed",
    "battery_level": "batteryLevel",
    "timestamp": "timestamp",
}
REQUIRED_FIELDS = ("device_imei", "latitude", "longitude")


def _whole_number(value: float, label: str) -> int:
    """int() of a float that must be finite and integral."""
    if not math.isfinite(value):
        raise ValueError(f"{label} must be finite")
    if not value.is_integer():
        raise ValueError(f"{label} must be a whole number")
    return int(value)


class GpsPayload(BaseModel):
    """Raw device payload, every field optional and alias-tolerant."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    device_imei: Optional[str] = Field(None, validation_alias=AliasChoices("deviceImei", "imei", "id"))
    latitude: Optional[float] = Field(
        None, ge=-90, le=90, allow_inf_nan=False, validation_alias=AliasChoices("latitude", "lat")
    )
    longitude: Optional[float] = Field(
        None, ge=-180, le=180, allow_inf_nan=False, validation_alias=AliasChoices("longitude", "lng", "lon")
    )
    speed: Optional[float] = Field(None, ge=0, allow_inf_nan=False, validation_alias=AliasChoices("speed", "spd"))
    battery_level: Optional[int] = Field(
        None, ge=0, le=100, validation_alias=AliasChoices("batteryLevel", "battery", "bat")
    )
    timestamp: Optional[datetime] = Field(None, validation_alias=AliasChoices("timestamp", "time", "date"))

    @field_validator("*", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("device_imei", mode="before")
    @classmethod
    def imei_as_string(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, float):
            return str(_whole_number(value, "IMEI"))
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("battery_level", mode="before")
    @classmethod
    def battery_as_int(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value.strip():
                return None
            try:
                value = float(value)
            except ValueError:
                raise ValueError("battery level must be a number")
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError("battery level must be finite")
            return int(value)
        return value


@dataclass(frozen=True)
class TelemetryInput:
    """Validated, fully populated ingestion input."""
    device_imei: str
    latitude: float
    longitude: float
    speed: float
    battery_level: int
    timestamp: datetime

    def to_reading(self) -> Reading:
        return Reading(
            latitude=self.latitude,
            longitude=self.longitude,
            speed=self.speed,
            timestamp=self.timestamp,
            battery_level=self.battery_level,
        )


def _alias_index() -> dict:
    index = {}
    for name, info in GpsPayload.model_fields.items():
        index[name] = FIELD_NAMES[name]
        for alias in info.validation_alias.choices:
            index[alias] = FIELD_NAMES[name]
    return index


ALIASES = _alias_index()


def _invalid_fields(exc: ValidationError) -> List[str]:
    fields = []
    for error in exc.errors():
        name = ALIASES.get(str(error["loc"][0]), str(error["loc"][0])) if error["loc"] else "payload"
        if name not in fields:
            fields.append(name)
    return fields


def normalize_gps_payload(raw: Mapping[str, Any], received_at: Optional[datetime] = None) -> TelemetryInput:
    """
    Normalize a raw device payload.

    Args:
        raw: JSON body or query parameters as a mapping
        received_at: Receipt time used when the device sends no timestamp

    Returns:
        TelemetryInput with defaults applied (speed 0, battery 100, timestamp = receipt time)

    Raises:
        MissingFieldError: deviceImei, latitude or longitude absent
        TelemetryValidationError: a field is present but invalid
    """
    try:
        payload = GpsPayload.model_validate(dict(raw))
    except ValidationError as exc:
        fields = _invalid_fields(exc)
        raise TelemetryValidationError(f"Invalid fields: {', '.join(fields)}", fields=fields)

    missing = [FIELD_NAMES[name] for name in REQUIRED_FIELDS if getattr(payload, name) is None]
    if missing:
        raise MissingFieldError(missing)

    timestamp = payload.timestamp or received_at or utcnow()

    return TelemetryInput(
        device_imei=payload.device_imei.strip(),
        latitude=payload.latitude,
        longitude=payload.longitude,
        speed=payload.speed if payload.speed is not None else 0.0,
        battery_level=payload.battery_level if payload.battery_level is not None else 100,
        timestamp=to_utc_naive(timestamp),
    )


class TelemetrySampleResponse(BaseModel):
    """Stored telemetry sample."""
    id: int
    vehicle_id: int
    latitude: float
    longitude: float
    speed: float
    battery_level: int
    timestamp: datetime

    class Config:
        from_attributes = True

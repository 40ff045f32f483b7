"""
Vehicle Status Updater (Domain Logic).

Computes a vehicle's next live state from its previous state and one
incoming sample. Pure: persistence is the caller's job.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from backend.app.domain.telemetry.geo import GeoPoint
from backend.app.domain.telemetry.motion import is_moving
from backend.app.models.enums import VehicleStatus


@dataclass(frozen=True)
class Reading:
    """One normalized telemetry sample."""
    latitude: float
    longitude: float
    speed: float
    timestamp: datetime
    battery_level: int = 100

    @property
    def position(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


@dataclass(frozen=True)
class LiveState:
    """
    Snapshot of a vehicle's live state.

    stopped_at is set only while status is STOPPED with an open stop
    interval; total_stopped_time (seconds) covers closed intervals only.
    """
    vehicle_id: Optional[int] = None
    status: VehicleStatus = VehicleStatus.POWERED_OFF
    last_latitude: Optional[float] = None
    last_longitude: Optional[float] = None
    last_speed: Optional[float] = None
    last_update: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    total_stopped_time: int = 0

    @classmethod
    def from_vehicle(cls, vehicle) -> "LiveState":
        return cls(
            vehicle_id=vehicle.id,
            status=VehicleStatus(vehicle.status) if vehicle.status else VehicleStatus.POWERED_OFF,
            last_latitude=vehicle.last_latitude,
            last_longitude=vehicle.last_longitude,
            last_speed=vehicle.last_speed,
            last_update=vehicle.last_update,
            stopped_at=vehicle.stopped_at,
            total_stopped_time=vehicle.total_stopped_time or 0,
        )


@dataclass(frozen=True)
class StatusUpdate:
    """Result of applying one sample."""
    state: LiveState
    stop_interval_closed: bool = False
    stopped_seconds_added: int = 0


def _elapsed_seconds(start: Optional[datetime], end: datetime) -> int:
    if start is None:
        return 0
    return max(int((end - start).total_seconds()), 0)


class VehicleStatusUpdater:

    @staticmethod
    def update(prev: LiveState, sample: Reading) -> StatusUpdate:
        """
        Apply one sample to the previous live state.

        Transitions:
        - MOVING -> moving sample: MOVING
        - MOVING -> still sample: STOPPED, stop interval opens at sample time
        - STOPPED -> still sample: STOPPED, original open time kept
        - STOPPED -> moving sample: MOVING, closed interval added to total
        - POWERED_OFF -> still sample: POWERED_OFF
        - POWERED_OFF -> moving sample: MOVING, nothing accumulated

        Samples are applied in arrival order; no reordering or rejection of
        samples older than prev.last_update.

        Args:
            prev: Previously persisted state
            sample: Incoming reading

        Returns:
            StatusUpdate with the new state and whether a stop interval closed
        """
        moving = is_moving(sample.speed)
        stopped_at = prev.stopped_at
        total_stopped = prev.total_stopped_time or 0
        closed = False
        added = 0

        if prev.status == VehicleStatus.POWERED_OFF:
            # Leaving POWERED_OFF requires movement
            new_status = VehicleStatus.MOVING if moving else VehicleStatus.POWERED_OFF
            if moving:
                stopped_at = None
        elif moving:
            new_status = VehicleStatus.MOVING
            if prev.status == VehicleStatus.STOPPED:
                interval_start = prev.stopped_at or prev.last_update
                added = _elapsed_seconds(interval_start, sample.timestamp)
                total_stopped += added
                closed = True
            stopped_at = None
        else:
            new_status = VehicleStatus.STOPPED
            if prev.status == VehicleStatus.MOVING or stopped_at is None:
                stopped_at = sample.timestamp

        state = replace(
            prev,
            status=new_status,
            last_latitude=sample.latitude,
            last_longitude=sample.longitude,
            last_speed=sample.speed,
            last_update=sample.timestamp,
            stopped_at=stopped_at,
            total_stopped_time=total_stopped,
        )
        return StatusUpdate(state=state, stop_interval_closed=closed, stopped_seconds_added=added)

    @staticmethod
    def power_off(prev: LiveState) -> LiveState:
        """
        Reconcile a silent vehicle to POWERED_OFF.

        An open stop interval is closed at the last sample time so that
        stopped_at stays null outside STOPPED.
        """
        if prev.status == VehicleStatus.POWERED_OFF:
            return prev

        total_stopped = prev.total_stopped_time or 0
        if prev.status == VehicleStatus.STOPPED and prev.stopped_at and prev.last_update:
            total_stopped += _elapsed_seconds(prev.stopped_at, prev.last_update)

        return replace(
            prev,
            status=VehicleStatus.POWERED_OFF,
            stopped_at=None,
            total_stopped_time=total_stopped,
        )

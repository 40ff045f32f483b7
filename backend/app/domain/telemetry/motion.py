"""
Motion classification.

Maps an instantaneous speed to MOVING/STOPPED and derives the display
status of a vehicle at read time.
"""

from datetime import datetime, timedelta
from typing import Optional

from backend.app.core.config import settings
from backend.app.models.enums import MotionState, VehicleStatus


def is_moving(speed: Optional[float], threshold: Optional[float] = None) -> bool:
    """Speed strictly above the threshold counts as moving; None counts as 0."""
    if threshold is None:
        threshold = settings.moving_speed_threshold_kmh
    return (speed or 0.0) > threshold


def classify_motion(speed: Optional[float], threshold: Optional[float] = None) -> MotionState:
    return MotionState.MOVING if is_moving(speed, threshold) else MotionState.STOPPED


def is_stale(last_update: Optional[datetime], now: datetime, timeout_seconds: Optional[int] = None) -> bool:
    """True when no sample has been seen within the power-off timeout."""
    if timeout_seconds is None:
        timeout_seconds = settings.powered_off_timeout_seconds
    if last_update is None:
        return True
    return now - last_update > timedelta(seconds=timeout_seconds)


def derive_display_status(state, now: datetime, timeout_seconds: Optional[int] = None) -> VehicleStatus:
    """
    Status to show for a vehicle at `now`.

    The stored status is authoritative for MOVING/STOPPED while samples keep
    arriving; once the device has been silent past the timeout the vehicle
    reads as POWERED_OFF.

    Args:
        state: Anything exposing `status` and `last_update` (LiveState or Vehicle row)
        now: Reference time, naive UTC
        timeout_seconds: Override of settings.powered_off_timeout_seconds

    Returns:
        VehicleStatus to display
    """
    if state.status == VehicleStatus.POWERED_OFF:
        return VehicleStatus.POWERED_OFF
    if is_stale(state.last_update, now, timeout_seconds):
        return VehicleStatus.POWERED_OFF
    return VehicleStatus(state.status)

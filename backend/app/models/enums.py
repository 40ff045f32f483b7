"""
Telemetry enumerations.

Defines vehicle live status, instantaneous motion and trip arrival states.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """
    Live vehicle status.

    Statuses:
        MOVING: Last sample above the moving threshold
        STOPPED: Last sample at or below the threshold, stop interval open
        POWERED_OFF: No fresh sample within the timeout window (or never seen)
    """
    MOVING = "MOVING"
    STOPPED = "STOPPED"
    POWERED_OFF = "POWERED_OFF"


class MotionState(str, enum.Enum):
    """Instantaneous motion derived from a single speed reading."""
    MOVING = "MOVING"
    STOPPED = "STOPPED"


class ArrivalStatus(str, enum.Enum):
    """Trip arrival status enumeration."""
    NOT_SET = "NOT_SET"  # Trip has no destination
    IN_PROGRESS = "IN_PROGRESS"  # Destination set, vehicle not there yet
    ARRIVED = "ARRIVED"  # Vehicle came within the arrival radius (one-way)

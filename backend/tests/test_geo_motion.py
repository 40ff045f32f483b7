"""
Unit tests for distance and motion classification.
"""

from datetime import datetime, timedelta

import pytest

from backend.app.domain.telemetry.geo import GeoPoint, haversine_distance
from backend.app.domain.telemetry.motion import (
    classify_motion, derive_display_status, is_moving, is_stale
)
from backend.app.domain.telemetry.status_updater import LiveState
from backend.app.models.enums import MotionState, VehicleStatus


def test_haversine_zero_for_same_point():
    assert haversine_distance(30.0444, 31.2357, 30.0444, 31.2357) == 0.0


def test_haversine_one_degree_latitude():
    # 1 degree of latitude on a 6371 km sphere
    assert haversine_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.195, abs=0.001)


def test_haversine_is_symmetric():
    a = haversine_distance(30.0444, 31.2357, 29.9792, 31.1342)
    b = haversine_distance(29.9792, 31.1342, 30.0444, 31.2357)
    assert a == pytest.approx(b)
    assert a > 0


def test_geopoint_distance_delegates():
    p1 = GeoPoint(30.0, 31.0)
    p2 = GeoPoint(30.01, 31.0)
    assert p1.distance_to(p2) == haversine_distance(30.0, 31.0, 30.01, 31.0)


@pytest.mark.parametrize("speed,expected", [
    (0, MotionState.STOPPED),
    (5, MotionState.STOPPED),
    (5.01, MotionState.MOVING),
    (60, MotionState.MOVING),
    (None, MotionState.STOPPED),
])
def test_classify_motion_threshold(speed, expected):
    assert classify_motion(speed) == expected


def test_is_moving_custom_threshold():
    assert is_moving(8, threshold=10) is False
    assert is_moving(11, threshold=10) is True


def test_is_stale():
    now = datetime(2024, 1, 1, 12, 0, 0)
    assert is_stale(None, now) is True
    assert is_stale(now - timedelta(seconds=300), now) is False
    assert is_stale(now - timedelta(seconds=301), now) is True


def test_display_status_powered_off_when_silent():
    now = datetime(2024, 1, 1, 12, 0, 0)
    fresh = LiveState(status=VehicleStatus.MOVING, last_update=now - timedelta(seconds=30))
    silent = LiveState(status=VehicleStatus.STOPPED, last_update=now - timedelta(minutes=10))

    assert derive_display_status(fresh, now) == VehicleStatus.MOVING
    assert derive_display_status(silent, now) == VehicleStatus.POWERED_OFF
    assert derive_display_status(LiveState(), now) == VehicleStatus.POWERED_OFF

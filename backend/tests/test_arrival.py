"""
Unit tests for trip arrival detection.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from backend.app.domain.telemetry.arrival import ArrivalDetector
from backend.app.domain.telemetry.geo import GeoPoint
from backend.app.models.enums import ArrivalStatus

ARRIVED_AT = datetime(2024, 3, 10, 9, 30, 0)


@dataclass
class FakeTrip:
    id: int
    arrival_status: Optional[ArrivalStatus]
    destination_lat: Optional[float]
    destination_lng: Optional[float]


def test_within_radius_arrives():
    trip = FakeTrip(1, ArrivalStatus.IN_PROGRESS, 30.0, 31.0)
    # ~55 m north of the destination
    position = GeoPoint(30.0005, 31.0)

    transitions = ArrivalDetector.check(position, [trip], ARRIVED_AT)

    assert len(transitions) == 1
    assert transitions[0].trip_id == 1
    assert transitions[0].arrival_time == ARRIVED_AT
    assert transitions[0].distance_km < 0.1


def test_outside_radius_does_not_arrive():
    trip = FakeTrip(1, ArrivalStatus.IN_PROGRESS, 30.0, 31.0)
    # ~222 m away
    position = GeoPoint(30.002, 31.0)

    assert ArrivalDetector.check(position, [trip], ARRIVED_AT) == []


def test_already_arrived_is_skipped():
    trip = FakeTrip(1, ArrivalStatus.ARRIVED, 30.0, 31.0)

    assert ArrivalDetector.check(GeoPoint(30.0, 31.0), [trip], ARRIVED_AT) == []


def test_missing_destination_is_skipped():
    trips = [
        FakeTrip(1, ArrivalStatus.NOT_SET, None, None),
        FakeTrip(2, ArrivalStatus.NOT_SET, 30.0, None),
    ]

    assert ArrivalDetector.check(GeoPoint(30.0, 31.0), trips, ARRIVED_AT) == []


def test_pending_statuses_all_qualify():
    trips = [
        FakeTrip(1, ArrivalStatus.NOT_SET, 30.0, 31.0),
        FakeTrip(2, ArrivalStatus.IN_PROGRESS, 30.0, 31.0),
        FakeTrip(3, None, 30.0, 31.0),
    ]

    transitions = ArrivalDetector.check(GeoPoint(30.0, 31.0), trips, ARRIVED_AT)

    assert [t.trip_id for t in transitions] == [1, 2, 3]


def test_custom_radius():
    trip = FakeTrip(1, ArrivalStatus.IN_PROGRESS, 30.0, 31.0)
    position = GeoPoint(30.002, 31.0)

    assert len(ArrivalDetector.check(position, [trip], ARRIVED_AT, radius_km=0.5)) == 1

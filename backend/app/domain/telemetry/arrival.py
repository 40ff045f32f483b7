"""
Arrival Detector (Domain Logic).

Decides which open trips a vehicle has reached.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from backend.app.core.config import settings
from backend.app.domain.telemetry.geo import GeoPoint
from backend.app.models.enums import ArrivalStatus

# Statuses that may still transition to ARRIVED (None: legacy rows)
PENDING_ARRIVAL = (ArrivalStatus.NOT_SET, ArrivalStatus.IN_PROGRESS, None)


@dataclass(frozen=True)
class ArrivalTransition:
    trip_id: int
    arrival_time: datetime
    distance_km: float


class ArrivalDetector:

    @staticmethod
    def check(
        position: GeoPoint,
        trips: Iterable,
        arrived_at: datetime,
        radius_km: Optional[float] = None
    ) -> List[ArrivalTransition]:
        """
        Find trips whose destination is within the arrival radius.

        Trips already ARRIVED are skipped, so repeated calls after arrival
        are no-ops and leaving the radius never reverts a trip.

        Args:
            position: Vehicle position from the current sample
            trips: Open trips exposing id, arrival_status, destination_lat/lng
            arrived_at: Sample timestamp, used as arrival_time
            radius_km: Override of settings.arrival_radius_km

        Returns:
            One transition per trip that has just arrived
        """
        if radius_km is None:
            radius_km = settings.arrival_radius_km

        transitions = []
        for trip in trips:
            if trip.arrival_status not in PENDING_ARRIVAL:
                continue
            if trip.destination_lat is None or trip.destination_lng is None:
                continue

            distance = position.distance_to(GeoPoint(trip.destination_lat, trip.destination_lng))
            if distance < radius_km:
                transitions.append(ArrivalTransition(
                    trip_id=trip.id,
                    arrival_time=arrived_at,
                    distance_km=distance
                ))

        return transitions

"""
Daily Aggregator (Domain Logic).

Turns one vehicle-day of samples into trip statistics. Pure and
deterministic: the same samples always give the same numbers.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from backend.app.domain.telemetry.geo import haversine_distance
from backend.app.domain.telemetry.motion import is_moving


@dataclass(frozen=True)
class DailyStats:
    """
    Aggregate for one vehicle-day.

    Distance in km, speeds in km/h, durations in whole minutes.
    """
    total_distance: float
    total_duration: int
    total_moving_time: int
    total_stopped_time: int
    max_speed: float
    avg_speed: float
    number_of_stops: int
    longest_stop: int
    first_movement: datetime
    last_movement: datetime
    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _minutes(seconds: float) -> int:
    return int(seconds // 60)


class DailyAggregator:

    @staticmethod
    def aggregate(samples: Sequence) -> Optional[DailyStats]:
        """
        Compute the daily statistics.

        Walk consecutive pairs (prev, curr):
        1. distance += Haversine(prev, curr)
        2. curr moving adds the pair's time to moving time, otherwise to stopped time
        3. a non-moving curr with no open stop opens one at prev.timestamp
        4. a moving curr closes the open stop and updates the longest stop
        A stop still open at the end is closed against the last sample.

        Args:
            samples: Readings with latitude, longitude, speed, timestamp

        Returns:
            DailyStats, or None when there are no samples
        """
        if not samples:
            return None

        points = sorted(samples, key=lambda p: p.timestamp)
        first = points[0]
        last = points[-1]

        total_distance = 0.0
        moving_seconds = 0.0
        stopped_seconds = 0.0
        stops = 0
        stop_start = None
        longest_stop_seconds = 0.0

        for prev, curr in zip(points, points[1:]):
            total_distance += haversine_distance(
                prev.latitude, prev.longitude, curr.latitude, curr.longitude
            )
            time_diff = (curr.timestamp - prev.timestamp).total_seconds()

            if is_moving(curr.speed):
                moving_seconds += time_diff
                if stop_start is not None:
                    longest_stop_seconds = max(
                        longest_stop_seconds,
                        (curr.timestamp - stop_start).total_seconds()
                    )
                    stop_start = None
            else:
                stopped_seconds += time_diff
                if stop_start is None:
                    stop_start = prev.timestamp
                    stops += 1

        if stop_start is not None:
            longest_stop_seconds = max(
                longest_stop_seconds,
                (last.timestamp - stop_start).total_seconds()
            )

        speeds = [p.speed or 0.0 for p in points]
        moving_speeds = [s for s in speeds if is_moving(s)]
        avg_speed = sum(moving_speeds) / len(moving_speeds) if moving_speeds else 0.0

        return DailyStats(
            total_distance=total_distance,
            total_duration=_minutes((last.timestamp - first.timestamp).total_seconds()),
            total_moving_time=_minutes(moving_seconds),
            total_stopped_time=_minutes(stopped_seconds),
            max_speed=round(max(speeds), 2),
            avg_speed=round(avg_speed, 2),
            number_of_stops=stops,
            longest_stop=_minutes(longest_stop_seconds),
            first_movement=first.timestamp,
            last_movement=last.timestamp,
            start_lat=first.latitude,
            start_lng=first.longitude,
            end_lat=last.latitude,
            end_lng=last.longitude,
        )

"""
Daily report coordination.

Fetches a vehicle-day of samples, runs the DailyAggregator and upserts the
result. Also the report range listing helpers (time-of-day filter, totals).
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Sequence

from backend.app.core.timeutils import day_window, iter_days, report_zone, to_utc_naive
from backend.app.domain.telemetry.daily_aggregator import DailyAggregator
from backend.app.models.daily_report import DailyReport
from backend.app.models.trip import Trip
from backend.app.services.telemetry_store import TelemetryStore

logger = logging.getLogger("fleet_telemetry.reporting")


@dataclass
class RegenerationResult:
    vehicle_id: int
    regenerated: List[DailyReport] = field(default_factory=list)
    empty_days: List[date] = field(default_factory=list)


class ReportUpsertCoordinator:

    def __init__(self, store: TelemetryStore):
        self.store = store

    async def _compute(self, vehicle_id: int, day: date) -> Optional[DailyReport]:
        from_ts, to_ts = day_window(day)
        samples = await self.store.find_samples(vehicle_id, from_ts, to_ts)

        stats = DailyAggregator.aggregate(samples)
        if stats is None:
            logger.debug("No samples for vehicle %s on %s, report skipped", vehicle_id, day)
            return None

        report = await self.store.upsert_daily_report(vehicle_id, day, stats)
        logger.debug(
            "Upserted report vehicle=%s date=%s distance=%.3fkm stops=%s",
            vehicle_id, day, stats.total_distance, stats.number_of_stops
        )
        return report

    async def ensure_report(self, vehicle_id: int, day: date, force: bool = True) -> Optional[DailyReport]:
        """
        Compute and persist the report for one vehicle-day.

        Args:
            vehicle_id: Vehicle
            day: Local calendar day
            force: Recompute even when a report exists

        Returns:
            The stored report, or None when the day has no samples
            (nothing is written in that case)
        """
        if not force:
            existing = await self.store.find_existing_report(vehicle_id, day)
            if existing is not None:
                return existing

        try:
            report = await self._compute(vehicle_id, day)
            await self.store.db.commit()
        except Exception:
            # Previous report, if any, stays as it was
            await self.store.db.rollback()
            raise
        return report

    async def backfill_range(self, vehicle_ids: Iterable[int], start: date, end: date) -> List[DailyReport]:
        """
        Create reports for days in [start, end] that have none yet.

        Existing reports are never recomputed here; see regenerate().

        Returns:
            Newly created reports
        """
        created = []
        try:
            for vehicle_id in vehicle_ids:
                existing_days = await self.store.report_days(vehicle_id, start, end)
                for day in iter_days(start, end):
                    if day in existing_days:
                        continue
                    report = await self._compute(vehicle_id, day)
                    if report is not None:
                        created.append(report)
            await self.store.db.commit()
        except Exception:
            await self.store.db.rollback()
            raise

        if created:
            logger.info("Backfilled %s daily reports between %s and %s", len(created), start, end)
        return created

    async def regenerate(self, vehicle_id: int, start: date, end: Optional[date] = None) -> RegenerationResult:
        """Recompute every day in [start, end] for one vehicle."""
        end = end or start
        result = RegenerationResult(vehicle_id=vehicle_id)
        try:
            for day in iter_days(start, end):
                report = await self._compute(vehicle_id, day)
                if report is None:
                    result.empty_days.append(day)
                else:
                    result.regenerated.append(report)
            await self.store.db.commit()
        except Exception:
            await self.store.db.rollback()
            raise

        logger.info(
            "Regenerated %s reports for vehicle %s (%s to %s), %s empty days",
            len(result.regenerated), vehicle_id, start, end, len(result.empty_days)
        )
        return result


def parse_time_of_day(value: Optional[str]) -> Optional[time]:
    """Parse "HH:MM"; None or blank gives None."""
    if value is None or not value.strip():
        return None
    hours, _, minutes = value.strip().partition(":")
    return time(int(hours), int(minutes or 0))


def _local_instant(day: date, at: time) -> datetime:
    return to_utc_naive(datetime.combine(day, at, tzinfo=report_zone()))


def filter_by_time_of_day(
    reports: Sequence[DailyReport],
    start_time: Optional[time] = None,
    end_time: Optional[time] = None
) -> List[DailyReport]:
    """
    Keep reports whose activity overlaps the local time-of-day window.

    A report is dropped when its last movement is before start_time or its
    first movement is after end_time on the report's own day.
    """
    if start_time is None and end_time is None:
        return list(reports)

    kept = []
    for report in reports:
        if report.first_movement is None or report.last_movement is None:
            continue
        if start_time is not None and report.last_movement < _local_instant(report.date, start_time):
            continue
        if end_time is not None:
            window_end = _local_instant(report.date, end_time.replace(second=59, microsecond=999999))
            if report.first_movement > window_end:
                continue
        kept.append(report)
    return kept


def summarize_reports(reports: Sequence[DailyReport]) -> dict:
    """Totals over a report listing; avg_speed is the mean of daily averages."""
    count = len(reports)
    return {
        "total_distance": round(sum(r.total_distance for r in reports), 2),
        "total_reports": count,
        "avg_speed": round(sum(r.avg_speed for r in reports) / count, 2) if count else 0.0,
        "total_stops": sum(r.number_of_stops for r in reports),
    }


def summarize_trips(trips: Sequence[Trip]) -> dict:
    """Totals over a trip listing, shaped like summarize_reports."""
    count = len(trips)
    return {
        "total_distance": round(sum(t.distance for t in trips), 2),
        "total_trips": count,
        "avg_speed": round(sum(t.avg_speed for t in trips) / count, 2) if count else 0.0,
        "total_stops": sum(t.stops for t in trips),
    }

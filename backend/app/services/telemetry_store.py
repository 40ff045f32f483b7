"""
Telemetry storage service.

SQLAlchemy-backed collaborator for the telemetry engine: vehicle state,
append-only samples, trip arrivals and daily report upserts.
Methods flush but never commit; the caller owns the transaction.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, update, delete, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.domain.telemetry.daily_aggregator import DailyStats
from backend.app.domain.telemetry.status_updater import LiveState, Reading
from backend.app.models.daily_report import DailyReport
from backend.app.models.enums import ArrivalStatus
from backend.app.models.telemetry_sample import TelemetrySample
from backend.app.models.trip import Trip
from backend.app.models.vehicle import Vehicle

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class TelemetryStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    # Vehicles

    async def find_vehicle_by_device_id(self, device_imei: str) -> Optional[Vehicle]:
        result = await self.db.execute(
            select(Vehicle).where(Vehicle.device_imei == device_imei)
        )
        return result.scalar_one_or_none()

    async def get_vehicle(self, vehicle_id: int, for_update: bool = False) -> Optional[Vehicle]:
        """
        Load a vehicle row, refreshing any copy already in the session.

        With for_update the row is locked (SELECT ... FOR UPDATE) until the
        transaction ends, on backends that support it.
        """
        query = select(Vehicle).where(Vehicle.id == vehicle_id).execution_options(populate_existing=True)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_vehicle_ids(self) -> List[int]:
        result = await self.db.execute(select(Vehicle.id).order_by(Vehicle.id))
        return list(result.scalars().all())

    async def update_vehicle_state(self, vehicle: Vehicle, state: LiveState) -> Vehicle:
        vehicle.status = state.status
        vehicle.last_latitude = state.last_latitude
        vehicle.last_longitude = state.last_longitude
        vehicle.last_speed = state.last_speed
        vehicle.last_update = state.last_update
        vehicle.stopped_at = state.stopped_at
        vehicle.total_stopped_time = state.total_stopped_time
        await self.db.flush()
        return vehicle

    async def delete_vehicle(self, vehicle_id: int) -> None:
        """Delete a vehicle together with its samples, trips and reports."""
        await self.db.execute(delete(TelemetrySample).where(TelemetrySample.vehicle_id == vehicle_id))
        await self.db.execute(delete(Trip).where(Trip.vehicle_id == vehicle_id))
        await self.db.execute(delete(DailyReport).where(DailyReport.vehicle_id == vehicle_id))
        await self.db.execute(delete(Vehicle).where(Vehicle.id == vehicle_id))

    # Samples

    async def append_sample(self, vehicle_id: int, reading: Reading) -> TelemetrySample:
        sample = TelemetrySample(
            vehicle_id=vehicle_id,
            latitude=reading.latitude,
            longitude=reading.longitude,
            speed=reading.speed,
            battery_level=reading.battery_level,
            timestamp=reading.timestamp
        )
        self.db.add(sample)
        await self.db.flush()
        return sample

    async def find_samples(self, vehicle_id: int, from_ts: datetime, to_ts: datetime) -> List[TelemetrySample]:
        """Samples with from_ts <= timestamp < to_ts, oldest first."""
        result = await self.db.execute(
            select(TelemetrySample).where(
                TelemetrySample.vehicle_id == vehicle_id,
                TelemetrySample.timestamp >= from_ts,
                TelemetrySample.timestamp < to_ts
            ).order_by(TelemetrySample.timestamp.asc(), TelemetrySample.id.asc())
        )
        return list(result.scalars().all())

    async def latest_sample(self, vehicle_id: int) -> Optional[TelemetrySample]:
        result = await self.db.execute(
            select(TelemetrySample).where(
                TelemetrySample.vehicle_id == vehicle_id
            ).order_by(TelemetrySample.timestamp.desc(), TelemetrySample.id.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def list_samples(
        self,
        vehicle_id: Optional[int] = None,
        from_ts: Optional[datetime] = None,
        to_ts: Optional[datetime] = None,
        limit: int = 100,
        newest_first: bool = True
    ) -> List[TelemetrySample]:
        query = select(TelemetrySample)
        if vehicle_id is not None:
            query = query.where(TelemetrySample.vehicle_id == vehicle_id)
        if from_ts is not None:
            query = query.where(TelemetrySample.timestamp >= from_ts)
        if to_ts is not None:
            query = query.where(TelemetrySample.timestamp <= to_ts)

        if newest_first:
            query = query.order_by(TelemetrySample.timestamp.desc(), TelemetrySample.id.desc())
        else:
            query = query.order_by(TelemetrySample.timestamp.asc(), TelemetrySample.id.asc())

        result = await self.db.execute(query.limit(limit))
        return list(result.scalars().all())

    # Trips

    async def get_trip(self, trip_id: int, for_update: bool = False) -> Optional[Trip]:
        query = select(Trip).where(Trip.id == trip_id).execution_options(populate_existing=True)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def delete_trip(self, trip_id: int) -> None:
        await self.db.execute(delete(Trip).where(Trip.id == trip_id))

    async def find_open_trips(self, vehicle_id: int) -> List[Trip]:
        result = await self.db.execute(
            select(Trip).where(
                Trip.vehicle_id == vehicle_id,
                Trip.end_time.is_(None)
            ).order_by(Trip.id)
        )
        return list(result.scalars().all())

    async def update_trip_arrival(self, trip_id: int, arrival_time: datetime) -> bool:
        """
        Mark a trip ARRIVED.

        Conditional on the trip not being ARRIVED already, so a duplicate
        call never re-stamps arrival_time.

        Returns:
            True if the row transitioned
        """
        result = await self.db.execute(
            update(Trip).where(
                Trip.id == trip_id,
                Trip.arrival_status != ArrivalStatus.ARRIVED
            ).values(
                arrival_status=ArrivalStatus.ARRIVED,
                arrival_time=arrival_time
            ).execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    # Daily reports

    async def find_existing_report(self, vehicle_id: int, day: date) -> Optional[DailyReport]:
        result = await self.db.execute(
            select(DailyReport).where(
                DailyReport.vehicle_id == vehicle_id,
                DailyReport.date == day
            ).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def report_days(self, vehicle_id: int, start: date, end: date) -> Set[date]:
        """Days in [start, end] that already have a report."""
        result = await self.db.execute(
            select(DailyReport.date).where(
                DailyReport.vehicle_id == vehicle_id,
                DailyReport.date >= start,
                DailyReport.date <= end
            )
        )
        return set(result.scalars().all())

    async def upsert_daily_report(self, vehicle_id: int, day: date, stats: DailyStats) -> DailyReport:
        """
        Insert or fully replace the report keyed by (vehicle_id, day).

        A single INSERT ... ON CONFLICT DO UPDATE statement, so concurrent
        regenerations of the same day cannot interleave partial writes.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Report upsert not supported on dialect '{dialect}'")

        fields = stats.as_dict()
        stmt = insert(DailyReport).values(vehicle_id=vehicle_id, date=day, **fields)
        stmt = stmt.on_conflict_do_update(
            index_elements=[DailyReport.vehicle_id, DailyReport.date],
            set_={**fields, "updated_at": func.now()}
        )
        await self.db.execute(stmt)

        return await self.find_existing_report(vehicle_id, day)

    async def list_reports(
        self,
        vehicle_ids: Optional[Iterable[int]] = None,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[DailyReport]:
        query = select(DailyReport)
        if vehicle_ids is not None:
            query = query.where(DailyReport.vehicle_id.in_(list(vehicle_ids)))
        if start is not None:
            query = query.where(DailyReport.date >= start)
        if end is not None:
            query = query.where(DailyReport.date <= end)

        result = await self.db.execute(
            query.order_by(DailyReport.date.desc(), DailyReport.vehicle_id.asc())
        )
        return list(result.scalars().all())

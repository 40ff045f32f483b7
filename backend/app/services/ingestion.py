"""
Telemetry Ingestion Service.

One inbound GPS sample: normalize, update live state, store the sample and
detect trip arrivals, all in one transaction under the vehicle's lock.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import VehicleNotFoundError
from backend.app.domain.telemetry.arrival import ArrivalDetector
from backend.app.domain.telemetry.motion import is_stale
from backend.app.domain.telemetry.status_updater import LiveState, VehicleStatusUpdater
from backend.app.models.enums import VehicleStatus
from backend.app.models.telemetry_sample import TelemetrySample
from backend.app.models.vehicle import Vehicle
from backend.app.schemas.telemetry import normalize_gps_payload
from backend.app.services.telemetry_store import TelemetryStore
from backend.app.services.vehicle_locking import VehicleLockRegistry, vehicle_locks

logger = logging.getLogger("fleet_telemetry.ingestion")


@dataclass
class IngestResult:
    sample: TelemetrySample
    vehicle: Vehicle
    stop_interval_closed: bool = False
    arrived_trip_ids: List[int] = field(default_factory=list)


class IngestionService:

    @staticmethod
    async def ingest(
        db: AsyncSession,
        raw: Mapping[str, Any],
        received_at: Optional[datetime] = None,
        locks: Optional[VehicleLockRegistry] = None
    ) -> IngestResult:
        """
        Ingest one raw device payload.

        Args:
            db: Database session (committed here on success)
            raw: JSON body or query parameters
            received_at: Receipt time, the default sample timestamp
            locks: Lock registry override

        Returns:
            IngestResult with the stored sample and updated vehicle

        Raises:
            TelemetryValidationError: missing or invalid payload fields
            VehicleNotFoundError: no vehicle registered for the IMEI
        """
        data = normalize_gps_payload(raw, received_at=received_at)
        reading = data.to_reading()
        store = TelemetryStore(db)

        # 1. Resolve the device
        vehicle = await store.find_vehicle_by_device_id(data.device_imei)
        if vehicle is None:
            logger.info("Rejected sample from unknown device %s", data.device_imei)
            raise VehicleNotFoundError(data.device_imei)

        locks = locks or vehicle_locks
        async with locks.hold(vehicle.id):
            try:
                # 2. Reload under lock so the previous state is the latest committed one
                vehicle = await store.get_vehicle(vehicle.id, for_update=True)
                if vehicle is None:
                    raise VehicleNotFoundError(data.device_imei)

                # 3. Live state transition. Silence past the power-off timeout is
                # settled first, the way a read during the gap would have settled it
                previous = LiveState.from_vehicle(vehicle)
                silent = (
                    previous.status != VehicleStatus.POWERED_OFF
                    and is_stale(previous.last_update, reading.timestamp)
                )
                if silent:
                    previous = VehicleStatusUpdater.power_off(previous)
                update = VehicleStatusUpdater.update(previous, reading)

                # 4. Persist sample, then state
                sample = await store.append_sample(vehicle.id, reading)
                await store.update_vehicle_state(vehicle, update.state)

                # 5. Arrivals against open trips
                open_trips = await store.find_open_trips(vehicle.id)
                arrived = []
                for transition in ArrivalDetector.check(reading.position, open_trips, reading.timestamp):
                    if await store.update_trip_arrival(transition.trip_id, transition.arrival_time):
                        arrived.append(transition.trip_id)
                        logger.info(
                            "Vehicle %s arrived for trip %s (%.3f km from destination)",
                            vehicle.id, transition.trip_id, transition.distance_km
                        )

                await db.commit()
            except Exception:
                await db.rollback()
                raise

        if silent:
            logger.info(
                "Vehicle %s was silent since %s, treated as powered off before sample at %s",
                vehicle.id, previous.last_update, reading.timestamp
            )
        if update.stop_interval_closed:
            logger.info(
                "Vehicle %s resumed moving, stop of %ss closed (total %ss)",
                vehicle.id, update.stopped_seconds_added, update.state.total_stopped_time
            )
        logger.debug("Stored sample %s for vehicle %s status=%s", sample.id, vehicle.id, update.state.status.value)

        return IngestResult(
            sample=sample,
            vehicle=vehicle,
            stop_interval_closed=update.stop_interval_closed,
            arrived_trip_ids=arrived
        )

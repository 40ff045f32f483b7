"""
Live status read path.

POWERED_OFF is derived from silence rather than from a sample, so it is
reconciled lazily when a vehicle is read. Ingestion settles the same
silence against the next sample's timestamp.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.timeutils import utcnow
from backend.app.domain.telemetry.motion import derive_display_status
from backend.app.domain.telemetry.status_updater import LiveState, VehicleStatusUpdater
from backend.app.models.enums import VehicleStatus
from backend.app.models.vehicle import Vehicle
from backend.app.services.telemetry_store import TelemetryStore
from backend.app.services.vehicle_locking import VehicleLockRegistry, vehicle_locks

logger = logging.getLogger("fleet_telemetry.status")


class VehicleStatusService:

    @staticmethod
    async def refresh(
        db: AsyncSession,
        vehicle: Vehicle,
        now: Optional[datetime] = None,
        locks: Optional[VehicleLockRegistry] = None
    ) -> Vehicle:
        """
        Persist POWERED_OFF for a vehicle that has gone silent.

        The staleness check is repeated under the vehicle lock against a
        freshly loaded row, so a sample ingested in between wins.

        Returns:
            The (possibly updated) vehicle
        """
        now = now or utcnow()
        if derive_display_status(vehicle, now) != VehicleStatus.POWERED_OFF or vehicle.status == VehicleStatus.POWERED_OFF:
            return vehicle

        store = TelemetryStore(db)
        locks = locks or vehicle_locks
        async with locks.hold(vehicle.id):
            try:
                current = await store.get_vehicle(vehicle.id, for_update=True)
                if current is None:
                    return vehicle
                if current.status == VehicleStatus.POWERED_OFF or derive_display_status(current, now) != VehicleStatus.POWERED_OFF:
                    await db.commit()
                    return current

                previous = LiveState.from_vehicle(current)
                await store.update_vehicle_state(current, VehicleStatusUpdater.power_off(previous))
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Vehicle %s powered off after silence since %s (was %s)",
            current.id, previous.last_update, previous.status.value
        )
        return current

    @staticmethod
    async def refresh_all(
        db: AsyncSession,
        vehicles: Sequence[Vehicle],
        now: Optional[datetime] = None
    ) -> List[Vehicle]:
        now = now or utcnow()
        return [await VehicleStatusService.refresh(db, vehicle, now) for vehicle in vehicles]

"""
Tests for the read-time POWERED_OFF reconciliation.
"""

from datetime import datetime, timedelta

import pytest

from backend.app.core.timeutils import utcnow
from backend.app.models.enums import VehicleStatus
from backend.app.services.vehicle_status import VehicleStatusService

NOW = datetime(2024, 3, 10, 12, 0, 0)


@pytest.mark.asyncio
async def test_silent_stopped_vehicle_powers_off(db_session, vehicle):
    vehicle.status = VehicleStatus.STOPPED
    vehicle.stopped_at = NOW - timedelta(minutes=20)
    vehicle.last_update = NOW - timedelta(minutes=12)
    vehicle.total_stopped_time = 30
    await db_session.commit()

    refreshed = await VehicleStatusService.refresh(db_session, vehicle, NOW)

    assert refreshed.status == VehicleStatus.POWERED_OFF
    assert refreshed.stopped_at is None
    assert refreshed.total_stopped_time == 30 + 8 * 60


@pytest.mark.asyncio
async def test_recent_vehicle_keeps_status(db_session, vehicle):
    vehicle.status = VehicleStatus.MOVING
    vehicle.last_update = NOW - timedelta(minutes=2)
    await db_session.commit()

    refreshed = await VehicleStatusService.refresh(db_session, vehicle, NOW)

    assert refreshed.status == VehicleStatus.MOVING


@pytest.mark.asyncio
async def test_get_vehicle_reports_display_status(client, vehicle, db_session):
    vehicle.status = VehicleStatus.MOVING
    vehicle.last_update = utcnow() - timedelta(minutes=30)
    await db_session.commit()

    response = await client.get(f"/v1/vehicles/{vehicle.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["display_status"] == VehicleStatus.POWERED_OFF.value
    assert data["status"] == VehicleStatus.POWERED_OFF.value


@pytest.mark.asyncio
async def test_fresh_sample_reads_as_moving(client, vehicle):
    await client.post("/v1/gps", json={
        "deviceImei": vehicle.device_imei, "latitude": 30, "longitude": 31, "speed": 50
    })

    response = await client.get("/v1/vehicles")

    assert response.status_code == 200
    item = response.json()["vehicles"][0]
    assert item["display_status"] == VehicleStatus.MOVING.value
    assert item["last_sample"]["speed"] == 50
    assert response.json()["total"] == 1

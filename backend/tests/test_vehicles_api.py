"""
Integration tests for vehicle and trip management.
"""

import pytest
from sqlalchemy import func, select

from backend.app.models.enums import ArrivalStatus, VehicleStatus
from backend.app.models.telemetry_sample import TelemetrySample
from backend.app.models.trip import Trip


@pytest.mark.asyncio
async def test_create_vehicle_starts_powered_off(client):
    response = await client.post("/v1/vehicles", json={
        "name": "Van 3", "plate_number": "XYZ-9", "device_imei": " 861234567890123 "
    })

    assert response.status_code == 201
    data = response.json()
    assert data["device_imei"] == "861234567890123"
    assert data["status"] == VehicleStatus.POWERED_OFF.value
    assert data["total_stopped_time"] == 0


@pytest.mark.asyncio
async def test_duplicate_imei_conflicts(client, vehicle):
    response = await client.post("/v1/vehicles", json={"name": "Copy", "device_imei": vehicle.device_imei})

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT"


@pytest.mark.asyncio
async def test_missing_vehicle_is_404(client):
    response = await client.get("/v1/vehicles/4242")

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_delete_cascades(client, vehicle, db_session):
    await client.post("/v1/trips", json={"vehicle_id": vehicle.id, "start_time": "2024-03-10T07:00:00"})
    await client.post("/v1/gps", json={
        "deviceImei": vehicle.device_imei, "latitude": 30, "longitude": 31,
        "speed": 20, "timestamp": "2024-03-10T08:00:00"
    })
    await client.get(f"/v1/reports/{vehicle.id}/2024-03-10")

    response = await client.delete(f"/v1/vehicles/{vehicle.id}")

    assert response.status_code == 204
    assert (await client.get(f"/v1/vehicles/{vehicle.id}")).status_code == 404
    samples = (await db_session.execute(select(func.count(TelemetrySample.id)))).scalar()
    trips = (await db_session.execute(select(func.count(Trip.id)))).scalar()
    assert samples == 0
    assert trips == 0


@pytest.mark.asyncio
async def test_trip_without_destination_not_set(client, vehicle):
    response = await client.post("/v1/trips", json={
        "vehicle_id": vehicle.id, "start_time": "2024-03-10T07:00:00+02:00", "notes": "warehouse run"
    })

    assert response.status_code == 201
    data = response.json()
    assert data["arrival_status"] == ArrivalStatus.NOT_SET.value
    assert data["start_time"] == "2024-03-10T05:00:00"


@pytest.mark.asyncio
async def test_trip_for_unknown_vehicle_is_404(client):
    response = await client.post("/v1/trips", json={"vehicle_id": 77, "start_time": "2024-03-10T07:00:00"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_trips_filters(client, vehicle):
    for start in ("2024-03-08T07:00:00", "2024-03-10T07:00:00", "2024-03-12T07:00:00"):
        await client.post("/v1/trips", json={"vehicle_id": vehicle.id, "start_time": start})

    response = await client.get("/v1/trips", params={
        "vehicle_id": vehicle.id, "start_date": "2024-03-09T00:00:00", "end_date": "2024-03-12T23:59:59"
    })

    assert response.status_code == 200
    starts = [t["start_time"] for t in response.json()["trips"]]
    assert starts == ["2024-03-12T07:00:00", "2024-03-10T07:00:00"]


@pytest.mark.asyncio
async def test_update_vehicle_details(client, vehicle):
    await client.post("/v1/gps", json={
        "deviceImei": vehicle.device_imei, "latitude": 30, "longitude": 31,
        "speed": 20, "timestamp": "2024-03-10T08:00:00"
    })

    response = await client.put(f"/v1/vehicles/{vehicle.id}", json={
        "name": "Truck 1B", "driver_phone": "+20 100 000 0000", "plate_number": None, "device_imei": None
    })

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Truck 1B"
    assert data["driver_phone"] == "+20 100 000 0000"
    assert data["plate_number"] is None
    assert data["device_imei"] == vehicle.device_imei
    # Live state is left alone
    assert data["status"] == VehicleStatus.MOVING.value
    assert data["last_latitude"] == 30


@pytest.mark.asyncio
async def test_update_vehicle_imei_conflict(client, vehicle):
    other = await client.post("/v1/vehicles", json={"name": "Van 4", "device_imei": "861234567890124"})

    response = await client.put(f"/v1/vehicles/{other.json()['id']}", json={"device_imei": vehicle.device_imei})

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT"


@pytest.mark.asyncio
async def test_update_missing_vehicle_is_404(client):
    response = await client.put("/v1/vehicles/4242", json={"name": "Ghost"})
    assert response.status_code == 404

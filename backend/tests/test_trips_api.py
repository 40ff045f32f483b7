"""
Integration tests for trip detail, update, deletion and listing totals.
"""

import pytest
from sqlalchemy import func, select

from backend.app.models.enums import ArrivalStatus
from backend.app.models.trip import Trip


async def create_trip(client, vehicle_id, **fields):
    body = {"vehicle_id": vehicle_id, "start_time": "2024-03-10T07:00:00"}
    body.update(fields)
    response = await client.post("/v1/trips", json=body)
    assert response.status_code == 201
    return response.json()


async def send_sample(client, imei, lat, lng, speed, ts):
    response = await client.post("/v1/gps", json={
        "deviceImei": imei, "latitude": lat, "longitude": lng, "speed": speed, "timestamp": ts
    })
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_get_trip_includes_vehicle(client, vehicle):
    trip = await create_trip(client, vehicle.id, destination_lat=30.0, destination_lng=31.0)

    response = await client.get(f"/v1/trips/{trip['id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["arrival_status"] == ArrivalStatus.IN_PROGRESS.value
    assert data["vehicle"]["id"] == vehicle.id
    assert data["vehicle"]["name"] == vehicle.name


@pytest.mark.asyncio
async def test_unknown_trip_is_404(client):
    assert (await client.get("/v1/trips/404")).status_code == 404
    assert (await client.put("/v1/trips/404", json={"notes": "x"})).status_code == 404
    assert (await client.delete("/v1/trips/404")).status_code == 404


@pytest.mark.asyncio
async def test_closed_trip_no_longer_arrives(client, vehicle):
    trip = await create_trip(client, vehicle.id, destination_lat=30.0, destination_lng=31.0)

    closed = await client.put(f"/v1/trips/{trip['id']}", json={"end_time": "2024-03-10T08:30:00"})
    assert closed.status_code == 200
    assert closed.json()["end_time"] == "2024-03-10T08:30:00"

    result = await send_sample(client, vehicle.device_imei, 30.0, 31.0, 10, "2024-03-10T09:00:00")

    assert result["arrived_trip_ids"] == []
    detail = (await client.get(f"/v1/trips/{trip['id']}")).json()
    assert detail["arrival_status"] == ArrivalStatus.IN_PROGRESS.value
    assert detail["arrival_time"] is None


@pytest.mark.asyncio
async def test_arrived_trip_cannot_move_back(client, vehicle):
    trip = await create_trip(client, vehicle.id, destination_lat=30.0, destination_lng=31.0)
    result = await send_sample(client, vehicle.device_imei, 30.0, 31.0, 10, "2024-03-10T09:00:00")
    assert result["arrived_trip_ids"] == [trip["id"]]

    rejected = await client.put(f"/v1/trips/{trip['id']}", json={"arrival_status": "IN_PROGRESS"})

    assert rejected.status_code == 409
    assert rejected.json()["error_code"] == "ERR_TRIP_001"

    # Other fields stay editable and the arrival is kept
    noted = await client.put(f"/v1/trips/{trip['id']}", json={"notes": "delivered", "destination_lat": 30.2})
    assert noted.status_code == 200
    assert noted.json()["arrival_status"] == ArrivalStatus.ARRIVED.value
    assert noted.json()["arrival_time"] == "2024-03-10T09:00:00"
    assert noted.json()["notes"] == "delivered"


@pytest.mark.asyncio
async def test_destination_change_sets_status(client, vehicle):
    trip = await create_trip(client, vehicle.id)
    assert trip["arrival_status"] == ArrivalStatus.NOT_SET.value

    routed = await client.put(f"/v1/trips/{trip['id']}", json={
        "destination_lat": 30.5, "destination_lng": 31.5, "destination_name": "Port"
    })
    assert routed.json()["arrival_status"] == ArrivalStatus.IN_PROGRESS.value

    cleared = await client.put(f"/v1/trips/{trip['id']}", json={"destination_lat": None})
    assert cleared.json()["destination_lat"] is None
    assert cleared.json()["arrival_status"] == ArrivalStatus.NOT_SET.value


@pytest.mark.asyncio
async def test_manual_arrival_is_stamped(client, vehicle):
    trip = await create_trip(client, vehicle.id, destination_lat=30.0, destination_lng=31.0)

    response = await client.put(f"/v1/trips/{trip['id']}", json={"arrival_status": "ARRIVED"})

    assert response.status_code == 200
    assert response.json()["arrival_status"] == ArrivalStatus.ARRIVED.value
    assert response.json()["arrival_time"] is not None


@pytest.mark.asyncio
async def test_update_validation(client, vehicle):
    trip = await create_trip(client, vehicle.id)

    backwards = await client.put(f"/v1/trips/{trip['id']}", json={"end_time": "2024-03-10T06:00:00"})
    other_vehicle = await client.put(f"/v1/trips/{trip['id']}", json={"vehicle_id": 999})
    null_start = await client.put(f"/v1/trips/{trip['id']}", json={"start_time": None, "stops": 3})

    assert backwards.status_code == 400
    assert other_vehicle.status_code == 404
    assert null_start.status_code == 200
    assert null_start.json()["start_time"] == "2024-03-10T07:00:00"
    assert null_start.json()["stops"] == 3


@pytest.mark.asyncio
async def test_delete_trip(client, vehicle, db_session):
    trip = await create_trip(client, vehicle.id)

    response = await client.delete(f"/v1/trips/{trip['id']}")

    assert response.status_code == 204
    count = (await db_session.execute(select(func.count(Trip.id)))).scalar()
    assert count == 0


@pytest.mark.asyncio
async def test_list_trips_totals(client, vehicle):
    await create_trip(client, vehicle.id, distance=12.5, avg_speed=40, stops=2)
    await create_trip(client, vehicle.id, start_time="2024-03-11T07:00:00", distance=7.25, avg_speed=30, stops=1)

    response = await client.get("/v1/trips", params={"vehicle_id": vehicle.id})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["stats"] == {
        "total_distance": 19.75,
        "total_trips": 2,
        "avg_speed": 35.0,
        "total_stops": 3,
    }


@pytest.mark.asyncio
async def test_list_trips_empty_totals(client):
    body = (await client.get("/v1/trips")).json()

    assert body["trips"] == []
    assert body["stats"]["total_trips"] == 0
    assert body["stats"]["avg_speed"] == 0.0

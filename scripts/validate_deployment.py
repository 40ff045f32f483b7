"""
Pre-Deploy and Smoke Test Script.

Runs the application in-process through TestClient against the configured
database and executes a smoke test:
1. Health Check
2. Vehicle Registration
3. Sample Ingestion -> Live Status
4. Daily Report Generation
"""

import sys
import uuid
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from backend.app.main import app


def print_step(step, msg):
    print(f"[{step}] {msg}")


def fail(msg):
    print(f"❌ FAILURE: {msg}")
    sys.exit(1)


def success(msg):
    print(f"✅ {msg}")


def main():
    print("🚀 Starting Deployment Validation...")

    # Entering the context runs the lifespan (table creation)
    with TestClient(app) as client:
        # 1. Health Check
        print_step("PRE-DEPLOY", "Checking /health...")
        response = client.get("/health")
        if response.status_code != 200:
            fail(f"Health check failed: {response.status_code} {response.text}")
        health = response.json()
        if health.get("redis") != "up":
            print("⚠️ Redis unreachable; only the local vehicle lock backend will work")
        success(f"Health: {health}")

        # 2. Register a throwaway vehicle
        print_step("SMOKE", "Registering smoke-test vehicle...")
        imei = f"SMOKE-{uuid.uuid4().hex[:12]}"
        res = client.post("/v1/vehicles", json={"name": "Smoke Test", "device_imei": imei})
        if res.status_code != 201:
            fail(f"Vehicle registration failed: {res.status_code} {res.text}")
        vehicle_id = res.json()["id"]
        success(f"Vehicle {vehicle_id} registered")

        try:
            # 3. Ingest a short drive with a stop
            print_step("SMOKE", "Ingesting samples...")
            start = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(minutes=4)
            drive = [(0, 30.0444, 31.2357, 40), (1, 30.0500, 31.2400, 0), (3, 30.0550, 31.2450, 35)]
            for minute, lat, lng, speed in drive:
                res = client.post("/v1/gps", json={
                    "deviceImei": imei, "lat": lat, "lng": lng, "speed": speed,
                    "timestamp": (start + timedelta(minutes=minute)).isoformat()
                })
                if res.status_code != 201:
                    fail(f"Ingestion failed: {res.status_code} {res.text}")

            vehicle = res.json()["vehicle"]
            if vehicle["status"] != "MOVING" or vehicle["total_stopped_time"] != 120:
                fail(f"Unexpected live state: {vehicle}")
            success(f"Live state OK: {vehicle['status']}, stopped {vehicle['total_stopped_time']}s")

            # 4. Report for the sample day
            print_step("SMOKE", "Generating daily report...")
            day = start.date().isoformat()
            res = client.get(f"/v1/reports/{vehicle_id}/{day}", params={"force": "true"})
            if res.status_code != 200:
                fail(f"Report generation failed: {res.status_code} {res.text}")
            report = res.json()
            if report["number_of_stops"] < 1 or report["total_distance"] <= 0:
                fail(f"Unexpected report: {report}")
            success(f"Report OK: {report['total_distance']} km, {report['number_of_stops']} stops")
        finally:
            client.delete(f"/v1/vehicles/{vehicle_id}")

    success("Deployment Validation Passed!")


if __name__ == "__main__":
    main()

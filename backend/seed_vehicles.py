"""
Database seeding script for demo vehicles.

Registers a few tracked vehicles so devices can start posting to /v1/gps.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.vehicle import Vehicle
from backend.app.models.telemetry_sample import TelemetrySample
from backend.app.models.trip import Trip
from backend.app.models.daily_report import DailyReport
from backend.app.models.enums import VehicleStatus
from sqlalchemy import select

DEMO_VEHICLES = [
    {"name": "Truck 1", "plate_number": "TRK-1001", "device_imei": "356938035643809",
     "driver_name": "Omar Hassan", "driver_phone": "+201000000001"},
    {"name": "Van 2", "plate_number": "VAN-2002", "device_imei": "490154203237518",
     "driver_name": "Lina Adel", "driver_phone": "+201000000002"},
    {"name": "Pickup 3", "plate_number": "PCK-3003", "device_imei": "861234567890123",
     "driver_name": None, "driver_phone": None},
]


async def seed_vehicles():
    """
    Seed demo vehicles.

    Vehicles whose IMEI is already registered are skipped.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting vehicle seeding...")

        created = 0
        for demo in DEMO_VEHICLES:
            result = await db.execute(
                select(Vehicle).where(Vehicle.device_imei == demo["device_imei"])
            )
            if result.scalar_one_or_none():
                print(f"ℹ️  {demo['name']} ({demo['device_imei']}) already exists, skipping")
                continue

            db.add(Vehicle(**demo, status=VehicleStatus.POWERED_OFF, total_stopped_time=0))
            created += 1
            print(f"✅ Created {demo['name']} (IMEI: {demo['device_imei']})")

        await db.commit()

        print(f"\n🎉 Vehicle seeding completed, {created} new vehicles")
        print("\nPost samples with:")
        print('  curl -X POST localhost:8000/v1/gps -H "Content-Type: application/json" \\')
        print('       -d \'{"deviceImei": "356938035643809", "lat": 30.04, "lng": 31.23, "speed": 42}\'')


if __name__ == "__main__":
    asyncio.run(seed_vehicles())

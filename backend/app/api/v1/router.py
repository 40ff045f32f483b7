"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import gps, vehicles, trips, reports, tracking

router = APIRouter()

# Device ingestion
router.include_router(gps.router)

# Fleet registry and live status
router.include_router(vehicles.router)
router.include_router(trips.router)

# History and aggregates
router.include_router(reports.router)
router.include_router(tracking.router)

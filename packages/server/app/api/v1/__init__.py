"""
API v1 Router

Routers call the orchestrator modules in ``app.services`` only.
"""

from fastapi import APIRouter
from . import employments, events, locations, schedules, shifts, timekeeping, workers

router = APIRouter()

router.include_router(workers.router, prefix="/workers", tags=["Workers"])
router.include_router(locations.router, prefix="/locations", tags=["Locations"])
router.include_router(employments.router, prefix="/employments", tags=["Employments"])
router.include_router(shifts.router, prefix="/shifts", tags=["Shifts"])
router.include_router(schedules.router, prefix="/schedules", tags=["Schedules"])
router.include_router(timekeeping.router, prefix="/timekeeping", tags=["Timekeeping"])
router.include_router(events.router, prefix="/events", tags=["Events"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/workers",
            "/locations",
            "/employments",
            "/shifts",
            "/schedules",
            "/timekeeping",
            "/events",
        ],
    }

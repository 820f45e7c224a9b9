from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from core.database import (
    get_active_subscribers,
    get_camera_locations,
    get_stationary_cameras,
)
from core.db.stationary import STATUSES

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/api/camera-locations")
def camera_locations():
    return get_camera_locations()


@router.get("/api/stats")
def stats():
    locations = get_camera_locations()
    return {
        "subscribers": len(get_active_subscribers()),
        "locations_monitored": len(locations),
        "last_update": locations[0]["last_updated"] if locations else None,
    }


@router.get("/api/stationary-cameras")
def stationary_cameras(status: str | None = Query(default=None)):
    if status and status not in STATUSES:
        return JSONResponse({"error": f"status must be one of {', '.join(STATUSES)}"}, status_code=400)
    return get_stationary_cameras(status=status)

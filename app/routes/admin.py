import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from app.security import allow_request, client_key
from worker.history import backfill_missing_coordinates

router = APIRouter(prefix="/api")
log = logging.getLogger("app.admin")


def _orchestrator(request: Request):
    return request.app.state.orchestrator


@router.post("/refresh-locations")
async def refresh_locations(request: Request):
    """Run a scrape-reconcile-notify cycle now."""
    if not allow_request(client_key(request, "refresh")):
        return JSONResponse({"error": "Too many refresh requests. Try again later."}, status_code=429)

    result = await _orchestrator(request).run_cycle()
    return {
        "message": "Camera locations refreshed" if result.changed else "No changes detected",
        "result": result.as_dict(),
    }


@router.get("/notifications/status")
def notification_status(request: Request):
    return _orchestrator(request).status()


@router.post("/notifications/send")
async def send_notifications(request: Request, force: bool = Query(default=False)):
    if not allow_request(client_key(request, "notify")):
        return JSONResponse({"error": "Too many notification requests. Try again later."}, status_code=429)

    result = await _orchestrator(request).send_notifications(force=force)
    return result.as_dict()


@router.post("/update-coordinates")
async def update_coordinates(request: Request):
    report = await backfill_missing_coordinates(_orchestrator(request).geocoder)
    log.info("Coordinate backfill finished", extra={"updated": report["updated"]})
    return {"message": "Coordinates updated", **report}

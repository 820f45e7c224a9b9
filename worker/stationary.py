"""
Fixed red-light cameras: seed and geocode once.
"""
from __future__ import annotations

import logging
from typing import Dict

from core.database import get_stationary_cameras, seed_stationary_cameras, update_stationary_camera

log = logging.getLogger("worker.stationary")


async def populate_stationary_cameras(geocoder) -> Dict:
    """
    Make sure the seeded cameras exist, then geocode those still without
    coordinates. Cameras that already have coordinates are never re-queried.
    """
    seed_stationary_cameras()

    geocoded = 0
    failed = []
    cameras = get_stationary_cameras()
    for cam in cameras:
        if cam.get("latitude") is not None and cam.get("longitude") is not None:
            continue
        result = await geocoder.geocode(cam["address"])
        if not result:
            log.warning("Failed to geocode stationary camera", extra={"address": cam["address"]})
            failed.append(cam["address"])
            continue
        update_stationary_camera(cam["id"], {"latitude": result.latitude, "longitude": result.longitude})
        geocoded += 1

    log.info("Stationary cameras populated", extra={"total": len(cameras), "geocoded": geocoded})
    return {"total": len(cameras), "geocoded": geocoded, "failed": failed}


__all__ = ["populate_stationary_cameras"]

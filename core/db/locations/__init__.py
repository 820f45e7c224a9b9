"""
Current-week snapshot re-exports.

camera_locations holds exactly what the last successful scrape produced and is
only ever replaced as a whole.
"""
from core.db.locations.locations_store import (
    clear_camera_locations,
    get_camera_locations,
    replace_camera_locations,
)

__all__ = [
    "clear_camera_locations",
    "get_camera_locations",
    "replace_camera_locations",
]

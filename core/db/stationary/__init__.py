"""
Stationary (red-light) camera storage re-exports.
"""
from core.db.stationary.stationary_store import (
    STATUSES,
    create_stationary_camera,
    get_stationary_cameras,
    update_stationary_camera,
)

__all__ = [
    "STATUSES",
    "create_stationary_camera",
    "get_stationary_cameras",
    "update_stationary_camera",
]

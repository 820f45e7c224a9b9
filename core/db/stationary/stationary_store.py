"""
Stationary camera storage helpers.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.db.base import get_conn

STATUSES = ("active", "inactive", "unconfirmed")

_UPDATABLE = {"description", "schedule", "latitude", "longitude", "status", "install_date"}


def get_stationary_cameras(status: Optional[str] = None) -> List[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    sql = """
        SELECT id, address, type, description, schedule, latitude, longitude,
               status, install_date, created_at
        FROM stationary_cameras
    """
    if status:
        sql += " WHERE status = ?"
        cur.execute(sql + " ORDER BY id", (status,))
    else:
        cur.execute(sql + " ORDER BY id")
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def create_stationary_camera(camera: Dict) -> int:
    status = camera.get("status") or "active"
    if status not in STATUSES:
        raise ValueError(f"Unknown stationary camera status: {status}")

    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO stationary_cameras
          (address, type, description, schedule, latitude, longitude, status, install_date, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        RETURNING id
        """,
        (
            camera["address"],
            camera.get("type") or "red_light",
            camera.get("description"),
            camera.get("schedule"),
            camera.get("latitude"),
            camera.get("longitude"),
            status,
            camera.get("install_date"),
            datetime.now(timezone.utc).isoformat(timespec="seconds"),
        ),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return int(row["id"]) if row else 0


def update_stationary_camera(camera_id: int, updates: Dict) -> bool:
    fields = {k: v for k, v in updates.items() if k in _UPDATABLE}
    if not fields:
        return False
    if "status" in fields and fields["status"] not in STATUSES:
        raise ValueError(f"Unknown stationary camera status: {fields['status']}")

    assignments = ", ".join(f"{col} = ?" for col in fields)
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"UPDATE stationary_cameras SET {assignments} WHERE id = ?",
        (*fields.values(), camera_id),
    )
    updated = cur.rowcount
    conn.commit()
    conn.close()
    return updated > 0


__all__ = [
    "STATUSES",
    "create_stationary_camera",
    "get_stationary_cameras",
    "update_stationary_camera",
]

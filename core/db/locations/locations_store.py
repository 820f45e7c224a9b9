"""
Camera location snapshot storage helpers.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List

from core.db.base import get_conn


def get_camera_locations() -> List[Dict]:
    """Return the current snapshot in insertion order."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, address, type, description, schedule, last_updated
        FROM camera_locations
        ORDER BY id
        """
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def clear_camera_locations(cur) -> int:
    cur.execute("DELETE FROM camera_locations")
    return cur.rowcount or 0


def replace_camera_locations(cur, locations: Iterable[Dict], updated_at: str | None = None) -> int:
    """
    Clear the snapshot and bulk insert `locations` using the caller's cursor.
    The caller owns the transaction so readers never see an empty table.
    """
    stamp = updated_at or datetime.now(timezone.utc).isoformat(timespec="seconds")
    rows = [
        (
            loc["address"],
            loc.get("type") or "mobile",
            loc.get("description"),
            loc.get("schedule"),
            stamp,
        )
        for loc in locations
    ]

    removed = clear_camera_locations(cur)
    if rows:
        cur.executemany(
            """
            INSERT INTO camera_locations (address, type, description, schedule, last_updated)
            VALUES (?, ?, ?, ?, ?)
            """,
            rows,
        )
    print(f"[db] replace_camera_locations: removed={removed}, inserted={len(rows)}")
    return len(rows)


__all__ = [
    "clear_camera_locations",
    "get_camera_locations",
    "replace_camera_locations",
]

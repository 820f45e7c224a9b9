"""
Deployment history storage helpers.

"Open" is derived from `end_date IS NULL` only; rows handed back to callers
carry an `is_active` key computed from it, never stored.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.db.base import get_conn

_COLUMNS = """
    id, address, type, description, schedule, latitude, longitude,
    start_date, end_date, week_of_year, scraped_at
"""

_UPDATABLE = {
    "address",
    "type",
    "description",
    "schedule",
    "latitude",
    "longitude",
    "start_date",
    "end_date",
    "week_of_year",
}


def _to_dict(row) -> Dict:
    d = dict(row)
    d["is_active"] = d.get("end_date") is None
    return d


def _select(where: str = "", params: tuple = ()) -> List[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    sql = f"SELECT {_COLUMNS} FROM camera_deployments"
    if where:
        sql += f" WHERE {where}"
    sql += " ORDER BY start_date DESC, id DESC"
    cur.execute(sql, params)
    rows = cur.fetchall()
    conn.close()
    return [_to_dict(r) for r in rows]


def get_all_deployments() -> List[Dict]:
    """Return every deployment row, newest first."""
    return _select()


def get_current_deployments() -> List[Dict]:
    """Return open deployments (no end date)."""
    return _select("end_date IS NULL")


def get_historical_deployments() -> List[Dict]:
    """Return closed deployments."""
    return _select("end_date IS NOT NULL")


def get_deployments_by_week(week_of_year: str) -> List[Dict]:
    return _select("week_of_year = ?", (week_of_year,))


def get_deployments_by_date_range(start_date: str, end_date: str) -> List[Dict]:
    """
    Return deployments whose active span overlaps [start_date, end_date].
    Dates are ISO `YYYY-MM-DD` strings, so text comparison orders them.
    """
    return _select(
        "start_date <= ? AND (end_date IS NULL OR end_date >= ?)",
        (end_date, start_date),
    )


def get_deployments_missing_coordinates() -> List[Dict]:
    return _select("latitude IS NULL OR longitude IS NULL")


def insert_deployment(cur, deployment: Dict) -> int:
    """Insert one deployment row using the caller's cursor (no commit)."""
    scraped_at = deployment.get("scraped_at") or datetime.now(timezone.utc).isoformat(timespec="seconds")
    cur.execute(
        """
        INSERT INTO camera_deployments
          (address, type, description, schedule, latitude, longitude,
           start_date, end_date, week_of_year, scraped_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        RETURNING id
        """,
        (
            deployment["address"],
            deployment.get("type") or "mobile",
            deployment.get("description"),
            deployment.get("schedule"),
            deployment.get("latitude"),
            deployment.get("longitude"),
            deployment["start_date"],
            deployment.get("end_date"),
            deployment.get("week_of_year"),
            scraped_at,
        ),
    )
    row = cur.fetchone()
    return int(row["id"]) if row else 0


def close_open_deployments(cur, end_date: str) -> int:
    """Close every open deployment using the caller's cursor. Returns rows closed."""
    cur.execute(
        "UPDATE camera_deployments SET end_date = ? WHERE end_date IS NULL",
        (end_date,),
    )
    return cur.rowcount or 0


def create_deployment(deployment: Dict) -> int:
    conn = get_conn()
    cur = conn.cursor()
    new_id = insert_deployment(cur, deployment)
    conn.commit()
    conn.close()
    return new_id


def update_deployment(deployment_id: int, updates: Dict) -> bool:
    """Update whitelisted columns of one deployment. Returns True if a row changed."""
    fields = {k: v for k, v in updates.items() if k in _UPDATABLE}
    if not fields:
        return False

    assignments = ", ".join(f"{col} = ?" for col in fields)
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        f"UPDATE camera_deployments SET {assignments} WHERE id = ?",
        (*fields.values(), deployment_id),
    )
    updated = cur.rowcount
    conn.commit()
    conn.close()
    return updated > 0


def delete_deployment(deployment_id: int) -> bool:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("DELETE FROM camera_deployments WHERE id = ?", (deployment_id,))
    deleted = cur.rowcount
    conn.commit()
    conn.close()
    return deleted > 0


def count_deployments_scraped_since(since_iso: str) -> int:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "SELECT COUNT(*) AS count FROM camera_deployments WHERE scraped_at >= ? AND end_date IS NULL",
        (since_iso,),
    )
    row = cur.fetchone()
    conn.close()
    return int(row["count"]) if row else 0


def get_deployment(deployment_id: int) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM camera_deployments WHERE id = ?", (deployment_id,))
    row = cur.fetchone()
    conn.close()
    return _to_dict(row) if row else None


__all__ = [
    "close_open_deployments",
    "count_deployments_scraped_since",
    "create_deployment",
    "delete_deployment",
    "get_all_deployments",
    "get_current_deployments",
    "get_deployment",
    "get_deployments_by_date_range",
    "get_deployments_by_week",
    "get_deployments_missing_coordinates",
    "get_historical_deployments",
    "insert_deployment",
    "update_deployment",
]

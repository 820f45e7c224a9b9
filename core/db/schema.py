"""
Schema helpers for Postgres and sqlite.
"""
from __future__ import annotations

from datetime import datetime, timezone

from core.db.base import get_conn

# --- Fixed red-light cameras published by the city (not part of the weekly rotation) ---
DEFAULT_STATIONARY_CAMERAS = [
    {
        "address": "Harrison Street & 35th Street",
        "description": "Red light camera for southbound (SB) traffic.",
        "schedule": "24/7",
        "status": "active",
    },
    {
        "address": "Brady Street & Kimberly Road",
        "description": "Red light camera for northbound (NB) traffic.",
        "schedule": "24/7",
        "status": "active",
    },
    {
        "address": "Kimberly Road & Brady Street",
        "description": "Red light camera for eastbound (EB) traffic.",
        "schedule": "24/7",
        "status": "active",
    },
    {
        "address": "Welcome Way & Kimberly Road",
        "description": "Red light camera for southbound (SB) traffic.",
        "schedule": "24/7",
        "status": "active",
    },
    {
        "address": "Locust Street & Lincoln Avenue",
        "description": "Red light camera for eastbound (EB) and westbound (WB) traffic.",
        "schedule": "Not provided",
        "status": "unconfirmed",
    },
]

_TABLES = [
    """
    CREATE TABLE IF NOT EXISTS camera_deployments(
        id {pk},
        address TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'mobile',
        description TEXT,
        schedule TEXT,
        latitude DOUBLE PRECISION,
        longitude DOUBLE PRECISION,
        start_date TEXT NOT NULL,
        end_date TEXT,
        week_of_year TEXT,
        scraped_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS camera_locations(
        id {pk},
        address TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'mobile',
        description TEXT,
        schedule TEXT,
        last_updated TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS stationary_cameras(
        id {pk},
        address TEXT NOT NULL UNIQUE,
        type TEXT NOT NULL DEFAULT 'red_light',
        description TEXT,
        schedule TEXT,
        latitude DOUBLE PRECISION,
        longitude DOUBLE PRECISION,
        status TEXT NOT NULL DEFAULT 'active',
        install_date TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS subscribers(
        id {pk},
        email TEXT NOT NULL UNIQUE,
        phone TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        notification_preferences TEXT NOT NULL DEFAULT '[]',
        fcm_token TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications(
        id {pk},
        subscriber_id INTEGER NOT NULL,
        channel TEXT NOT NULL DEFAULT 'email',
        subject TEXT NOT NULL,
        content TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'sent',
        error TEXT,
        sent_at TEXT NOT NULL,
        FOREIGN KEY(subscriber_id) REFERENCES subscribers(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notification_state(
        key TEXT PRIMARY KEY,
        value TEXT,
        updated_at TEXT NOT NULL
    )
    """,
]

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_deployments_end_date ON camera_deployments(end_date)",
    "CREATE INDEX IF NOT EXISTS idx_deployments_week ON camera_deployments(week_of_year)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_subscriber ON notifications(subscriber_id)",
]


def _primary_key(dialect: str) -> str:
    if dialect == "sqlite":
        return "INTEGER PRIMARY KEY AUTOINCREMENT"
    return "SERIAL PRIMARY KEY"


def init_db() -> None:
    """Create every table the pipeline uses if it doesn't exist, then seed fixed cameras."""
    conn = get_conn()
    cur = conn.cursor()
    pk = _primary_key(conn.dialect)

    for ddl in _TABLES:
        cur.execute(ddl.format(pk=pk))
    for ddl in _INDEXES:
        cur.execute(ddl)

    conn.commit()
    conn.close()

    seed_stationary_cameras()


def seed_stationary_cameras() -> None:
    """Insert DEFAULT_STATIONARY_CAMERAS into stationary_cameras (idempotent)."""
    conn = get_conn()
    cur = conn.cursor()
    now = datetime.now(timezone.utc).isoformat(timespec="seconds")

    for cam in DEFAULT_STATIONARY_CAMERAS:
        cur.execute(
            """
            INSERT INTO stationary_cameras (address, type, description, schedule, status, created_at)
            VALUES (?, 'red_light', ?, ?, ?, ?)
            ON CONFLICT (address) DO NOTHING
            """,
            (cam["address"], cam.get("description"), cam.get("schedule"), cam.get("status") or "active", now),
        )

    conn.commit()
    conn.close()


__all__ = [
    "DEFAULT_STATIONARY_CAMERAS",
    "init_db",
    "seed_stationary_cameras",
]

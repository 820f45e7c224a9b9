"""
Subscriber storage helpers (data-level only).

Subscribers are managed elsewhere; the pipeline only reads them, plus the
handful of writers below used by scripts and tests.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from core.db.base import get_conn

LOCATION_CHANGES = "location_changes"


def _to_dict(row) -> Dict:
    d = dict(row)
    raw = d.get("notification_preferences") or "[]"
    try:
        prefs = json.loads(raw)
    except (TypeError, ValueError):
        prefs = []
    d["notification_preferences"] = prefs if isinstance(prefs, list) else []
    d["is_active"] = bool(d.get("is_active"))
    return d


def add_subscriber(
    email: str,
    preferences: Iterable[str] = (LOCATION_CHANGES,),
    fcm_token: str | None = None,
    phone: str | None = None,
    active: bool = True,
) -> int:
    """Add a subscriber and return its id."""
    conn = get_conn()
    cur = conn.cursor()
    now = datetime.now(timezone.utc).isoformat(timespec="seconds")
    email_normalized = (email or "").strip().lower()

    cur.execute(
        """
        INSERT INTO subscribers (email, phone, is_active, notification_preferences, fcm_token, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        RETURNING id
        """,
        (email_normalized, phone, int(active), json.dumps(list(preferences)), fcm_token, now),
    )
    row = cur.fetchone()
    sub_id = int(row["id"]) if row else 0

    conn.commit()
    conn.close()
    return sub_id


def get_subscriber_by_email(email: str) -> Optional[Dict]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, email, phone, is_active, notification_preferences, fcm_token, created_at
        FROM subscribers
        WHERE email = ?
        """,
        ((email or "").strip().lower(),),
    )
    row = cur.fetchone()
    conn.close()
    return _to_dict(row) if row else None


def get_active_subscribers() -> List[Dict]:
    """Return all active subscribers as a list of dicts."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, email, phone, is_active, notification_preferences, fcm_token, created_at
        FROM subscribers
        WHERE is_active = 1
        ORDER BY id
        """
    )
    rows = cur.fetchall()
    conn.close()
    return [_to_dict(r) for r in rows]


def get_eligible_subscribers(preference: str = LOCATION_CHANGES) -> List[Dict]:
    """Active subscribers whose preferences include `preference`."""
    return [s for s in get_active_subscribers() if preference in s["notification_preferences"]]


def set_fcm_token(subscriber_id: int, fcm_token: str | None) -> bool:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("UPDATE subscribers SET fcm_token = ? WHERE id = ?", (fcm_token, subscriber_id))
    updated = cur.rowcount
    conn.commit()
    conn.close()
    return updated > 0


def deactivate_subscriber(subscriber_id: int) -> None:
    """Mark a subscriber as inactive (unsubscribe)."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("UPDATE subscribers SET is_active = 0 WHERE id = ?", (subscriber_id,))
    conn.commit()
    conn.close()


__all__ = [
    "LOCATION_CHANGES",
    "add_subscriber",
    "deactivate_subscriber",
    "get_active_subscribers",
    "get_eligible_subscribers",
    "get_subscriber_by_email",
    "set_fcm_token",
]

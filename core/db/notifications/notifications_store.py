"""
Notification audit + state store.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.db.base import get_conn

LAST_NOTIFIED_KEY = "last_notified_at"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def create_notification_record(
    *,
    subscriber_id: int,
    channel: str,
    subject: str,
    content: str,
    status: str,
    error: str | None = None,
    sent_at: str | None = None,
) -> int:
    """Insert one audit row for a single delivery attempt."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO notifications (subscriber_id, channel, subject, content, status, error, sent_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        RETURNING id
        """,
        (
            subscriber_id,
            channel,
            subject,
            content,
            status,
            f"{error}".strip()[:500] if error else None,
            sent_at or _now_iso(),
        ),
    )
    row = cur.fetchone()
    conn.commit()
    conn.close()
    return int(row["id"]) if row else 0


def get_notifications_for_subscriber(subscriber_id: int, limit: int = 200) -> List[Dict]:
    """Return audit rows for a subscriber, newest first."""
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, subscriber_id, channel, subject, content, status, error, sent_at
        FROM notifications
        WHERE subscriber_id = ?
        ORDER BY sent_at DESC, id DESC
        LIMIT ?
        """,
        (subscriber_id, int(limit)),
    )
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def count_notifications_since(since_iso: str, status: str = "sent") -> int:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        "SELECT COUNT(*) AS count FROM notifications WHERE sent_at >= ? AND status = ?",
        (since_iso, status),
    )
    row = cur.fetchone()
    conn.close()
    return int(row["count"]) if row else 0


def get_state(key: str) -> Optional[str]:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute("SELECT value FROM notification_state WHERE key = ?", (key,))
    row = cur.fetchone()
    conn.close()
    return row["value"] if row else None


def set_state(key: str, value: str | None) -> None:
    conn = get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO notification_state (key, value, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT (key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """,
        (key, value, _now_iso()),
    )
    conn.commit()
    conn.close()


def get_last_notified_at() -> Optional[datetime]:
    raw = get_state(LAST_NOTIFIED_KEY)
    if not raw:
        return None
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def set_last_notified_at(when: datetime) -> None:
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    set_state(LAST_NOTIFIED_KEY, when.isoformat(timespec="seconds"))


__all__ = [
    "LAST_NOTIFIED_KEY",
    "count_notifications_since",
    "create_notification_record",
    "get_last_notified_at",
    "get_notifications_for_subscriber",
    "get_state",
    "set_last_notified_at",
    "set_state",
]

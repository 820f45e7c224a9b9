"""
Notification audit trail and dispatch state.

Every delivery attempt (email or push, success or failure) gets its own row in
`notifications`. The cooldown clock lives in `notification_state` so restarts
and extra instances see the same last-notified time.
"""
from core.db.notifications.notifications_store import (
    LAST_NOTIFIED_KEY,
    count_notifications_since,
    create_notification_record,
    get_last_notified_at,
    get_notifications_for_subscriber,
    get_state,
    set_last_notified_at,
    set_state,
)

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

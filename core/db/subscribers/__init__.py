"""
Subscriber storage re-exports.
"""
from core.db.subscribers.subscribers_store import (
    LOCATION_CHANGES,
    add_subscriber,
    deactivate_subscriber,
    get_active_subscribers,
    get_eligible_subscribers,
    get_subscriber_by_email,
    set_fcm_token,
)

__all__ = [
    "LOCATION_CHANGES",
    "add_subscriber",
    "deactivate_subscriber",
    "get_active_subscribers",
    "get_eligible_subscribers",
    "get_subscriber_by_email",
    "set_fcm_token",
]

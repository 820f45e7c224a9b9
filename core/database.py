"""
Single import surface for the persistence layer.

Workers and routes import from here so tests can monkeypatch one name per
module without caring which store implements it.
"""
from core.db.base import get_conn, transaction
from core.db.schema import init_db, seed_stationary_cameras
from core.db.deployments import (
    close_open_deployments,
    count_deployments_scraped_since,
    create_deployment,
    delete_deployment,
    get_all_deployments,
    get_current_deployments,
    get_deployment,
    get_deployments_by_date_range,
    get_deployments_by_week,
    get_deployments_missing_coordinates,
    get_historical_deployments,
    insert_deployment,
    update_deployment,
)
from core.db.locations import (
    clear_camera_locations,
    get_camera_locations,
    replace_camera_locations,
)
from core.db.notifications import (
    count_notifications_since,
    create_notification_record,
    get_last_notified_at,
    get_notifications_for_subscriber,
    set_last_notified_at,
)
from core.db.stationary import (
    create_stationary_camera,
    get_stationary_cameras,
    update_stationary_camera,
)
from core.db.subscribers import (
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
    "clear_camera_locations",
    "close_open_deployments",
    "count_deployments_scraped_since",
    "count_notifications_since",
    "create_deployment",
    "create_notification_record",
    "create_stationary_camera",
    "deactivate_subscriber",
    "delete_deployment",
    "get_active_subscribers",
    "get_all_deployments",
    "get_camera_locations",
    "get_conn",
    "get_current_deployments",
    "get_deployment",
    "get_deployments_by_date_range",
    "get_deployments_by_week",
    "get_deployments_missing_coordinates",
    "get_eligible_subscribers",
    "get_historical_deployments",
    "get_last_notified_at",
    "get_notifications_for_subscriber",
    "get_stationary_cameras",
    "get_subscriber_by_email",
    "init_db",
    "insert_deployment",
    "replace_camera_locations",
    "seed_stationary_cameras",
    "set_fcm_token",
    "set_last_notified_at",
    "transaction",
    "update_deployment",
    "update_stationary_camera",
]

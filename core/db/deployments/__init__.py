"""
Deployment history re-exports.

A deployment is one camera's time-bounded stay at an address. A row is open
while its end_date is NULL; closed rows form the week-by-week history.
"""
from core.db.deployments.deployments_store import (
    close_open_deployments,
    count_deployments_scraped_since,
    create_deployment,
    delete_deployment,
    get_all_deployments,
    get_deployment,
    get_current_deployments,
    get_deployments_by_date_range,
    get_deployments_by_week,
    get_deployments_missing_coordinates,
    get_historical_deployments,
    insert_deployment,
    update_deployment,
)

__all__ = [
    "close_open_deployments",
    "count_deployments_scraped_since",
    "create_deployment",
    "delete_deployment",
    "get_all_deployments",
    "get_deployment",
    "get_current_deployments",
    "get_deployments_by_date_range",
    "get_deployments_by_week",
    "get_deployments_missing_coordinates",
    "get_historical_deployments",
    "insert_deployment",
    "update_deployment",
]

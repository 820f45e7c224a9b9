"""
Turn a confirmed-changed canonical list into deployment history.

Each detected change is treated as a full-week replacement:
  1. close every open deployment (end_date = today)
  2. insert one open deployment per distinct address, tagged with the ISO week
  3. replace the camera_locations snapshot with the canonical list

Steps 1-3 run in a single transaction. Geocoding happens before it opens so
no connection is held across provider calls.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence

from core.database import (
    close_open_deployments,
    insert_deployment,
    replace_camera_locations,
    transaction,
)
from core.errors import PersistenceError
from worker.address_parser import normalize_address
from worker.davenport_engine import MOBILE, ScrapedLocation

log = logging.getLogger("worker.reconciler")


@dataclass
class ReconcileResult:
    closed: int
    opened: int
    snapshot_rows: int
    geocoded: int
    missing_coordinates: int
    week_of_year: str
    deployment_ids: List[int]


def week_label(day: date) -> str:
    """ISO week label, e.g. date(2025, 6, 2) -> "2025-W23"."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def _merge(values: Sequence[str]) -> str:
    return "; ".join(dict.fromkeys(v for v in values if v))


def group_by_address(locations: Sequence[ScrapedLocation]) -> List[Dict]:
    """
    One entry per normalized address, in first-seen order. An address scheduled
    on several days keeps every schedule (joined with "; ") so it still gets a
    single open deployment.
    """
    grouped: Dict[str, Dict] = {}
    for loc in locations:
        key = normalize_address(loc.address)
        entry = grouped.setdefault(
            key,
            {"address": loc.address, "type": loc.type or MOBILE, "descriptions": [], "schedules": []},
        )
        entry["descriptions"].append(loc.description)
        entry["schedules"].append(loc.schedule)

    return [
        {
            "address": e["address"],
            "type": e["type"],
            "description": _merge(e["descriptions"]),
            "schedule": _merge(e["schedules"]),
        }
        for e in grouped.values()
    ]


def build_deployment_rows(groups: Sequence[Dict], coordinates: Dict[str, Optional[tuple]], now: datetime) -> List[Dict]:
    today = now.date().isoformat()
    week = week_label(now.date())
    scraped_at = now.isoformat(timespec="seconds")
    rows = []
    for g in groups:
        coords = coordinates.get(normalize_address(g["address"]))
        rows.append(
            {
                **g,
                "latitude": coords[0] if coords else None,
                "longitude": coords[1] if coords else None,
                "start_date": today,
                "end_date": None,
                "week_of_year": week,
                "scraped_at": scraped_at,
            }
        )
    return rows


async def reconcile(locations: Sequence[ScrapedLocation], geocoder, now: datetime | None = None) -> ReconcileResult:
    """
    Apply a changed canonical list. Raises PersistenceError (after rollback)
    if any write fails; geocode misses only leave coordinates empty.
    """
    if not locations:
        raise ValueError("reconcile() needs a non-empty canonical list")
    now = now or datetime.now(timezone.utc)

    groups = group_by_address(locations)

    # sequential on purpose: the geocoder's limiter paces provider calls
    coordinates: Dict[str, Optional[tuple]] = {}
    for g in groups:
        result = await geocoder.geocode(g["address"])
        coordinates[normalize_address(g["address"])] = (result.latitude, result.longitude) if result else None

    rows = build_deployment_rows(groups, coordinates, now)
    today = now.date().isoformat()

    try:
        with transaction() as cur:
            closed = close_open_deployments(cur, today)
            ids = [insert_deployment(cur, row) for row in rows]
            snapshot = replace_camera_locations(
                cur,
                [loc.as_dict() for loc in locations],
                updated_at=now.isoformat(timespec="seconds"),
            )
    except Exception as exc:
        log.error("Reconciliation rolled back", extra={"error": str(exc)})
        raise PersistenceError("Reconciliation transaction failed", cause=exc) from exc

    geocoded = sum(1 for c in coordinates.values() if c)
    result = ReconcileResult(
        closed=closed,
        opened=len(ids),
        snapshot_rows=snapshot,
        geocoded=geocoded,
        missing_coordinates=len(rows) - geocoded,
        week_of_year=week_label(now.date()),
        deployment_ids=ids,
    )
    log.info(
        "Reconciled deployments",
        extra={"closed": closed, "opened": result.opened, "week": result.week_of_year},
    )
    return result


__all__ = [
    "ReconcileResult",
    "build_deployment_rows",
    "group_by_address",
    "reconcile",
    "week_label",
]

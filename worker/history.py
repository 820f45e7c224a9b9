"""
History maintenance: coordinate backfill, combined-address splitting and
historical imports. All of these only ever write closed rows or fill in
coordinates; none of them open a deployment.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List

from core.database import (
    get_all_deployments,
    get_deployments_missing_coordinates,
    insert_deployment,
    transaction,
    update_deployment,
)
from core.errors import PersistenceError
from worker.address_parser import is_combined_address, split_addresses
from worker.davenport_engine import MOBILE
from worker.reconciler import week_label

log = logging.getLogger("worker.history")


def _week_for(start_date: str) -> str:
    return week_label(date.fromisoformat(start_date[:10]))


async def backfill_missing_coordinates(geocoder) -> Dict:
    """Re-geocode every deployment with a null latitude or longitude."""
    rows = get_deployments_missing_coordinates()
    log.info("Deployments needing coordinates", extra={"count": len(rows)})

    updated = 0
    unresolved: List[Dict] = []
    for row in rows:
        result = await geocoder.geocode(row["address"])
        if not result:
            unresolved.append({"id": row["id"], "address": row["address"]})
            continue
        if update_deployment(row["id"], {"latitude": result.latitude, "longitude": result.longitude}):
            updated += 1

    return {"checked": len(rows), "updated": updated, "unresolved": unresolved}


async def split_combined_records(geocoder) -> Dict:
    """
    Replace each closed row whose address packs several locations
    ("A & B – C") with one closed row per location, keeping its dates.
    """
    combined = [
        r for r in get_all_deployments()
        if r.get("end_date") is not None and is_combined_address(r["address"])
    ]

    processed = 0
    created = 0
    for record in combined:
        parts = split_addresses(record["address"])
        new_rows = []
        for address in parts:
            result = await geocoder.geocode(address)
            new_rows.append(
                {
                    "address": address,
                    "type": record.get("type") or MOBILE,
                    "description": f"Split from: {record['address']}",
                    "schedule": record.get("schedule"),
                    "latitude": result.latitude if result else None,
                    "longitude": result.longitude if result else None,
                    "start_date": record["start_date"],
                    "end_date": record["end_date"],
                    "week_of_year": record.get("week_of_year") or _week_for(record["start_date"]),
                    "scraped_at": record.get("scraped_at"),
                }
            )

        try:
            with transaction() as cur:
                for row in new_rows:
                    insert_deployment(cur, row)
                cur.execute("DELETE FROM camera_deployments WHERE id = ?", (record["id"],))
        except Exception as exc:
            raise PersistenceError("Failed to split combined record", cause=exc, deployment_id=record["id"]) from exc

        processed += 1
        created += len(new_rows)
        log.info("Split combined record", extra={"deployment_id": record["id"], "parts": len(new_rows)})

    return {"processed": processed, "created": created}


async def import_historical_records(records: Iterable[Dict], geocoder) -> Dict:
    """
    Import closed historical deployments. Each record needs address and
    start_date; end_date defaults to start_date. Combined addresses are split.
    """
    rows = []
    split = 0
    for record in records:
        address = (record.get("address") or "").strip()
        start_date = (record.get("start_date") or "").strip()
        if not address or not start_date:
            raise ValueError(f"Historical record needs address and start_date: {record!r}")
        end_date = record.get("end_date") or start_date
        week = _week_for(start_date)

        parts = split_addresses(address)
        if len(parts) > 1:
            split += 1
        for part in parts:
            result = await geocoder.geocode(part)
            rows.append(
                {
                    "address": part,
                    "type": record.get("type") or MOBILE,
                    "description": record.get("description") or "Historical mobile camera deployment",
                    "schedule": record.get("schedule"),
                    "latitude": result.latitude if result else None,
                    "longitude": result.longitude if result else None,
                    "start_date": start_date,
                    "end_date": end_date,
                    "week_of_year": week,
                }
            )

    try:
        with transaction() as cur:
            for row in rows:
                insert_deployment(cur, row)
    except Exception as exc:
        raise PersistenceError("Historical import failed", cause=exc) from exc

    log.info("Imported historical records", extra={"imported": len(rows), "split": split})
    return {"imported": len(rows), "split": split}


__all__ = [
    "backfill_missing_coordinates",
    "import_historical_records",
    "split_combined_records",
]

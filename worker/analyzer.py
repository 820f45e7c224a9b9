"""
Deployment integrity report plus the duplicate cleanup.

The report is read-only. Cleanup keeps the newest row (by start_date, id as
tiebreak) per normalized address and deletes the rest; delete failures are
collected per row and never abort the batch.
"""
from __future__ import annotations

import logging
import math
from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, Iterable, List

from core.database import delete_deployment, get_all_deployments, get_current_deployments
from worker.address_parser import normalize_address

log = logging.getLogger("worker.analyzer")

SCOPES = ("all", "closed")


def _is_open(row: Dict) -> bool:
    return row.get("end_date") is None


def _missing(value) -> bool:
    if value is None:
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


def group_rows(rows: Iterable[Dict]) -> "OrderedDict[str, List[Dict]]":
    groups: "OrderedDict[str, List[Dict]]" = OrderedDict()
    for row in rows:
        groups.setdefault(normalize_address(row.get("address")), []).append(row)
    return groups


def _newest_first(rows: List[Dict]) -> List[Dict]:
    return sorted(rows, key=lambda r: (r.get("start_date") or "", r.get("id") or 0), reverse=True)


def analyze_deployments(rows: List[Dict], current_active: int | None = None) -> Dict:
    groups = group_rows(rows)

    duplicates = [
        {
            "address": address,
            "count": len(members),
            "deployments": [
                {
                    "id": d["id"],
                    "start_date": d.get("start_date"),
                    "end_date": d.get("end_date"),
                    "is_active": _is_open(d),
                    "week_of_year": d.get("week_of_year"),
                }
                for d in members
            ],
        }
        for address, members in groups.items()
        if len(members) > 1
    ]

    overlapping = []
    for address, members in groups.items():
        open_rows = [d for d in members if _is_open(d)]
        if len(open_rows) > 1:
            overlapping.append({"address": address, "active_deployments": open_rows})

    missing = [
        {
            "id": d["id"],
            "address": d.get("address"),
            "start_date": d.get("start_date"),
            "latitude": d.get("latitude"),
            "longitude": d.get("longitude"),
        }
        for d in rows
        if _missing(d.get("latitude")) or _missing(d.get("longitude"))
    ]

    if current_active is None:
        current_active = sum(1 for d in rows if _is_open(d))

    return {
        "total_deployments": len(rows),
        "current_active_deployments": current_active,
        "unique_addresses": len(groups),
        "duplicate_addresses": duplicates,
        "missing_coordinates": missing,
        "overlapping_active": overlapping,
        "summary": {
            "has_duplicates": bool(duplicates),
            "has_overlapping_active": bool(overlapping),
            "missing_coordinates_count": len(missing),
        },
    }


def analyze() -> Dict:
    """Report over the live deployment table."""
    return analyze_deployments(get_all_deployments(), current_active=len(get_current_deployments()))


@dataclass
class CleanupPlan:
    keep: List[Dict] = field(default_factory=list)
    delete: List[Dict] = field(default_factory=list)


def plan_cleanup(rows: Iterable[Dict], scope: str = "all") -> CleanupPlan:
    """
    Decide which rows to delete. scope="closed" only looks at rows with an
    end date, so open deployments are never touched.
    """
    if scope not in SCOPES:
        raise ValueError(f"scope must be one of {SCOPES}, got {scope!r}")
    if scope == "closed":
        rows = [r for r in rows if not _is_open(r)]

    plan = CleanupPlan()
    for members in group_rows(rows).values():
        ordered = _newest_first(members)
        plan.keep.append(ordered[0])
        plan.delete.extend(ordered[1:])
    return plan


@dataclass
class CleanupReport:
    scope: str
    removed: int = 0
    kept: int = 0
    failures: List[Dict] = field(default_factory=list)

    @property
    def message(self) -> str:
        text = f"Cleanup ({self.scope}) completed. Removed {self.removed} duplicates, kept {self.kept} unique deployments."
        if self.failures:
            text += f" {len(self.failures)} deletion(s) failed."
        return text

    def as_dict(self) -> Dict:
        data = asdict(self)
        data["message"] = self.message
        return data


def cleanup_duplicates(
    scope: str = "all",
    rows: List[Dict] | None = None,
    delete: Callable[[int], bool] | None = None,
) -> CleanupReport:
    if rows is None:
        rows = get_all_deployments()
    delete = delete or delete_deployment

    plan = plan_cleanup(rows, scope)
    report = CleanupReport(scope=scope, kept=len(plan.keep))

    for row in plan.delete:
        try:
            if delete(int(row["id"])):
                report.removed += 1
            else:
                report.failures.append({"id": row["id"], "error": "row not found"})
        except Exception as e:
            log.error("Failed to delete duplicate", extra={"deployment_id": row["id"], "error": str(e)})
            report.failures.append({"id": row["id"], "error": str(e)})

    log.info(report.message)
    return report


__all__ = [
    "CleanupPlan",
    "CleanupReport",
    "SCOPES",
    "analyze",
    "analyze_deployments",
    "cleanup_duplicates",
    "group_rows",
    "plan_cleanup",
]

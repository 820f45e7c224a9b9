from datetime import date

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from core.database import (
    get_all_deployments,
    get_current_deployments,
    get_deployments_by_date_range,
    get_deployments_by_week,
    get_historical_deployments,
)
from worker.analyzer import SCOPES, analyze, cleanup_duplicates

router = APIRouter(prefix="/api/deployments")


def _valid_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return True


@router.get("")
def all_deployments():
    return get_all_deployments()


@router.get("/current")
def current_deployments():
    return get_current_deployments()


@router.get("/historical")
def historical_deployments():
    return get_historical_deployments()


@router.get("/range")
def deployments_in_range(start_date: str = Query(...), end_date: str = Query(...)):
    if not (_valid_iso_date(start_date) and _valid_iso_date(end_date)):
        return JSONResponse({"error": "start_date and end_date must be YYYY-MM-DD"}, status_code=400)
    if start_date > end_date:
        return JSONResponse({"error": "start_date must not be after end_date"}, status_code=400)
    return get_deployments_by_date_range(start_date, end_date)


@router.get("/week/{week_of_year}")
def deployments_for_week(week_of_year: str):
    return get_deployments_by_week(week_of_year)


@router.get("/analyze")
def analyze_deployments():
    return analyze()


@router.post("/cleanup")
def cleanup(scope: str = Query(default="all")):
    if scope not in SCOPES:
        return JSONResponse({"error": f"scope must be one of {', '.join(SCOPES)}"}, status_code=400)
    return cleanup_duplicates(scope).as_dict()

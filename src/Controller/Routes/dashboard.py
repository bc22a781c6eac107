# src/Controller/Routes/dashboard.py

"""
Admin Dashboard REST API

Endpoints (admin role only, 403 otherwise):
- GET /dashboard/daily    Journeys with their worker, by local day/region
- GET /dashboard/monthly  Per-day aggregates of a month (YYYY-MM)

Days are calendar days of the journey time zone (America/Bogota by
default). Output is JSON only.
"""

import datetime as dt
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from src.Controller.deps import get_DB, get_clock, require_admin, AuthenticatedWorker
from src.Core.clock import Clock
from src.Schemas import report as report_schema
from src.Services import journey_reports

router = APIRouter()


@router.get("/daily", response_model=report_schema.DailySummary_response)
def daily_summary(
    day: Optional[dt.date] = Query(None, alias="date", description="Local day (YYYY-MM-DD)"),
    region: Optional[str] = Query(None, description="Risaralda, Caldas or Quindío"),
    page: int = Query(1),
    limit: int = Query(10),
    db: Session = Depends(get_DB),
    clock: Clock = Depends(get_clock),
    _admin: AuthenticatedWorker = Depends(require_admin)
):
    """
    Example:
        GET /dashboard/daily?date=2025-03-10&region=Caldas&page=1&limit=10
    """
    return journey_reports.daily_summary(
        db, day=day, region=region, page=page, limit=limit, clock=clock
    )


@router.get("/monthly", response_model=report_schema.MonthlySummary_response)
def monthly_summary(
    month: Optional[str] = Query(None, description="Month in YYYY-MM format (required)"),
    region: Optional[str] = Query(None),
    db: Session = Depends(get_DB),
    clock: Clock = Depends(get_clock),
    _admin: AuthenticatedWorker = Depends(require_admin)
):
    """
    Missing or malformed ``month`` answers 400.

    Example:
        GET /dashboard/monthly?month=2025-03
    """
    return journey_reports.monthly_summary(db, month, region=region, clock=clock)

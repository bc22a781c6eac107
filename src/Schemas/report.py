# src/Schemas/report.py
from pydantic import BaseModel, Field
import datetime as dt
from typing import List, Optional


# ============================================
# DAILY SUMMARY
# ============================================
class DailySummary_row(BaseModel):
    """One journey of the daily summary, joined with its worker."""
    name: str
    email: str
    region: str
    role: str
    date: dt.date = Field(..., description="Local start day in the journey time zone")
    distance_km: float
    average_speed: float
    state: str


class DailySummary_filters(BaseModel):
    region: Optional[str] = None
    date: Optional[dt.date] = None


class DailySummary_response(BaseModel):
    """
    Paginated daily summary.

    Used by:
    - GET /dashboard/daily
    """
    filters: DailySummary_filters
    total: int
    total_pages: int
    page: int
    limit: int
    summary: List[DailySummary_row]


# ============================================
# MONTHLY SUMMARY
# ============================================
class MonthlySummary_day(BaseModel):
    """Per-day aggregate of all journeys started that local day."""
    date: dt.date
    total_journeys: int
    average_speed_day: float = Field(..., description="Mean of journey average speeds, 2 decimals")
    max_speed_day: float = Field(..., description="Highest journey max speed of the day")


class MonthlySummary_response(BaseModel):
    """
    Month summary bucketed by local day.

    Used by:
    - GET /dashboard/monthly
    """
    month: str
    region: Optional[str] = None
    summary: List[MonthlySummary_day]

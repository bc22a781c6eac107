# src/Services/journey_reports.py
"""
Journey Reports - admin dashboard summaries.

Responsibilities:
- Daily summary: one row per journey with its worker, optional local-day
  and region filters, paginated
- Monthly summary: journeys of a month bucketed by local start day

Days and months are calendar units of the journey time zone
(JOURNEY_TIMEZONE), converted to UTC bounds before querying. Speeds and
distances go through the same round_half_up() as every journey projection.
"""

import math
from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from src.Core.clock import Clock, as_utc, clock as default_clock
from src.Core.errors import ValidationError
from src.Models.worker import REGIONS
from src.Repositories.journey import (
    get_journeys_with_workers_in_range,
    count_journeys_in_range,
)
from src.Schemas.report import (
    DailySummary_row,
    DailySummary_filters,
    DailySummary_response,
    MonthlySummary_day,
    MonthlySummary_response,
)
from src.Services.journey_service import MAX_PAGE_SIZE
from src.Services.telemetry_aggregator import round_half_up


def _check_region(region: Optional[str]):
    if region and region not in REGIONS:
        raise ValidationError(f"Región inválida: {region}")


def _local_midnight_utc(day: date, clock: Clock) -> datetime:
    return as_utc(datetime.combine(day, time.min, tzinfo=clock.tz))


def parse_month(month: Optional[str]) -> date:
    """
    Parse 'YYYY-MM' into the first day of that month.

    Raises:
        ValidationError: missing or malformed month
    """
    if not month:
        raise ValidationError("Debe proporcionar el mes en formato YYYY-MM")
    try:
        parsed = datetime.strptime(month, "%Y-%m")
    except ValueError:
        raise ValidationError("Debe proporcionar el mes en formato YYYY-MM")
    return parsed.date()


def daily_summary(
    db: Session,
    day: Optional[date] = None,
    region: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    clock: Clock = default_clock
) -> DailySummary_response:
    """
    Journeys joined with their worker, newest first.

    Args:
        day: Local calendar day of the journey start; None for all days
        region: Worker region filter
        page / limit: 1-based pagination
    """
    _check_region(region)
    if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"page >= 1 y 1 <= limit <= {MAX_PAGE_SIZE}")

    start = end = None
    if day is not None:
        start = _local_midnight_utc(day, clock)
        end = _local_midnight_utc(day + timedelta(days=1), clock)

    total = count_journeys_in_range(db, start, end, region)
    pairs = get_journeys_with_workers_in_range(
        db, start, end, region, skip=(page - 1) * limit, limit=limit
    )

    rows = [
        DailySummary_row(
            name=worker.name,
            email=worker.email,
            region=worker.region,
            role=worker.role,
            date=clock.to_local(journey.started_at).date(),
            distance_km=round_half_up(journey.distance_km),
            average_speed=round_half_up(journey.average_speed),
            state=journey.state,
        )
        for journey, worker in pairs
    ]

    return DailySummary_response(
        filters=DailySummary_filters(region=region, date=day),
        total=total,
        total_pages=math.ceil(total / limit),
        page=page,
        limit=limit,
        summary=rows,
    )


def monthly_summary(
    db: Session,
    month: Optional[str],
    region: Optional[str] = None,
    clock: Clock = default_clock
) -> MonthlySummary_response:
    """
    Per local day of ``month``: journey count, mean of the journeys'
    average speeds (2 decimals) and highest max speed. Days without
    journeys are omitted; days are ordered ascending.
    """
    _check_region(region)
    first_day = parse_month(month)
    if first_day.month == 12:
        next_month = first_day.replace(year=first_day.year + 1, month=1)
    else:
        next_month = first_day.replace(month=first_day.month + 1)

    pairs = get_journeys_with_workers_in_range(
        db,
        _local_midnight_utc(first_day, clock),
        _local_midnight_utc(next_month, clock),
        region,
    )

    buckets = OrderedDict()
    for journey, _worker in sorted(pairs, key=lambda pair: (pair[0].started_at, pair[0].id)):
        local_day = clock.to_local(journey.started_at).date()
        bucket = buckets.setdefault(local_day, {'averages': [], 'max': 0.0})
        bucket['averages'].append(journey.average_speed)
        bucket['max'] = max(bucket['max'], journey.max_speed)

    summary = [
        MonthlySummary_day(
            date=local_day,
            total_journeys=len(bucket['averages']),
            average_speed_day=round_half_up(sum(bucket['averages']) / len(bucket['averages'])),
            max_speed_day=bucket['max'],
        )
        for local_day, bucket in buckets.items()
    ]

    print(f"[REPORTS] Monthly summary {month} (region: {region or 'all'}): {len(summary)} day(s)")
    return MonthlySummary_response(month=month, region=region, summary=summary)

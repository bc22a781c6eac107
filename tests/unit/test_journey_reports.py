"""
Journey Reports Unit Tests

src/Services/journey_reports.py daily and monthly summaries, bucketed by
Bogota calendar day.
"""

from datetime import date, datetime, timezone

import pytest

from src.Core.clock import FixedClock
from src.Core.errors import ValidationError
from src.Schemas.journey import Sample_create
from src.Services import journey_reports, journey_service


def run_journey(db, worker_id, started_at, speeds):
    """Open a journey at ``started_at`` with the given speeds, then close it."""
    clock = FixedClock(started_at, "America/Bogota")
    first, rest = speeds[0], speeds[1:]
    journey_service.start_journey(
        db, worker_id, Sample_create(speed=first, position={"lat": 4.81, "lng": -75.69}), clock=clock
    )
    for speed in rest:
        journey_service.append_sample(
            db, worker_id, Sample_create(speed=speed, position={"lat": 4.82, "lng": -75.68}), clock=clock
        )
    return journey_service.finalize_journey(db, worker_id, clock=clock)


@pytest.fixture
def report_data(db, make_worker):
    make_worker("W-001", region="Risaralda")
    make_worker("W-002", role="inspector", region="Caldas", transport="carro")

    # 2025-03-10 09:00 Bogota
    run_journey(db, "W-001", datetime(2025, 3, 10, 14, 0, tzinfo=timezone.utc), [20, 30])
    # 2025-03-10 18:00 Bogota
    run_journey(db, "W-002", datetime(2025, 3, 10, 23, 0, tzinfo=timezone.utc), [40])
    # 2025-03-11 08:00 Bogota
    run_journey(db, "W-001", datetime(2025, 3, 11, 13, 0, tzinfo=timezone.utc), [12.5, 15])
    # 2025-04-01 08:00 Bogota
    run_journey(db, "W-002", datetime(2025, 4, 1, 13, 0, tzinfo=timezone.utc), [50])


class TestDailySummary:

    def test_filters_by_local_day(self, db, clock, report_data):
        result = journey_reports.daily_summary(db, day=date(2025, 3, 10), clock=clock)

        assert result.total == 2
        assert {row.email for row in result.summary} == {"w-001@example.com", "w-002@example.com"}
        assert all(row.date == date(2025, 3, 10) for row in result.summary)

    def test_late_evening_counts_for_local_day(self, db, clock, report_data):
        """23:00 UTC on the 10th is still the 10th in Bogota"""
        result = journey_reports.daily_summary(db, day=date(2025, 3, 10), region="Caldas", clock=clock)

        assert result.total == 1
        row = result.summary[0]
        assert row.role == "inspector"
        assert row.average_speed == 40
        assert row.state == "finalized"

    def test_pagination(self, db, clock, report_data):
        result = journey_reports.daily_summary(db, page=2, limit=3, clock=clock)

        assert result.total == 4
        assert result.total_pages == 2
        assert len(result.summary) == 1
        assert result.filters.date is None

    def test_invalid_region(self, db, clock):
        with pytest.raises(ValidationError):
            journey_reports.daily_summary(db, region="Antioquia", clock=clock)


class TestMonthlySummary:

    def test_per_day_buckets(self, db, clock, report_data):
        result = journey_reports.monthly_summary(db, "2025-03", clock=clock)

        assert result.month == "2025-03"
        assert [d.date for d in result.summary] == [date(2025, 3, 10), date(2025, 3, 11)]

        tenth, eleventh = result.summary
        assert tenth.total_journeys == 2
        assert tenth.average_speed_day == 32.5   # mean of 25 and 40
        assert tenth.max_speed_day == 40
        assert eleventh.total_journeys == 1
        assert eleventh.average_speed_day == 13.75
        assert eleventh.max_speed_day == 15

    def test_region_filter(self, db, clock, report_data):
        result = journey_reports.monthly_summary(db, "2025-03", region="Risaralda", clock=clock)

        assert [d.total_journeys for d in result.summary] == [1, 1]
        assert result.region == "Risaralda"

    def test_december_rolls_over(self, db, clock, report_data):
        result = journey_reports.monthly_summary(db, "2025-12", clock=clock)
        assert result.summary == []

    @pytest.mark.parametrize("month", [None, "", "2025", "2025-13", "marzo"])
    def test_month_required(self, db, clock, month):
        with pytest.raises(ValidationError):
            journey_reports.monthly_summary(db, month, clock=clock)

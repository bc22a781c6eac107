"""
Clock Unit Tests

src/Core/clock.py
"""

from datetime import datetime, timedelta, timezone

from src.Core.clock import Clock, FixedClock, as_utc


class TestAsUtc:

    def test_none_passes_through(self):
        assert as_utc(None) is None

    def test_naive_is_interpreted_as_utc(self):
        value = as_utc(datetime(2025, 3, 10, 15, 0))
        assert value == datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)
        assert value.tzinfo == timezone.utc

    def test_aware_is_converted(self):
        bogota = timezone(timedelta(hours=-5))
        value = as_utc(datetime(2025, 3, 10, 10, 0, tzinfo=bogota))
        assert value == datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)


class TestClock:

    def test_now_is_aware_utc(self):
        assert Clock("America/Bogota").now().tzinfo == timezone.utc

    def test_local_hour(self):
        clock = Clock("America/Bogota")
        assert clock.local_hour(datetime(2025, 3, 10, 23, 30, tzinfo=timezone.utc)) == 18
        assert clock.local_hour(datetime(2025, 3, 11, 0, 0, tzinfo=timezone.utc)) == 19

    def test_local_date_crosses_utc_midnight(self):
        clock = Clock("America/Bogota")
        local = clock.to_local(datetime(2025, 3, 11, 3, 0, tzinfo=timezone.utc))
        assert local.date().isoformat() == "2025-03-10"


class TestFixedClock:

    def test_frozen_and_advance(self):
        clock = FixedClock(datetime(2025, 3, 10, 15, 0))
        assert clock.now() == datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)

        clock.advance(timedelta(minutes=5))
        assert clock.now() == datetime(2025, 3, 10, 15, 5, tzinfo=timezone.utc)

    def test_set(self):
        clock = FixedClock(datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc))
        clock.set(datetime(2025, 3, 11, 0, 0, tzinfo=timezone.utc))
        assert clock.local_hour() == 19

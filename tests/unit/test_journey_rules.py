"""
Journey Rules Unit Tests

src/Services/journey_rules.py auto-finalize and guarded start decisions
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from src.Core.clock import FixedClock
from src.Services.journey_rules import JourneyRules

# 10:00 in Bogota
NOW = datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)


def sample(seconds_ago, speed, now=NOW):
    return SimpleNamespace(timestamp=now - timedelta(seconds=seconds_ago), speed=speed)


@pytest.fixture
def rules():
    return JourneyRules(idle_window_s=300, idle_speed_kmh=1.0, cutoff_hour=19, start_speed_kmh=10.0)


@pytest.fixture
def bogota():
    return FixedClock(NOW, "America/Bogota")


class TestInactivity:

    def test_all_still_in_window_finalizes(self, rules, bogota):
        samples = [sample(240, 0.5), sample(120, 1.0), sample(0, 0)]
        decision = rules.check_auto_finalize(samples, NOW, bogota)

        assert decision['finalize'] is True
        assert decision['window_count'] == 3
        assert decision['reason'].startswith('Inactive')

    def test_one_moving_sample_keeps_open(self, rules, bogota):
        samples = [sample(240, 0.5), sample(120, 25), sample(0, 0)]
        decision = rules.check_auto_finalize(samples, NOW, bogota)

        assert decision['finalize'] is False

    def test_samples_outside_window_are_ignored(self, rules, bogota):
        samples = [sample(600, 40), sample(301, 35), sample(10, 0.2)]
        decision = rules.check_auto_finalize(samples, NOW, bogota)

        assert decision['finalize'] is True
        assert decision['window_count'] == 1

    def test_window_start_is_inclusive(self, rules, bogota):
        samples = [sample(300, 40), sample(0, 0)]
        decision = rules.check_auto_finalize(samples, NOW, bogota)

        assert decision['finalize'] is False
        assert decision['window_count'] == 2

    def test_empty_window_does_not_finalize(self, rules, bogota):
        samples = [sample(900, 0), sample(600, 0)]
        decision = rules.check_auto_finalize(samples, NOW, bogota)

        assert decision['finalize'] is False
        assert decision['window_count'] == 0

    def test_naive_timestamps_are_treated_as_utc(self, rules, bogota):
        naive = SimpleNamespace(timestamp=(NOW - timedelta(seconds=30)).replace(tzinfo=None), speed=0.0)
        decision = rules.check_auto_finalize([naive], NOW, bogota)

        assert decision['finalize'] is True


class TestCutoffHour:

    def test_at_cutoff_hour_finalizes(self, rules):
        now = datetime(2025, 3, 11, 0, 0, tzinfo=timezone.utc)  # 19:00 Bogota
        clock = FixedClock(now, "America/Bogota")
        decision = rules.check_auto_finalize([sample(0, 45, now)], now, clock)

        assert decision['finalize'] is True
        assert 'End of working day' in decision['reason']

    def test_before_cutoff_hour_keeps_open(self, rules):
        now = datetime(2025, 3, 10, 23, 59, tzinfo=timezone.utc)  # 18:59 Bogota
        clock = FixedClock(now, "America/Bogota")
        decision = rules.check_auto_finalize([sample(0, 45, now)], now, clock)

        assert decision['finalize'] is False

    def test_cutoff_uses_configured_zone_not_utc(self, rules):
        now = datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc)  # 15:00 Bogota
        clock = FixedClock(now, "America/Bogota")
        decision = rules.check_auto_finalize([sample(0, 45, now)], now, clock)

        assert decision['finalize'] is False


class TestCanStart:

    @pytest.mark.parametrize("speed,expected", [
        (0, False),
        (5, False),
        (10, False),
        (10.01, True),
        (60, True),
    ])
    def test_start_speed_threshold(self, rules, speed, expected):
        assert rules.can_start(speed) is expected

"""
src/Core/clock.py
==================
Clock Collaborator
==================

Supplies "now" to the journey core and converts it to the wall-clock hour
of the configured zone (America/Bogota by default). The clock is injected
into every service call and exposed as a FastAPI dependency, so tests can
pin time without patching ``datetime``.

All datetimes handed out are timezone-aware UTC. ``as_utc()`` normalizes
values read back from storage: some drivers (SQLite) return naive
datetimes, which this project always writes as UTC.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from src.Core.config import settings


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Return ``value`` as an aware UTC datetime.

    Naive values are interpreted as UTC (the storage convention); aware
    values are converted. ``None`` passes through.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock:
    """
    System clock bound to a configured time zone.

    Attributes:
        tz: ZoneInfo used for local hour and local date computations
    """

    def __init__(self, tz_name: Optional[str] = None):
        self.tz = ZoneInfo(tz_name or settings.JOURNEY_TIMEZONE)

    def now(self) -> datetime:
        """Current instant as an aware UTC datetime."""
        return datetime.now(timezone.utc)

    def to_local(self, value: datetime) -> datetime:
        """Convert an instant to the configured zone."""
        return as_utc(value).astimezone(self.tz)

    def local_hour(self, value: Optional[datetime] = None) -> int:
        """
        Hour of day (0-23) of ``value`` (default: now) in the configured zone.

        Example:
            >>> clock = Clock("America/Bogota")
            >>> clock.local_hour(datetime(2025, 3, 10, 23, 30, tzinfo=timezone.utc))
            18
        """
        if value is None:
            value = self.now()
        return self.to_local(value).hour


class FixedClock(Clock):
    """
    Clock frozen at a given instant; ``advance()`` moves it forward.

    Used by tests and by replay tooling that must evaluate the
    auto-finalize rule at a historical moment.
    """

    def __init__(self, current: datetime, tz_name: Optional[str] = None):
        super().__init__(tz_name)
        self.current = as_utc(current)

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime):
        self.current = as_utc(current)

    def advance(self, delta):
        self.current = self.current + delta


# ============================================================
# GLOBAL CLOCK INSTANCE
# ============================================================
clock = Clock()

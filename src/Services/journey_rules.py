# src/Services/journey_rules.py
"""
Journey Rules - decisions the state machine takes on every sample.

Responsibilities:
- Decide whether an appended sample closes the journey (auto-finalize)
- Decide whether a guarded start may open a journey
- Return structured decisions; the journey service executes them

Auto-finalize (evaluated synchronously after every accepted append):
1. Window = samples with timestamp >= now - JOURNEY_IDLE_WINDOW_S
2. Window non-empty and every speed <= JOURNEY_IDLE_SPEED_KMH? → finalize
3. Local hour of now (JOURNEY_TIMEZONE) >= JOURNEY_CUTOFF_HOUR? → finalize

The window is a time window, not a count window: however many samples fall
inside it, all of them must be still.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence

from src.Core.clock import Clock, as_utc
from src.Core.config import settings


class JourneyRules:
    """
    Thresholds for the journey state machine, loaded from settings.
    """

    def __init__(
        self,
        idle_window_s: Optional[int] = None,
        idle_speed_kmh: Optional[float] = None,
        cutoff_hour: Optional[int] = None,
        start_speed_kmh: Optional[float] = None,
    ):
        self.idle_window = timedelta(
            seconds=settings.JOURNEY_IDLE_WINDOW_S if idle_window_s is None else idle_window_s
        )
        self.idle_speed_kmh = settings.JOURNEY_IDLE_SPEED_KMH if idle_speed_kmh is None else idle_speed_kmh
        self.cutoff_hour = settings.JOURNEY_CUTOFF_HOUR if cutoff_hour is None else cutoff_hour
        self.start_speed_kmh = settings.JOURNEY_START_SPEED_KMH if start_speed_kmh is None else start_speed_kmh

        print(f"[JOURNEY_RULES] Initialized with thresholds:")
        print(f"[JOURNEY_RULES]   - Idle window: {self.idle_window.total_seconds():.0f} s "
              f"at <= {self.idle_speed_kmh} km/h")
        print(f"[JOURNEY_RULES]   - Cutoff hour: {self.cutoff_hour}:00 local")
        print(f"[JOURNEY_RULES]   - Guarded start: > {self.start_speed_kmh} km/h")

    # ==========================================================
    # AUTO-FINALIZE
    # ==========================================================

    def check_auto_finalize(
        self,
        samples: Sequence[Any],
        now: datetime,
        clock: Clock
    ) -> Dict[str, Any]:
        """
        Evaluate the auto-finalize rule for a journey.

        Args:
            samples: Ordered journey samples (with ``timestamp`` and ``speed``),
                     the sample just appended included
            now: Current instant (aware UTC)
            clock: Clock used to get the local hour of ``now``

        Returns:
            dict with keys:
                - finalize: bool
                - reason: human readable explanation
                - window_count: samples inside the idle window
        """
        now = as_utc(now)
        window_start = now - self.idle_window
        window = [s for s in samples if as_utc(s.timestamp) >= window_start]

        if window and all(s.speed <= self.idle_speed_kmh for s in window):
            return {
                'finalize': True,
                'reason': f'Inactive: {len(window)} sample(s) in the last '
                          f'{self.idle_window.total_seconds() / 60:.0f} min at <= '
                          f'{self.idle_speed_kmh} km/h',
                'window_count': len(window),
            }

        local_hour = clock.local_hour(now)
        if local_hour >= self.cutoff_hour:
            return {
                'finalize': True,
                'reason': f'End of working day: local hour {local_hour} >= {self.cutoff_hour}',
                'window_count': len(window),
            }

        return {
            'finalize': False,
            'reason': f'Moving ({len(window)} sample(s) in window)',
            'window_count': len(window),
        }

    # ==========================================================
    # GUARDED START
    # ==========================================================

    def can_start(self, speed: float) -> bool:
        """A guarded start opens a journey only above the start speed."""
        return speed > self.start_speed_kmh


# ==========================================================
# SINGLETON INSTANCE
# ==========================================================

journey_rules = JourneyRules()

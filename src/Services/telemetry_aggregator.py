# src/Services/telemetry_aggregator.py
"""
Telemetry Aggregator - distance, average and maximum speed of a journey.

Responsibilities:
- Advance the aggregates by one appended sample (advance_stats)
- Rebuild the aggregates from the full sample sequence (aggregate)
- Provide the single rounding rule used for every speed/distance output

Both paths share the same arithmetic in the same order, so replaying the
stored samples from empty state reproduces the stored values exactly:
    aggregate(samples) == advance_stats(...advance_stats(EMPTY, s1)..., sn)

Samples are any objects exposing ``speed``, ``lat`` and ``lng`` (ORM
``JourneySample`` rows in production, plain objects in tests).
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence, Protocol

from src.Services.distance import great_circle_km


class SamplePoint(Protocol):
    speed: float
    lat: float
    lng: float


@dataclass(frozen=True)
class TelemetryStats:
    """
    Aggregates derived from a journey's samples.

    Attributes:
        distance_km: Sum of haversine segments (unrounded accumulator)
        average_speed: Mean speed in km/h, rounded with round_half_up()
        max_speed: Maximum speed in km/h (0.0 with no samples)
    """
    distance_km: float = 0.0
    average_speed: float = 0.0
    max_speed: float = 0.0


EMPTY_STATS = TelemetryStats()


def round_half_up(value: float, places: int = 2) -> float:
    """
    Round half away from zero on the shortest decimal form of ``value``.

    ``Decimal(str(value))`` is used instead of the binary value, so 2.675
    rounds to 2.68 (the built-in ``round`` gives 2.67).

    Examples:
        >>> round_half_up(17.5)
        17.5
        >>> round_half_up(2.675)
        2.68
        >>> round_half_up(-1.005)
        -1.01
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _mean_speed(samples: Sequence[SamplePoint]) -> float:
    if not samples:
        return 0.0
    total = 0.0
    for sample in samples:
        total += sample.speed
    return round_half_up(total / len(samples))


def advance_stats(current: TelemetryStats, samples: Sequence[SamplePoint]) -> TelemetryStats:
    """
    Aggregates after the last element of ``samples`` was appended.

    Args:
        current: Aggregates before the append (over samples[:-1])
        samples: Full ordered sample sequence, new sample last

    Returns:
        TelemetryStats: Updated aggregates

    Rules:
        - n == 1: no distance increment (no previous point)
        - n >= 2: distance += great_circle_km(samples[-2], samples[-1])
        - average_speed: mean of every speed, recomputed
        - max_speed: max(previous max, new speed)
    """
    if not samples:
        return current

    new = samples[-1]
    distance_km = current.distance_km
    if len(samples) > 1:
        prev = samples[-2]
        distance_km = distance_km + great_circle_km(prev.lat, prev.lng, new.lat, new.lng)

    return TelemetryStats(
        distance_km=distance_km,
        average_speed=_mean_speed(samples),
        max_speed=max(current.max_speed, new.speed),
    )


def aggregate(samples: Sequence[SamplePoint]) -> TelemetryStats:
    """
    Replay the whole sequence from empty state.

    Used to verify stored aggregates and to rebuild them after repairs.
    """
    stats = EMPTY_STATS
    for n in range(1, len(samples) + 1):
        stats = advance_stats(stats, samples[:n])
    return stats

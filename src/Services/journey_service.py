# src/Services/journey_service.py
"""
Journey Service
===============
Ciclo de vida de una jornada: apertura, registro de muestras, cierre manual
y cierre automático.

Architecture:
- Input: worker id + validated sample (Sample_create) + injected Clock
- Output: ORM Journey (projected with to_journey_get() at the HTTP edge)
- Every mutation runs under the worker's lock (worker_locks.hold) and
  re-reads the open journey with a row lock; no journey is cached
- One commit per operation: sample + aggregates + state change together

State machine:
    (none) --start--> active --first append--> in_progress
    active / in_progress --finalize or auto-finalize--> finalized

Functions:
- validate_sample(): reject malformed telemetry before touching storage
- start_journey(): open a journey, optionally with a first sample
- start_journey_guarded(): open only when moving faster than the start speed
- append_sample(): add a sample, update aggregates, evaluate auto-finalize
- finalize_journey(): close the open journey
- get_open_journey() / get_journey() / list_journeys(): read side
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from src.Core import log_ws
from src.Core.clock import Clock, as_utc, clock as default_clock
from src.Core.errors import ConflictError, NotFoundError, ValidationError
from src.Models.journey import Journey, JourneyState
from src.Models.journey_sample import JourneySample
from src.Repositories.journey import (
    create_journey,
    find_open_journey,
    save_journey,
    get_journey_by_id,
    get_journeys_by_worker,
    count_journeys_by_worker,
)
from src.Repositories.worker import get_worker_by_id
from src.Schemas.journey import Journey_get, Journey_detail, Sample_get, Sample_create
from src.Services.journey_rules import journey_rules
from src.Services.telemetry_aggregator import TelemetryStats, advance_stats, round_half_up
from src.Services.worker_locks import worker_locks


MAX_PAGE_SIZE = 100

NO_OPEN_JOURNEY_MESSAGE = "No tienes una jornada activa"
OPEN_JOURNEY_EXISTS_MESSAGE = "Ya tienes una jornada abierta"
WAITING_MESSAGE = "Esperando a que empieces"


@dataclass
class GuardedStartResult:
    """
    Outcome of start_journey_guarded().

    status is 'waiting' (nothing created), 'started' or 'already_started';
    journey is None only when waiting.
    """
    status: str
    message: str
    journey: Optional[Journey] = None


# ==========================================================
# SAMPLE VALIDATION
# ==========================================================

def validate_sample(sample: Sample_create, clock: Clock) -> Dict[str, Any]:
    """
    Check a telemetry sample and normalize it for storage.

    Returns:
        dict with timestamp (aware UTC), speed, lat, lng

    Raises:
        ValidationError: speed missing, negative or not finite; position
                         missing, lat/lng missing or out of range
    """
    speed = sample.speed
    if speed is None or not math.isfinite(speed):
        raise ValidationError("La velocidad es obligatoria")
    if speed < 0:
        raise ValidationError("La velocidad no puede ser negativa")

    position = sample.position
    if position is None or position.lat is None or position.lng is None:
        raise ValidationError("La ubicación debe incluir lat y lng")
    if not math.isfinite(position.lat) or not -90 <= position.lat <= 90:
        raise ValidationError("Latitud fuera de rango")
    if not math.isfinite(position.lng) or not -180 <= position.lng <= 180:
        raise ValidationError("Longitud fuera de rango")

    timestamp = sample.timestamp or clock.now()
    return {
        'timestamp': as_utc(timestamp),
        'speed': float(speed),
        'lat': float(position.lat),
        'lng': float(position.lng),
    }


def _apply_sample(journey: Journey, point: Dict[str, Any]):
    """Append one validated sample and advance the aggregates."""
    journey.samples.append(JourneySample(seq=journey.sample_count, **point))
    current = TelemetryStats(
        distance_km=journey.distance_km,
        average_speed=journey.average_speed,
        max_speed=journey.max_speed,
    )
    stats = advance_stats(current, journey.samples)
    journey.distance_km = stats.distance_km
    journey.average_speed = stats.average_speed
    journey.max_speed = stats.max_speed
    journey.sample_count = len(journey.samples)


# ==========================================================
# PROJECTIONS
# ==========================================================

def _projection_fields(journey: Journey) -> Dict[str, Any]:
    return {
        'id': journey.id,
        'worker_id': journey.worker_id,
        'state': journey.state,
        'started_at': as_utc(journey.started_at),
        'ended_at': as_utc(journey.ended_at),
        'distance_km': round_half_up(journey.distance_km),
        'average_speed': round_half_up(journey.average_speed),
        'max_speed': journey.max_speed,
        'sample_count': journey.sample_count,
    }


def to_journey_get(journey: Journey) -> Journey_get:
    return Journey_get(**_projection_fields(journey))


def to_journey_detail(journey: Journey) -> Journey_detail:
    samples = [
        Sample_get(
            seq=s.seq,
            timestamp=as_utc(s.timestamp),
            speed=s.speed,
            lat=s.lat,
            lng=s.lng,
        )
        for s in journey.samples
    ]
    return Journey_detail(**_projection_fields(journey), samples=samples)


# ==========================================================
# START
# ==========================================================

def _open_journey(
    db: Session,
    worker_id: str,
    point: Optional[Dict[str, Any]],
    clock: Clock
) -> Journey:
    """Create the journey. Caller holds the worker lock."""
    if get_worker_by_id(db, worker_id) is None:
        raise NotFoundError("Trabajador no encontrado")

    if find_open_journey(db, worker_id, for_update=True):
        raise ConflictError(OPEN_JOURNEY_EXISTS_MESSAGE)

    journey = Journey(
        worker_id=worker_id,
        state=JourneyState.ACTIVE.value,
        started_at=clock.now(),
        distance_km=0.0,
        average_speed=0.0,
        max_speed=0.0,
        sample_count=0,
    )
    if point is not None:
        _apply_sample(journey, point)

    journey = create_journey(db, journey)

    print(f"[JOURNEY] Started journey {journey.id} for worker {worker_id}")
    log_ws.log_from_thread(f"[JOURNEY] {worker_id} started journey {journey.id}", "log")
    return journey


def start_journey(
    db: Session,
    worker_id: str,
    first_sample: Optional[Sample_create] = None,
    clock: Clock = default_clock
) -> Journey:
    """
    Open a journey for a worker.

    Args:
        db: SQLAlchemy session
        worker_id: Owner of the journey
        first_sample: Optional sample stored as the journey's first point
        clock: Source of "now"

    Raises:
        ConflictError: the worker already has an open journey
        NotFoundError: unknown worker
        ValidationError: malformed first sample
    """
    point = validate_sample(first_sample, clock) if first_sample is not None else None

    with worker_locks.hold(worker_id):
        return _open_journey(db, worker_id, point, clock)


def start_journey_guarded(
    db: Session,
    worker_id: str,
    speed: Optional[float],
    position: Optional[Any] = None,
    clock: Clock = default_clock
) -> GuardedStartResult:
    """
    Inicio automático: abre la jornada solo si el trabajador ya se mueve.

    - speed <= start speed: status 'waiting', nothing is created
    - open journey already exists: status 'already_started' with it
    - otherwise: status 'started'; when a position is given it becomes the
      first sample (with the given speed)
    """
    if speed is None or not math.isfinite(speed) or speed < 0:
        raise ValidationError("La velocidad es obligatoria")

    if not journey_rules.can_start(speed):
        return GuardedStartResult(status='waiting', message=WAITING_MESSAGE)

    point = None
    if position is not None:
        point = validate_sample(Sample_create(speed=speed, position=position), clock)

    with worker_locks.hold(worker_id):
        existing = find_open_journey(db, worker_id)
        if existing:
            return GuardedStartResult(
                status='already_started',
                message="Ya tienes una jornada activa",
                journey=existing,
            )
        try:
            journey = _open_journey(db, worker_id, point, clock)
        except ConflictError:
            # Opened concurrently by another instance
            existing = find_open_journey(db, worker_id)
            if existing is None:
                raise
            return GuardedStartResult(
                status='already_started',
                message="Ya tienes una jornada activa",
                journey=existing,
            )

    return GuardedStartResult(status='started', message="Jornada iniciada", journey=journey)


# ==========================================================
# APPEND
# ==========================================================

def append_sample(
    db: Session,
    worker_id: str,
    sample: Sample_create,
    clock: Clock = default_clock
) -> Tuple[Journey, Dict[str, Any]]:
    """
    Registrar movimiento: agrega una muestra a la jornada abierta.

    Steps (one transaction, under the worker lock):
    1. Validate the sample (nothing is touched on failure)
    2. Lock the open journey; NotFoundError if there is none
    3. Append, advance aggregates, move 'active' to 'in_progress'
    4. Evaluate auto-finalize at clock.now(); finalize when it says so
    5. Commit everything at once

    Returns:
        (journey, decision) where decision is the auto-finalize dict
        ('finalize', 'reason', 'window_count')
    """
    point = validate_sample(sample, clock)

    with worker_locks.hold(worker_id):
        journey = find_open_journey(db, worker_id, for_update=True)
        if journey is None:
            raise NotFoundError(NO_OPEN_JOURNEY_MESSAGE)

        _apply_sample(journey, point)
        journey.state = JourneyState.IN_PROGRESS.value

        now = clock.now()
        try:
            decision = journey_rules.check_auto_finalize(journey.samples, now, clock)
        except Exception as e:
            print(f"[AUTO_FINALIZE] ERROR evaluating journey {journey.id}: {e}")
            log_ws.log_from_thread(
                f"[AUTO_FINALIZE] Evaluation failed for journey {journey.id}: {e}", "error"
            )
            decision = {'finalize': False, 'reason': 'Evaluation failed', 'window_count': 0}

        if decision['finalize']:
            journey.state = JourneyState.FINALIZED.value
            journey.ended_at = now

        journey = save_journey(db, journey)

    if decision['finalize']:
        print(f"[AUTO_FINALIZE] Journey {journey.id} of {worker_id} finalized: {decision['reason']}")
        log_ws.log_from_thread(
            f"[JOURNEY] {worker_id} auto-finalized journey {journey.id} ({decision['reason']})",
            "log"
        )
    return journey, decision


# ==========================================================
# FINALIZE
# ==========================================================

def finalize_journey(
    db: Session,
    worker_id: str,
    clock: Clock = default_clock
) -> Journey:
    """
    Close the worker's open journey.

    A second call fails with NotFoundError: a finalized journey is never
    returned by the open-journey lookup.
    """
    with worker_locks.hold(worker_id):
        journey = find_open_journey(db, worker_id, for_update=True)
        if journey is None:
            raise NotFoundError(NO_OPEN_JOURNEY_MESSAGE)

        journey.state = JourneyState.FINALIZED.value
        journey.ended_at = clock.now()
        journey = save_journey(db, journey)

    print(f"[JOURNEY] Finalized journey {journey.id} for worker {worker_id}")
    log_ws.log_from_thread(f"[JOURNEY] {worker_id} finalized journey {journey.id}", "log")
    return journey


# ==========================================================
# READ SIDE
# ==========================================================

def get_open_journey(db: Session, worker_id: str) -> Journey:
    journey = find_open_journey(db, worker_id)
    if journey is None:
        raise NotFoundError(NO_OPEN_JOURNEY_MESSAGE)
    return journey


def get_journey(db: Session, journey_id: int, requester_id: str, is_admin: bool = False) -> Journey:
    """
    Fetch a journey for its owner or an admin.

    Journeys of other workers are reported as not found.
    """
    journey = get_journey_by_id(db, journey_id)
    if journey is None or (journey.worker_id != requester_id and not is_admin):
        raise NotFoundError("Jornada no encontrada")
    return journey


def list_journeys(db: Session, worker_id: str, page: int = 1, limit: int = 10) -> Dict[str, Any]:
    """
    Paginated history of a worker, newest first.

    Returns:
        dict with page, limit, total, total_pages and journeys (ORM rows)
    """
    if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"page >= 1 y 1 <= limit <= {MAX_PAGE_SIZE}")

    total = count_journeys_by_worker(db, worker_id)
    journeys = get_journeys_by_worker(db, worker_id, skip=(page - 1) * limit, limit=limit)
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'total_pages': math.ceil(total / limit),
        'journeys': journeys,
    }

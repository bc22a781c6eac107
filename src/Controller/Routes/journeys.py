# src/Controller/Routes/journeys.py

"""
Journey REST API

Endpoints used by the mobile app to run a worker's journey (jornada) and
read its history. Every endpoint acts on the caller identified by the
Bearer token; the worker id never comes from the request body.

Endpoints:
- POST /journeys/start        Open a journey (optional first sample)
- POST /journeys/auto-start   Open a journey only if already moving
- POST /journeys/samples      Append a GPS + speed sample
- POST /journeys/finalize     Close the open journey
- GET  /journeys/current      Open journey of the caller
- GET  /journeys/history      Caller's journeys, newest first, paginated
- GET  /journeys/{journey_id} One journey with its samples (owner or admin)

Errors:
- 409 a journey is already open (start)
- 404 no open journey (samples, finalize, current)
- 400 malformed sample
- 503 storage failure

Usage:
    # In main.py
    from src.Controller.Routes import journeys
    app.include_router(journeys.router, prefix="/journeys", tags=["journeys"])
"""

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from src.Controller.deps import get_DB, get_clock, get_current_worker, AuthenticatedWorker
from src.Core.clock import Clock
from src.Schemas import journey as journey_schema
from src.Services import journey_service

router = APIRouter()


# ==========================================================
# 📌 Start
# ==========================================================

@router.post(
    "/start",
    response_model=journey_schema.Journey_get,
    status_code=status.HTTP_201_CREATED
)
def start_journey(
    sample: Optional[journey_schema.Sample_create] = Body(None),
    db: Session = Depends(get_DB),
    clock: Clock = Depends(get_clock),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    """
    Open a journey for the caller.

    The body is optional. A non-empty body is validated and stored as the
    journey's first sample, so it needs speed and position:
        {"speed": 15, "position": {"lat": 4.81, "lng": -75.69}}
    A body with only a timestamp is rejected with 400.
    """
    if sample is not None and not sample.model_fields_set:
        sample = None

    journey = journey_service.start_journey(db, current.worker_id, sample, clock=clock)
    return journey_service.to_journey_get(journey)


@router.post("/auto-start", response_model=journey_schema.GuardedStart_response)
def auto_start_journey(
    request: journey_schema.GuardedStart_request,
    response: Response,
    db: Session = Depends(get_DB),
    clock: Clock = Depends(get_clock),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    """
    Open a journey only when the worker is already moving.

    Status codes:
        202 status='waiting'          speed at or below the start speed
        201 status='started'          journey opened
        200 status='already_started'  the open journey is returned
    """
    result = journey_service.start_journey_guarded(
        db, current.worker_id, request.speed, request.position, clock=clock
    )

    if result.status == 'waiting':
        response.status_code = status.HTTP_202_ACCEPTED
    elif result.status == 'started':
        response.status_code = status.HTTP_201_CREATED
    else:
        response.status_code = status.HTTP_200_OK

    return journey_schema.GuardedStart_response(
        status=result.status,
        message=result.message,
        journey=journey_service.to_journey_get(result.journey) if result.journey else None,
    )


# ==========================================================
# 📌 Samples and finalization
# ==========================================================

@router.post("/samples", response_model=journey_schema.SampleAppend_response)
def append_sample(
    sample: journey_schema.Sample_create,
    db: Session = Depends(get_DB),
    clock: Clock = Depends(get_clock),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    """
    Append one sample to the caller's open journey.

    The journey may be finalized by this call (inactivity or end of the
    working day); ``auto_finalized`` and ``reason`` report it.
    """
    journey, decision = journey_service.append_sample(db, current.worker_id, sample, clock=clock)
    auto_finalized = bool(decision['finalize'])

    return journey_schema.SampleAppend_response(
        message="Jornada finalizada automáticamente" if auto_finalized else "Movimiento registrado",
        auto_finalized=auto_finalized,
        reason=decision['reason'] if auto_finalized else None,
        journey=journey_service.to_journey_get(journey),
    )


@router.post("/finalize", response_model=journey_schema.Journey_get)
def finalize_journey(
    db: Session = Depends(get_DB),
    clock: Clock = Depends(get_clock),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    journey = journey_service.finalize_journey(db, current.worker_id, clock=clock)
    return journey_service.to_journey_get(journey)


# ==========================================================
# 📌 Read
# ==========================================================

@router.get("/current", response_model=journey_schema.Journey_get)
def get_current_journey(
    db: Session = Depends(get_DB),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    journey = journey_service.get_open_journey(db, current.worker_id)
    return journey_service.to_journey_get(journey)


@router.get("/history", response_model=journey_schema.JourneyHistory_response)
def get_history(
    page: int = Query(1, description="1-based page number"),
    limit: int = Query(10, description="Journeys per page (max 100)"),
    db: Session = Depends(get_DB),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    """
    Caller's journeys, newest first.

    Returns:
        {"page": 1, "limit": 10, "total": 23, "total_pages": 3, "journeys": [...]}
    """
    result = journey_service.list_journeys(db, current.worker_id, page, limit)
    return journey_schema.JourneyHistory_response(
        page=result['page'],
        limit=result['limit'],
        total=result['total'],
        total_pages=result['total_pages'],
        journeys=[journey_service.to_journey_get(j) for j in result['journeys']],
    )


@router.get("/{journey_id}", response_model=journey_schema.Journey_detail)
def get_journey(
    journey_id: int,
    db: Session = Depends(get_DB),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    journey = journey_service.get_journey(
        db, journey_id, current.worker_id, is_admin=current.is_admin
    )
    return journey_service.to_journey_detail(journey)

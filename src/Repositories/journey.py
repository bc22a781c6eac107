# src/Repositories/journey.py
"""
Journey Repository - Database operations for journey management.

Responsibilities:
- Insert new journeys (with their optional first sample)
- The single authoritative open-journey lookup (optionally row-locked)
- Commit journey mutations atomically (samples + aggregates + state)
- Historical queries for the worker history and the admin reports

Every write goes through one commit. Storage failures are rolled back,
logged with their detail here and re-raised as domain errors carrying a
generic message.

Usage:
    from src.Repositories.journey import find_open_journey, save_journey

    journey = find_open_journey(db, "W-001", for_update=True)
    journey.state = "finalized"
    save_journey(db, journey)
"""

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from datetime import datetime
from typing import List, Optional, Tuple

from src.Core.errors import ConflictError, PersistenceError
from src.Models.journey import Journey, OPEN_STATES
from src.Models.journey_sample import JourneySample  # noqa: F401  (resolves Journey.samples)
from src.Models.worker import Worker


STORAGE_ERROR_MESSAGE = "Error de almacenamiento, intenta de nuevo"


# ==========================================================
# CREATE OPERATIONS
# ==========================================================

def create_journey(DB: Session, journey: Journey) -> Journey:
    """
    Insert a new journey together with any samples attached to it.

    Args:
        DB: SQLAlchemy session
        journey: Transient Journey (state, started_at and aggregates set)

    Returns:
        Journey: Persisted journey with its generated id

    Raises:
        ConflictError: the open-journey unique index rejected the insert
                       (another request opened one first)
        PersistenceError: any other storage failure
    """
    DB.add(journey)
    try:
        DB.commit()
    except IntegrityError as exc:
        DB.rollback()
        print(f"[REPO] Journey insert rejected for worker {journey.worker_id}: {exc.orig}")
        raise ConflictError("Ya tienes una jornada abierta")
    except SQLAlchemyError as exc:
        DB.rollback()
        print(f"[REPO] ERROR creating journey for worker {journey.worker_id}: {exc}")
        raise PersistenceError(STORAGE_ERROR_MESSAGE)

    DB.refresh(journey)
    print(f"[REPO] Journey created: {journey.id} (worker: {journey.worker_id}, "
          f"samples: {journey.sample_count})")
    return journey


# ==========================================================
# READ OPERATIONS - SINGLE JOURNEY
# ==========================================================

def find_open_journey(DB: Session, worker_id: str, for_update: bool = False) -> Optional[Journey]:
    """
    Get the open (active or in_progress) journey of a worker.

    Args:
        DB: SQLAlchemy session
        worker_id: Worker identifier
        for_update: Lock the row until the transaction ends
                    (SELECT ... FOR UPDATE; ignored by SQLite)

    Returns:
        Journey or None

    Notes:
        - Backed by idx_journeys_worker_state
        - The partial unique index guarantees at most one row matches
    """
    query = DB.query(Journey).filter(
        Journey.worker_id == worker_id,
        Journey.state.in_(OPEN_STATES)
    )
    if for_update:
        query = query.with_for_update()
    return query.one_or_none()


def get_journey_by_id(DB: Session, journey_id: int) -> Optional[Journey]:
    return DB.query(Journey).filter(Journey.id == journey_id).first()


# ==========================================================
# UPDATE OPERATIONS
# ==========================================================

def save_journey(DB: Session, journey: Journey) -> Journey:
    """
    Commit pending changes of a journey (new samples, aggregates, state).

    The UPDATE is guarded by the version column: if another writer committed
    first, nothing is applied and PersistenceError is raised.

    Raises:
        PersistenceError: stale version or storage failure
    """
    try:
        DB.commit()
    except StaleDataError as exc:
        DB.rollback()
        print(f"[REPO] Stale journey version for worker {journey.worker_id}: {exc}")
        raise PersistenceError(STORAGE_ERROR_MESSAGE)
    except SQLAlchemyError as exc:
        DB.rollback()
        print(f"[REPO] ERROR saving journey for worker {journey.worker_id}: {exc}")
        raise PersistenceError(STORAGE_ERROR_MESSAGE)

    DB.refresh(journey)
    return journey


# ==========================================================
# READ OPERATIONS - MULTIPLE JOURNEYS
# ==========================================================

def get_journeys_by_worker(
    DB: Session,
    worker_id: str,
    skip: int = 0,
    limit: int = 10
) -> List[Journey]:
    """
    Journeys of a worker, newest first.

    Example:
        >>> page_2 = get_journeys_by_worker(db, "W-001", skip=10, limit=10)
    """
    return (
        DB.query(Journey)
        .filter(Journey.worker_id == worker_id)
        .order_by(Journey.started_at.desc(), Journey.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def count_journeys_by_worker(DB: Session, worker_id: str) -> int:
    return DB.query(Journey).filter(Journey.worker_id == worker_id).count()


def _range_query(
    DB: Session,
    start: Optional[datetime],
    end: Optional[datetime],
    region: Optional[str]
):
    query = DB.query(Journey, Worker).join(Worker, Journey.worker_id == Worker.worker_id)
    if start is not None:
        query = query.filter(Journey.started_at >= start)
    if end is not None:
        query = query.filter(Journey.started_at < end)
    if region:
        query = query.filter(Worker.region == region)
    return query


def get_journeys_with_workers_in_range(
    DB: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    region: Optional[str] = None,
    skip: Optional[int] = None,
    limit: Optional[int] = None
) -> List[Tuple[Journey, Worker]]:
    """
    Journeys started in ``[start, end)`` joined with their worker.

    Args:
        DB: SQLAlchemy session
        start: Inclusive lower bound (UTC), None for no bound
        end: Exclusive upper bound (UTC), None for no bound
        region: Worker region filter
        skip / limit: Optional pagination

    Returns:
        List of (Journey, Worker) pairs ordered by start time, newest first
    """
    query = (
        _range_query(DB, start, end, region)
        .order_by(Journey.started_at.desc(), Journey.id.desc())
    )
    if skip:
        query = query.offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_journeys_in_range(
    DB: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    region: Optional[str] = None
) -> int:
    return _range_query(DB, start, end, region).count()

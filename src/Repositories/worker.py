# src/Repositories/worker.py
"""
Worker Repository - Database operations for the worker registry.

Responsibilities:
- Register worker records (provisioning scripts, tests)
- Lookup by identifier (journey ownership, push token updates)
- Select the workers that receive the morning reminder

Usage:
    from src.Repositories.worker import get_worker_by_id, update_push_token

    worker = get_worker_by_id(db, "W-001")
    update_push_token(db, "W-001", "ExponentPushToken[abc]")
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List, Optional

from src.Core.errors import ConflictError, PersistenceError
from src.Models.worker import Worker, FIELD_ROLES
from src.Schemas.worker import Worker_create


# ==========================================================
# CREATE
# ==========================================================

def create_worker(DB: Session, worker_data: Worker_create) -> Worker:
    """
    Register a worker.

    Raises:
        ConflictError: worker_id or email already registered
        PersistenceError: any other storage failure
    """
    new_worker = Worker(**worker_data.model_dump(exclude_unset=True))
    DB.add(new_worker)
    try:
        DB.commit()
    except IntegrityError as exc:
        DB.rollback()
        print(f"[REPO] Worker insert rejected: {exc.orig}")
        raise ConflictError("El trabajador ya está registrado")
    except SQLAlchemyError as exc:
        DB.rollback()
        print(f"[REPO] ERROR creating worker {worker_data.worker_id}: {exc}")
        raise PersistenceError("Error de almacenamiento")

    DB.refresh(new_worker)
    print(f"[REPO] Worker created: {new_worker.worker_id} ({new_worker.role}, {new_worker.region})")
    return new_worker


# ==========================================================
# READ
# ==========================================================

def get_worker_by_id(DB: Session, worker_id: str) -> Optional[Worker]:
    return DB.query(Worker).filter(Worker.worker_id == worker_id).first()


def get_notifiable_workers(DB: Session) -> List[Worker]:
    """
    Workers eligible for the daily start reminder.

    Returns every field worker (ingeniero / inspector) regardless of its
    token; the reminder job decides which tokens are valid and logs the
    ones it skips.
    """
    return (
        DB.query(Worker)
        .filter(Worker.role.in_(FIELD_ROLES))
        .order_by(Worker.worker_id)
        .all()
    )


# ==========================================================
# UPDATE
# ==========================================================

def update_push_token(DB: Session, worker_id: str, push_token: str) -> Optional[Worker]:
    """
    Store the Expo push token of a worker.

    Returns:
        Worker or None: updated worker, None if it does not exist
    """
    worker = get_worker_by_id(DB, worker_id)
    if not worker:
        return None

    worker.push_token = push_token
    try:
        DB.commit()
    except SQLAlchemyError as exc:
        DB.rollback()
        print(f"[REPO] ERROR saving push token for {worker_id}: {exc}")
        raise PersistenceError("Error de almacenamiento")

    DB.refresh(worker)
    print(f"[REPO] Push token updated for worker {worker_id}")
    return worker

# src/Controller/Routes/workers.py

"""
Worker REST API

Endpoints:
- GET  /workers/me             Caller's worker record
- POST /workers/me/push-token  Store the caller's Expo push token

The push token is used by the 07:00 start-of-journey reminder.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.Controller.deps import get_DB, get_current_worker, AuthenticatedWorker
from src.Repositories import worker as worker_repo
from src.Schemas import worker as worker_schema

router = APIRouter()


@router.get("/me", response_model=worker_schema.Worker_get)
def get_me(
    db: Session = Depends(get_DB),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    worker = worker_repo.get_worker_by_id(db, current.worker_id)
    if not worker:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")
    return worker


@router.post("/me/push-token")
def save_push_token(
    payload: worker_schema.PushToken_update,
    db: Session = Depends(get_DB),
    current: AuthenticatedWorker = Depends(get_current_worker)
):
    """
    Save the Expo push token of the caller.

    Errors:
        400 empty token
        404 unknown worker
    """
    token = (payload.push_token or "").strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token requerido")

    worker = worker_repo.update_push_token(db, current.worker_id, token)
    if not worker:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")

    return {"message": "Token guardado correctamente"}

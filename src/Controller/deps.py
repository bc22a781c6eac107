#src/Controller/deps.py

from dataclasses import dataclass
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt

from src.Core.clock import Clock, clock
from src.Core.config import settings
from src.DB.session import SessionLocal

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedWorker:
    """Identity asserted by a verified Bearer token."""
    worker_id: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_DB() -> Generator:
    DB = SessionLocal()
    try:
        yield DB
    finally:
        DB.close()


def get_clock() -> Clock:
    return clock


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_worker(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthenticatedWorker:
    """
    Verify the Bearer JWT and return the caller's identity.

    The worker id is read from the 'id' claim ('userId' and 'sub' are
    accepted too); the role from 'role'.
    """
    if credentials is None:
        raise _unauthorized("Acceso denegado. Token no proporcionado o mal formado.")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise _unauthorized("El token ha expirado")
    except JWTError:
        raise _unauthorized("Token inválido")

    worker_id = payload.get("id") or payload.get("userId") or payload.get("sub")
    if not worker_id:
        raise _unauthorized("Token inválido")

    return AuthenticatedWorker(worker_id=str(worker_id), role=payload.get("role"))


def require_admin(
    current: AuthenticatedWorker = Depends(get_current_worker)
) -> AuthenticatedWorker:
    if not current.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acceso denegado: solo admin",
        )
    return current

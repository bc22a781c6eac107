"""
Pytest Configuration

Environment variables are set before anything under ``src`` is imported:
settings are validated at import time.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["NOTIFY_ENABLED"] = "false"
os.environ["JOURNEY_TIMEZONE"] = "America/Bogota"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.Core.clock import FixedClock
from src.Core.config import settings
from src.DB.base import Base
from src.Repositories.worker import create_worker
from src.Schemas.worker import Worker_create

# 2025-03-10 10:00 in Bogota (UTC-5)
T0 = datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock(T0, "America/Bogota")


@pytest.fixture
def make_worker(db):
    """Factory registering workers with sensible defaults."""

    def _make(worker_id="W-001", role="ingeniero", region="Risaralda",
              transport="moto", push_token=None, email=None):
        return create_worker(db, Worker_create(
            worker_id=worker_id,
            name=f"Worker {worker_id}",
            email=email or f"{worker_id.lower()}@example.com",
            role=role,
            transport=transport,
            region=region,
            push_token=push_token,
        ))

    return _make


@pytest.fixture
def worker(make_worker):
    return make_worker()


def make_token(worker_id: str, role: str = "ingeniero") -> str:
    return jwt.encode(
        {"id": worker_id, "role": role},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def auth_headers(worker_id: str, role: str = "ingeniero") -> dict:
    return {"Authorization": f"Bearer {make_token(worker_id, role)}"}


@pytest.fixture
def client(db, clock):
    from src.main import app
    from src.Controller.deps import get_DB, get_clock

    app.dependency_overrides[get_DB] = lambda: db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

"""
src/DB/session.py
======================================
Database Session Configuration Module
======================================

Builds the SQLAlchemy engine from ``settings.DATABASE_URL`` and the
``SessionLocal`` factory used by request dependencies and background jobs.

Usage Example:
-------------
    from src.DB.session import SessionLocal

    with SessionLocal() as db:
        journey = find_open_journey(db, "W-001")

Session Configuration:
---------------------
- autocommit=False: repositories commit explicitly, once per operation
- autoflush=False: pending changes are flushed only on commit
- expire_on_commit=True (default): committed rows are re-read on access,
  so a journey never serves aggregates another writer has replaced
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from src.Core.config import settings


def _engine_kwargs(url: str) -> dict:
    """SQLite connections are shared with FastAPI's worker threads."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================
engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))


# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================
SessionLocal = sessionmaker(
    autocommit=False,  # Require explicit commit() for transaction control
    autoflush=False,   # Disable automatic flushing before queries
    bind=engine        # Bind sessions to the configured database engine
)

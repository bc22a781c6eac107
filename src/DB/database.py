# src/DB/database.py

"""
Database Utilities Module

Connectivity check used by the health endpoint and schema helpers used by
development startup and local tooling.

Production schemas are managed with Alembic (``alembic upgrade head``);
``create_all_tables()`` is only for development databases and throwaway
environments.
"""

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from src.DB.session import SessionLocal, engine


def check_db_connection() -> bool:
    """
    Run ``SELECT 1`` on a fresh session.

    Returns:
        bool: True if the database answered, False otherwise

    Used by:
        GET /health (reports "degraded" instead of failing the probe)
    """
    db = None
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        print(f"[DB] ❌ Connection check failed: {e}")
        return False
    finally:
        if db is not None:
            db.close()


def create_all_tables():
    """
    Create every table registered in ``src.DB.base``.

    Idempotent: existing tables are left untouched. Does not migrate
    existing schemas.
    """
    from src.DB.base import Base
    print("[DB] 🔨 Creating all tables...")
    Base.metadata.create_all(bind=engine)
    print("[DB] ✅ Tables created successfully")


__all__ = [
    "check_db_connection",
    "create_all_tables",
]

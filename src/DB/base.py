"""
src/DB/base.py
==========================
SQLAlchemy Model Registry
==========================

Imports every model class so that all tables are registered on
``Base.metadata`` before Alembic autogeneration, ``create_all()`` or mapper
configuration run. String-based relationships (Journey.samples) only
resolve once every participating model has been imported.

Models Registered:
-----------------
- Worker: Field workers and administrators
- Journey: Work sessions with lifecycle state and telemetry aggregates
- JourneySample: Append-only GPS + speed samples of a journey

Important:
----------
Any new model class MUST be imported here.
"""

from src.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
from src.Models.worker import Worker
from src.Models.journey import Journey
from src.Models.journey_sample import JourneySample

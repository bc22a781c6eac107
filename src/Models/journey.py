# src/Models/journey.py
from enum import Enum

from sqlalchemy import Column, String, Float, Integer, DateTime, ForeignKey, CheckConstraint, Index, text
from sqlalchemy.sql import func
from sqlalchemy.orm import declared_attr, relationship
from src.DB.base_class import Base


class JourneyState(str, Enum):
    """
    Canonical journey states.

    ACTIVE and IN_PROGRESS are both "open": a journey is created ACTIVE and
    moves to IN_PROGRESS on its first appended sample. FINALIZED is terminal.
    """
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    FINALIZED = "finalized"


OPEN_STATES = (JourneyState.ACTIVE.value, JourneyState.IN_PROGRESS.value)


class Journey(Base):
    """
    SQLAlchemy model for a worker's journey (jornada).

    Responsibilities:
    - Owns the lifecycle state (active -> in_progress -> finalized)
    - Keeps the telemetry aggregates derived from its samples
    - Guards concurrent writers with an optimistic version counter

    Related models:
    - Worker (1:N) - one worker has many journeys, at most one open
    - JourneySample (1:N) - ordered, append-only telemetry samples
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "journeys"

    # ========================================
    # PRIMARY KEY
    # ========================================
    id = Column(Integer, primary_key=True, autoincrement=True)

    # ========================================
    # OWNER
    # ========================================
    worker_id = Column(
        String(100),
        ForeignKey('workers.worker_id', ondelete='CASCADE'),
        nullable=False,
        index=True,
        doc="Worker that owns this journey (immutable)"
    )

    # ========================================
    # LIFECYCLE
    # ========================================
    state = Column(
        String(20),
        nullable=False,
        server_default=JourneyState.ACTIVE.value,
        doc="Journey state: 'active', 'in_progress' or 'finalized'"
    )

    started_at = Column(
        DateTime(timezone=True),
        nullable=False,
        doc="UTC instant the journey was opened (immutable)"
    )

    ended_at = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="UTC instant of finalization (NULL while open)"
    )

    # ========================================
    # TELEMETRY AGGREGATES
    # ========================================
    distance_km = Column(
        Float,
        nullable=False,
        default=0.0,
        server_default='0.0',
        doc="Sum of haversine segments between consecutive samples (km, unrounded)"
    )

    average_speed = Column(
        Float,
        nullable=False,
        default=0.0,
        server_default='0.0',
        doc="Mean sample speed in km/h, rounded to 2 decimals"
    )

    max_speed = Column(
        Float,
        nullable=False,
        default=0.0,
        server_default='0.0',
        doc="Maximum sample speed in km/h"
    )

    sample_count = Column(
        Integer,
        nullable=False,
        default=0,
        server_default='0',
        doc="Number of samples appended to this journey"
    )

    # ========================================
    # CONCURRENCY
    # ========================================
    version = Column(
        Integer,
        nullable=False,
        doc="Optimistic concurrency counter, bumped on every UPDATE"
    )

    # ========================================
    # AUDIT FIELDS
    # ========================================
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True
    )

    samples = relationship(
        "JourneySample",
        back_populates="journey",
        order_by="JourneySample.seq",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    # ========================================
    # TABLE CONSTRAINTS
    # ========================================
    __table_args__ = (
        Index('idx_journeys_worker_state', 'worker_id', 'state'),
        Index('idx_journeys_worker_started_at', 'worker_id', 'started_at'),
        Index('idx_journeys_started_at', 'started_at'),

        # At most one open journey per worker
        Index(
            'uq_journeys_open_worker',
            'worker_id',
            unique=True,
            postgresql_where=text("state <> 'finalized'"),
            sqlite_where=text("state <> 'finalized'"),
        ),

        CheckConstraint(
            "state IN ('active', 'in_progress', 'finalized')",
            name='check_journey_state'
        ),
        CheckConstraint(
            "(state = 'finalized') = (ended_at IS NOT NULL)",
            name='check_ended_at_iff_finalized'
        ),
        CheckConstraint(
            "ended_at IS NULL OR ended_at >= started_at",
            name='check_journey_time_order'
        ),
        CheckConstraint("distance_km >= 0", name='check_distance_non_negative'),
        CheckConstraint("max_speed >= 0", name='check_max_speed_non_negative'),
    )

    @property
    def is_open(self) -> bool:
        return self.state in OPEN_STATES

    def __repr__(self) -> str:
        return (
            f"<Journey(id={self.id!r}, worker_id={self.worker_id!r}, "
            f"state={self.state!r}, samples={self.sample_count!r})>"
        )

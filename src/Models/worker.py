# src/Models/worker.py

"""
Worker Model - Field Worker Registry

SQLAlchemy model for the field workers (engineers and inspectors) whose
journeys are tracked, plus administrators who read the reports.

The identity service owns credentials; this table only keeps what the
journey backend needs: ownership of journeys, region for report filters and
the Expo push token for the daily start reminder.

Database Table: workers
Primary Key: worker_id (String, opaque identifier from the identity service)
"""

from sqlalchemy.orm import declared_attr
from sqlalchemy import Column, String, DateTime, CheckConstraint, Index
from sqlalchemy.sql import func
from src.DB.base_class import Base


REGIONS = ("Risaralda", "Caldas", "Quindío")

# Roles that work journeys and receive the morning reminder
FIELD_ROLES = ("ingeniero", "inspector")


class Worker(Base):
    """
    SQLAlchemy model representing a registered worker.

    Relationships:
    - One-to-many with Journey (journeys.worker_id, ON DELETE CASCADE)
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "workers"

    # ============================================================
    # Primary Key
    # ============================================================
    worker_id = Column(
        String(100),
        primary_key=True,
        doc="Opaque worker identifier (matches the 'id' claim of the JWT)"
    )

    # ============================================================
    # Profile
    # ============================================================
    name = Column(String(200), nullable=False)

    email = Column(
        String(255),
        nullable=False,
        unique=True,
        doc="Contact email, unique across workers"
    )

    role = Column(
        String(20),
        nullable=False,
        doc="Role: 'ingeniero', 'inspector' or 'admin'"
    )

    transport = Column(
        String(20),
        nullable=False,
        doc="Means of transport: 'moto' or 'carro'"
    )

    region = Column(
        String(50),
        nullable=False,
        index=True,
        doc="Operating region: 'Risaralda', 'Caldas' or 'Quindío'"
    )

    push_token = Column(
        String(255),
        nullable=True,
        doc="Expo push token (ExponentPushToken[...]); NULL until the app registers it"
    )

    # ============================================================
    # Timestamps
    # ============================================================
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index('idx_workers_role', 'role'),
        CheckConstraint(
            "role IN ('ingeniero', 'inspector', 'admin')",
            name='check_worker_role'
        ),
        CheckConstraint(
            "transport IN ('moto', 'carro')",
            name='check_worker_transport'
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Worker(worker_id={self.worker_id!r}, name={self.name!r}, "
            f"role={self.role!r}, region={self.region!r})>"
        )

# src/Models/journey_sample.py
from sqlalchemy.orm import declared_attr, relationship
from sqlalchemy import (
    Column, BigInteger, Integer, Float, DateTime, ForeignKey,
    CheckConstraint, UniqueConstraint, Index
)
from src.DB.base_class import Base


class JourneySample(Base):
    """
    SQLAlchemy model for one telemetry sample of a journey.

    Samples are append-only. ``seq`` is the 0-based arrival position inside
    the journey and is the only ordering ever used, so two samples carrying
    the same timestamp keep the order in which they were received.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "journey_samples"

    # Primary key
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    journey_id = Column(
        Integer,
        ForeignKey('journeys.id', ondelete='CASCADE'),
        nullable=False,
        doc="Journey this sample belongs to"
    )

    seq = Column(
        Integer,
        nullable=False,
        doc="Arrival position within the journey (0-based)"
    )

    # Timestamp stored as timezone-aware DateTime (UTC)
    timestamp = Column(
        DateTime(timezone=True),
        nullable=False
    )

    # Telemetry fields
    speed = Column(Float, nullable=False, doc="Speed in km/h")
    lat = Column(Float, nullable=False, doc="Latitude in decimal degrees")
    lng = Column(Float, nullable=False, doc="Longitude in decimal degrees")

    journey = relationship("Journey", back_populates="samples")

    __table_args__ = (
        UniqueConstraint('journey_id', 'seq', name='uq_journey_sample_seq'),
        Index('idx_journey_samples_journey_timestamp', 'journey_id', 'timestamp'),
        CheckConstraint("speed >= 0", name='check_sample_speed'),
        CheckConstraint("lat >= -90 AND lat <= 90", name='check_sample_lat_range'),
        CheckConstraint("lng >= -180 AND lng <= 180", name='check_sample_lng_range'),
    )

    def __repr__(self) -> str:
        return (
            f"<JourneySample(journey_id={self.journey_id!r}, seq={self.seq!r}, "
            f"speed={self.speed!r}, lat={self.lat!r}, lng={self.lng!r})>"
        )

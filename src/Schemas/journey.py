# src/Schemas/journey.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


# ============================================
# INPUT SCHEMAS
# ============================================
class Position(BaseModel):
    """
    GPS position of a sample.

    Both coordinates are optional at the HTTP layer so that a missing
    coordinate reaches the journey core, which rejects it with a domain
    ValidationError (400) instead of a framework 422.
    """
    lat: Optional[float] = Field(None, description="Latitude in decimal degrees")
    lng: Optional[float] = Field(None, description="Longitude in decimal degrees")


class Sample_create(BaseModel):
    """
    One telemetry sample sent by the mobile app.

    Used by:
    - POST /journeys/start (optional first sample)
    - POST /journeys/samples
    """
    speed: Optional[float] = Field(None, description="Speed in km/h (>= 0)")
    position: Optional[Position] = Field(None, description="GPS position {lat, lng}")
    timestamp: Optional[datetime] = Field(
        None,
        description="Sample instant; defaults to the server clock when omitted"
    )


class GuardedStart_request(BaseModel):
    """Body of POST /journeys/auto-start."""
    speed: Optional[float] = Field(None, description="Current speed in km/h")
    position: Optional[Position] = Field(None, description="Current position, becomes the first sample")


# ============================================
# OUTPUT SCHEMAS
# ============================================
class Sample_get(BaseModel):
    """Stored sample as returned in journey detail."""
    model_config = ConfigDict(from_attributes=True)

    seq: int
    timestamp: datetime
    speed: float
    lat: float
    lng: float


class Journey_get(BaseModel):
    """
    Journey projection exposed to callers.

    Built by ``journey_service.to_journey_get()``, which applies the 2-decimal
    half-away-from-zero rounding to ``distance_km`` and ``average_speed``;
    the stored distance accumulator itself stays unrounded.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    worker_id: str
    state: str = Field(..., pattern='^(active|in_progress|finalized)$')
    started_at: datetime
    ended_at: Optional[datetime] = None
    distance_km: float = Field(..., ge=0, description="Distance traveled in km")
    average_speed: float = Field(..., ge=0, description="Mean sample speed in km/h")
    max_speed: float = Field(..., ge=0, description="Maximum sample speed in km/h")
    sample_count: int = Field(..., ge=0)


class Journey_detail(Journey_get):
    """Journey projection plus its ordered samples."""
    samples: List[Sample_get] = Field(default_factory=list)


class SampleAppend_response(BaseModel):
    """Result of POST /journeys/samples."""
    message: str
    auto_finalized: bool
    reason: Optional[str] = None
    journey: Journey_get


class GuardedStart_response(BaseModel):
    """
    Result of POST /journeys/auto-start.

    status:
    - 'waiting': speed too low, nothing created
    - 'started': a new journey was opened
    - 'already_started': the worker already had an open journey
    """
    status: str = Field(..., pattern='^(waiting|started|already_started)$')
    message: str
    journey: Optional[Journey_get] = None


class JourneyHistory_response(BaseModel):
    """Paginated journey history of the calling worker."""
    page: int
    limit: int
    total: int
    total_pages: int
    journeys: List[Journey_get]

# src/Schemas/worker.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


# ============================================
# BASE SCHEMA
# ============================================
class Worker_base(BaseModel):
    """Common worker attributes with their validations."""
    model_config = ConfigDict(from_attributes=True)

    worker_id: str = Field(..., min_length=1, max_length=100, description="Opaque worker identifier")
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255)
    role: str = Field(..., pattern='^(ingeniero|inspector|admin)$')
    transport: str = Field(..., pattern='^(moto|carro)$')
    region: str = Field(..., pattern='^(Risaralda|Caldas|Quindío)$')


# ============================================
# CREATE SCHEMA
# ============================================
class Worker_create(Worker_base):
    """
    Schema for registering a worker record.

    Used by:
    - Identity provisioning scripts
    - Test fixtures
    """
    push_token: Optional[str] = Field(None, max_length=255)


# ============================================
# GET SCHEMA
# ============================================
class Worker_get(Worker_base):
    """Worker as returned by the API (no credentials are stored here)."""
    push_token: Optional[str] = None
    created_at: datetime


# ============================================
# PUSH TOKEN
# ============================================
class PushToken_update(BaseModel):
    """
    Body of POST /workers/me/push-token.

    The token may be empty at the HTTP layer; the endpoint answers 400 with
    "Token requerido" for blank values.
    """
    push_token: Optional[str] = Field(None, max_length=255, description="Expo push token")

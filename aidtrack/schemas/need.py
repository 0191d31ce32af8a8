"""Pydantic schemas for needs."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from aidtrack.db.enums import NeedStatus, NeedUrgency, PriorityLevel


class NeedCreate(BaseModel):
    family_id: UUID
    type: str = Field(..., min_length=1, max_length=64)  # Category id
    urgency: NeedUrgency
    details: str = Field("", max_length=2000)
    comment: str = Field("", max_length=2000)


class NeedUpdate(BaseModel):
    """Partial update. Changing `status` explicitly is reserved to admins."""
    type: str | None = Field(None, min_length=1, max_length=64)
    urgency: NeedUrgency | None = None
    status: NeedStatus | None = None
    details: str | None = Field(None, max_length=2000)
    comment: str | None = Field(None, max_length=2000)


class NeedRead(BaseModel):
    """Need with its priority computed at read time."""
    id: UUID
    family_id: UUID
    type: str
    urgency: NeedUrgency
    status: NeedStatus
    details: str
    comment: str
    created_at: datetime
    updated_at: datetime
    priority_score: int
    priority_level: PriorityLevel

"""Pydantic schemas for aid distributions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from aidtrack.db.enums import AidSource


class AidCreate(BaseModel):
    """
    Request to record an aid.

    The volunteer is taken from the session. Omitting `date` means "now".
    """
    family_id: UUID
    type: str = Field(..., min_length=1, max_length=64)  # Category id
    article_id: UUID | None = None
    quantity: int = Field(1, ge=1)
    date: datetime | None = None
    source: AidSource
    notes: str = Field("", max_length=2000)
    proof_url: str | None = Field(None, max_length=2048)


class AidRead(BaseModel):
    id: UUID
    family_id: UUID
    type: str
    article_id: UUID | None
    quantity: int
    date: datetime
    volunteer_id: UUID | None
    volunteer_name: str
    source: AidSource
    notes: str
    proof_url: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class AidListResponse(BaseModel):
    """Paginated aid list."""
    items: list[AidRead]
    total: int
    page: int
    per_page: int
    pages: int

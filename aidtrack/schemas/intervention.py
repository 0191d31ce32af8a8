"""Pydantic schemas for interventions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from aidtrack.db.enums import InterventionStatus


class ChecklistItem(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    label: str = Field(..., min_length=1, max_length=255)
    done: bool = False


class InterventionCreate(BaseModel):
    family_id: UUID
    assigned_user_id: UUID
    planned_at: datetime
    checklist: list[ChecklistItem] = Field(default_factory=list)
    notes: str = Field("", max_length=5000)


class InterventionUpdate(BaseModel):
    """Request to update an intervention (partial)."""
    assigned_user_id: UUID | None = None
    planned_at: datetime | None = None
    checklist: list[ChecklistItem] | None = None
    notes: str | None = Field(None, max_length=5000)


class InterventionStatusUpdate(BaseModel):
    status: InterventionStatus


class InterventionRead(BaseModel):
    id: UUID
    family_id: UUID
    assigned_user_id: UUID | None
    assigned_user_name: str
    status: InterventionStatus
    planned_at: datetime
    started_at: datetime | None
    completed_at: datetime | None
    checklist: list[ChecklistItem]
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

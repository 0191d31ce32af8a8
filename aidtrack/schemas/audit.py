"""Pydantic schemas for audit trail."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class AuditLogRead(BaseModel):
    id: UUID
    actor_user_id: UUID | None
    actor_name: str
    action: str
    entity_type: str
    entity_id: str
    details: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditLogListResponse(BaseModel):
    items: list[AuditLogRead]
    total: int
    page: int
    per_page: int
    pages: int

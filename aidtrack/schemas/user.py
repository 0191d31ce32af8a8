"""Pydantic schemas for organization users."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from aidtrack.db.enums import Role


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: Role = Role.VOLUNTEER


class UserUpdate(BaseModel):
    """Partial update; deactivating a user revokes their sessions."""
    name: str | None = Field(None, min_length=1, max_length=255)
    role: Role | None = None
    is_active: bool | None = None


class UserRead(BaseModel):
    id: UUID
    name: str
    email: str
    role: Role
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}

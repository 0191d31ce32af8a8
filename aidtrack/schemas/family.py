"""Pydantic schemas for families, children and visit notes."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from aidtrack.db.enums import ChildSex, FamilyHousing


class FamilyCreate(BaseModel):
    """Request to register a family. `last_visit_at` is not client-settable."""
    responsible_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field("", max_length=50)
    address: str = Field("", max_length=1000)
    neighborhood: str = Field("", max_length=255)
    member_count: int = Field(1, ge=1)
    children_count: int = Field(0, ge=0)
    housing: FamilyHousing = FamilyHousing.HOUSED
    health_notes: str = Field("", max_length=5000)
    has_medical_needs: bool = False
    notes: str = Field("", max_length=5000)


class FamilyUpdate(BaseModel):
    """Request to update a family (partial)."""
    responsible_name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=1000)
    neighborhood: str | None = Field(None, max_length=255)
    member_count: int | None = Field(None, ge=1)
    children_count: int | None = Field(None, ge=0)
    housing: FamilyHousing | None = None
    health_notes: str | None = Field(None, max_length=5000)
    has_medical_needs: bool | None = None
    notes: str | None = Field(None, max_length=5000)


class FamilyRead(BaseModel):
    id: UUID
    responsible_name: str
    phone: str
    address: str
    neighborhood: str
    member_count: int
    children_count: int
    housing: FamilyHousing
    health_notes: str
    has_medical_needs: bool
    notes: str
    archived: bool
    created_at: datetime
    updated_at: datetime
    last_visit_at: datetime | None

    model_config = {"from_attributes": True}


class FamilyListResponse(BaseModel):
    """Paginated family list."""
    items: list[FamilyRead]
    total: int
    page: int
    per_page: int
    pages: int


MAX_IMPORT_ROWS = 5000


class FamilyImportRequest(BaseModel):
    """
    Rows from a spreadsheet, keyed by family field name.

    Cells are coerced leniently (numbers as text, "oui"/"non", housing labels).
    """
    rows: list[dict[str, Any]] = Field(..., max_length=MAX_IMPORT_ROWS)
    duplicate_strategy: Literal["skip", "update"] = "skip"


class FamilyImportError(BaseModel):
    row: int  # 1-based position in `rows`
    message: str


class FamilyImportResult(BaseModel):
    created: int
    updated: int
    skipped: int
    errors: list[FamilyImportError]


class ChildCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., ge=0, le=30)
    sex: ChildSex
    specific_needs: str = Field("", max_length=2000)


class ChildUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=255)
    age: int | None = Field(None, ge=0, le=30)
    sex: ChildSex | None = None
    specific_needs: str | None = Field(None, max_length=2000)


class ChildRead(BaseModel):
    id: UUID
    family_id: UUID
    first_name: str
    age: int
    sex: ChildSex
    specific_needs: str
    created_at: datetime

    model_config = {"from_attributes": True}


class VisitNoteCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=50000)
    date: datetime | None = None


class VisitNoteRead(BaseModel):
    id: UUID
    family_id: UUID
    volunteer_id: UUID | None
    volunteer_name: str
    content: str  # Sanitized HTML
    date: datetime
    created_at: datetime

    model_config = {"from_attributes": True}

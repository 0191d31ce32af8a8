"""Pydantic schemas for family documents."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from aidtrack.core.config import settings
from aidtrack.db.enums import DocumentType
from aidtrack.services.document_validation import max_encoded_length


# Room for a data URL prefix and line-wrapped base64
MAX_FILE_DATA_CHARS = 2 * max_encoded_length(settings.MAX_DOCUMENT_BYTES) + 256


class DocumentUpload(BaseModel):
    """
    Upload request.

    `file_data` is a data URL (`data:<mime>;base64,<payload>`) or bare base64.
    """
    family_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    document_type: DocumentType
    file_data: str = Field(..., min_length=1, max_length=MAX_FILE_DATA_CHARS)
    mime_type: str = Field(..., min_length=1, max_length=100)


class DocumentRead(BaseModel):
    """Document metadata with a freshly signed, short-lived download URL."""
    id: UUID
    family_id: UUID
    name: str
    document_type: DocumentType
    mime_type: str
    file_size: int
    uploaded_by: UUID | None
    uploaded_by_name: str
    uploaded_at: datetime
    download_url: str | None = None

    model_config = {"from_attributes": True}


class DownloadUrlResponse(BaseModel):
    download_url: str
    expires_in_seconds: int

"""Family document service.

Upload pipeline: decode -> validate (size, allowlist, magic bytes) ->
antivirus scan -> object storage -> metadata row. Reads never return bytes,
only a freshly signed URL.
"""

import logging
import uuid
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aidtrack.db.enums import AuditAction, AuditEntityType
from aidtrack.db.models import Family, FamilyDocument
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.document import DocumentRead
from aidtrack.services import antivirus_service, audit_service, document_validation, storage_service

logger = logging.getLogger(__name__)


def build_storage_key(family_id: UUID, document_id: UUID) -> str:
    """families/{family_id}/{document_id}/{random}; the random part is never derived from user input."""
    return f"families/{family_id}/{document_id}/{uuid.uuid4().hex}"


def upload_document(
    db: Session,
    family: Family,
    session: UserSession,
    name: str,
    document_type: str,
    file_data: str,
    mime_type: str,
) -> FamilyDocument:
    """
    Validate, scan, store and record a document.

    Raises:
        DocumentValidationError: malformed, oversized or mistyped payload
        InfectedFileError: antivirus found a signature
        ScannerUnavailableError: antivirus down and failing closed
        StorageError: object storage failed
    """
    content = document_validation.decode_file_data(file_data)
    normalized_mime = document_validation.validate_document(content, mime_type)
    antivirus_service.scan_bytes(content)

    document_id = uuid.uuid4()
    storage_key = build_storage_key(family.id, document_id)
    storage_service.put_object(storage_key, content, normalized_mime)

    document = FamilyDocument(
        id=document_id,
        organization_id=family.organization_id,
        family_id=family.id,
        name=name.strip(),
        document_type=getattr(document_type, "value", document_type),
        mime_type=normalized_mime,
        file_size=len(content),
        file_key=storage_key,
        uploaded_by=session.user_id,
        uploaded_by_name=session.display_name,
    )
    try:
        db.add(document)
        db.flush()
        audit_service.log_event(
            db, family.organization_id, AuditAction.CREATED, AuditEntityType.DOCUMENT,
            document.id, actor=session,
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Document metadata insert failed, removing stored object %s", storage_key)
        storage_service.delete_object_quietly(storage_key)
        raise

    db.refresh(document)
    logger.info("Stored document %s (%d bytes) for family %s", document.id, len(content), family.id)
    return document


def list_documents(db: Session, family: Family) -> list[FamilyDocument]:
    return (
        db.query(FamilyDocument)
        .filter(
            FamilyDocument.family_id == family.id,
            FamilyDocument.organization_id == family.organization_id,
        )
        .order_by(FamilyDocument.uploaded_at.desc(), FamilyDocument.id)
        .all()
    )


def get_document(db: Session, org_id: UUID, document_id: UUID) -> FamilyDocument | None:
    return (
        db.query(FamilyDocument)
        .filter(FamilyDocument.id == document_id, FamilyDocument.organization_id == org_id)
        .first()
    )


def to_document_read(document: FamilyDocument) -> DocumentRead:
    """Metadata plus a fresh signed URL (generated on every read)."""
    read = DocumentRead.model_validate(document)
    read.download_url = storage_service.generate_signed_url(document.file_key)
    return read


def delete_document(db: Session, document: FamilyDocument, actor: UserSession | None = None) -> None:
    """Delete the metadata row, then best-effort delete the stored object."""
    storage_key = document.file_key
    audit_service.log_event(
        db, document.organization_id, AuditAction.DELETED, AuditEntityType.DOCUMENT,
        document.id, actor=actor,
    )
    db.delete(document)
    db.commit()
    storage_service.delete_object_quietly(storage_key)

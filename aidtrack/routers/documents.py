"""Documents router - family document upload and signed downloads."""

import logging
from uuid import UUID

import jwt
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from aidtrack.core.config import settings
from aidtrack.core.deps import get_current_session, get_db, require_csrf_header
from aidtrack.core.security import decode_download_token
from aidtrack.db.models import FamilyDocument
from aidtrack.routers.families import get_family_or_404
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.document import DocumentRead, DocumentUpload, DownloadUrlResponse
from aidtrack.services import antivirus_service, document_service, document_validation, storage_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _signed_read(document: FamilyDocument) -> DocumentRead:
    try:
        return document_service.to_document_read(document)
    except storage_service.StorageError as e:
        logger.error("Signed URL generation failed for document %s: %s", document.id, e)
        raise HTTPException(status_code=503, detail="Document storage unavailable")


@router.post(
    "/documents",
    response_model=DocumentRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def upload_document(
    data: DocumentUpload,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Upload a family document (base64 or data URL payload).

    Content must match its declared type; files are scanned for malware when
    scanning is enabled. Responds with metadata and a short-lived download URL.
    """
    family = get_family_or_404(db, session, data.family_id)
    try:
        document = document_service.upload_document(
            db,
            family,
            session,
            name=data.name,
            document_type=data.document_type,
            file_data=data.file_data,
            mime_type=data.mime_type,
        )
    except (document_validation.DocumentValidationError, antivirus_service.InfectedFileError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except antivirus_service.ScannerUnavailableError:
        raise HTTPException(status_code=503, detail="Antivirus scanner unavailable, try again later")
    except storage_service.StorageError as e:
        logger.error("Document storage failed for family %s: %s", family.id, e)
        raise HTTPException(status_code=503, detail="Document storage unavailable")
    return _signed_read(document)


@router.get("/families/{family_id}/documents", response_model=list[DocumentRead])
def list_family_documents(
    family_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, family_id)
    return [_signed_read(doc) for doc in document_service.list_documents(db, family)]


@router.get("/documents/{document_id}/download", response_model=DownloadUrlResponse)
def get_download_url(
    document_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Return a freshly signed download URL."""
    document = document_service.get_document(db, session.org_id, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    read = _signed_read(document)
    return DownloadUrlResponse(
        download_url=read.download_url,
        expires_in_seconds=settings.SIGNED_URL_EXPIRY_SECONDS,
    )


@router.delete(
    "/documents/{document_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_document(
    document_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    document = document_service.get_document(db, session.org_id, document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    document_service.delete_document(db, document, actor=session)


@router.get("/documents/local/{token}")
def download_local(token: str, db: Session = Depends(get_db)):
    """
    Serve a document from the local storage backend.

    The signed token is the credential; it expires after
    SIGNED_URL_EXPIRY_SECONDS.
    """
    if settings.STORAGE_BACKEND != "local":
        raise HTTPException(status_code=404, detail="Not found")
    try:
        storage_key = decode_download_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=403, detail="Invalid or expired download link")

    document = db.query(FamilyDocument).filter(FamilyDocument.file_key == storage_key).first()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    try:
        content = storage_service.read_local_object(storage_key)
    except storage_service.StoredObjectNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")

    return Response(
        content=content,
        media_type=document.mime_type,
        headers={
            "Content-Disposition": f'inline; filename="{document.id}"',
            "Cache-Control": "private, no-store",
            "X-Content-Type-Options": "nosniff",
        },
    )

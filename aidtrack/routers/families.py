"""Families router - households, children and visit notes.

Mixed paths: /families/..., /children/{id} and /notes/{id}.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_current_session, get_db, require_csrf_header, require_roles
from aidtrack.db.enums import Role
from aidtrack.db.models import Family
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.family import (
    ChildCreate,
    ChildRead,
    ChildUpdate,
    FamilyCreate,
    FamilyImportRequest,
    FamilyImportResult,
    FamilyListResponse,
    FamilyRead,
    FamilyUpdate,
    VisitNoteCreate,
    VisitNoteRead,
)
from aidtrack.services import family_service
from aidtrack.utils.pagination import PaginationParams, get_pagination, paginate_query

router = APIRouter()


def get_family_or_404(db: Session, session: UserSession, family_id: UUID) -> Family:
    """Load an active family of the session's organization or raise 404."""
    family = family_service.get_family(db, session.org_id, family_id)
    if not family:
        raise HTTPException(status_code=404, detail="Family not found")
    return family


# =============================================================================
# Families
# =============================================================================

@router.get("/families", response_model=FamilyListResponse)
def list_families(
    q: str | None = Query(None, max_length=200, description="Search name, neighborhood, phone, address"),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List active (non-archived) families."""
    query = family_service.list_families_query(db, session.org_id, search=q)
    items, total = paginate_query(query, pagination)
    return pagination.envelope(items, total)


@router.post(
    "/families/import",
    response_model=FamilyImportResult,
    dependencies=[Depends(require_csrf_header)],
)
def import_families(
    data: FamilyImportRequest,
    session: UserSession = Depends(require_roles([Role.ADMIN])),
    db: Session = Depends(get_db),
):
    """
    Bulk-create families from spreadsheet rows (admin only).

    Rows whose phone matches an active family are skipped, or applied as an
    update with `duplicate_strategy="update"`. All or nothing on database errors.
    """
    return family_service.import_families(
        db, session.org_id, data.rows, duplicate_strategy=data.duplicate_strategy, actor=session
    )


@router.get("/families/{family_id}", response_model=FamilyRead)
def get_family(
    family_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return get_family_or_404(db, session, family_id)


@router.post(
    "/families",
    response_model=FamilyRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_family(
    data: FamilyCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return family_service.create_family(db, session.org_id, data.model_dump(), actor=session)


@router.patch(
    "/families/{family_id}",
    response_model=FamilyRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_family(
    family_id: UUID,
    data: FamilyUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, family_id)
    return family_service.update_family(
        db, family, data.model_dump(exclude_unset=True), actor=session
    )


@router.delete(
    "/families/{family_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def archive_family(
    family_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Archive a family. It disappears from listings; its history is kept."""
    family = get_family_or_404(db, session, family_id)
    family_service.archive_family(db, family, actor=session)


# =============================================================================
# Children
# =============================================================================

@router.get("/families/{family_id}/children", response_model=list[ChildRead])
def list_children(
    family_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, family_id)
    return family_service.list_children(db, family)


@router.post(
    "/families/{family_id}/children",
    response_model=ChildRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_child(
    family_id: UUID,
    data: ChildCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, family_id)
    return family_service.create_child(db, family, data.model_dump(), actor=session)


@router.patch(
    "/children/{child_id}",
    response_model=ChildRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_child(
    child_id: UUID,
    data: ChildUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    child = family_service.get_child(db, session.org_id, child_id)
    if not child:
        raise HTTPException(status_code=404, detail="Child not found")
    return family_service.update_child(
        db, child, data.model_dump(exclude_unset=True), actor=session
    )


@router.delete(
    "/children/{child_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_child(
    child_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    child = family_service.get_child(db, session.org_id, child_id)
    if not child:
        raise HTTPException(status_code=404, detail="Child not found")
    family_service.delete_child(db, child, actor=session)


# =============================================================================
# Visit notes
# =============================================================================

@router.get("/families/{family_id}/notes", response_model=list[VisitNoteRead])
def list_visit_notes(
    family_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, family_id)
    return family_service.list_visit_notes(db, family)


@router.post(
    "/families/{family_id}/notes",
    response_model=VisitNoteRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_visit_note(
    family_id: UUID,
    data: VisitNoteCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Add a visit note (HTML is sanitized). Stamps the family's last visit."""
    family = get_family_or_404(db, session, family_id)
    return family_service.create_visit_note(db, family, session, data.content, data.date)


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_visit_note(
    note_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    note = family_service.get_visit_note(db, session.org_id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    family_service.delete_visit_note(db, note, actor=session)

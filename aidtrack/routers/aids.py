"""Aids router - recording and listing distributions."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_current_session, get_db, require_csrf_header, require_roles
from aidtrack.db.enums import Role
from aidtrack.routers.families import get_family_or_404
from aidtrack.schemas.aid import AidCreate, AidListResponse, AidRead
from aidtrack.schemas.auth import UserSession
from aidtrack.services import aid_service
from aidtrack.utils.pagination import PaginationParams, get_pagination, paginate_query

router = APIRouter()


@router.post(
    "/aids",
    response_model=AidRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_aid(
    data: AidCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Record an aid.

    Decrements the article stock (never below 0), stamps the family's last
    visit and advances open needs of the same type. A resubmission identical
    to one made seconds earlier returns the existing record.
    """
    try:
        aid, _created = aid_service.record_aid(db, session.org_id, session, data.model_dump())
    except (aid_service.FamilyNotFoundError, aid_service.ArticleNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    return aid


@router.get("/aids", response_model=AidListResponse)
def list_aids(
    family_id: UUID | None = None,
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    query = aid_service.list_aids_query(db, session.org_id, family_id=family_id)
    items, total = paginate_query(query, pagination)
    return pagination.envelope(items, total)


@router.get("/families/{family_id}/aids", response_model=list[AidRead])
def list_family_aids(
    family_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, family_id)
    return aid_service.list_aids_query(db, session.org_id, family_id=family.id).all()


@router.get("/aids/{aid_id}", response_model=AidRead)
def get_aid(
    aid_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    aid = aid_service.get_aid(db, session.org_id, aid_id)
    if not aid:
        raise HTTPException(status_code=404, detail="Aid not found")
    return aid


@router.delete(
    "/aids/{aid_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_aid(
    aid_id: UUID,
    session: UserSession = Depends(require_roles([Role.ADMIN])),
    db: Session = Depends(get_db),
):
    """Delete an aid record (admin only). Stock and need status are not reverted."""
    aid = aid_service.get_aid(db, session.org_id, aid_id)
    if not aid:
        raise HTTPException(status_code=404, detail="Aid not found")
    aid_service.delete_aid(db, aid, actor=session)

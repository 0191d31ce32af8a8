"""Needs router - needs annotated with their priority."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_current_session, get_db, is_admin, require_csrf_header
from aidtrack.routers.families import get_family_or_404
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.need import NeedCreate, NeedRead, NeedUpdate
from aidtrack.services import need_service

router = APIRouter()


@router.get("/needs", response_model=list[NeedRead])
def list_needs(
    family_id: UUID | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List needs sorted by priority (highest first; covered needs last)."""
    return need_service.list_needs(db, session.org_id, family_id=family_id)


@router.get("/families/{family_id}/needs", response_model=list[NeedRead])
def list_family_needs(
    family_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, family_id)
    return need_service.list_needs(db, session.org_id, family_id=family.id)


@router.post(
    "/needs",
    response_model=NeedRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_need(
    data: NeedCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, data.family_id)
    need = need_service.create_need(db, family, data.model_dump(), actor=session)
    return need_service.read_need(db, need)


@router.patch(
    "/needs/{need_id}",
    response_model=NeedRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_need(
    need_id: UUID,
    data: NeedUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Update a need. Setting `status` explicitly requires the admin role."""
    need = need_service.get_need(db, session.org_id, need_id)
    if not need:
        raise HTTPException(status_code=404, detail="Need not found")
    try:
        need = need_service.update_need(
            db,
            need,
            data.model_dump(exclude_unset=True),
            actor=session,
            allow_status_change=is_admin(session),
        )
    except need_service.StatusChangeForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return need_service.read_need(db, need)


@router.delete(
    "/needs/{need_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_need(
    need_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    need = need_service.get_need(db, session.org_id, need_id)
    if not need:
        raise HTTPException(status_code=404, detail="Need not found")
    need_service.delete_need(db, need, actor=session)

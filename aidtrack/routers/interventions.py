"""Interventions router - planned visits and their lifecycle."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_current_session, get_db, require_csrf_header
from aidtrack.db.enums import InterventionStatus
from aidtrack.routers.families import get_family_or_404
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.intervention import (
    InterventionCreate,
    InterventionRead,
    InterventionStatusUpdate,
    InterventionUpdate,
)
from aidtrack.services import intervention_service

router = APIRouter()


def _get_intervention_or_404(db: Session, session: UserSession, intervention_id: UUID):
    intervention = intervention_service.get_intervention(db, session.org_id, intervention_id)
    if not intervention:
        raise HTTPException(status_code=404, detail="Intervention not found")
    return intervention


@router.get("", response_model=list[InterventionRead])
def list_interventions(
    status: InterventionStatus | None = None,
    assigned_user_id: UUID | None = None,
    family_id: UUID | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return intervention_service.list_interventions(
        db, session.org_id, status=status, assigned_user_id=assigned_user_id, family_id=family_id
    )


@router.get("/mine", response_model=list[InterventionRead])
def list_my_interventions(
    status: InterventionStatus | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Interventions assigned to the current user."""
    return intervention_service.list_interventions(
        db, session.org_id, status=status, assigned_user_id=session.user_id
    )


@router.get("/{intervention_id}", response_model=InterventionRead)
def get_intervention(
    intervention_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return _get_intervention_or_404(db, session, intervention_id)


@router.post(
    "",
    response_model=InterventionRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_intervention(
    data: InterventionCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    family = get_family_or_404(db, session, data.family_id)
    try:
        return intervention_service.create_intervention(
            db, session.org_id, family.id, data.model_dump(), actor=session
        )
    except intervention_service.AssigneeNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch(
    "/{intervention_id}",
    response_model=InterventionRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_intervention(
    intervention_id: UUID,
    data: InterventionUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    intervention = _get_intervention_or_404(db, session, intervention_id)
    try:
        return intervention_service.update_intervention(
            db, intervention, data.model_dump(exclude_unset=True), actor=session
        )
    except intervention_service.AssigneeNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch(
    "/{intervention_id}/status",
    response_model=InterventionRead,
    dependencies=[Depends(require_csrf_header)],
)
def change_intervention_status(
    intervention_id: UUID,
    data: InterventionStatusUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Move an intervention through todo -> in_progress -> done."""
    intervention = _get_intervention_or_404(db, session, intervention_id)
    return intervention_service.change_status(db, intervention, data.status, actor=session)


@router.delete(
    "/{intervention_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_intervention(
    intervention_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    intervention = _get_intervention_or_404(db, session, intervention_id)
    intervention_service.delete_intervention(db, intervention, actor=session)

"""Users router - organization member management (admin only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_db, require_csrf_header, require_roles
from aidtrack.db.enums import Role
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.user import UserCreate, UserRead, UserUpdate
from aidtrack.services import user_service

router = APIRouter()

require_admin = require_roles([Role.ADMIN])


@router.get("", response_model=list[UserRead])
def list_users(
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return user_service.list_users(db, session.org_id)


@router.post(
    "",
    response_model=UserRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_user(
    data: UserCreate,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return user_service.create_user(
            db, session.org_id, data.name, data.email, data.role, actor=session
        )
    except user_service.DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_user(
    user_id: UUID,
    data: UserUpdate,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Update name, role or active flag. Role and activation changes revoke sessions."""
    user = user_service.get_user(db, session.org_id, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        return user_service.update_user(db, user, data.model_dump(exclude_unset=True), actor=session)
    except user_service.LastAdminError as e:
        raise HTTPException(status_code=400, detail=str(e))

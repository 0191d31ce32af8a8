"""Auth router - session introspection.

Session tokens are issued out of band (`aidtrack issue-token`); the API only
verifies them.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_current_session, get_db
from aidtrack.schemas.auth import MeResponse, UserSession
from aidtrack.services import org_service

router = APIRouter()


@router.get("/me", response_model=MeResponse)
def me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Return the authenticated user and their organization."""
    org = org_service.get_org_by_id(db, session.org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return MeResponse(
        user_id=session.user_id,
        email=session.email,
        display_name=session.display_name,
        org_id=org.id,
        org_name=org.name,
        org_slug=org.slug,
        role=session.role,
    )

"""Dashboard router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_current_session, get_db
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.dashboard import DashboardStats
from aidtrack.services import dashboard_service

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
def get_stats(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return dashboard_service.get_stats(db, session.org_id)

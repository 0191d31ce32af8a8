"""Export router - full organization data dump (admin only)."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_db, require_roles
from aidtrack.db.enums import Role
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.export import ExportData
from aidtrack.services import dashboard_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/export", response_model=ExportData)
def export_data(
    session: UserSession = Depends(require_roles([Role.ADMIN])),
    db: Session = Depends(get_db),
):
    """Every active family with children, needs and aids, plus dashboard stats."""
    export = dashboard_service.build_export(db, session.org_id)
    logger.info(
        "Data export for org %s by user %s: %d families",
        session.org_id, session.user_id, len(export.families),
    )
    return export

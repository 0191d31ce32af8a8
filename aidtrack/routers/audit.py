"""Audit router - organization audit trail (admin only)."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_db, require_roles
from aidtrack.db.enums import AuditEntityType, Role
from aidtrack.schemas.audit import AuditLogListResponse
from aidtrack.schemas.auth import UserSession
from aidtrack.services import audit_service
from aidtrack.utils.pagination import PaginationParams, get_pagination, paginate_query

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
def list_audit_logs(
    entity_type: AuditEntityType | None = None,
    entity_id: str | None = Query(None, max_length=64),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(require_roles([Role.ADMIN])),
    db: Session = Depends(get_db),
):
    """List audit entries, newest first."""
    query = audit_service.list_entries(
        db,
        session.org_id,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
    )
    items, total = paginate_query(query, pagination)
    return pagination.envelope(items, total)

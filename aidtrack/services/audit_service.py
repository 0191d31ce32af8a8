"""Audit trail service.

Records who created, updated or deleted what, per organization. Entries are
added to the caller's transaction (no commit here) so the audit row and the
change it describes are written together.

Guidelines:
- Never put free-text beneficiary data (names, notes, health details) in
  `details`; use ids and field names.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from aidtrack.core.config import settings
from aidtrack.db.enums import AuditAction, AuditEntityType
from aidtrack.db.models import AuditLog
from aidtrack.schemas.auth import UserSession

logger = logging.getLogger(__name__)

SYSTEM_ACTOR_NAME = "system"


def log_event(
    db: Session,
    org_id: UUID,
    action: AuditAction,
    entity_type: AuditEntityType,
    entity_id: UUID | str,
    actor: UserSession | None = None,
    details: str = "",
) -> AuditLog:
    """
    Add an audit entry and prune the organization's oldest entries.

    Args:
        db: Database session (caller commits)
        org_id: Organization context
        action: created | updated | deleted
        entity_type: Kind of entity affected
        entity_id: ID of the affected entity
        actor: Session of the acting user (None for CLI/system events)
        details: Short, PII-free description (e.g. changed field names)
    """
    entry = AuditLog(
        organization_id=org_id,
        actor_user_id=actor.user_id if actor else None,
        actor_name=actor.display_name if actor else SYSTEM_ACTOR_NAME,
        action=action.value,
        entity_type=entity_type.value,
        entity_id=str(entity_id),
        details=details,
    )
    db.add(entry)
    db.flush()
    prune_entries(db, org_id)
    return entry


def prune_entries(db: Session, org_id: UUID, keep: int | None = None) -> int:
    """Delete entries beyond the retention cap, oldest first. Returns count deleted."""
    keep = settings.AUDIT_LOG_MAX_ENTRIES if keep is None else keep
    stale_ids = [
        row.id
        for row in db.query(AuditLog.id)
        .filter(AuditLog.organization_id == org_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(keep)
        .all()
    ]
    if not stale_ids:
        return 0
    db.query(AuditLog).filter(AuditLog.id.in_(stale_ids)).delete(synchronize_session=False)
    logger.debug("Pruned %d audit entries for org %s", len(stale_ids), org_id)
    return len(stale_ids)


def list_entries(
    db: Session,
    org_id: UUID,
    entity_type: str | None = None,
    entity_id: str | None = None,
):
    """Query of an organization's audit entries, newest first."""
    query = db.query(AuditLog).filter(AuditLog.organization_id == org_id)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(AuditLog.entity_id == entity_id)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())


def changed_fields(data: dict) -> str:
    """Describe an update by its field names only."""
    return "fields: " + ", ".join(sorted(data)) if data else ""

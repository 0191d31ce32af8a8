"""Need service - CRUD, priority annotation and aid reconciliation."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from aidtrack.db.enums import AuditAction, AuditEntityType, NeedStatus
from aidtrack.db.models import Family, Need
from aidtrack.db.types import utcnow
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.need import NeedRead
from aidtrack.services import audit_service
from aidtrack.services.need_priority import compute_priority, priority_sort_key


# One reconciliation step per recorded aid
NEXT_STATUS = {
    NeedStatus.PENDING.value: NeedStatus.PARTIAL.value,
    NeedStatus.PARTIAL.value: NeedStatus.COVERED.value,
}


class StatusChangeForbiddenError(Exception):
    """Only admins may set a need's status explicitly."""


def to_need_read(need: Need, last_visit_at: datetime | None, now: datetime) -> NeedRead:
    priority = compute_priority(need.urgency, need.status, need.created_at, last_visit_at, now)
    return NeedRead(
        id=need.id,
        family_id=need.family_id,
        type=need.type,
        urgency=need.urgency,
        status=need.status,
        details=need.details,
        comment=need.comment,
        created_at=need.created_at,
        updated_at=need.updated_at,
        priority_score=priority.score,
        priority_level=priority.level,
    )


def sort_by_priority(needs: list[NeedRead]) -> list[NeedRead]:
    return sorted(
        needs,
        key=lambda n: priority_sort_key(n.priority_score, n.urgency, n.created_at, n.id),
    )


def list_needs(
    db: Session,
    org_id: UUID,
    family_id: UUID | None = None,
    open_only: bool = False,
    now: datetime | None = None,
) -> list[NeedRead]:
    """
    Needs of active families annotated with priority, highest first.

    Covered needs score below every open need, so they always come last.
    """
    now = now or utcnow()
    query = (
        db.query(Need, Family.last_visit_at)
        .join(Family, Family.id == Need.family_id)
        .filter(Need.organization_id == org_id, Family.archived.is_(False))
    )
    if family_id:
        query = query.filter(Need.family_id == family_id)
    if open_only:
        query = query.filter(Need.status != NeedStatus.COVERED.value)
    return sort_by_priority([to_need_read(need, last_visit, now) for need, last_visit in query.all()])


def get_need(db: Session, org_id: UUID, need_id: UUID) -> Need | None:
    return db.query(Need).filter(Need.id == need_id, Need.organization_id == org_id).first()


def read_need(db: Session, need: Need, now: datetime | None = None) -> NeedRead:
    family = db.get(Family, need.family_id)
    return to_need_read(need, family.last_visit_at if family else None, now or utcnow())


def create_need(
    db: Session, family: Family, data: dict, actor: UserSession | None = None
) -> Need:
    need = Need(
        organization_id=family.organization_id,
        family_id=family.id,
        type=data["type"],
        urgency=data["urgency"].value if hasattr(data["urgency"], "value") else data["urgency"],
        details=data.get("details") or "",
        comment=data.get("comment") or "",
    )
    db.add(need)
    db.flush()
    audit_service.log_event(
        db, family.organization_id, AuditAction.CREATED, AuditEntityType.NEED, need.id,
        actor=actor,
    )
    db.commit()
    db.refresh(need)
    return need


def update_need(
    db: Session,
    need: Need,
    data: dict,
    actor: UserSession | None = None,
    allow_status_change: bool = False,
) -> Need:
    """
    Partial update.

    Raises:
        StatusChangeForbiddenError: `status` supplied without admin rights
    """
    if data.get("status") is not None and not allow_status_change:
        raise StatusChangeForbiddenError("Only admins can change a need's status")

    for field in ("type", "urgency", "status", "details", "comment"):
        value = data.get(field)
        if value is not None:
            setattr(need, field, value.value if hasattr(value, "value") else value)
    need.updated_at = utcnow()
    audit_service.log_event(
        db, need.organization_id, AuditAction.UPDATED, AuditEntityType.NEED, need.id,
        actor=actor, details=audit_service.changed_fields(data),
    )
    db.commit()
    db.refresh(need)
    return need


def delete_need(db: Session, need: Need, actor: UserSession | None = None) -> None:
    audit_service.log_event(
        db, need.organization_id, AuditAction.DELETED, AuditEntityType.NEED, need.id,
        actor=actor,
    )
    db.delete(need)
    db.commit()


def advance_matching_needs(db: Session, org_id: UUID, family_id: UUID, need_type: str) -> list[Need]:
    """
    Move every open need of this family and type one step forward.

    pending -> partial, partial -> covered. Caller commits.
    """
    needs = (
        db.query(Need)
        .filter(
            Need.organization_id == org_id,
            Need.family_id == family_id,
            Need.type == need_type,
            Need.status != NeedStatus.COVERED.value,
        )
        .all()
    )
    now = utcnow()
    for need in needs:
        need.status = NEXT_STATUS[need.status]
        need.updated_at = now
    return needs

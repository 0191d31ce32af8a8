"""Intervention service - planned visits and their lifecycle."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from aidtrack.db.enums import AuditAction, AuditEntityType, InterventionStatus
from aidtrack.db.models import Intervention, User
from aidtrack.db.types import utcnow
from aidtrack.schemas.auth import UserSession
from aidtrack.services import audit_service


class AssigneeNotFoundError(ValueError):
    """Assigned user is not an active member of this organization."""


def _resolve_assignee(db: Session, org_id: UUID, user_id: UUID) -> User:
    user = (
        db.query(User)
        .filter(User.id == user_id, User.organization_id == org_id, User.is_active.is_(True))
        .first()
    )
    if not user:
        raise AssigneeNotFoundError("Assigned user not found")
    return user


def _checklist_payload(items) -> list[dict]:
    return [item.model_dump() if hasattr(item, "model_dump") else dict(item) for item in items]


def list_interventions(
    db: Session,
    org_id: UUID,
    status: InterventionStatus | None = None,
    assigned_user_id: UUID | None = None,
    family_id: UUID | None = None,
) -> list[Intervention]:
    """List interventions ordered by planned time (soonest first)."""
    query = db.query(Intervention).filter(Intervention.organization_id == org_id)
    if status:
        query = query.filter(Intervention.status == status.value)
    if assigned_user_id:
        query = query.filter(Intervention.assigned_user_id == assigned_user_id)
    if family_id:
        query = query.filter(Intervention.family_id == family_id)
    return query.order_by(Intervention.planned_at, Intervention.id).all()


def get_intervention(db: Session, org_id: UUID, intervention_id: UUID) -> Intervention | None:
    return (
        db.query(Intervention)
        .filter(Intervention.id == intervention_id, Intervention.organization_id == org_id)
        .first()
    )


def create_intervention(
    db: Session,
    org_id: UUID,
    family_id: UUID,
    data: dict,
    actor: UserSession | None = None,
) -> Intervention:
    """
    Raises:
        AssigneeNotFoundError: assignee not in organization or inactive
    """
    assignee = _resolve_assignee(db, org_id, data["assigned_user_id"])
    intervention = Intervention(
        organization_id=org_id,
        family_id=family_id,
        assigned_user_id=assignee.id,
        assigned_user_name=assignee.name,
        planned_at=data["planned_at"],
        checklist=_checklist_payload(data.get("checklist") or []),
        notes=data.get("notes") or "",
    )
    db.add(intervention)
    db.flush()
    audit_service.log_event(
        db, org_id, AuditAction.CREATED, AuditEntityType.INTERVENTION, intervention.id,
        actor=actor,
    )
    db.commit()
    db.refresh(intervention)
    return intervention


def update_intervention(
    db: Session,
    intervention: Intervention,
    data: dict,
    actor: UserSession | None = None,
) -> Intervention:
    if data.get("assigned_user_id") is not None:
        assignee = _resolve_assignee(db, intervention.organization_id, data["assigned_user_id"])
        intervention.assigned_user_id = assignee.id
        intervention.assigned_user_name = assignee.name
    if data.get("planned_at") is not None:
        intervention.planned_at = data["planned_at"]
    if data.get("checklist") is not None:
        # Reassign so the JSON column is flagged dirty
        intervention.checklist = _checklist_payload(data["checklist"])
    if data.get("notes") is not None:
        intervention.notes = data["notes"]
    intervention.updated_at = utcnow()

    audit_service.log_event(
        db, intervention.organization_id, AuditAction.UPDATED, AuditEntityType.INTERVENTION,
        intervention.id, actor=actor, details=audit_service.changed_fields(data),
    )
    db.commit()
    db.refresh(intervention)
    return intervention


def apply_status(intervention: Intervention, status: InterventionStatus, now: datetime) -> None:
    """
    Set status and lifecycle timestamps.

    in_progress stamps started_at once; done stamps completed_at (and
    started_at if the visit was never marked started); back to todo clears
    completed_at.
    """
    intervention.status = status.value
    if status == InterventionStatus.IN_PROGRESS:
        if intervention.started_at is None:
            intervention.started_at = now
        intervention.completed_at = None
    elif status == InterventionStatus.DONE:
        if intervention.started_at is None:
            intervention.started_at = now
        intervention.completed_at = now
    else:
        intervention.completed_at = None


def change_status(
    db: Session,
    intervention: Intervention,
    status: InterventionStatus,
    actor: UserSession | None = None,
) -> Intervention:
    previous = intervention.status
    now = utcnow()
    apply_status(intervention, status, now)
    intervention.updated_at = now
    audit_service.log_event(
        db, intervention.organization_id, AuditAction.UPDATED, AuditEntityType.INTERVENTION,
        intervention.id, actor=actor, details=f"status: {previous} -> {status.value}",
    )
    db.commit()
    db.refresh(intervention)
    return intervention


def delete_intervention(
    db: Session, intervention: Intervention, actor: UserSession | None = None
) -> None:
    audit_service.log_event(
        db, intervention.organization_id, AuditAction.DELETED, AuditEntityType.INTERVENTION,
        intervention.id, actor=actor,
    )
    db.delete(intervention)
    db.commit()

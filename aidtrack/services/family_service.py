"""Family service - households, children and visit notes."""

import logging
import re
from datetime import datetime
from typing import Any
from uuid import UUID

import nh3
from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aidtrack.db.enums import AuditAction, AuditEntityType, FamilyHousing
from aidtrack.db.models import Child, Family, VisitNote
from aidtrack.db.types import utcnow
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.family import FamilyCreate, FamilyUpdate
from aidtrack.services import audit_service

logger = logging.getLogger(__name__)


# Allowed HTML tags for rich-text visit notes
ALLOWED_TAGS = {"p", "br", "strong", "em", "ul", "ol", "li", "a", "blockquote", "h1", "h2", "h3"}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}}

FAMILY_FIELDS = (
    "responsible_name",
    "phone",
    "address",
    "neighborhood",
    "member_count",
    "children_count",
    "housing",
    "health_notes",
    "has_medical_needs",
    "notes",
)


def sanitize_html(html: str) -> str:
    """Sanitize HTML to prevent XSS, allowing only safe rich text tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


def _apply_fields(family: Family, data: dict) -> None:
    for field in FAMILY_FIELDS:
        if field in data and data[field] is not None:
            setattr(family, field, _enum_value(data[field]))


# =============================================================================
# Families
# =============================================================================

def get_family(
    db: Session, org_id: UUID, family_id: UUID, include_archived: bool = False
) -> Family | None:
    """Get a family scoped to the organization. Archived families are hidden by default."""
    query = db.query(Family).filter(Family.id == family_id, Family.organization_id == org_id)
    if not include_archived:
        query = query.filter(Family.archived.is_(False))
    return query.first()


def list_families_query(db: Session, org_id: UUID, search: str | None = None):
    """
    Query of active families, most recently updated first.

    `search` matches name, neighborhood, phone or address (case-insensitive).
    """
    query = db.query(Family).filter(
        Family.organization_id == org_id,
        Family.archived.is_(False),
    )
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                Family.responsible_name.ilike(pattern),
                Family.neighborhood.ilike(pattern),
                Family.phone.ilike(pattern),
                Family.address.ilike(pattern),
            )
        )
    return query.order_by(Family.updated_at.desc(), Family.id)


def create_family(
    db: Session, org_id: UUID, data: dict, actor: UserSession | None = None
) -> Family:
    family = Family(organization_id=org_id)
    _apply_fields(family, data)
    family.responsible_name = family.responsible_name.strip()
    db.add(family)
    db.flush()
    audit_service.log_event(
        db, org_id, AuditAction.CREATED, AuditEntityType.FAMILY, family.id, actor=actor
    )
    db.commit()
    db.refresh(family)
    return family


def update_family(
    db: Session, family: Family, data: dict, actor: UserSession | None = None
) -> Family:
    """Partial update. `last_visit_at` is not user-editable and is ignored."""
    _apply_fields(family, data)
    family.updated_at = utcnow()
    audit_service.log_event(
        db, family.organization_id, AuditAction.UPDATED, AuditEntityType.FAMILY, family.id,
        actor=actor, details=audit_service.changed_fields(data),
    )
    db.commit()
    db.refresh(family)
    return family


def archive_family(db: Session, family: Family, actor: UserSession | None = None) -> Family:
    """Archive instead of delete; history (aids, notes, documents) is kept."""
    family.archived = True
    family.updated_at = utcnow()
    audit_service.log_event(
        db, family.organization_id, AuditAction.DELETED, AuditEntityType.FAMILY, family.id,
        actor=actor, details="archived",
    )
    db.commit()
    db.refresh(family)
    return family


def touch_last_visit(family: Family, visited_at: datetime) -> None:
    """Record a visit on the family (caller commits)."""
    family.last_visit_at = visited_at
    family.updated_at = utcnow()


# =============================================================================
# Bulk import
# =============================================================================

IMPORT_STRATEGIES = ("skip", "update")

# Housing labels found in spreadsheets kept by associations
HOUSING_ALIASES = {
    "housed": FamilyHousing.HOUSED,
    "heberge": FamilyHousing.HOUSED,
    "hébergé": FamilyHousing.HOUSED,
    "heberge en foyer": FamilyHousing.HOUSED,
    "hébergé en foyer": FamilyHousing.HOUSED,
    "en foyer": FamilyHousing.HOUSED,
    "pending_placement": FamilyHousing.PENDING_PLACEMENT,
    "en attente": FamilyHousing.PENDING_PLACEMENT,
    "en attente de placement": FamilyHousing.PENDING_PLACEMENT,
    "not_housed": FamilyHousing.NOT_HOUSED,
    "sans hebergement": FamilyHousing.NOT_HOUSED,
    "sans hébergement": FamilyHousing.NOT_HOUSED,
    "sans domicile": FamilyHousing.NOT_HOUSED,
}

TRUE_VALUES = {"1", "true", "yes", "oui"}
FALSE_VALUES = {"0", "false", "no", "non"}

STRING_IMPORT_FIELDS = ("responsible_name", "phone", "address", "neighborhood", "health_notes", "notes")
INT_IMPORT_FIELDS = ("member_count", "children_count")


def normalize_phone(phone: str | None) -> str:
    """Digits only, so '06 00-00.00.00' and '0600000000' compare equal."""
    return re.sub(r"\D", "", phone or "")


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    text = _to_str(value)
    if text is None:
        return None
    text = text.lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return None


def _to_housing(value: Any) -> FamilyHousing | None:
    text = _to_str(value)
    if text is None:
        return None
    return HOUSING_ALIASES.get(" ".join(text.lower().split()))


def normalize_import_row(row: dict[str, Any]) -> dict[str, Any]:
    """
    Coerce a spreadsheet row into family fields.

    Blank and unparseable cells are dropped, so they fall back to defaults on
    create and leave the stored value alone on update. Unknown keys are ignored.
    """
    values: dict[str, Any] = {}
    for field in STRING_IMPORT_FIELDS:
        values[field] = _to_str(row.get(field))
    for field in INT_IMPORT_FIELDS:
        values[field] = _to_int(row.get(field))
    values["housing"] = _to_housing(row.get("housing"))
    values["has_medical_needs"] = _to_bool(row.get("has_medical_needs"))
    return {field: value for field, value in values.items() if value is not None}


def import_families(
    db: Session,
    org_id: UUID,
    rows: list[dict[str, Any]],
    duplicate_strategy: str = "skip",
    actor: UserSession | None = None,
) -> dict:
    """
    Create or update families from imported rows in a single transaction.

    A row matches an active family when their phone numbers have the same
    digits. Matches are skipped or updated according to `duplicate_strategy`.
    Rows that fail validation are reported by 1-based position and do not stop
    the import. A database failure rolls back every row.

    Returns:
        {"created", "updated", "skipped", "errors": [{"row", "message"}]}
    """
    if duplicate_strategy not in IMPORT_STRATEGIES:
        raise ValueError(f"Unknown duplicate strategy: {duplicate_strategy}")

    existing_by_phone: dict[str, Family] = {}
    active = db.query(Family).filter(Family.organization_id == org_id, Family.archived.is_(False))
    for family in active.order_by(Family.created_at, Family.id):
        key = normalize_phone(family.phone)
        if key:
            existing_by_phone.setdefault(key, family)

    result: dict = {"created": 0, "updated": 0, "skipped": 0, "errors": []}

    try:
        for index, row in enumerate(rows, start=1):
            values = normalize_import_row(row)
            phone_key = normalize_phone(values.get("phone"))
            existing = existing_by_phone.get(phone_key) if phone_key else None

            if existing is not None:
                if duplicate_strategy == "skip":
                    result["skipped"] += 1
                    continue
                try:
                    changes = FamilyUpdate(**values).model_dump(exclude_unset=True)
                except ValidationError:
                    result["errors"].append({"row": index, "message": "Invalid data for update"})
                    continue
                _apply_fields(existing, changes)
                existing.updated_at = utcnow()
                audit_service.log_event(
                    db, org_id, AuditAction.UPDATED, AuditEntityType.FAMILY, existing.id,
                    actor=actor, details=f"import, {audit_service.changed_fields(changes)}",
                )
                result["updated"] += 1
                continue

            try:
                data = FamilyCreate(**{"housing": FamilyHousing.NOT_HOUSED, **values}).model_dump()
            except ValidationError:
                result["errors"].append({"row": index, "message": "Invalid or incomplete data"})
                continue
            family = Family(organization_id=org_id)
            _apply_fields(family, data)
            family.responsible_name = family.responsible_name.strip()
            db.add(family)
            db.flush()
            audit_service.log_event(
                db, org_id, AuditAction.CREATED, AuditEntityType.FAMILY, family.id,
                actor=actor, details="import",
            )
            result["created"] += 1
            if phone_key:
                existing_by_phone[phone_key] = family

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Family import failed for org %s, no row applied", org_id)
        raise

    logger.info(
        "Family import for org %s: %d created, %d updated, %d skipped, %d errors",
        org_id, result["created"], result["updated"], result["skipped"], len(result["errors"]),
    )
    return result


# =============================================================================
# Children
# =============================================================================

def list_children(db: Session, family: Family) -> list[Child]:
    return (
        db.query(Child)
        .filter(Child.family_id == family.id, Child.organization_id == family.organization_id)
        .order_by(Child.created_at, Child.id)
        .all()
    )


def get_child(db: Session, org_id: UUID, child_id: UUID) -> Child | None:
    return (
        db.query(Child)
        .filter(Child.id == child_id, Child.organization_id == org_id)
        .first()
    )


def create_child(
    db: Session, family: Family, data: dict, actor: UserSession | None = None
) -> Child:
    child = Child(
        organization_id=family.organization_id,
        family_id=family.id,
        first_name=data["first_name"].strip(),
        age=data["age"],
        sex=_enum_value(data["sex"]),
        specific_needs=data.get("specific_needs") or "",
    )
    db.add(child)
    db.flush()
    audit_service.log_event(
        db, family.organization_id, AuditAction.CREATED, AuditEntityType.CHILD, child.id,
        actor=actor,
    )
    db.commit()
    db.refresh(child)
    return child


def update_child(
    db: Session, child: Child, data: dict, actor: UserSession | None = None
) -> Child:
    for field in ("first_name", "age", "sex", "specific_needs"):
        if field in data and data[field] is not None:
            setattr(child, field, _enum_value(data[field]))
    audit_service.log_event(
        db, child.organization_id, AuditAction.UPDATED, AuditEntityType.CHILD, child.id,
        actor=actor, details=audit_service.changed_fields(data),
    )
    db.commit()
    db.refresh(child)
    return child


def delete_child(db: Session, child: Child, actor: UserSession | None = None) -> None:
    audit_service.log_event(
        db, child.organization_id, AuditAction.DELETED, AuditEntityType.CHILD, child.id,
        actor=actor,
    )
    db.delete(child)
    db.commit()


# =============================================================================
# Visit notes
# =============================================================================

def list_visit_notes(db: Session, family: Family) -> list[VisitNote]:
    """List notes for a family, newest first."""
    return (
        db.query(VisitNote)
        .filter(
            VisitNote.family_id == family.id,
            VisitNote.organization_id == family.organization_id,
        )
        .order_by(VisitNote.date.desc(), VisitNote.id)
        .all()
    )


def get_visit_note(db: Session, org_id: UUID, note_id: UUID) -> VisitNote | None:
    return (
        db.query(VisitNote)
        .filter(VisitNote.id == note_id, VisitNote.organization_id == org_id)
        .first()
    )


def create_visit_note(
    db: Session,
    family: Family,
    session: UserSession,
    content: str,
    date: datetime | None = None,
) -> VisitNote:
    """Create a visit note and stamp the family's last visit with its date."""
    note = VisitNote(
        organization_id=family.organization_id,
        family_id=family.id,
        volunteer_id=session.user_id,
        volunteer_name=session.display_name,
        content=sanitize_html(content),
        date=date or utcnow(),
    )
    db.add(note)
    touch_last_visit(family, note.date)
    db.flush()
    audit_service.log_event(
        db, family.organization_id, AuditAction.CREATED, AuditEntityType.NOTE, note.id,
        actor=session,
    )
    db.commit()
    db.refresh(note)
    return note


def delete_visit_note(db: Session, note: VisitNote, actor: UserSession | None = None) -> None:
    audit_service.log_event(
        db, note.organization_id, AuditAction.DELETED, AuditEntityType.NOTE, note.id,
        actor=actor,
    )
    db.delete(note)
    db.commit()

"""User service - organization members and session revocation."""

from uuid import UUID

from sqlalchemy.orm import Session

from aidtrack.db.enums import AuditAction, AuditEntityType, Role
from aidtrack.db.models import User
from aidtrack.schemas.auth import UserSession
from aidtrack.services import audit_service


class UserServiceError(Exception):
    """Base exception for user service errors."""


class DuplicateEmailError(UserServiceError, ValueError):
    """Another account already uses this email."""


class LastAdminError(UserServiceError, ValueError):
    """The change would leave the organization without an active admin."""


def get_user(db: Session, org_id: UUID, user_id: UUID) -> User | None:
    """Get user by ID within an organization."""
    return (
        db.query(User)
        .filter(User.id == user_id, User.organization_id == org_id)
        .first()
    )


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(User.email == email.lower()).first()


def list_users(db: Session, org_id: UUID) -> list[User]:
    return (
        db.query(User)
        .filter(User.organization_id == org_id)
        .order_by(User.name, User.id)
        .all()
    )


def create_user(
    db: Session,
    org_id: UUID,
    name: str,
    email: str,
    role: Role,
    actor: UserSession | None = None,
) -> User:
    """
    Create a user in an organization.

    Raises:
        DuplicateEmailError: email already registered
    """
    if get_user_by_email(db, email):
        raise DuplicateEmailError(f"A user with email {email.lower()} already exists")

    user = User(
        organization_id=org_id,
        name=name.strip(),
        email=email.lower(),
        role=role.value,
    )
    db.add(user)
    db.flush()
    audit_service.log_event(
        db, org_id, AuditAction.CREATED, AuditEntityType.USER, user.id, actor=actor,
        details=f"role: {role.value}",
    )
    db.commit()
    db.refresh(user)
    return user


def _active_admin_count(db: Session, org_id: UUID) -> int:
    return (
        db.query(User)
        .filter(
            User.organization_id == org_id,
            User.role == Role.ADMIN.value,
            User.is_active.is_(True),
        )
        .count()
    )


def update_user(
    db: Session,
    user: User,
    data: dict,
    actor: UserSession | None = None,
) -> User:
    """
    Apply a partial update.

    Disabling a user or changing their role also revokes their sessions by
    bumping token_version.

    Raises:
        LastAdminError: demoting or disabling the last active admin
    """
    new_role = data.get("role")
    demotes = new_role is not None and Role(new_role) != Role.ADMIN
    disables = data.get("is_active") is False
    if (
        user.role == Role.ADMIN.value
        and user.is_active
        and (demotes or disables)
        and _active_admin_count(db, user.organization_id) <= 1
    ):
        raise LastAdminError("The organization must keep at least one active admin")

    revoke = False
    if "name" in data and data["name"] is not None:
        user.name = data["name"].strip()
    if new_role is not None and Role(new_role).value != user.role:
        user.role = Role(new_role).value
        revoke = True
    if "is_active" in data and data["is_active"] is not None and data["is_active"] != user.is_active:
        user.is_active = data["is_active"]
        revoke = True
    if revoke:
        user.token_version += 1

    audit_service.log_event(
        db, user.organization_id, AuditAction.UPDATED, AuditEntityType.USER, user.id,
        actor=actor, details=audit_service.changed_fields(data),
    )
    db.commit()
    db.refresh(user)
    return user


def revoke_all_sessions(db: Session, user: User) -> None:
    """
    Revoke all sessions for a user by bumping token_version.

    Existing tokens with old version will fail validation.
    """
    user.token_version += 1
    db.commit()

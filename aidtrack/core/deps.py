"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from aidtrack.core.security import decode_session_token
from aidtrack.db.enums import Role
from aidtrack.db.models import User
from aidtrack.db.session import SessionLocal
from aidtrack.schemas.auth import UserSession


# Cookie and header names
COOKIE_NAME = "aidtrack_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _read_token(request: Request) -> str | None:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Get authenticated user from the session cookie or bearer header.

    Validates:
    - Token exists
    - JWT is valid and not expired
    - User exists and is active
    - Token version matches (for revocation support)

    Raises:
        HTTPException 401: Authentication failed
    """
    token = _read_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_session_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid session")

    user = db.get(User, _parse_uuid(payload.get("sub")))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")

    # Token version check (revocation support)
    if user.token_version != payload.get("token_version"):
        raise HTTPException(status_code=401, detail="Session revoked")

    if str(user.organization_id) != payload.get("org_id"):
        raise HTTPException(status_code=401, detail="Invalid session")

    return user


def _parse_uuid(value) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session")


def get_current_session(request: Request, db: Session = Depends(get_db)) -> UserSession:
    """
    Get full session context: user_id, org_id, role.

    This is the PRIMARY auth dependency for most endpoints.
    The role is read from the user row, not the token, so demotions apply
    immediately.

    Raises:
        HTTPException 401: Not authenticated
        HTTPException 403: Unknown role
    """
    user = get_current_user(request, db)

    # Validate role is a known enum value - return 403 not 500
    if not Role.has_value(user.role):
        raise HTTPException(
            status_code=403,
            detail=f"Unknown role '{user.role}'. Contact administrator.",
        )

    # Picked up by the request logging middleware
    request.state.user_id = str(user.id)
    request.state.org_id = str(user.organization_id)

    return UserSession(
        user_id=user.id,
        org_id=user.organization_id,
        role=Role(user.role),
        email=user.email,
        display_name=user.name,
    )


def require_roles(allowed_roles: list[Role]):
    """
    Dependency factory for role-based authorization.

    Usage:
        @router.delete("/{id}", dependencies=[Depends(require_roles([Role.ADMIN]))])
    """

    def dependency(request: Request, db: Session = Depends(get_db)) -> UserSession:
        session = get_current_session(request, db)
        if session.role not in allowed_roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{session.role.value}' not authorized for this action",
            )
        return session

    return dependency


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on mutations.

    Apply to state-changing endpoints (POST, PATCH, DELETE).

    Raises:
        HTTPException 403: Missing or invalid CSRF header
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'",
        )


def is_admin(session: UserSession) -> bool:
    return session.role == Role.ADMIN

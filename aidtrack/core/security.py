"""Security utilities for JWT session tokens and signed download tokens."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from aidtrack.core.config import settings


DOWNLOAD_TOKEN_PURPOSE = "document_download"


# =============================================================================
# Session Token (JWT in cookie or bearer header)
# =============================================================================

def create_session_token(
    user_id: UUID,
    org_id: UUID,
    role: str,
    token_version: int
) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    Token contains user identity, org context, and revocation version.
    """
    payload = {
        "sub": str(user_id),
        "org_id": str(org_id),
        "role": role,
        "token_version": token_version,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


# =============================================================================
# Download Token (local storage backend)
# =============================================================================

def create_download_token(storage_key: str, expires_in_seconds: int) -> str:
    """Sign a short-lived token granting read access to one stored object."""
    payload = {
        "key": storage_key,
        "purpose": DOWNLOAD_TOKEN_PURPOSE,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in_seconds),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_download_token(token: str) -> str:
    """
    Return the storage key carried by a download token.

    Raises:
        jwt.InvalidTokenError: expired, tampered or wrong-purpose token
    """
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
    if payload.get("purpose") != DOWNLOAD_TOKEN_PURPOSE or not payload.get("key"):
        raise jwt.InvalidTokenError("Not a download token")
    return payload["key"]

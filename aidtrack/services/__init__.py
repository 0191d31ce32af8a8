"""Service layer modules."""

from aidtrack.services.org_service import (
    create_org,
    get_org_by_id,
    get_org_by_slug,
)
from aidtrack.services.user_service import (
    get_user,
    get_user_by_email,
    revoke_all_sessions,
)

__all__ = [
    # Org service
    "get_org_by_id",
    "get_org_by_slug",
    "create_org",
    # User service
    "get_user",
    "get_user_by_email",
    "revoke_all_sessions",
]

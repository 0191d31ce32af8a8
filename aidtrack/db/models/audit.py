"""SQLAlchemy ORM models for the audit trail."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aidtrack.db.base import Base
from aidtrack.db.types import utcnow

if TYPE_CHECKING:
    from aidtrack.db.models import User


class AuditLog(Base):
    """
    Per-organization record of who changed what.

    Retention is capped per organization (AUDIT_LOG_MAX_ENTRIES); older rows
    are pruned when new ones are written.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("idx_audit_org_created", "organization_id", "created_at"),
        Index("idx_audit_org_entity", "organization_id", "entity_type", "entity_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    actor_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,  # CLI events have no actor
    )
    actor_name: Mapped[str] = mapped_column(String(255), nullable=False)

    action: Mapped[str] = mapped_column(String(20), nullable=False)  # AuditAction
    entity_type: Mapped[str] = mapped_column(String(30), nullable=False)  # AuditEntityType
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[str] = mapped_column(Text, default="", nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    actor: Mapped["User | None"] = relationship()

"""SQLAlchemy ORM models for family needs."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aidtrack.db.base import Base
from aidtrack.db.enums import DEFAULT_NEED_STATUS
from aidtrack.db.types import utcnow


if TYPE_CHECKING:
    from aidtrack.db.models import Family


class Need(Base):
    """
    Something a family requires, keyed by category id in `type`.

    Priority is derived at read time (see services.need_priority) and is not
    stored.
    """

    __tablename__ = "needs"
    __table_args__ = (
        Index("idx_needs_org_status", "organization_id", "status"),
        Index("idx_needs_family_type", "family_id", "type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("families.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    urgency: Mapped[str] = mapped_column(String(10), nullable=False)  # NeedUrgency
    status: Mapped[str] = mapped_column(
        String(10),
        default=DEFAULT_NEED_STATUS,
        server_default=text(f"'{DEFAULT_NEED_STATUS}'"),
        nullable=False,
    )
    details: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    comment: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    family: Mapped["Family"] = relationship(back_populates="needs")

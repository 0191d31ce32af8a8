"""SQLAlchemy ORM models for planned interventions."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aidtrack.db.base import Base
from aidtrack.db.enums import DEFAULT_INTERVENTION_STATUS
from aidtrack.db.types import utcnow


if TYPE_CHECKING:
    from aidtrack.db.models import Family


class Intervention(Base):
    """
    Planned home visit or task for a family, assigned to one user.

    Lifecycle: todo -> in_progress -> done. `checklist` holds a list of
    {"id", "label", "done"} items.
    """

    __tablename__ = "interventions"
    __table_args__ = (
        Index("idx_interventions_org_status", "organization_id", "status"),
        Index("idx_interventions_assignee", "assigned_user_id", "status"),
        Index("idx_interventions_family", "family_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("families.id", ondelete="CASCADE"), nullable=False
    )
    assigned_user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_INTERVENTION_STATUS,
        server_default=text(f"'{DEFAULT_INTERVENTION_STATUS}'"),
        nullable=False,
    )
    planned_at: Mapped[datetime] = mapped_column(nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    checklist: Mapped[list[dict[str, Any]]] = mapped_column(default=list, nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    family: Mapped["Family"] = relationship(back_populates="interventions")

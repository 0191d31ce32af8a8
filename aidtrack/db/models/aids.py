"""SQLAlchemy ORM models for aid distributions."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aidtrack.db.base import Base
from aidtrack.db.types import utcnow


if TYPE_CHECKING:
    from aidtrack.db.models import Family


class Aid(Base):
    """
    A distribution of goods to a family.

    Immutable once recorded: rows are only created or (by an admin) deleted.
    """

    __tablename__ = "aids"
    __table_args__ = (
        Index("idx_aids_org_date", "organization_id", "date"),
        Index("idx_aids_family", "family_id"),
        Index("idx_aids_dedup", "family_id", "volunteer_id", "created_at"),
        CheckConstraint("quantity >= 1", name="ck_aids_quantity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("families.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    article_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("articles.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1, server_default=text("1"), nullable=False)
    date: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    volunteer_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    volunteer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)  # AidSource
    notes: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    proof_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    family: Mapped["Family"] = relationship(back_populates="aids")

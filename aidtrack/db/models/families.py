"""SQLAlchemy ORM models for beneficiary households."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aidtrack.db.base import Base
from aidtrack.db.enums import FamilyHousing
from aidtrack.db.types import utcnow


if TYPE_CHECKING:
    from aidtrack.db.models import Aid, FamilyDocument, Intervention, Need


class Family(Base):
    """
    Beneficiary household.

    `last_visit_at` is never written by a plain edit; it is stamped when an
    aid is recorded or a visit note is added. Deleting a family archives it.
    """

    __tablename__ = "families"
    __table_args__ = (
        Index("idx_families_org_archived", "organization_id", "archived"),
        CheckConstraint("member_count >= 1", name="ck_families_member_count"),
        CheckConstraint("children_count >= 0", name="ck_families_children_count"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )

    responsible_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), default="", server_default=text("''"), nullable=False)
    address: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    neighborhood: Mapped[str] = mapped_column(
        String(255), default="", server_default=text("''"), nullable=False
    )
    member_count: Mapped[int] = mapped_column(Integer, default=1, server_default=text("1"), nullable=False)
    children_count: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"), nullable=False)
    housing: Mapped[str] = mapped_column(
        String(30),
        default=FamilyHousing.HOUSED.value,
        server_default=text(f"'{FamilyHousing.HOUSED.value}'"),
        nullable=False,
    )
    health_notes: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    has_medical_needs: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("FALSE"), nullable=False
    )
    notes: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    archived: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("FALSE"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)
    last_visit_at: Mapped[datetime | None] = mapped_column(nullable=True)

    children: Mapped[list["Child"]] = relationship(
        back_populates="family", cascade="all, delete-orphan", passive_deletes=True
    )
    needs: Mapped[list["Need"]] = relationship(
        back_populates="family", cascade="all, delete-orphan", passive_deletes=True
    )
    aids: Mapped[list["Aid"]] = relationship(
        back_populates="family", cascade="all, delete-orphan", passive_deletes=True
    )
    visit_notes: Mapped[list["VisitNote"]] = relationship(
        back_populates="family", cascade="all, delete-orphan", passive_deletes=True
    )
    documents: Mapped[list["FamilyDocument"]] = relationship(
        back_populates="family", cascade="all, delete-orphan", passive_deletes=True
    )
    interventions: Mapped[list["Intervention"]] = relationship(
        back_populates="family", cascade="all, delete-orphan", passive_deletes=True
    )


class Child(Base):
    __tablename__ = "children"
    __table_args__ = (
        Index("idx_children_family", "family_id"),
        CheckConstraint("age >= 0", name="ck_children_age"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("families.id", ondelete="CASCADE"), nullable=False
    )
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    sex: Mapped[str] = mapped_column(String(10), nullable=False)  # ChildSex
    specific_needs: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    family: Mapped["Family"] = relationship(back_populates="children")


class VisitNote(Base):
    """
    Free-text record written by a volunteer after a home visit.

    Content is sanitized HTML.
    """

    __tablename__ = "visit_notes"
    __table_args__ = (Index("idx_visit_notes_family_date", "family_id", "date"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("families.id", ondelete="CASCADE"), nullable=False
    )
    volunteer_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    volunteer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    family: Mapped["Family"] = relationship(back_populates="visit_notes")

"""SQLAlchemy ORM models for the stock catalog."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aidtrack.db.base import Base
from aidtrack.db.types import utcnow


class Category(Base):
    """
    Logical grouping of goods (e.g. "food", "clothing").

    Needs and aids reference a category through their `type` column.
    """

    __tablename__ = "categories"
    __table_args__ = (Index("idx_categories_org", "organization_id"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    articles: Mapped[list["Article"]] = relationship(
        back_populates="category", cascade="all, delete-orphan", passive_deletes=True
    )


class Article(Base):
    """Stock-tracked variant of a category."""

    __tablename__ = "articles"
    __table_args__ = (
        Index("idx_articles_org_category", "organization_id", "category_id"),
        CheckConstraint("stock_quantity >= 0", name="ck_articles_stock_quantity"),
        CheckConstraint("stock_min >= 0", name="ck_articles_stock_min"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", server_default=text("''"), nullable=False)
    unit: Mapped[str] = mapped_column(String(50), default="units", server_default=text("'units'"), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"), nullable=False)
    stock_min: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    category: Mapped["Category"] = relationship(back_populates="articles")

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.stock_min

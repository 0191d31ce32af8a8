"""Pydantic schemas for stock categories and articles."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=2000)


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)


class CategoryRead(BaseModel):
    id: UUID
    name: str
    description: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ArticleCreate(BaseModel):
    category_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=2000)
    unit: str = Field("units", min_length=1, max_length=50)
    stock_quantity: int = Field(0, ge=0)
    stock_min: int = Field(0, ge=0)


class ArticleUpdate(BaseModel):
    """Admin edit of an article; stock fields are absolute values."""
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    unit: str | None = Field(None, min_length=1, max_length=50)
    stock_quantity: int | None = Field(None, ge=0)
    stock_min: int | None = Field(None, ge=0)


class StockAdjust(BaseModel):
    """Signed stock delta (restock > 0, correction < 0). Result is floored at 0."""
    delta: int


class ArticleRead(BaseModel):
    id: UUID
    category_id: UUID
    name: str
    description: str
    unit: str
    stock_quantity: int
    stock_min: int
    is_low_stock: bool
    created_at: datetime

    model_config = {"from_attributes": True}

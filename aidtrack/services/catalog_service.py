"""Stock catalog service - categories and articles."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from aidtrack.db.enums import AuditAction, AuditEntityType
from aidtrack.db.models import Article, Category
from aidtrack.schemas.auth import UserSession
from aidtrack.services import audit_service

logger = logging.getLogger(__name__)


class CategoryNotFoundError(ValueError):
    """Category does not exist in this organization."""


# =============================================================================
# Categories
# =============================================================================

def list_categories(db: Session, org_id: UUID) -> list[Category]:
    return (
        db.query(Category)
        .filter(Category.organization_id == org_id)
        .order_by(Category.name, Category.id)
        .all()
    )


def get_category(db: Session, org_id: UUID, category_id: UUID) -> Category | None:
    return (
        db.query(Category)
        .filter(Category.id == category_id, Category.organization_id == org_id)
        .first()
    )


def create_category(
    db: Session, org_id: UUID, data: dict, actor: UserSession | None = None
) -> Category:
    category = Category(
        organization_id=org_id,
        name=data["name"].strip(),
        description=data.get("description") or "",
    )
    db.add(category)
    db.flush()
    audit_service.log_event(
        db, org_id, AuditAction.CREATED, AuditEntityType.CATEGORY, category.id, actor=actor
    )
    db.commit()
    db.refresh(category)
    return category


def update_category(
    db: Session, category: Category, data: dict, actor: UserSession | None = None
) -> Category:
    for field in ("name", "description"):
        if data.get(field) is not None:
            setattr(category, field, data[field].strip() if field == "name" else data[field])
    audit_service.log_event(
        db, category.organization_id, AuditAction.UPDATED, AuditEntityType.CATEGORY,
        category.id, actor=actor, details=audit_service.changed_fields(data),
    )
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category: Category, actor: UserSession | None = None) -> None:
    """Delete a category and its articles. Needs and aids keep their `type` string."""
    audit_service.log_event(
        db, category.organization_id, AuditAction.DELETED, AuditEntityType.CATEGORY,
        category.id, actor=actor,
    )
    db.delete(category)
    db.commit()


# =============================================================================
# Articles
# =============================================================================

def list_articles(
    db: Session,
    org_id: UUID,
    category_id: UUID | None = None,
    low_stock_only: bool = False,
) -> list[Article]:
    query = db.query(Article).filter(Article.organization_id == org_id)
    if category_id:
        query = query.filter(Article.category_id == category_id)
    if low_stock_only:
        query = query.filter(Article.stock_quantity <= Article.stock_min)
    return query.order_by(Article.name, Article.id).all()


def count_low_stock(db: Session, org_id: UUID) -> int:
    return (
        db.query(Article)
        .filter(Article.organization_id == org_id, Article.stock_quantity <= Article.stock_min)
        .count()
    )


def get_article(db: Session, org_id: UUID, article_id: UUID) -> Article | None:
    return (
        db.query(Article)
        .filter(Article.id == article_id, Article.organization_id == org_id)
        .first()
    )


def create_article(
    db: Session, org_id: UUID, data: dict, actor: UserSession | None = None
) -> Article:
    """
    Raises:
        CategoryNotFoundError: category_id is not in this organization
    """
    if not get_category(db, org_id, data["category_id"]):
        raise CategoryNotFoundError("Category not found")

    article = Article(
        organization_id=org_id,
        category_id=data["category_id"],
        name=data["name"].strip(),
        description=data.get("description") or "",
        unit=data.get("unit") or "units",
        stock_quantity=data.get("stock_quantity") or 0,
        stock_min=data.get("stock_min") or 0,
    )
    db.add(article)
    db.flush()
    audit_service.log_event(
        db, org_id, AuditAction.CREATED, AuditEntityType.ARTICLE, article.id, actor=actor
    )
    db.commit()
    db.refresh(article)
    return article


def update_article(
    db: Session, article: Article, data: dict, actor: UserSession | None = None
) -> Article:
    for field in ("name", "description", "unit", "stock_quantity", "stock_min"):
        if data.get(field) is not None:
            setattr(article, field, data[field])
    audit_service.log_event(
        db, article.organization_id, AuditAction.UPDATED, AuditEntityType.ARTICLE,
        article.id, actor=actor, details=audit_service.changed_fields(data),
    )
    db.commit()
    db.refresh(article)
    return article


def apply_stock_delta(article: Article, delta: int) -> int:
    """Add a signed delta to an article's stock, floored at 0. Returns the new stock."""
    article.stock_quantity = max(0, article.stock_quantity + delta)
    return article.stock_quantity


def adjust_stock(
    db: Session, article: Article, delta: int, actor: UserSession | None = None
) -> Article:
    """Restock (delta > 0) or correct (delta < 0) an article. Never goes below 0."""
    before = article.stock_quantity
    after = apply_stock_delta(article, delta)
    if before + delta < 0:
        logger.info(
            "Stock adjust clamped at 0 for article %s (requested delta %d)", article.id, delta
        )
    audit_service.log_event(
        db, article.organization_id, AuditAction.UPDATED, AuditEntityType.ARTICLE,
        article.id, actor=actor, details=f"stock: {before} -> {after}",
    )
    db.commit()
    db.refresh(article)
    return article


def delete_article(db: Session, article: Article, actor: UserSession | None = None) -> None:
    """Delete an article. Aids that referenced it keep their record with article_id cleared."""
    audit_service.log_event(
        db, article.organization_id, AuditAction.DELETED, AuditEntityType.ARTICLE,
        article.id, actor=actor,
    )
    db.delete(article)
    db.commit()

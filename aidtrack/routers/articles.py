"""Articles router - stock-tracked goods."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_current_session, get_db, require_csrf_header, require_roles
from aidtrack.db.enums import Role
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.catalog import ArticleCreate, ArticleRead, ArticleUpdate, StockAdjust
from aidtrack.services import catalog_service

router = APIRouter()


def _get_article_or_404(db: Session, session: UserSession, article_id: UUID):
    article = catalog_service.get_article(db, session.org_id, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.get("", response_model=list[ArticleRead])
def list_articles(
    category_id: UUID | None = None,
    low_stock: bool = Query(False, description="Only articles at or below their minimum"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return catalog_service.list_articles(
        db, session.org_id, category_id=category_id, low_stock_only=low_stock
    )


@router.get("/{article_id}", response_model=ArticleRead)
def get_article(
    article_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return _get_article_or_404(db, session, article_id)


@router.post(
    "",
    response_model=ArticleRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_article(
    data: ArticleCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        return catalog_service.create_article(db, session.org_id, data.model_dump(), actor=session)
    except catalog_service.CategoryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch(
    "/{article_id}",
    response_model=ArticleRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_article(
    article_id: UUID,
    data: ArticleUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    article = _get_article_or_404(db, session, article_id)
    return catalog_service.update_article(
        db, article, data.model_dump(exclude_unset=True), actor=session
    )


@router.post(
    "/{article_id}/adjust-stock",
    response_model=ArticleRead,
    dependencies=[Depends(require_csrf_header)],
)
def adjust_stock(
    article_id: UUID,
    data: StockAdjust,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Apply a signed stock delta; the result never goes below 0."""
    article = _get_article_or_404(db, session, article_id)
    return catalog_service.adjust_stock(db, article, data.delta, actor=session)


@router.delete(
    "/{article_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_article(
    article_id: UUID,
    session: UserSession = Depends(require_roles([Role.ADMIN])),
    db: Session = Depends(get_db),
):
    article = _get_article_or_404(db, session, article_id)
    catalog_service.delete_article(db, article, actor=session)

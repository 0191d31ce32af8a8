"""Categories router - groupings used as need and aid types."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from aidtrack.core.deps import get_current_session, get_db, require_csrf_header, require_roles
from aidtrack.db.enums import Role
from aidtrack.schemas.auth import UserSession
from aidtrack.schemas.catalog import CategoryCreate, CategoryRead, CategoryUpdate
from aidtrack.services import catalog_service

router = APIRouter()


@router.get("", response_model=list[CategoryRead])
def list_categories(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return catalog_service.list_categories(db, session.org_id)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_category(
    data: CategoryCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return catalog_service.create_category(db, session.org_id, data.model_dump(), actor=session)


@router.patch(
    "/{category_id}",
    response_model=CategoryRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    category = catalog_service.get_category(db, session.org_id, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return catalog_service.update_category(
        db, category, data.model_dump(exclude_unset=True), actor=session
    )


@router.delete(
    "/{category_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_category(
    category_id: UUID,
    session: UserSession = Depends(require_roles([Role.ADMIN])),
    db: Session = Depends(get_db),
):
    """Delete a category and its articles (admin only)."""
    category = catalog_service.get_category(db, session.org_id, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    catalog_service.delete_category(db, category, actor=session)

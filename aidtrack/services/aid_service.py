"""Aid service - recording distributions and their side effects.

Recording an aid is one transaction:
1. insert the aid
2. stamp the family's last visit with the aid date
3. decrement the article's stock (floored at 0)
4. advance open needs of the same type (pending -> partial -> covered)

Identical submissions within AID_DEDUP_WINDOW_SECONDS return the existing
row instead of inserting a duplicate (double-click / client retry guard).
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aidtrack.core.config import settings
from aidtrack.db.enums import AuditAction, AuditEntityType
from aidtrack.db.models import Aid, Article, Family
from aidtrack.db.types import utcnow
from aidtrack.schemas.auth import UserSession
from aidtrack.services import audit_service, catalog_service, family_service, need_service

logger = logging.getLogger(__name__)


class AidServiceError(Exception):
    """Base exception for aid service errors."""


class FamilyNotFoundError(AidServiceError):
    """Family does not exist in this organization (or is archived)."""


class ArticleNotFoundError(AidServiceError):
    """Article does not exist in this organization."""


def find_recent_duplicate(
    db: Session,
    org_id: UUID,
    family_id: UUID,
    aid_type: str,
    article_id: UUID | None,
    quantity: int,
    date: datetime | None,
    volunteer_id: UUID,
    source: str,
    notes: str,
    now: datetime | None = None,
) -> Aid | None:
    """
    Return an identical aid created within the dedup window, if any.

    When `date` is None (client let it default) the exact date is left out of
    the comparison, since each retry would otherwise default to a new "now".
    Only aids whose own date falls inside the window can match then, so an
    aid sent earlier with an explicit back-dated date is never returned for a
    date-less submission.
    """
    now = now or utcnow()
    window_start = now - timedelta(seconds=settings.AID_DEDUP_WINDOW_SECONDS)
    query = db.query(Aid).filter(
        Aid.organization_id == org_id,
        Aid.family_id == family_id,
        Aid.type == aid_type,
        Aid.quantity == quantity,
        Aid.volunteer_id == volunteer_id,
        Aid.source == source,
        Aid.notes == notes,
        Aid.created_at >= window_start,
    )
    if article_id is None:
        query = query.filter(Aid.article_id.is_(None))
    else:
        query = query.filter(Aid.article_id == article_id)
    if date is None:
        query = query.filter(Aid.date >= window_start)
    else:
        query = query.filter(Aid.date == date)
    return query.order_by(Aid.created_at.desc()).first()


def record_aid(db: Session, org_id: UUID, session: UserSession, data: dict) -> tuple[Aid, bool]:
    """
    Record an aid with all its side effects in a single commit.

    Dedup trade-off: a date-less payload posted several times within the
    window is one aid, so it advances matching needs by one step only. Taking
    a need from pending to covered needs two distinct aids of its type
    (different notes, quantity or date).

    Returns:
        (aid, created) - created is False when a recent duplicate was returned

    Raises:
        FamilyNotFoundError: unknown or archived family
        ArticleNotFoundError: unknown article
        SQLAlchemyError: database failure (transaction rolled back)
    """
    family = family_service.get_family(db, org_id, data["family_id"])
    if not family:
        raise FamilyNotFoundError("Family not found")

    article_id = data.get("article_id")
    if article_id is not None and not catalog_service.get_article(db, org_id, article_id):
        raise ArticleNotFoundError("Article not found")

    source = data["source"].value if hasattr(data["source"], "value") else data["source"]
    quantity = data.get("quantity") or 1
    notes = data.get("notes") or ""
    requested_date = data.get("date")

    duplicate = find_recent_duplicate(
        db,
        org_id=org_id,
        family_id=family.id,
        aid_type=data["type"],
        article_id=article_id,
        quantity=quantity,
        date=requested_date,
        volunteer_id=session.user_id,
        source=source,
        notes=notes,
    )
    if duplicate:
        logger.info("Duplicate aid submission within window, returning aid %s", duplicate.id)
        return duplicate, False

    aid = Aid(
        organization_id=org_id,
        family_id=family.id,
        type=data["type"],
        article_id=article_id,
        quantity=quantity,
        date=requested_date or utcnow(),
        volunteer_id=session.user_id,
        volunteer_name=session.display_name,
        source=source,
        notes=notes,
        proof_url=data.get("proof_url"),
    )

    try:
        db.add(aid)
        family_service.touch_last_visit(family, aid.date)

        if article_id is not None:
            article = (
                db.query(Article)
                .filter(Article.id == article_id, Article.organization_id == org_id)
                .with_for_update()
                .one()
            )
            if article.stock_quantity < quantity:
                logger.warning(
                    "Aid quantity %d exceeds stock %d for article %s; stock floored at 0",
                    quantity, article.stock_quantity, article.id,
                )
            catalog_service.apply_stock_delta(article, -quantity)

        advanced = need_service.advance_matching_needs(db, org_id, family.id, aid.type)

        db.flush()
        audit_service.log_event(
            db, org_id, AuditAction.CREATED, AuditEntityType.AID, aid.id, actor=session,
            details=f"needs advanced: {len(advanced)}",
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Aid transaction failed for family %s", family.id)
        raise

    db.refresh(aid)
    return aid, True


def list_aids_query(db: Session, org_id: UUID, family_id: UUID | None = None):
    """Query of aids, most recent distribution first."""
    query = db.query(Aid).filter(Aid.organization_id == org_id)
    if family_id:
        query = query.filter(Aid.family_id == family_id)
    return query.order_by(Aid.date.desc(), Aid.created_at.desc(), Aid.id)


def recent_aids(db: Session, org_id: UUID, limit: int = 5) -> list[Aid]:
    return list_aids_query(db, org_id).limit(limit).all()


def get_aid(db: Session, org_id: UUID, aid_id: UUID) -> Aid | None:
    return db.query(Aid).filter(Aid.id == aid_id, Aid.organization_id == org_id).first()


def delete_aid(db: Session, aid: Aid, actor: UserSession | None = None) -> None:
    """
    Delete an aid record (admin correction).

    Side effects of the original recording (stock, need status, last visit)
    are not reverted.
    """
    audit_service.log_event(
        db, aid.organization_id, AuditAction.DELETED, AuditEntityType.AID, aid.id, actor=actor
    )
    db.delete(aid)
    db.commit()

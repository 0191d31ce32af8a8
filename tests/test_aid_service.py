"""Tests for the aid-recording transaction."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from aidtrack.core.config import settings
from aidtrack.db.enums import NeedStatus, Role
from aidtrack.db.models import Aid, Article, Family, Need
from aidtrack.schemas.auth import UserSession
from aidtrack.services import aid_service, need_service


@pytest.fixture
def session_ctx(test_user) -> UserSession:
    return UserSession(
        user_id=test_user.id,
        org_id=test_user.organization_id,
        role=Role(test_user.role),
        email=test_user.email,
        display_name=test_user.name,
    )


def _need(db, family, need_type, status=NeedStatus.PENDING, urgency="high") -> Need:
    need = Need(
        organization_id=family.organization_id,
        family_id=family.id,
        type=need_type,
        urgency=urgency,
        status=status.value,
    )
    db.add(need)
    db.commit()
    return need


def _payload(family, category, **overrides) -> dict:
    data = {
        "family_id": family.id,
        "type": str(category.id),
        "article_id": None,
        "quantity": 1,
        "date": None,
        "source": "donation",
        "notes": "",
        "proof_url": None,
    }
    data.update(overrides)
    return data


def test_record_aid_applies_all_side_effects(
    db, test_org, test_family, food_category, rice_article, session_ctx
):
    pending = _need(db, test_family, str(food_category.id), NeedStatus.PENDING)
    partial = _need(db, test_family, str(food_category.id), NeedStatus.PARTIAL)
    other_type = _need(db, test_family, "clothing", NeedStatus.PENDING)
    aid_date = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)

    aid, created = aid_service.record_aid(
        db,
        test_org.id,
        session_ctx,
        _payload(test_family, food_category, article_id=rice_article.id, quantity=3, date=aid_date),
    )

    assert created is True
    assert aid.volunteer_id == session_ctx.user_id
    assert aid.volunteer_name == "Test Admin"
    db.expire_all()
    assert db.get(Article, rice_article.id).stock_quantity == 7
    assert db.get(Family, test_family.id).last_visit_at == aid_date
    assert db.get(Need, pending.id).status == NeedStatus.PARTIAL.value
    assert db.get(Need, partial.id).status == NeedStatus.COVERED.value
    assert db.get(Need, other_type.id).status == NeedStatus.PENDING.value


def test_covered_needs_are_untouched(db, test_org, test_family, food_category, session_ctx):
    covered = _need(db, test_family, str(food_category.id), NeedStatus.COVERED)

    aid_service.record_aid(db, test_org.id, session_ctx, _payload(test_family, food_category))

    db.expire_all()
    assert db.get(Need, covered.id).status == NeedStatus.COVERED.value


def test_stock_is_floored_at_zero(db, test_org, test_family, food_category, rice_article, session_ctx):
    aid, created = aid_service.record_aid(
        db,
        test_org.id,
        session_ctx,
        _payload(test_family, food_category, article_id=rice_article.id, quantity=25),
    )

    assert created is True
    db.expire_all()
    assert db.get(Article, rice_article.id).stock_quantity == 0


def test_identical_resubmission_within_window_is_deduplicated(
    db, test_org, test_family, food_category, rice_article, session_ctx
):
    payload = _payload(test_family, food_category, article_id=rice_article.id, quantity=2)

    first, created_first = aid_service.record_aid(db, test_org.id, session_ctx, dict(payload))
    second, created_second = aid_service.record_aid(db, test_org.id, session_ctx, dict(payload))

    assert created_first is True
    assert created_second is False
    assert second.id == first.id
    assert db.query(Aid).count() == 1
    db.expire_all()
    # Stock decremented once
    assert db.get(Article, rice_article.id).stock_quantity == 8


def test_different_payload_is_not_deduplicated(db, test_org, test_family, food_category, session_ctx):
    aid_service.record_aid(db, test_org.id, session_ctx, _payload(test_family, food_category))
    aid_service.record_aid(
        db, test_org.id, session_ctx, _payload(test_family, food_category, quantity=2)
    )

    assert db.query(Aid).count() == 2


def test_explicit_date_is_part_of_dedup_comparison(
    db, test_org, test_family, food_category, session_ctx
):
    day_one = datetime(2026, 1, 1, tzinfo=timezone.utc)
    day_two = day_one + timedelta(days=1)

    aid_service.record_aid(db, test_org.id, session_ctx, _payload(test_family, food_category, date=day_one))
    aid_service.record_aid(db, test_org.id, session_ctx, _payload(test_family, food_category, date=day_two))
    _, created = aid_service.record_aid(
        db, test_org.id, session_ctx, _payload(test_family, food_category, date=day_two)
    )

    assert created is False
    assert db.query(Aid).count() == 2


def test_dedup_window_expires(db, test_org, test_family, food_category, session_ctx):
    first, _ = aid_service.record_aid(db, test_org.id, session_ctx, _payload(test_family, food_category))
    first.created_at = first.created_at - timedelta(seconds=settings.AID_DEDUP_WINDOW_SECONDS + 1)
    db.commit()

    _, created = aid_service.record_aid(db, test_org.id, session_ctx, _payload(test_family, food_category))

    assert created is True
    assert db.query(Aid).count() == 2


def test_unknown_family_raises_before_any_write(db, test_org, other_org, food_category, session_ctx):
    foreign = Family(organization_id=other_org.id, responsible_name="Elsewhere")
    db.add(foreign)
    db.commit()

    with pytest.raises(aid_service.FamilyNotFoundError):
        aid_service.record_aid(db, test_org.id, session_ctx, _payload(foreign, food_category))

    assert db.query(Aid).count() == 0


def test_unknown_article_raises_before_any_write(
    db, test_org, test_family, food_category, session_ctx
):
    with pytest.raises(aid_service.ArticleNotFoundError):
        aid_service.record_aid(
            db, test_org.id, session_ctx, _payload(test_family, food_category, article_id=uuid.uuid4())
        )

    assert db.query(Aid).count() == 0
    db.expire_all()
    assert db.get(Family, test_family.id).last_visit_at is None


def test_database_failure_rolls_back_everything(
    db, test_org, test_family, food_category, rice_article, session_ctx, monkeypatch
):
    need = _need(db, test_family, str(food_category.id), NeedStatus.PENDING)

    def boom(*_args, **_kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(need_service, "advance_matching_needs", boom)

    with pytest.raises(SQLAlchemyError):
        aid_service.record_aid(
            db,
            test_org.id,
            session_ctx,
            _payload(test_family, food_category, article_id=rice_article.id, quantity=4),
        )

    db.expire_all()
    assert db.query(Aid).count() == 0
    assert db.get(Article, rice_article.id).stock_quantity == 10
    assert db.get(Family, test_family.id).last_visit_at is None
    assert db.get(Need, need.id).status == NeedStatus.PENDING.value


def test_dateless_resubmission_ignores_backdated_aid(db, test_org, test_family, food_category, session_ctx):
    backdated = datetime(2026, 1, 1, tzinfo=timezone.utc)

    first, _ = aid_service.record_aid(
        db, test_org.id, session_ctx, _payload(test_family, food_category, date=backdated)
    )
    second, created = aid_service.record_aid(
        db, test_org.id, session_ctx, _payload(test_family, food_category)
    )

    assert created is True
    assert second.id != first.id
    assert db.query(Aid).count() == 2

"""Tests for the aids API."""

import uuid

import pytest

from aidtrack.db.enums import NeedStatus
from aidtrack.db.models import Aid, Article, Family, Need


@pytest.mark.asyncio
async def test_create_aid_without_matching_need(authed_client, db, test_family):
    response = await authed_client.post(
        "/aids",
        json={"family_id": str(test_family.id), "type": "food", "quantity": 1, "source": "donation"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["type"] == "food"
    assert body["volunteer_name"] == "Test Admin"

    db.expire_all()
    family = db.get(Family, test_family.id)
    aid = db.get(Aid, uuid.UUID(body["id"]))
    assert family.last_visit_at == aid.date
    assert db.query(Need).count() == 0


@pytest.mark.asyncio
async def test_create_aid_by_volunteer_decrements_stock_and_advances_need(
    volunteer_client, db, test_family, food_category, rice_article, volunteer_user
):
    need = Need(
        organization_id=test_family.organization_id,
        family_id=test_family.id,
        type=str(food_category.id),
        urgency="high",
    )
    db.add(need)
    db.commit()

    response = await volunteer_client.post(
        "/aids",
        json={
            "family_id": str(test_family.id),
            "type": str(food_category.id),
            "article_id": str(rice_article.id),
            "quantity": 4,
            "source": "purchase",
        },
    )

    assert response.status_code == 201
    assert response.json()["volunteer_id"] == str(volunteer_user.id)
    db.expire_all()
    assert db.get(Article, rice_article.id).stock_quantity == 6
    assert db.get(Need, need.id).status == NeedStatus.PARTIAL.value


@pytest.mark.asyncio
async def test_double_submit_returns_same_aid(authed_client, db, test_family, rice_article):
    payload = {
        "family_id": str(test_family.id),
        "type": "food",
        "article_id": str(rice_article.id),
        "quantity": 3,
        "source": "donation",
    }

    first = await authed_client.post("/aids", json=payload)
    second = await authed_client.post("/aids", json=payload)

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    db.expire_all()
    assert db.get(Article, rice_article.id).stock_quantity == 7


@pytest.mark.asyncio
async def test_create_aid_unknown_family_returns_404(authed_client):
    response = await authed_client.post(
        "/aids",
        json={"family_id": str(uuid.uuid4()), "type": "food", "source": "donation"},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_aid_unknown_article_returns_404(authed_client, db, test_family):
    response = await authed_client.post(
        "/aids",
        json={
            "family_id": str(test_family.id),
            "type": "food",
            "article_id": str(uuid.uuid4()),
            "source": "donation",
        },
    )

    assert response.status_code == 404
    assert db.query(Aid).count() == 0


@pytest.mark.asyncio
async def test_create_aid_rejects_zero_quantity(authed_client, test_family):
    response = await authed_client.post(
        "/aids",
        json={"family_id": str(test_family.id), "type": "food", "quantity": 0, "source": "donation"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid data"


@pytest.mark.asyncio
async def test_create_aid_rejects_unknown_source(authed_client, test_family):
    response = await authed_client.post(
        "/aids",
        json={"family_id": str(test_family.id), "type": "food", "source": "stolen"},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_aids_paginated(authed_client, test_family):
    for quantity in (1, 2, 3):
        await authed_client.post(
            "/aids",
            json={
                "family_id": str(test_family.id),
                "type": "food",
                "quantity": quantity,
                "source": "donation",
            },
        )

    response = await authed_client.get("/aids", params={"per_page": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["pages"] == 2
    assert len(body["items"]) == 2

    family_aids = await authed_client.get(f"/families/{test_family.id}/aids")
    assert len(family_aids.json()) == 3


@pytest.mark.asyncio
async def test_aids_are_scoped_to_organization(authed_client, db, other_org):
    foreign_family = Family(organization_id=other_org.id, responsible_name="Elsewhere")
    db.add(foreign_family)
    db.commit()
    foreign_aid = Aid(
        organization_id=other_org.id,
        family_id=foreign_family.id,
        type="food",
        quantity=1,
        source="donation",
    )
    db.add(foreign_aid)
    db.commit()

    listing = await authed_client.get("/aids")
    detail = await authed_client.get(f"/aids/{foreign_aid.id}")

    assert listing.json()["total"] == 0
    assert detail.status_code == 404


@pytest.mark.asyncio
async def test_delete_aid_requires_admin(volunteer_client, authed_client, test_family):
    created = await authed_client.post(
        "/aids",
        json={"family_id": str(test_family.id), "type": "food", "source": "donation"},
    )
    aid_id = created.json()["id"]

    forbidden = await volunteer_client.delete(f"/aids/{aid_id}")
    assert forbidden.status_code == 403

    deleted = await authed_client.delete(f"/aids/{aid_id}")
    assert deleted.status_code == 204

    missing = await authed_client.get(f"/aids/{aid_id}")
    assert missing.status_code == 404


def _pending_need(db, family, need_type) -> Need:
    need = Need(
        organization_id=family.organization_id,
        family_id=family.id,
        type=need_type,
        urgency="high",
    )
    db.add(need)
    db.commit()
    return need


@pytest.mark.asyncio
async def test_three_distinct_aids_cover_need_step_by_step(authed_client, db, test_family):
    need = _pending_need(db, test_family, "hygiene")
    statuses = []

    for notes in ("soap", "shampoo", "toothpaste"):
        response = await authed_client.post(
            "/aids",
            json={
                "family_id": str(test_family.id),
                "type": "hygiene",
                "quantity": 1,
                "source": "donation",
                "notes": notes,
            },
        )
        assert response.status_code == 201
        db.expire_all()
        statuses.append(db.get(Need, need.id).status)

    assert statuses == [
        NeedStatus.PARTIAL.value,
        NeedStatus.COVERED.value,
        NeedStatus.COVERED.value,
    ]
    assert db.query(Aid).count() == 3


@pytest.mark.asyncio
async def test_repeated_dateless_payload_advances_need_once(authed_client, db, test_family):
    need = _pending_need(db, test_family, "hygiene")
    payload = {
        "family_id": str(test_family.id),
        "type": "hygiene",
        "quantity": 1,
        "source": "donation",
    }

    ids = set()
    for _ in range(3):
        response = await authed_client.post("/aids", json=payload)
        assert response.status_code == 201
        ids.add(response.json()["id"])

    assert len(ids) == 1
    assert db.query(Aid).count() == 1
    db.expire_all()
    assert db.get(Need, need.id).status == NeedStatus.PARTIAL.value

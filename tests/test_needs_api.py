"""Tests for the needs API and priority ordering."""

from datetime import timedelta

import pytest

from aidtrack.db.models import Family, Need
from aidtrack.db.types import utcnow


def _add_need(db, family, urgency, status="pending", age_days=0, need_type="food") -> Need:
    need = Need(
        organization_id=family.organization_id,
        family_id=family.id,
        type=need_type,
        urgency=urgency,
        status=status,
        created_at=utcnow() - timedelta(days=age_days),
    )
    db.add(need)
    db.commit()
    return need


@pytest.mark.asyncio
async def test_create_need_returns_priority(authed_client, test_family):
    response = await authed_client.post(
        "/needs",
        json={"family_id": str(test_family.id), "type": "food", "urgency": "high"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    # Never visited: 30 base + 15 neglect
    assert body["priority_score"] == 45
    assert body["priority_level"] == "critical"


@pytest.mark.asyncio
async def test_create_need_for_unknown_family_returns_404(authed_client, other_org, db):
    foreign = Family(organization_id=other_org.id, responsible_name="Elsewhere")
    db.add(foreign)
    db.commit()

    response = await authed_client.post(
        "/needs", json={"family_id": str(foreign.id), "type": "food", "urgency": "low"}
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_needs_sorted_by_priority_with_covered_last(authed_client, db, test_family):
    test_family.last_visit_at = utcnow()
    db.commit()
    covered = _add_need(db, test_family, "high", status="covered")
    low_old = _add_need(db, test_family, "low", age_days=25)
    high_new = _add_need(db, test_family, "high")
    medium_partial = _add_need(db, test_family, "medium", status="partial")

    response = await authed_client.get("/needs")

    assert response.status_code == 200
    ids = [n["id"] for n in response.json()]
    # low_old: 10 + 25 = 35, high_new: 30, medium_partial: 5, covered: -50
    assert ids == [str(low_old.id), str(high_new.id), str(medium_partial.id), str(covered.id)]
    levels = [n["priority_level"] for n in response.json()]
    assert levels == ["high", "high", "low", "none"]


@pytest.mark.asyncio
async def test_equal_scores_break_ties_on_urgency(authed_client, db, test_family):
    test_family.last_visit_at = utcnow()
    db.commit()
    # low aged 20 days and high fresh both score 30
    low = _add_need(db, test_family, "low", age_days=20)
    high = _add_need(db, test_family, "high")

    response = await authed_client.get(f"/families/{test_family.id}/needs")

    assert [n["id"] for n in response.json()] == [str(high.id), str(low.id)]


@pytest.mark.asyncio
async def test_needs_of_archived_families_are_hidden(authed_client, db, test_family):
    _add_need(db, test_family, "high")
    test_family.archived = True
    db.commit()

    response = await authed_client.get("/needs")

    assert response.json() == []


@pytest.mark.asyncio
async def test_volunteer_cannot_change_status(volunteer_client, db, test_family):
    need = _add_need(db, test_family, "medium")

    response = await volunteer_client.patch(f"/needs/{need.id}", json={"status": "covered"})

    assert response.status_code == 403
    db.expire_all()
    assert db.get(Need, need.id).status == "pending"


@pytest.mark.asyncio
async def test_volunteer_can_edit_other_fields(volunteer_client, db, test_family):
    need = _add_need(db, test_family, "medium")

    response = await volunteer_client.patch(
        f"/needs/{need.id}", json={"urgency": "high", "comment": "Baby formula"}
    )

    assert response.status_code == 200
    assert response.json()["urgency"] == "high"
    assert response.json()["comment"] == "Baby formula"


@pytest.mark.asyncio
async def test_admin_can_change_status(authed_client, db, test_family):
    need = _add_need(db, test_family, "medium")

    response = await authed_client.patch(f"/needs/{need.id}", json={"status": "covered"})

    assert response.status_code == 200
    assert response.json()["status"] == "covered"
    assert response.json()["priority_level"] == "none"


@pytest.mark.asyncio
async def test_delete_need(authed_client, db, test_family):
    need = _add_need(db, test_family, "low")

    response = await authed_client.delete(f"/needs/{need.id}")

    assert response.status_code == 204
    assert db.query(Need).count() == 0

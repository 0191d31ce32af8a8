"""Tests for families, children and visit notes."""

import uuid
from datetime import datetime, timezone

import pytest

from aidtrack.db.models import Child, Family, VisitNote


@pytest.mark.asyncio
async def test_create_family(authed_client):
    response = await authed_client.post(
        "/families",
        json={
            "responsible_name": "  Awa Diallo ",
            "phone": "0611223344",
            "neighborhood": "Les Tilleuls",
            "member_count": 5,
            "children_count": 3,
            "housing": "pending_placement",
            "last_visit_at": "2020-01-01T00:00:00Z",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["responsible_name"] == "Awa Diallo"
    assert body["housing"] == "pending_placement"
    assert body["archived"] is False
    # Not client-settable
    assert body["last_visit_at"] is None


@pytest.mark.asyncio
async def test_create_family_requires_responsible_name(authed_client):
    response = await authed_client.post("/families", json={"phone": "0600000000"})

    assert response.status_code == 400
    assert any("responsible_name" in err["loc"] for err in response.json()["errors"])


@pytest.mark.asyncio
async def test_create_family_rejects_zero_members(authed_client):
    response = await authed_client.post(
        "/families", json={"responsible_name": "Nobody", "member_count": 0}
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_search_families(authed_client, db, test_org, test_family):
    db.add(Family(organization_id=test_org.id, responsible_name="Fatou Ndiaye", neighborhood="Gare"))
    db.commit()

    by_name = await authed_client.get("/families", params={"q": "dupont"})
    by_neighborhood = await authed_client.get("/families", params={"q": "GARE"})
    everything = await authed_client.get("/families")

    assert [f["responsible_name"] for f in by_name.json()["items"]] == ["Martin Dupont"]
    assert [f["responsible_name"] for f in by_neighborhood.json()["items"]] == ["Fatou Ndiaye"]
    assert everything.json()["total"] == 2


@pytest.mark.asyncio
async def test_update_family(authed_client, test_family):
    response = await authed_client.patch(
        f"/families/{test_family.id}", json={"has_medical_needs": True, "member_count": 6}
    )

    assert response.status_code == 200
    assert response.json()["has_medical_needs"] is True
    assert response.json()["member_count"] == 6
    assert response.json()["responsible_name"] == "Martin Dupont"


@pytest.mark.asyncio
async def test_delete_archives_family(authed_client, db, test_family):
    response = await authed_client.delete(f"/families/{test_family.id}")

    assert response.status_code == 204
    db.expire_all()
    assert db.get(Family, test_family.id).archived is True

    assert (await authed_client.get(f"/families/{test_family.id}")).status_code == 404
    assert (await authed_client.get("/families")).json()["total"] == 0


@pytest.mark.asyncio
async def test_family_of_other_org_is_not_found(authed_client, db, other_org):
    foreign = Family(organization_id=other_org.id, responsible_name="Elsewhere")
    db.add(foreign)
    db.commit()

    response = await authed_client.get(f"/families/{foreign.id}")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_children_crud(authed_client, db, test_family):
    created = await authed_client.post(
        f"/families/{test_family.id}/children",
        json={"first_name": "Lina", "age": 7, "sex": "female"},
    )
    assert created.status_code == 201
    child_id = created.json()["id"]

    updated = await authed_client.patch(f"/children/{child_id}", json={"specific_needs": "glasses"})
    assert updated.status_code == 200
    assert updated.json()["specific_needs"] == "glasses"
    assert updated.json()["age"] == 7

    listed = await authed_client.get(f"/families/{test_family.id}/children")
    assert [c["first_name"] for c in listed.json()] == ["Lina"]

    deleted = await authed_client.delete(f"/children/{child_id}")
    assert deleted.status_code == 204
    assert db.query(Child).count() == 0


@pytest.mark.asyncio
async def test_child_age_validation(authed_client, test_family):
    response = await authed_client.post(
        f"/families/{test_family.id}/children",
        json={"first_name": "Sam", "age": -1, "sex": "male"},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_visit_note_is_sanitized_and_stamps_last_visit(
    volunteer_client, db, test_family, volunteer_user
):
    visit_date = datetime(2026, 3, 1, 14, 30, tzinfo=timezone.utc)

    response = await volunteer_client.post(
        f"/families/{test_family.id}/notes",
        json={
            "content": "<p>Visited <strong>today</strong></p><script>alert(1)</script>",
            "date": visit_date.isoformat(),
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert "<script>" not in body["content"]
    assert "<strong>today</strong>" in body["content"]
    assert body["volunteer_id"] == str(volunteer_user.id)
    assert body["volunteer_name"] == "Test Volunteer"

    db.expire_all()
    assert db.get(Family, test_family.id).last_visit_at == visit_date


@pytest.mark.asyncio
async def test_visit_notes_listed_newest_first_and_deletable(authed_client, db, test_family):
    for day in (1, 3, 2):
        await authed_client.post(
            f"/families/{test_family.id}/notes",
            json={"content": f"day {day}", "date": f"2026-03-0{day}T10:00:00Z"},
        )

    listed = await authed_client.get(f"/families/{test_family.id}/notes")
    assert [n["content"] for n in listed.json()] == ["day 3", "day 2", "day 1"]

    note_id = listed.json()[0]["id"]
    assert (await authed_client.delete(f"/notes/{note_id}")).status_code == 204
    assert db.query(VisitNote).count() == 2
    assert (await authed_client.delete(f"/notes/{uuid.uuid4()}")).status_code == 404

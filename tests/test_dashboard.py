"""Tests for dashboard statistics."""

from datetime import datetime, timedelta, timezone

import pytest

from aidtrack.db.models import Aid, Family, Need
from aidtrack.services import dashboard_service


NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_get_stats(db, test_org, test_family, food_category, rice_article):
    visited = Family(
        organization_id=test_org.id,
        responsible_name="Recently Visited",
        has_medical_needs=True,
        last_visit_at=NOW - timedelta(days=2),
    )
    archived = Family(organization_id=test_org.id, responsible_name="Gone", archived=True)
    db.add_all([visited, archived])
    db.commit()
    db.add_all(
        [
            Need(organization_id=test_org.id, family_id=test_family.id, type="food", urgency="high",
                 created_at=NOW),
            Need(organization_id=test_org.id, family_id=test_family.id, type="rent", urgency="high",
                 status="covered", created_at=NOW),
            Need(organization_id=test_org.id, family_id=archived.id, type="food", urgency="high",
                 created_at=NOW),
            Aid(organization_id=test_org.id, family_id=visited.id, type="food", quantity=1,
                source="donation", date=NOW - timedelta(days=2)),
            Aid(organization_id=test_org.id, family_id=visited.id, type="food", quantity=1,
                source="donation", date=datetime(2026, 2, 27, tzinfo=timezone.utc)),
        ]
    )
    rice_article.stock_quantity = 1
    db.commit()

    stats = dashboard_service.get_stats(db, test_org.id, now=NOW)

    assert stats.total_families == 2
    assert stats.urgent_needs == 1
    assert stats.aids_this_month == 1
    assert stats.families_not_visited == 1
    assert stats.medical_families == 1
    assert stats.low_stock_articles == 1
    assert len(stats.recent_aids) == 2
    assert [n.type for n in stats.priority_needs] == ["food"]


@pytest.mark.asyncio
async def test_stats_endpoint(authed_client, test_family):
    response = await authed_client.get("/dashboard/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["total_families"] == 1
    assert body["families_not_visited"] == 1
    assert body["recent_aids"] == []

"""Dashboard service - organization activity snapshot and data export."""

from collections import defaultdict
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from aidtrack.db.enums import NeedStatus, NeedUrgency
from aidtrack.db.models import Aid, Child, Family, Need
from aidtrack.db.types import utcnow
from aidtrack.schemas.aid import AidRead
from aidtrack.schemas.dashboard import DashboardStats
from aidtrack.schemas.export import ExportData, FamilyExport
from aidtrack.schemas.family import ChildRead, FamilyRead
from aidtrack.services import aid_service, catalog_service, family_service, need_service

NOT_VISITED_DAYS = 30
RECENT_LIMIT = 5


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def get_stats(db: Session, org_id: UUID, now: datetime | None = None) -> DashboardStats:
    now = now or utcnow()
    active_families = db.query(Family).filter(
        Family.organization_id == org_id,
        Family.archived.is_(False),
    )

    urgent_needs = (
        db.query(Need)
        .join(Family, Family.id == Need.family_id)
        .filter(
            Need.organization_id == org_id,
            Family.archived.is_(False),
            Need.urgency == NeedUrgency.HIGH.value,
            Need.status != NeedStatus.COVERED.value,
        )
        .count()
    )

    aids_this_month = (
        db.query(Aid)
        .filter(Aid.organization_id == org_id, Aid.date >= _month_start(now))
        .count()
    )

    visit_cutoff = now - timedelta(days=NOT_VISITED_DAYS)
    families_not_visited = active_families.filter(
        or_(Family.last_visit_at.is_(None), Family.last_visit_at < visit_cutoff)
    ).count()

    priority_needs = need_service.list_needs(db, org_id, open_only=True, now=now)[:RECENT_LIMIT]

    return DashboardStats(
        total_families=active_families.count(),
        urgent_needs=urgent_needs,
        aids_this_month=aids_this_month,
        families_not_visited=families_not_visited,
        medical_families=active_families.filter(Family.has_medical_needs.is_(True)).count(),
        low_stock_articles=catalog_service.count_low_stock(db, org_id),
        recent_aids=[
            AidRead.model_validate(aid) for aid in aid_service.recent_aids(db, org_id, RECENT_LIMIT)
        ],
        priority_needs=priority_needs,
    )


def build_export(db: Session, org_id: UUID, now: datetime | None = None) -> ExportData:
    """
    Every active family with its children, needs and aids, plus current stats.

    Needs carry their priority at `now`; aids are most recent first.
    """
    now = now or utcnow()
    families = family_service.list_families_query(db, org_id).all()

    children_by_family = defaultdict(list)
    children = (
        db.query(Child)
        .filter(Child.organization_id == org_id)
        .order_by(Child.created_at, Child.id)
    )
    for child in children:
        children_by_family[child.family_id].append(ChildRead.model_validate(child))

    needs_by_family = defaultdict(list)
    for need in need_service.list_needs(db, org_id, now=now):
        needs_by_family[need.family_id].append(need)

    aids_by_family = defaultdict(list)
    for aid in aid_service.list_aids_query(db, org_id):
        aids_by_family[aid.family_id].append(AidRead.model_validate(aid))

    return ExportData(
        exported_at=now,
        families=[
            FamilyExport(
                **FamilyRead.model_validate(family).model_dump(),
                children=children_by_family[family.id],
                needs=needs_by_family[family.id],
                aids=aids_by_family[family.id],
            )
            for family in families
        ],
        stats=get_stats(db, org_id, now=now),
    )

"""Pydantic schemas for dashboard statistics."""

from pydantic import BaseModel

from aidtrack.schemas.aid import AidRead
from aidtrack.schemas.need import NeedRead


class DashboardStats(BaseModel):
    """Snapshot of organization activity for the home screen."""
    total_families: int
    urgent_needs: int
    aids_this_month: int
    families_not_visited: int  # Not visited in 30 days (or never)
    medical_families: int
    low_stock_articles: int
    recent_aids: list[AidRead]
    priority_needs: list[NeedRead]

"""Pydantic schemas for the organization data export."""

from datetime import datetime

from pydantic import BaseModel

from aidtrack.schemas.aid import AidRead
from aidtrack.schemas.dashboard import DashboardStats
from aidtrack.schemas.family import ChildRead, FamilyRead
from aidtrack.schemas.need import NeedRead


class FamilyExport(FamilyRead):
    """A family with everything recorded about it."""
    children: list[ChildRead]
    needs: list[NeedRead]
    aids: list[AidRead]


class ExportData(BaseModel):
    exported_at: datetime
    families: list[FamilyExport]
    stats: DashboardStats

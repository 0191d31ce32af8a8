"""SQLAlchemy ORM models, re-exported for `from aidtrack.db.models import X`."""

from aidtrack.db.models.aids import Aid
from aidtrack.db.models.audit import AuditLog
from aidtrack.db.models.auth import Organization, User
from aidtrack.db.models.catalog import Article, Category
from aidtrack.db.models.documents import FamilyDocument
from aidtrack.db.models.families import Child, Family, VisitNote
from aidtrack.db.models.interventions import Intervention
from aidtrack.db.models.needs import Need

__all__ = [
    "Aid",
    "Article",
    "AuditLog",
    "Category",
    "Child",
    "Family",
    "FamilyDocument",
    "Intervention",
    "Need",
    "Organization",
    "User",
    "VisitNote",
]

"""Enum definitions for application constants."""

from aidtrack.db.enums.aids import AidSource
from aidtrack.db.enums.audit import AuditAction, AuditEntityType
from aidtrack.db.enums.auth import Role
from aidtrack.db.enums.families import ChildSex, DocumentType, FamilyHousing
from aidtrack.db.enums.interventions import DEFAULT_INTERVENTION_STATUS, InterventionStatus
from aidtrack.db.enums.needs import DEFAULT_NEED_STATUS, NeedStatus, NeedUrgency, PriorityLevel

__all__ = [
    "AidSource",
    "AuditAction",
    "AuditEntityType",
    "ChildSex",
    "DEFAULT_INTERVENTION_STATUS",
    "DEFAULT_NEED_STATUS",
    "DocumentType",
    "FamilyHousing",
    "InterventionStatus",
    "NeedStatus",
    "NeedUrgency",
    "PriorityLevel",
    "Role",
]

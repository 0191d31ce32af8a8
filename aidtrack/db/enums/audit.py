"""Audit trail enums."""

from enum import Enum


class AuditAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class AuditEntityType(str, Enum):
    """Entity types recorded in the audit trail."""

    FAMILY = "family"
    CHILD = "child"
    NEED = "need"
    AID = "aid"
    NOTE = "note"
    DOCUMENT = "document"
    CATEGORY = "category"
    ARTICLE = "article"
    INTERVENTION = "intervention"
    USER = "user"

"""Organization service."""

from uuid import UUID

from sqlalchemy.orm import Session

from aidtrack.db.models import Organization


def get_org_by_id(db: Session, org_id: UUID) -> Organization | None:
    """Get organization by ID."""
    return db.get(Organization, org_id)


def get_org_by_slug(db: Session, slug: str) -> Organization | None:
    """Get organization by slug."""
    return db.query(Organization).filter(Organization.slug == slug.lower()).first()


def create_org(db: Session, name: str, slug: str) -> Organization:
    """
    Create a new organization.

    Raises:
        IntegrityError: If slug already exists
    """
    org = Organization(name=name, slug=slug.lower())
    db.add(org)
    db.commit()
    db.refresh(org)
    return org

"""Organization service."""

from uuid import UUID

from sqlalchemy.orm import Session

from brokerage_crm.db.models import Organization


def get_org_by_id(db: Session, org_id: UUID) -> Organization | None:
    """Get organization by ID."""
    return db.query(Organization).filter(Organization.id == org_id).first()


def get_org_by_slug(db: Session, slug: str) -> Organization | None:
    """Get organization by slug."""
    return db.query(Organization).filter(Organization.slug == slug.lower()).first()


def create_org(db: Session, name: str, slug: str) -> Organization:
    """
    Create a new organization.

    Raises:
        ValueError: If slug already exists
    """
    slug = slug.strip().lower()
    if get_org_by_slug(db, slug):
        raise ValueError(f"Organization slug '{slug}' already exists")
    org = Organization(name=name.strip(), slug=slug)
    db.add(org)
    db.commit()
    db.refresh(org)
    return org

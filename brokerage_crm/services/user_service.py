"""User service - user operations and session management."""

from uuid import UUID

from sqlalchemy.orm import Session

from brokerage_crm.db.enums import Role
from brokerage_crm.db.models import Membership, User
from brokerage_crm.utils.normalization import normalize_email


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(
    db: Session,
    org_id: UUID,
    email: str,
    display_name: str,
    role: Role = Role.CORRETOR,
) -> User:
    """
    Create a user with membership in an organization.

    Raises:
        ValueError: If the email is already registered
    """
    email = normalize_email(email)
    if not email:
        raise ValueError("Email is required")
    if get_user_by_email(db, email):
        raise ValueError(f"User {email} already exists")

    user = User(email=email, display_name=display_name.strip() or email)
    db.add(user)
    db.flush()
    db.add(Membership(user_id=user.id, organization_id=org_id, role=Role(role).value))
    db.commit()
    db.refresh(user)
    return user


def revoke_all_sessions(db: Session, user_id: UUID) -> bool:
    """
    Revoke all sessions for a user by bumping token_version.

    Existing tokens with old version will fail validation.

    Returns:
        True if user found and sessions revoked, False if user not found
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return False

    user.token_version += 1
    db.commit()
    return True

"""Seed the bootstrap administrator account."""

from sqlalchemy.orm import Session

from school_admin.core.config import Settings
from school_admin.core.roles import ADMIN_ROLE
from school_admin.models.user import User
from school_admin.services.auth_service import auth_service
from school_admin.services.role_service import role_service


def seed_admin(db: Session, settings: Settings) -> None:
    """Create the admin user from ADMIN_EMAIL / ADMIN_PASSWORD if missing."""
    existing = db.query(User).filter(User.email == settings.ADMIN_EMAIL.lower()).first()
    if existing:
        print(f"✅ Admin user already exists: {existing.email}")
        return

    role = role_service.get_role_by_name(db, ADMIN_ROLE)
    auth_service.create_user(
        db,
        email=settings.ADMIN_EMAIL,
        password=settings.ADMIN_PASSWORD,
        first_name="Admin",
        last_name="System",
        role_id=role.id if role else None,
    )
    print(f"✅ Admin user created: {settings.ADMIN_EMAIL}")

"""Seed the four system roles."""

from sqlalchemy.orm import Session

from school_admin.core.roles import ADMIN_ROLE, SECRETARY_ROLE, TEACHER_ROLE, STUDENT_ROLE
from school_admin.services.role_service import role_service

SYSTEM_ROLES = [
    {
        "name": ADMIN_ROLE,
        "display_name": "Administrator",
        "description": "Full system access",
    },
    {
        "name": SECRETARY_ROLE,
        "display_name": "Secretary",
        "description": "Manages students, staff and units",
    },
    {
        "name": TEACHER_ROLE,
        "display_name": "Teacher",
        "description": "Access to classes and schedule",
    },
    {
        "name": STUDENT_ROLE,
        "display_name": "Student",
        "description": "Access to the student area",
    },
]


def seed_roles(db: Session) -> None:
    """Create the system roles if they don't already exist."""
    for role_data in SYSTEM_ROLES:
        role_service.ensure_system_role(db, **role_data)
    print(f"✅ Seeded {len(SYSTEM_ROLES)} system roles")

"""Seed the permission catalog and the default grants of each system role."""

from sqlalchemy.orm import Session

from school_admin.core.roles import ADMIN_ROLE, SECRETARY_ROLE, TEACHER_ROLE, STUDENT_ROLE
from school_admin.models.role import RolePermission
from school_admin.services.permission_service import permission_service
from school_admin.services.role_service import role_service

CATEGORIES = [
    {"name": "modules", "display_name": "Modules", "description": "Access to the system modules"},
    {"name": "admin", "display_name": "Administration", "description": "Administrative functions"},
]

# name, display name, category
PERMISSIONS = [
    ("dashboard:read", "View dashboard", "modules"),
    ("units:read", "View units", "modules"),
    ("units:write", "Manage units", "modules"),
    ("staff:read", "View staff", "modules"),
    ("staff:write", "Manage staff", "modules"),
    ("students:read", "View students", "modules"),
    ("students:write", "Manage students", "modules"),
    ("courses:read", "View courses", "modules"),
    ("courses:write", "Manage courses", "modules"),
    ("books:read", "View books", "modules"),
    ("books:write", "Manage books", "modules"),
    ("classes:read", "View classes", "modules"),
    ("classes:write", "Manage classes", "modules"),
    ("lessons:read", "View lessons", "modules"),
    ("lessons:write", "Manage lessons", "modules"),
    ("finance:read", "View finance", "modules"),
    ("finance:write", "Manage finance", "modules"),
    ("settings:read", "View settings", "admin"),
    ("support:read", "View support", "modules"),
    ("permissions:manage", "Manage permissions", "admin"),
]

DEFAULT_GRANTS = {
    SECRETARY_ROLE: [
        "dashboard:read",
        "staff:read", "staff:write",
        "students:read", "students:write",
        "courses:read", "courses:write",
        "books:read",
        "classes:read", "classes:write",
        "lessons:read", "lessons:write",
        "finance:read", "finance:write",
        "support:read",
    ],
    TEACHER_ROLE: ["dashboard:read", "classes:read", "lessons:read", "support:read"],
    STUDENT_ROLE: ["lessons:read", "support:read"],
}


def seed_permissions(db: Session) -> None:
    """Create categories and permissions, then grant role defaults.

    A role that already has grants is left alone so that re-seeding never
    overwrites administrator edits.
    """
    categories = {
        data["name"]: permission_service.ensure_category(db, **data)
        for data in CATEGORIES
    }
    by_name = {
        name: permission_service.ensure_permission(db, name, display_name, categories[category].id)
        for name, display_name, category in PERMISSIONS
    }
    print(f"✅ Seeded {len(by_name)} permissions in {len(categories)} categories")

    grants = dict(DEFAULT_GRANTS)
    grants[ADMIN_ROLE] = list(by_name)

    for role_name, permission_names in grants.items():
        role = role_service.get_role_by_name(db, role_name)
        if not role:
            continue
        has_grants = db.query(RolePermission).filter(RolePermission.role_id == role.id).first()
        if has_grants:
            continue
        role_service.set_role_permissions(db, role.id, [by_name[n].id for n in permission_names])
        print(f"✅ Granted {len(permission_names)} default permissions to {role_name}")

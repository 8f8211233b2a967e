"""Seed the navigable pages and the admin role's page access rows."""

from sqlalchemy.orm import Session

from school_admin.core.roles import ADMIN_ROLE
from school_admin.services.page_service import PageAccessEntry, page_service
from school_admin.services.role_service import role_service

PAGES = [
    ("dashboard", "Dashboard", "Home page"),
    ("units", "Units", "Franchise unit management"),
    ("staff", "Staff", "Staff management"),
    ("students", "Students", "Student management"),
    ("courses", "Courses", "Course management"),
    ("classes", "Classes", "Class management"),
    ("schedule", "Schedule", "Lesson schedule"),
    ("financial", "Financial", "Financial management"),
    ("support", "Support", "Support center"),
    ("settings", "Settings", "System settings"),
    ("permissions", "Permissions", "Permission management"),
]


def seed_pages(db: Session) -> None:
    """Create the pages; give the admin role an explicit row for each one."""
    pages = [
        page_service.ensure_page(db, name, display_name, f"/{name}", description)
        for name, display_name, description in PAGES
    ]
    print(f"✅ Seeded {len(pages)} pages")

    admin = role_service.get_role_by_name(db, ADMIN_ROLE)
    if admin:
        page_service.set_role_page_permissions(
            db, admin.id, [PageAccessEntry(page.id, True) for page in pages],
        )
        print("✅ Admin page access configured")

"""Lookup helpers shared by the test modules."""

from sqlalchemy.orm import Session

from school_admin.models.page import Page
from school_admin.models.permission import Permission
from school_admin.models.role import Role

ADMIN_EMAIL = "admin@school.test"
ADMIN_PASSWORD = "admin-pass"
DEFAULT_PASSWORD = "password123"


def role_named(db: Session, name: str) -> Role:
    return db.query(Role).filter(Role.name == name).one()


def permission_named(db: Session, name: str) -> Permission:
    return db.query(Permission).filter(Permission.name == name).one()


def page_named(db: Session, name: str) -> Page:
    return db.query(Page).filter(Page.name == name).one()

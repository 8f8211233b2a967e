"""Reserved system role names and the predicates built on them."""

from typing import Optional

ADMIN_ROLE = "admin"
SECRETARY_ROLE = "secretary"
TEACHER_ROLE = "teacher"
STUDENT_ROLE = "student"

SYSTEM_ROLE_NAMES = (ADMIN_ROLE, SECRETARY_ROLE, TEACHER_ROLE, STUDENT_ROLE)


def is_admin_role(role_name: Optional[str]) -> bool:
    """Return True for the role that bypasses every permission and page check."""
    return role_name == ADMIN_ROLE


def is_reserved_role_name(name: str) -> bool:
    """Case-insensitive match against the four system role names."""
    return name.strip().lower() in SYSTEM_ROLE_NAMES


def is_secretary_role(role_name: Optional[str]) -> bool:
    return role_name == SECRETARY_ROLE

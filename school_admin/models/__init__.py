"""Import every model so metadata.create_all can discover them."""

from school_admin.models.role import Role, RolePermission
from school_admin.models.permission import Permission, PermissionCategory
from school_admin.models.user import User, UserPermissionOverride
from school_admin.models.page import Page, RolePagePermission
from school_admin.models.student import Guardian, Student
from school_admin.models.audit_log import AuditLog

__all__ = [
    "Role", "RolePermission",
    "Permission", "PermissionCategory",
    "User", "UserPermissionOverride",
    "Page", "RolePagePermission",
    "Guardian", "Student",
    "AuditLog",
]

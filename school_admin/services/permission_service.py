"""Permission catalog service — categories and ``resource:action`` permissions."""

import re
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from school_admin.core.exceptions import (
    AuthorizationError, ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from school_admin.models.permission import Permission, PermissionCategory

PERMISSION_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*:[a-z][a-z0-9_]*$")


class PermissionService:
    """CRUD for the permission catalog."""

    # ---- Categories ----

    @staticmethod
    def list_categories(db: Session) -> List[PermissionCategory]:
        return db.query(PermissionCategory).order_by(PermissionCategory.display_name.asc()).all()

    @staticmethod
    def get_category(db: Session, category_id: str) -> PermissionCategory:
        category = db.query(PermissionCategory).filter(PermissionCategory.id == category_id).first()
        if not category:
            raise ResourceNotFoundError(f"Permission category {category_id} not found")
        return category

    @staticmethod
    def _ensure_category_name_available(db: Session, name: str, exclude_id: Optional[str] = None) -> None:
        if not name.strip():
            raise ValidationError("Category name cannot be blank", field="name")
        query = db.query(PermissionCategory).filter(
            func.lower(PermissionCategory.name) == name.strip().lower(),
        )
        if exclude_id:
            query = query.filter(PermissionCategory.id != exclude_id)
        if query.first():
            raise ResourceConflictError(f"Permission category '{name}' already exists")

    @staticmethod
    def create_category(
        db: Session,
        name: str,
        display_name: str,
        description: Optional[str] = None,
        is_system_category: bool = False,
    ) -> PermissionCategory:
        PermissionService._ensure_category_name_available(db, name)
        category = PermissionCategory(
            name=name.strip(),
            display_name=display_name,
            description=description,
            is_system_category=is_system_category,
        )
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def update_category(
        db: Session,
        category_id: str,
        name: Optional[str] = None,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> PermissionCategory:
        """Update a category.

        Raises:
            AuthorizationError: If a system category would be renamed.
            ResourceConflictError: If the new name is taken.
        """
        category = PermissionService.get_category(db, category_id)
        if name is not None and name.strip() != category.name:
            if category.is_system_category:
                raise AuthorizationError("Cannot rename system permission categories")
            PermissionService._ensure_category_name_available(db, name, exclude_id=category.id)
            category.name = name.strip()
        if display_name is not None:
            category.display_name = display_name
        if description is not None:
            category.description = description
        if is_active is not None:
            category.is_active = is_active
        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def delete_category(db: Session, category_id: str) -> None:
        """Delete an empty custom category.

        Raises:
            AuthorizationError: If the category is a system category.
            ValidationError: If permissions still belong to the category.
        """
        category = PermissionService.get_category(db, category_id)
        if category.is_system_category:
            raise AuthorizationError("Cannot delete system permission categories")
        in_use = db.query(Permission.id).filter(Permission.category_id == category.id).count()
        if in_use:
            raise ValidationError(
                "Cannot delete a category that still has permissions", permission_count=in_use,
            )
        db.delete(category)
        db.commit()

    @staticmethod
    def ensure_category(db: Session, name: str, display_name: str, description: Optional[str] = None) -> PermissionCategory:
        category = db.query(PermissionCategory).filter(PermissionCategory.name == name).first()
        if category:
            return category
        return PermissionService.create_category(
            db, name, display_name, description, is_system_category=True,
        )

    # ---- Permissions ----

    @staticmethod
    def list_permissions(db: Session, category_id: Optional[str] = None) -> List[Permission]:
        query = db.query(Permission)
        if category_id:
            query = query.filter(Permission.category_id == category_id)
        return query.order_by(Permission.name.asc()).all()

    @staticmethod
    def permissions_by_category(db: Session) -> Dict[str, List[Permission]]:
        """Active permissions grouped by category name, for the role editor."""
        grouped: Dict[str, List[Permission]] = {}
        permissions = (
            db.query(Permission)
            .filter(Permission.is_active.is_(True))
            .order_by(Permission.name.asc())
            .all()
        )
        for permission in permissions:
            grouped.setdefault(permission.category_name, []).append(permission)
        return grouped

    @staticmethod
    def get_permission(db: Session, permission_id: str) -> Permission:
        permission = db.query(Permission).filter(Permission.id == permission_id).first()
        if not permission:
            raise ResourceNotFoundError(f"Permission {permission_id} not found")
        return permission

    @staticmethod
    def get_permission_by_name(db: Session, name: str) -> Optional[Permission]:
        return db.query(Permission).filter(Permission.name == name).first()

    @staticmethod
    def create_permission(
        db: Session,
        name: str,
        display_name: str,
        category_id: str,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> Permission:
        """Create a permission.

        Raises:
            ValidationError: If the name is not of the form ``resource:action``.
            ResourceNotFoundError: If the category does not exist.
            ResourceConflictError: If the name is already taken.
        """
        name = name.strip()
        if not PERMISSION_NAME_RE.match(name):
            raise ValidationError(
                "Permission name must have the form 'resource:action'", field="name",
            )
        PermissionService.get_category(db, category_id)
        if db.query(Permission).filter(func.lower(Permission.name) == name.lower()).first():
            raise ResourceConflictError(f"Permission '{name}' already exists")

        permission = Permission(
            name=name,
            display_name=display_name,
            description=description,
            category_id=category_id,
            is_active=is_active,
        )
        db.add(permission)
        db.commit()
        db.refresh(permission)
        return permission

    @staticmethod
    def update_permission(
        db: Session,
        permission_id: str,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
        category_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Permission:
        """Update a permission. The name is immutable once created."""
        permission = PermissionService.get_permission(db, permission_id)
        if category_id is not None:
            PermissionService.get_category(db, category_id)
            permission.category_id = category_id
        if display_name is not None:
            permission.display_name = display_name
        if description is not None:
            permission.description = description
        if is_active is not None:
            permission.is_active = is_active
        db.commit()
        db.refresh(permission)
        return permission

    @staticmethod
    def delete_permission(db: Session, permission_id: str) -> None:
        """Delete a permission with every role grant and user override naming it."""
        permission = PermissionService.get_permission(db, permission_id)
        db.delete(permission)
        db.commit()

    @staticmethod
    def ensure_permission(
        db: Session, name: str, display_name: str, category_id: str, description: Optional[str] = None,
    ) -> Permission:
        permission = PermissionService.get_permission_by_name(db, name)
        if permission:
            return permission
        return PermissionService.create_permission(db, name, display_name, category_id, description)


permission_service = PermissionService()

"""Role service — role lifecycle and the role → permission resolver."""

from typing import Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_admin.core.exceptions import (
    AuthorizationError, ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from school_admin.core.roles import is_admin_role, is_reserved_role_name
from school_admin.models.permission import Permission
from school_admin.models.role import Role, RolePermission
from school_admin.models.user import User


class RoleService:
    """Manages roles and resolves the permissions a role grants."""

    # ---- Lookup ----

    @staticmethod
    def find_role(db: Session, role_id: str) -> Optional[Role]:
        return db.query(Role).filter(Role.id == role_id).first()

    @staticmethod
    def get_role(db: Session, role_id: str) -> Role:
        """Get a role by id.

        Raises:
            ResourceNotFoundError: If the role does not exist.
        """
        role = RoleService.find_role(db, role_id)
        if not role:
            raise ResourceNotFoundError(f"Role {role_id} not found")
        return role

    @staticmethod
    def get_role_by_name(db: Session, name: str) -> Optional[Role]:
        return db.query(Role).filter(Role.name == name).first()

    @staticmethod
    def list_roles(db: Session, include_inactive: bool = False) -> List[Role]:
        """System roles first, then custom roles, each by display name."""
        query = db.query(Role)
        if not include_inactive:
            query = query.filter(Role.is_active.is_(True))
        return query.order_by(Role.is_system_role.desc(), Role.display_name.asc()).all()

    @staticmethod
    def active_role_for_user(db: Session, user_id: str) -> Optional[Role]:
        """The user's role, or None if the user is unknown, roleless or the role is inactive."""
        user = db.query(User).filter(User.id == user_id).first()
        if not user or not user.role or not user.role.is_active:
            return None
        return user.role

    # ---- Lifecycle ----

    @staticmethod
    def _ensure_name_available(db: Session, name: str, exclude_id: Optional[str] = None) -> None:
        if not name.strip():
            raise ValidationError("Role name cannot be blank", field="name")
        if is_reserved_role_name(name):
            raise ResourceConflictError(f"Role name '{name}' is reserved for a system role")
        query = db.query(Role).filter(func.lower(Role.name) == name.strip().lower())
        if exclude_id:
            query = query.filter(Role.id != exclude_id)
        if query.first():
            raise ResourceConflictError(f"Role with name '{name}' already exists")

    @staticmethod
    def create_role(
        db: Session,
        name: str,
        display_name: str,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> Role:
        """Create a custom role.

        Custom roles are never system roles and can always be deleted.

        Raises:
            ResourceConflictError: If the name matches a system role or an
                existing role, ignoring case.
        """
        name = name.strip()
        RoleService._ensure_name_available(db, name)
        role = Role(
            name=name,
            display_name=display_name,
            description=description,
            is_system_role=False,
            is_deletable=True,
            is_active=is_active,
        )
        db.add(role)
        db.commit()
        db.refresh(role)
        return role

    @staticmethod
    def update_role(
        db: Session,
        role_id: str,
        name: Optional[str] = None,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Role:
        """Update a role's editable fields.

        Raises:
            ResourceNotFoundError: If the role does not exist.
            AuthorizationError: If a system role would be renamed.
            ValidationError: If the admin role would be deactivated.
            ResourceConflictError: If the new name is taken or reserved.
        """
        role = RoleService.get_role(db, role_id)

        if name is not None and name.strip() != role.name:
            if role.is_system_role:
                raise AuthorizationError("Cannot modify name or system status of system roles")
            RoleService._ensure_name_available(db, name, exclude_id=role.id)
            role.name = name.strip()

        if is_active is False and is_admin_role(role.name):
            raise ValidationError("The admin role cannot be deactivated", field="isActive")

        if display_name is not None:
            role.display_name = display_name
        if description is not None:
            role.description = description
        if is_active is not None:
            role.is_active = is_active

        db.commit()
        db.refresh(role)
        return role

    @staticmethod
    def delete_role(db: Session, role_id: str) -> None:
        """Delete a custom role together with its permission and page grants.

        Users holding the role are left without a role.

        Raises:
            ResourceNotFoundError: If the role does not exist.
            AuthorizationError: If the role is a system or non-deletable role.
        """
        role = RoleService.get_role(db, role_id)
        if role.is_system_role or not role.is_deletable:
            raise AuthorizationError("Cannot delete system roles", role_id=role.id)

        try:
            db.query(User).filter(User.role_id == role.id).update(
                {User.role_id: None}, synchronize_session="fetch",
            )
            db.delete(role)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

    @staticmethod
    def ensure_system_role(db: Session, name: str, display_name: str, description: str) -> Role:
        """Return the named system role, creating it on first bootstrap."""
        role = RoleService.get_role_by_name(db, name)
        if role:
            return role
        role = Role(
            name=name,
            display_name=display_name,
            description=description,
            is_system_role=True,
            is_deletable=False,
            is_active=True,
        )
        db.add(role)
        db.commit()
        db.refresh(role)
        return role

    # ---- Role → permission resolution ----

    @staticmethod
    def permissions_for_role(db: Session, role_id: str) -> Set[Permission]:
        """Active permissions granted to the role.

        An unknown role id, or a role without grants, yields an empty set.
        """
        permissions = (
            db.query(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .filter(RolePermission.role_id == role_id, Permission.is_active.is_(True))
            .all()
        )
        return set(permissions)

    @staticmethod
    def permissions_for_role_name(db: Session, name: str) -> Set[Permission]:
        role = RoleService.get_role_by_name(db, name)
        if not role:
            return set()
        return RoleService.permissions_for_role(db, role.id)

    @staticmethod
    def get_role_with_permissions(db: Session, role_id: str) -> dict:
        role = RoleService.get_role(db, role_id)
        permissions = sorted(RoleService.permissions_for_role(db, role.id), key=lambda p: p.name)
        return {"role": role, "permissions": permissions}

    @staticmethod
    def set_role_permissions(db: Session, role_id: str, permission_ids: Iterable[str]) -> Set[Permission]:
        """Replace the role's whole permission set.

        The old grants are removed and the new ones inserted in a single
        transaction; callers pass the complete desired set.

        Raises:
            ResourceNotFoundError: If the role does not exist.
            ValidationError: If any id does not name a permission. Nothing is
                changed in that case.
        """
        role = RoleService.get_role(db, role_id)
        wanted = list(dict.fromkeys(permission_ids))

        if wanted:
            found = {
                pid for (pid,) in db.query(Permission.id).filter(Permission.id.in_(wanted)).all()
            }
            invalid = [pid for pid in wanted if pid not in found]
            if invalid:
                raise ValidationError("Invalid permission IDs provided", invalid_ids=invalid)

        try:
            db.query(RolePermission).filter(RolePermission.role_id == role.id).delete(
                synchronize_session=False,
            )
            db.add_all([RolePermission(role_id=role.id, permission_id=pid) for pid in wanted])
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        db.expire(role)
        return RoleService.permissions_for_role(db, role.id)


role_service = RoleService()

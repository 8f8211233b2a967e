"""User override service — per-user grants/denies and effective permission resolution."""

from typing import Dict, Iterable, List, NamedTuple, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_admin.core.exceptions import ResourceNotFoundError, ValidationError
from school_admin.models.permission import Permission
from school_admin.models.user import User, UserPermissionOverride
from school_admin.services.role_service import role_service


class OverrideEntry(NamedTuple):
    permission_id: str
    is_granted: bool


class OverrideService:
    """Resolves a user's effective permissions and manages their overrides."""

    @staticmethod
    def _get_user(db: Session, user_id: str) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    def effective_permissions(db: Session, user_id: str, strict: bool = False) -> Set[Permission]:
        """Role permissions plus granted overrides, minus denied overrides.

        A user without a role, or whose role is inactive, starts from an
        empty set. A deny override always wins over the role grant.

        Args:
            strict: Raise for an unknown user instead of returning an empty set.

        Raises:
            ResourceNotFoundError: If ``strict`` and the user does not exist.
        """
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            if strict:
                raise ResourceNotFoundError(f"User {user_id} not found")
            return set()

        resolved: Dict[str, Permission] = {}
        if user.role and user.role.is_active:
            for permission in role_service.permissions_for_role(db, user.role.id):
                resolved[permission.id] = permission

        overrides = (
            db.query(UserPermissionOverride)
            .filter(UserPermissionOverride.user_id == user.id)
            .all()
        )
        for override in overrides:
            if override.is_granted:
                if override.permission.is_active:
                    resolved[override.permission_id] = override.permission
            else:
                resolved.pop(override.permission_id, None)

        return set(resolved.values())

    @staticmethod
    def effective_permission_names(db: Session, user_id: str) -> Set[str]:
        return {p.name for p in OverrideService.effective_permissions(db, user_id)}

    @staticmethod
    def get_user_permission_overrides(db: Session, user_id: str) -> List[UserPermissionOverride]:
        """Raw override rows for the user.

        Raises:
            ResourceNotFoundError: If the user does not exist.
        """
        user = OverrideService._get_user(db, user_id)
        return (
            db.query(UserPermissionOverride)
            .filter(UserPermissionOverride.user_id == user.id)
            .all()
        )

    @staticmethod
    def set_user_permission_overrides(
        db: Session, user_id: str, overrides: Iterable[OverrideEntry],
    ) -> List[UserPermissionOverride]:
        """Replace the user's whole override set.

        An empty list clears every override, returning the user to exactly
        their role's permissions.

        Raises:
            ResourceNotFoundError: If the user does not exist.
            ValidationError: If a permission id is unknown or listed twice.
                Nothing is changed in that case.
        """
        user = OverrideService._get_user(db, user_id)
        entries = list(overrides)
        ids = [entry.permission_id for entry in entries]

        seen, duplicates = set(), []
        for pid in ids:
            if pid in seen and pid not in duplicates:
                duplicates.append(pid)
            seen.add(pid)
        if duplicates:
            raise ValidationError("Duplicate permission IDs in overrides", duplicate_ids=duplicates)

        if ids:
            found = {pid for (pid,) in db.query(Permission.id).filter(Permission.id.in_(ids)).all()}
            invalid = [pid for pid in ids if pid not in found]
            if invalid:
                raise ValidationError("Invalid permission IDs provided", invalid_ids=invalid)

        try:
            db.query(UserPermissionOverride).filter(
                UserPermissionOverride.user_id == user.id,
            ).delete(synchronize_session=False)
            db.add_all([
                UserPermissionOverride(
                    user_id=user.id,
                    permission_id=entry.permission_id,
                    is_granted=entry.is_granted,
                )
                for entry in entries
            ])
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        db.expire(user)
        return OverrideService.get_user_permission_overrides(db, user.id)


override_service = OverrideService()

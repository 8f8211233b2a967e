"""Authorization gate — the single place where access decisions are made.

Every protected handler goes through an ``AuthorizationGate`` built for the
current request. The gate authenticates the bearer token into an
``AuthenticatedPrincipal`` and then answers three independent questions:

* fine-grained: does the principal hold ``resource:action``?
* page access: may the principal open a given UI page?
* coarse role: is the principal an admin (or a secretary)?

The admin bypass is evaluated first by every check through
``is_admin_role``. Decisions are recomputed from the store on every call so
that grant changes apply without a new login. The gate only reads.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from sqlalchemy.orm import Session

from school_admin.core.config import Settings
from school_admin.core.exceptions import AuthenticationError, AuthorizationError
from school_admin.core.roles import is_admin_role, is_secretary_role
from school_admin.core.security import decode_token
from school_admin.models.permission import Permission
from school_admin.models.user import User
from school_admin.services.override_service import override_service
from school_admin.services.page_service import page_service

logger = logging.getLogger("school_admin.authz")


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """Who is calling. ``role_id``/``role_name`` are None when the user has no usable role."""

    user_id: str
    email: str
    role_id: Optional[str] = None
    role_name: Optional[str] = None


class AuthorizationGate:
    """Per-request access checks bound to one session and one settings object."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    # ---- Authentication ----

    def authenticate(self, token: Optional[str]) -> AuthenticatedPrincipal:
        """Resolve a bearer token into a principal.

        The role is read from the store, not from the token claims.

        Raises:
            AuthenticationError: Missing, invalid or expired token, or an
                unknown or deactivated user.
        """
        if not token:
            raise AuthenticationError("Not authenticated")

        payload = decode_token(token, self.settings)
        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token payload")

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        return self.principal_for(user)

    @staticmethod
    def principal_for(user: User) -> AuthenticatedPrincipal:
        # An inactive role counts as no role.
        role = user.role if user.role and user.role.is_active else None
        return AuthenticatedPrincipal(
            user_id=user.id,
            email=user.email,
            role_id=role.id if role else None,
            role_name=role.name if role else None,
        )

    # ---- Role predicates ----

    @staticmethod
    def is_admin(principal: AuthenticatedPrincipal) -> bool:
        return is_admin_role(principal.role_name)

    def require_admin(self, principal: AuthenticatedPrincipal) -> None:
        if not self.is_admin(principal):
            self._deny(principal, "role:admin")
            raise AuthorizationError("Admin access required")

    def require_admin_or_secretary(self, principal: AuthenticatedPrincipal) -> None:
        if not (self.is_admin(principal) or is_secretary_role(principal.role_name)):
            self._deny(principal, "role:admin|secretary")
            raise AuthorizationError("Admin or secretary access required")

    # ---- Fine-grained permissions ----

    def has_permission(self, principal: AuthenticatedPrincipal, permission_name: str) -> bool:
        if self.is_admin(principal):
            return True
        return permission_name in override_service.effective_permission_names(
            self.db, principal.user_id,
        )

    def require_permission(self, principal: AuthenticatedPrincipal, permission_name: str) -> None:
        if not self.has_permission(principal, permission_name):
            self._deny(principal, permission_name)
            raise AuthorizationError(
                f"Permission '{permission_name}' required", permission=permission_name,
            )

    def visible_permissions(self, principal: AuthenticatedPrincipal) -> List[Permission]:
        """Every active permission for admin, otherwise the effective set."""
        if self.is_admin(principal):
            permissions = (
                self.db.query(Permission).filter(Permission.is_active.is_(True)).all()
            )
        else:
            permissions = override_service.effective_permissions(self.db, principal.user_id)
        return sorted(permissions, key=lambda p: p.name)

    # ---- Page access ----

    def has_page_permission(self, principal: AuthenticatedPrincipal, page_name: str) -> bool:
        return page_service.role_has_page(self.db, principal.role_id, principal.role_name, page_name)

    def require_page_permission(self, principal: AuthenticatedPrincipal, page_name: str) -> None:
        if not self.has_page_permission(principal, page_name):
            self._deny(principal, f"page:{page_name}")
            raise AuthorizationError(f"Access to page '{page_name}' denied", page=page_name)

    def allowed_pages(self, principal: AuthenticatedPrincipal) -> Set[str]:
        return page_service.allowed_pages(self.db, principal.user_id)

    @staticmethod
    def _deny(principal: AuthenticatedPrincipal, required: str) -> None:
        logger.info(
            "Access denied: user=%s role=%s required=%s",
            principal.user_id, principal.role_name, required,
        )

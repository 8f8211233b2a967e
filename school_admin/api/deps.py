"""FastAPI dependencies wiring requests into the authorization gate.

Usage in a router::

    @router.get("/students")
    async def list_students(
        principal: AuthenticatedPrincipal = Depends(RequirePermission("students:read")),
        _page: AuthenticatedPrincipal = Depends(RequirePagePermission("students")),
    ): ...

Stacked dependencies must all pass.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from school_admin.core.config import Settings
from school_admin.db.session import get_db
from school_admin.services.authorization import AuthenticatedPrincipal, AuthorizationGate

security_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gate(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AuthorizationGate:
    return AuthorizationGate(db, settings)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    gate: AuthorizationGate = Depends(get_gate),
) -> AuthenticatedPrincipal:
    """Authenticate the bearer token. Raises AuthenticationError (401)."""
    token = credentials.credentials if credentials else None
    return gate.authenticate(token)


class RequirePermission:
    """Dependency factory: the caller must hold ``permission_name``."""

    def __init__(self, permission_name: str):
        self.permission_name = permission_name

    async def __call__(
        self,
        principal: AuthenticatedPrincipal = Depends(get_current_principal),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> AuthenticatedPrincipal:
        gate.require_permission(principal, self.permission_name)
        return principal


class RequirePagePermission:
    """Dependency factory: the caller's role must be allowed on ``page_name``."""

    def __init__(self, page_name: str):
        self.page_name = page_name

    async def __call__(
        self,
        principal: AuthenticatedPrincipal = Depends(get_current_principal),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> AuthenticatedPrincipal:
        gate.require_page_permission(principal, self.page_name)
        return principal


async def require_admin(
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
) -> AuthenticatedPrincipal:
    gate.require_admin(principal)
    return principal


async def require_admin_or_secretary(
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
) -> AuthenticatedPrincipal:
    gate.require_admin_or_secretary(principal)
    return principal

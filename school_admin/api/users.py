"""Users API router — user management and per-user permission overrides."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from school_admin.api.deps import RequirePermission, require_admin, require_admin_or_secretary
from school_admin.db.session import get_db
from school_admin.schemas.schemas import (
    UserOut, UserCreate, UserUpdate, UserListResponse, MessageResponse,
    UserOverridesUpdate, UserPermissionsOut, UserOverrideOut, PermissionOut,
)
from school_admin.services.audit_service import audit_service
from school_admin.services.auth_service import auth_service
from school_admin.services.authorization import AuthenticatedPrincipal
from school_admin.services.override_service import OverrideEntry, override_service

router = APIRouter(prefix="/users", tags=["users"])

manage_permissions = RequirePermission("permissions:manage")


def _user_permissions(db: Session, user_id: str) -> UserPermissionsOut:
    overrides = override_service.get_user_permission_overrides(db, user_id)
    effective = sorted(
        override_service.effective_permissions(db, user_id, strict=True), key=lambda p: p.name,
    )
    return UserPermissionsOut(
        user_id=user_id,
        overrides=[UserOverrideOut.model_validate(o) for o in overrides],
        effective_permissions=[PermissionOut.model_validate(p) for p in effective],
    )


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    role_id: Optional[str] = Query(None, alias="roleId"),
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin_or_secretary),
):
    """List users (admin or secretary)."""
    return auth_service.list_users(db, page, page_size, role_id)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin_or_secretary),
):
    return auth_service.get_user(db, user_id)


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    body: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Create a user with any role (admin only)."""
    user = auth_service.create_user(
        db, body.email, body.password, body.first_name, body.last_name,
        role_id=body.role_id, is_active=body.is_active,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="user.created", resource_id=user.id,
        new_value={"email": user.email, "role": user.role_name},
    )
    return user


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: str,
    body: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Update a user's profile, role or status (admin only)."""
    changes = body.model_dump(exclude_unset=True)
    user = auth_service.update_user(db, user_id, changes)
    changes.pop("password", None)
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="user.updated", resource_id=user.id,
        new_value=changes,
    )
    return user


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    email = auth_service.get_user(db, user_id).email
    auth_service.delete_user(db, user_id)
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="user.deleted", resource_id=user_id,
        old_value={"email": email},
    )
    return MessageResponse(message="User deleted")


# ---- Permission overrides ----

@router.get("/{user_id}/permissions", response_model=UserPermissionsOut)
async def get_user_permissions(
    user_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(manage_permissions),
):
    """Overrides shown apart from the resolved effective set."""
    return _user_permissions(db, user_id)


@router.put("/{user_id}/permissions", response_model=UserPermissionsOut)
async def set_user_permissions(
    user_id: str,
    body: UserOverridesUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(manage_permissions),
):
    """Replace the user's whole override set. An empty list clears it."""
    entries = [OverrideEntry(o.permission_id, o.is_granted) for o in body.overrides]
    override_service.set_user_permission_overrides(db, user_id, entries)
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="user.overrides_replaced", resource_id=user_id,
        new_value={e.permission_id: e.is_granted for e in entries},
    )
    return _user_permissions(db, user_id)

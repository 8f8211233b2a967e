"""Roles API router — role CRUD, role permissions and role page access."""

from typing import List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from school_admin.api.deps import get_current_principal, require_admin
from school_admin.db.session import get_db
from school_admin.schemas.schemas import (
    RoleOut, RoleCreate, RoleUpdate, RoleWithPermissionsOut, RolePermissionsUpdate,
    PermissionOut, RolePagesUpdate, RolePagePermissionOut, PageOut, MessageResponse,
)
from school_admin.services.audit_service import audit_service
from school_admin.services.authorization import AuthenticatedPrincipal
from school_admin.services.page_service import PageAccessEntry, page_service
from school_admin.services.role_service import role_service

router = APIRouter(prefix="/roles", tags=["roles"])


def _role_snapshot(role) -> dict:
    return RoleOut.model_validate(role).model_dump()


@router.get("", response_model=List[RoleOut])
async def list_roles(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return role_service.list_roles(db, include_inactive=include_inactive)


@router.get("/{role_id}", response_model=RoleWithPermissionsOut)
async def get_role(
    role_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return role_service.get_role_with_permissions(db, role_id)


@router.post("", response_model=RoleOut, status_code=201)
async def create_role(
    body: RoleCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Create a custom role (admin only)."""
    role = role_service.create_role(
        db, body.name, body.display_name, body.description, body.is_active,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="role.created", resource_id=role.id,
        new_value=_role_snapshot(role),
    )
    return role


@router.put("/{role_id}", response_model=RoleOut)
async def update_role(
    role_id: str,
    body: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Update a role (admin only). System roles cannot be renamed."""
    before = _role_snapshot(role_service.get_role(db, role_id))
    role = role_service.update_role(
        db, role_id,
        name=body.name,
        display_name=body.display_name,
        description=body.description,
        is_active=body.is_active,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="role.updated", resource_id=role.id,
        old_value=before, new_value=_role_snapshot(role),
    )
    return role


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role(
    role_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Delete a custom role (admin only). Its users are left without a role."""
    before = _role_snapshot(role_service.get_role(db, role_id))
    role_service.delete_role(db, role_id)
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="role.deleted", resource_id=role_id,
        old_value=before,
    )
    return MessageResponse(message="Role deleted")


# ---- Fine-grained permissions ----

@router.get("/{role_id}/permissions", response_model=List[PermissionOut])
async def get_role_permissions(
    role_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return role_service.get_role_with_permissions(db, role_id)["permissions"]


@router.put("/{role_id}/permissions", response_model=List[PermissionOut])
async def set_role_permissions(
    role_id: str,
    body: RolePermissionsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Replace the role's whole permission set (admin only)."""
    before = sorted(p.name for p in role_service.permissions_for_role(db, role_id))
    permissions = sorted(
        role_service.set_role_permissions(db, role_id, body.permission_ids),
        key=lambda p: p.name,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="role.permissions_replaced", resource_id=role_id,
        old_value=before, new_value=[p.name for p in permissions],
    )
    return permissions


# ---- Page access ----

@router.get("/{role_id}/pages", response_model=List[RolePagePermissionOut])
async def get_role_pages(
    role_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return page_service.get_role_page_permissions(db, role_id)


@router.put("/{role_id}/pages", response_model=List[RolePagePermissionOut])
async def set_role_pages(
    role_id: str,
    body: RolePagesUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Upsert page access for the listed pages (admin only). Other pages keep their value."""
    entries = [PageAccessEntry(e.page_id, e.can_access) for e in body.page_permissions]
    rows = page_service.set_role_page_permissions(db, role_id, entries)
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="role.pages_updated", resource_id=role_id,
        new_value={e.page_id: e.can_access for e in entries},
    )
    return rows


@router.get("/{role_id}/allowed-pages", response_model=List[PageOut])
async def get_role_allowed_pages(
    role_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return page_service.role_allowed_pages(db, role_id)

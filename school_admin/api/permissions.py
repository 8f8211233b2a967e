"""Permission catalog API router — permissions and permission categories."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from school_admin.api.deps import get_current_principal, require_admin
from school_admin.db.session import get_db
from school_admin.schemas.schemas import (
    PermissionOut, PermissionCreate, PermissionUpdate, PermissionsByCategoryOut,
    PermissionCategoryOut, PermissionCategoryCreate, PermissionCategoryUpdate,
    MessageResponse,
)
from school_admin.services.audit_service import audit_service
from school_admin.services.authorization import AuthenticatedPrincipal
from school_admin.services.permission_service import permission_service

router = APIRouter(tags=["permissions"])


# ---- Permissions ----

@router.get("/permissions", response_model=List[PermissionOut])
async def list_permissions(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return permission_service.list_permissions(db, category_id)


@router.get("/permissions/by-category", response_model=PermissionsByCategoryOut)
async def permissions_by_category(
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    """Active permissions grouped for the role editor."""
    return PermissionsByCategoryOut(categories=permission_service.permissions_by_category(db))


@router.get("/permissions/{permission_id}", response_model=PermissionOut)
async def get_permission(
    permission_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return permission_service.get_permission(db, permission_id)


@router.post("/permissions", response_model=PermissionOut, status_code=201)
async def create_permission(
    body: PermissionCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    permission = permission_service.create_permission(
        db, body.name, body.display_name, body.category_id, body.description, body.is_active,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="permission.created", resource_id=permission.id, new_value={"name": permission.name},
    )
    return permission


@router.put("/permissions/{permission_id}", response_model=PermissionOut)
async def update_permission(
    permission_id: str,
    body: PermissionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    permission = permission_service.update_permission(
        db, permission_id,
        display_name=body.display_name,
        description=body.description,
        category_id=body.category_id,
        is_active=body.is_active,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="permission.updated", resource_id=permission.id, new_value=body.model_dump(exclude_unset=True),
    )
    return permission


@router.delete("/permissions/{permission_id}", response_model=MessageResponse)
async def delete_permission(
    permission_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Delete a permission. Role grants and user overrides naming it go too."""
    name = permission_service.get_permission(db, permission_id).name
    permission_service.delete_permission(db, permission_id)
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="permission.deleted", resource_id=permission_id, old_value={"name": name},
    )
    return MessageResponse(message="Permission deleted")


# ---- Categories ----

@router.get("/permission-categories", response_model=List[PermissionCategoryOut])
async def list_categories(
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    return permission_service.list_categories(db)


@router.get("/permission-categories/{category_id}", response_model=PermissionCategoryOut)
async def get_category(
    category_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    return permission_service.get_category(db, category_id)


@router.post("/permission-categories", response_model=PermissionCategoryOut, status_code=201)
async def create_category(
    body: PermissionCategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    category = permission_service.create_category(
        db, body.name, body.display_name, body.description,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="permission_category.created", resource_id=category.id, new_value={"name": category.name},
    )
    return category


@router.put("/permission-categories/{category_id}", response_model=PermissionCategoryOut)
async def update_category(
    category_id: str,
    body: PermissionCategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    category = permission_service.update_category(
        db, category_id,
        name=body.name,
        display_name=body.display_name,
        description=body.description,
        is_active=body.is_active,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="permission_category.updated", resource_id=category.id, new_value=body.model_dump(exclude_unset=True),
    )
    return category


@router.delete("/permission-categories/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    permission_service.delete_category(db, category_id)
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="permission_category.deleted", resource_id=category_id,
    )
    return MessageResponse(message="Permission category deleted")

"""Pages API router — the catalog of navigable UI sections."""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from school_admin.api.deps import get_current_principal, require_admin
from school_admin.db.session import get_db
from school_admin.schemas.schemas import PageOut, PageCreate, PageUpdate, MessageResponse
from school_admin.services.audit_service import audit_service
from school_admin.services.authorization import AuthenticatedPrincipal
from school_admin.services.page_service import page_service

router = APIRouter(prefix="/pages", tags=["pages"])


@router.get("", response_model=List[PageOut])
async def list_pages(
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return page_service.list_pages(db)


@router.get("/{page_id}", response_model=PageOut)
async def get_page(
    page_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    return page_service.get_page(db, page_id)


@router.post("", response_model=PageOut, status_code=201)
async def create_page(
    body: PageCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    page = page_service.create_page(
        db, body.name, body.display_name, body.route, body.description, body.is_active,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="page.created", resource_id=page.id,
        new_value={"name": page.name, "route": page.route},
    )
    return page


@router.put("/{page_id}", response_model=PageOut)
async def update_page(
    page_id: str,
    body: PageUpdate,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    page = page_service.update_page(
        db, page_id,
        name=body.name,
        display_name=body.display_name,
        route=body.route,
        description=body.description,
        is_active=body.is_active,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="page.updated", resource_id=page.id,
        new_value=body.model_dump(exclude_unset=True),
    )
    return page


@router.delete("/{page_id}", response_model=MessageResponse)
async def delete_page(
    page_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    page_service.delete_page(db, page_id)
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="page.deleted", resource_id=page_id,
    )
    return MessageResponse(message="Page deleted")

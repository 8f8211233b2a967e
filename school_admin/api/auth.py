"""Auth API router — login, register, logout, me, effective permissions, pages."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from school_admin.api.deps import get_app_settings, get_current_principal, get_gate
from school_admin.core.config import Settings
from school_admin.db.session import get_db
from school_admin.schemas.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, UserOut, MessageResponse,
    EffectivePermissionsOut, PermissionOut, AllowedPagesOut,
)
from school_admin.services.auth_service import auth_service
from school_admin.services.audit_service import audit_service
from school_admin.services.authorization import AuthenticatedPrincipal, AuthorizationGate

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Authenticate and return a bearer token."""
    result = auth_service.authenticate(db, settings, body.email, body.password)
    user = result["user"]
    audit_service.record(
        db, request,
        actor_id=user.id,
        actor_email=user.email,
        action="user.login",
        resource_id=user.id,
    )
    return result


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Self-registration. The new account always gets the student role."""
    return auth_service.register_student(
        db, settings, body.email, body.password, body.first_name, body.last_name,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(principal: AuthenticatedPrincipal = Depends(get_current_principal)):
    """Bearer tokens are stateless; the client discards its token."""
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserOut)
async def get_me(
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
):
    """Get current user profile."""
    return auth_service.get_user(db, principal.user_id)


@router.get("/effective-permissions", response_model=EffectivePermissionsOut)
async def effective_permissions(
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
):
    """The caller's own resolved permissions."""
    return EffectivePermissionsOut(
        user_id=principal.user_id,
        role_name=principal.role_name,
        is_admin=gate.is_admin(principal),
        permissions=[PermissionOut.model_validate(p) for p in gate.visible_permissions(principal)],
    )


@router.get("/allowed-pages", response_model=AllowedPagesOut)
async def allowed_pages(
    principal: AuthenticatedPrincipal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
):
    """Names of the pages the caller may open."""
    return AllowedPagesOut(pages=sorted(gate.allowed_pages(principal)))

"""Admin API router — audit trail, statistics, health."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_admin.api.deps import require_admin
from school_admin.db.session import get_db
from school_admin.models.audit_log import AuditLog
from school_admin.models.page import Page
from school_admin.models.permission import Permission
from school_admin.models.role import Role
from school_admin.models.student import Student
from school_admin.models.user import User, UserPermissionOverride
from school_admin.schemas.schemas import AuditLogPage
from school_admin.services.audit_service import audit_service
from school_admin.services.authorization import AuthenticatedPrincipal

logger = logging.getLogger("school_admin")

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/audit", response_model=AuditLogPage)
async def get_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    resource_id: Optional[str] = Query(None, alias="resourceId"),
    actor_id: Optional[str] = Query(None, alias="actorId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200, alias="pageSize"),
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Query audit logs (admin only)."""
    return audit_service.query_logs(
        db, actor_id=actor_id, action=action, resource_type=resource_type,
        resource_id=resource_id, page=page, page_size=page_size,
    )


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Database connectivity check."""
    db_ok = False
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        logger.exception("Database health check failed")

    return {
        "database": "ok" if db_ok else "error",
        "status": "healthy" if db_ok else "degraded",
    }


@router.get("/stats")
async def system_stats(
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(require_admin),
):
    """Get system-level statistics."""
    return {
        "totalUsers": db.query(User).count(),
        "activeUsers": db.query(User).filter(User.is_active.is_(True)).count(),
        "totalRoles": db.query(Role).count(),
        "customRoles": db.query(Role).filter(Role.is_system_role.is_(False)).count(),
        "totalPermissions": db.query(Permission).count(),
        "totalPages": db.query(Page).count(),
        "totalOverrides": db.query(UserPermissionOverride).count(),
        "totalStudents": db.query(Student).count(),
        "totalAuditEvents": db.query(AuditLog).count(),
    }

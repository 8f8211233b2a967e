"""Audit service — who changed which role, permission, page or user, and how.

Actions are named ``<resource>.<verb>`` (``role.permissions_replaced``,
``user.overrides_replaced``, ``page.deleted``...). The resource half of the
action is the entry's ``resource_type``, so an action can only be recorded
against one of the audited resources below.
"""

import json
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from school_admin.models.audit_log import AuditLog

AUDITED_RESOURCES = frozenset({
    "role", "permission", "permission_category", "page", "user", "student",
})


def resource_type_for(action: str) -> str:
    """``"role.pages_updated"`` -> ``"role"``."""
    resource, _, verb = action.partition(".")
    if not verb or resource not in AUDITED_RESOURCES:
        raise ValueError(f"Unknown audit action: {action!r}")
    return resource


def _as_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str, sort_keys=True)


class AuditService:
    """Append-only trail of authorization and account changes."""

    @staticmethod
    def record(
        db: Session,
        request: Optional[Request],
        actor_id: Optional[str],
        actor_email: Optional[str],
        action: str,
        resource_id: Optional[str] = None,
        old_value: Optional[Any] = None,
        new_value: Optional[Any] = None,
    ) -> AuditLog:
        """Write one entry and commit it.

        Empty lists and dicts are stored as-is: clearing a role's permission
        set is recorded as ``[]``, not as a missing value. Client address and
        user agent are taken from ``request`` when there is one.
        """
        entry = AuditLog(
            actor_id=actor_id,
            actor_email=actor_email,
            action=action,
            resource_type=resource_type_for(action),
            resource_id=str(resource_id) if resource_id else None,
            old_value_json=_as_json(old_value),
            new_value_json=_as_json(new_value),
        )
        if request is not None:
            entry.ip_address = request.client.host if request.client else None
            entry.user_agent = request.headers.get("user-agent", "")[:500]
        db.add(entry)
        db.commit()
        return entry

    @staticmethod
    def query_logs(
        db: Session,
        actor_id: Optional[str] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Dict[str, Any]:
        """Newest-first page of entries.

        ``action`` matches as a substring, so ``"overrides"`` finds every
        override replacement; the other filters are exact.
        """
        query = db.query(AuditLog)
        if actor_id:
            query = query.filter(AuditLog.actor_id == actor_id)
        if action:
            query = query.filter(AuditLog.action.ilike(f"%{action}%"))
        if resource_type:
            query = query.filter(AuditLog.resource_type == resource_type)
        if resource_id:
            query = query.filter(AuditLog.resource_id == resource_id)

        total = query.count()
        logs = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"logs": logs, "total": total, "page": page, "page_size": page_size}


audit_service = AuditService()

"""Audit trail of authorization and account changes."""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, func

from school_admin.db.base import Base


class AuditLog(Base):
    """One recorded change. Rows are only ever inserted.

    ``actor_id`` and ``resource_id`` are plain strings rather than foreign keys:
    the history of a deleted role or user stays readable after the row it
    names is gone.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(String(36), nullable=True, index=True)
    actor_email = Column(String(255), nullable=True)
    action = Column(String(100), nullable=False, index=True)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(36), nullable=True)
    # JSON snapshots: permission names for role/override replacements,
    # {page_id: can_access} for page upserts, changed fields otherwise
    old_value_json = Column(Text, nullable=True)
    new_value_json = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

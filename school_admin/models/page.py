"""Navigable UI pages and per-role page access."""

from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship

from school_admin.db.base import Base, new_id


class Page(Base):
    """A UI section gated separately from fine-grained permissions."""
    __tablename__ = "pages"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(50), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    route = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    role_permissions = relationship(
        "RolePagePermission", back_populates="page", cascade="all, delete-orphan",
    )


class RolePagePermission(Base):
    """Whether users of a role may open a page."""
    __tablename__ = "role_page_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "page_id", name="uq_role_page"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    role_id = Column(String(36), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    page_id = Column(String(36), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    can_access = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    role = relationship("Role", back_populates="page_permissions")
    page = relationship("Page", back_populates="role_permissions", lazy="joined")

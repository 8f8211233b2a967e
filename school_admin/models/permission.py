"""Permission catalog models."""

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from school_admin.db.base import Base, new_id


class PermissionCategory(Base):
    """UI grouping for permissions. Has no effect on authorization."""
    __tablename__ = "permission_categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(50), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_system_category = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    permissions = relationship("Permission", back_populates="category", cascade="all, delete-orphan")


class Permission(Base):
    """Atomic grant of one action on one resource, named ``resource:action``."""
    __tablename__ = "permissions"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(
        String(36), ForeignKey("permission_categories.id", ondelete="CASCADE"), nullable=False,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    category = relationship("PermissionCategory", back_populates="permissions", lazy="joined")
    role_permissions = relationship(
        "RolePermission", back_populates="permission", cascade="all, delete-orphan",
    )
    user_overrides = relationship(
        "UserPermissionOverride", back_populates="permission", cascade="all, delete-orphan",
    )

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def resource(self) -> str:
        return self.name.split(":", 1)[0]

    @property
    def action(self) -> str:
        return self.name.split(":", 1)[-1]

"""Pydantic schemas for API request/response serialization.

JSON keys are camelCase on the wire; Python attributes stay snake_case.
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict
from datetime import date, datetime


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ---- Generic ----
class MessageResponse(CamelModel):
    message: str


# ---- Auth ----
class LoginRequest(CamelModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=4)

class RegisterRequest(CamelModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


# ---- User ----
class UserOut(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role_id: Optional[str] = None
    role_name: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut

class UserListResponse(CamelModel):
    users: List[UserOut]
    total: int
    page: int

class UserCreate(CamelModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    role_id: Optional[str] = None
    is_active: bool = True

class UserUpdate(CamelModel):
    email: Optional[str] = Field(None, min_length=4)
    password: Optional[str] = Field(None, min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role_id: Optional[str] = None
    is_active: Optional[bool] = None


# ---- Role ----
class RoleOut(CamelModel):
    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    is_system_role: bool
    is_deletable: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class RoleCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=50)
    display_name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None
    is_active: bool = True

class RoleUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    display_name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


# ---- Permission catalog ----
class PermissionCategoryOut(CamelModel):
    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    is_system_category: bool
    is_active: bool

class PermissionCategoryCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=50)
    display_name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None

class PermissionCategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    display_name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None

class PermissionOut(CamelModel):
    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    category_id: str
    category_name: Optional[str] = None
    is_active: bool

class PermissionCreate(CamelModel):
    name: str = Field(..., min_length=3, max_length=100)
    display_name: str = Field(..., min_length=2, max_length=150)
    description: Optional[str] = None
    category_id: str
    is_active: bool = True

class PermissionUpdate(CamelModel):
    display_name: Optional[str] = Field(None, min_length=2, max_length=150)
    description: Optional[str] = None
    category_id: Optional[str] = None
    is_active: Optional[bool] = None

class RolePermissionsUpdate(CamelModel):
    permission_ids: List[str]

class RoleWithPermissionsOut(CamelModel):
    role: RoleOut
    permissions: List[PermissionOut]

class PermissionsByCategoryOut(CamelModel):
    categories: Dict[str, List[PermissionOut]]

class EffectivePermissionsOut(CamelModel):
    user_id: str
    role_name: Optional[str] = None
    is_admin: bool
    permissions: List[PermissionOut]


# ---- User overrides ----
class UserOverrideIn(CamelModel):
    permission_id: str
    is_granted: bool

class UserOverridesUpdate(CamelModel):
    overrides: List[UserOverrideIn]

class UserOverrideOut(CamelModel):
    id: str
    user_id: str
    permission_id: str
    is_granted: bool
    permission: PermissionOut

class UserPermissionsOut(CamelModel):
    user_id: str
    overrides: List[UserOverrideOut]
    effective_permissions: List[PermissionOut]


# ---- Pages ----
class PageOut(CamelModel):
    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    route: str
    is_active: bool

class PageCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=50)
    display_name: str = Field(..., min_length=2, max_length=100)
    route: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: bool = True

class PageUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    display_name: Optional[str] = Field(None, min_length=2, max_length=100)
    route: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None

class PageAccessIn(CamelModel):
    page_id: str
    can_access: bool

class RolePagesUpdate(CamelModel):
    page_permissions: List[PageAccessIn]

class RolePagePermissionOut(CamelModel):
    id: str
    role_id: str
    page_id: str
    can_access: bool
    page: PageOut

class AllowedPagesOut(CamelModel):
    pages: List[str]


# ---- Students ----
class GuardianIn(CamelModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    relationship_type: Optional[str] = None

class GuardianOut(GuardianIn):
    id: str

class StudentCreate(CamelModel):
    email: str = Field(..., min_length=4)
    password: Optional[str] = Field(None, min_length=6)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    birth_date: Optional[date] = None
    phone: Optional[str] = None
    guardian: Optional[GuardianIn] = None

class StudentOut(CamelModel):
    id: str
    user_id: str
    email: str
    first_name: str
    last_name: str
    birth_date: Optional[date] = None
    phone: Optional[str] = None
    guardian: Optional[GuardianOut] = None
    created_at: Optional[datetime] = None


# ---- Audit ----
class AuditLogOut(CamelModel):
    id: int
    actor_id: Optional[str] = None
    actor_email: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    old_value_json: Optional[str] = None
    new_value_json: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

class AuditLogPage(CamelModel):
    logs: List[AuditLogOut]
    total: int
    page: int
    page_size: int

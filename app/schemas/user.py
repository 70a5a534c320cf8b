import uuid
from datetime import datetime
from typing import List, Optional, Literal

from fastapi_users import schemas
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.auth.permissions import Permissions
from app.core.constants import MIN_PASSWORD_LENGTH

TenantRole = Literal["tenant_admin", "staff"]


class UserRead(schemas.BaseUser[uuid.UUID]):
    display_name: Optional[str] = None
    venue_id: Optional[str] = None
    is_archived: bool = False
    must_change_password: bool = False


class UserCreate(schemas.BaseUserCreate):
    display_name: Optional[str] = None


class UserUpdate(schemas.BaseUserUpdate):
    display_name: Optional[str] = None


class UserRoleRead(BaseModel):
    tenant_id: str
    role: str
    tenant_role: str

    model_config = ConfigDict(from_attributes=True)


class MeRead(BaseModel):
    user: UserRead
    role: Optional[str] = None
    permissions: Permissions
    tenant_id: Optional[str] = None
    tenant_ids: List[str] = []
    is_super_admin: bool = False
    is_impersonating: bool = False
    must_change_password: bool = False


class StaffUserRead(BaseModel):
    id: uuid.UUID
    email: EmailStr
    display_name: Optional[str] = None
    venue_id: Optional[str] = None
    tenant_role: Optional[str] = None
    is_active: bool
    is_archived: bool
    archived_at: Optional[datetime] = None
    must_change_password: bool
    created_at: Optional[datetime] = None


class StaffUserCreate(BaseModel):
    email: EmailStr
    display_name: Optional[str] = None
    tenant_role: TenantRole = "staff"
    password: Optional[str] = None
    tenant_id: Optional[str] = None  # super admins pick the tenant


class StaffUserUpdate(BaseModel):
    display_name: Optional[str] = None
    tenant_role: Optional[TenantRole] = None
    is_active: Optional[bool] = None


class PasswordSet(BaseModel):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class PasswordResetResult(BaseModel):
    user_id: uuid.UUID
    temporary_password: str


class StaffUserCreated(BaseModel):
    user: StaffUserRead
    temporary_password: Optional[str] = None

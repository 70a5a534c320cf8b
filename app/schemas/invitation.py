import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.constants import MIN_PASSWORD_LENGTH
from app.schemas.user import TenantRole


class InvitationCreate(BaseModel):
    email: EmailStr
    role: TenantRole = "staff"
    tenant_id: Optional[str] = None


class InvitationRead(BaseModel):
    id: str
    tenant_id: str
    email: str
    role: str
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InvitationSent(BaseModel):
    invitation: InvitationRead
    invite_url: str
    email_sent: bool


class InvitationAccept(BaseModel):
    token: str = Field(min_length=64, max_length=64)
    password: Optional[str] = Field(default=None, min_length=MIN_PASSWORD_LENGTH)
    display_name: Optional[str] = None


class InvitationAccepted(BaseModel):
    user_id: uuid.UUID
    tenant_id: str
    role: str
    created_user: bool

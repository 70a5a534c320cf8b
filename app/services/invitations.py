# app/services/invitations.py
import logging
import uuid
from datetime import timedelta
from typing import Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.auth.dependencies import StaffContext
from app.auth.permissions import Role
from app.core.config import settings
from app.core.constants import MIN_PASSWORD_LENGTH
from app.models.invitation import StaffInvitation
from app.models.user import User, UserRole
from app.models.venue import Venue
from app.schemas.invitation import InvitationCreate, InvitationAccept
from app.services.audit import AuditAction, log_audit_event
from app.services.errors import TenantAccessError
from app.services.user_management import get_user_by_email, legacy_role, password_helper
from app.utils.email_service import send_invitation_email
from app.utils.security import generate_invitation_token, hash_token
from app.utils.timezones import utcnow

log = logging.getLogger(__name__)


def invite_url(token: str) -> str:
    return f"{settings.public_app_url.rstrip('/')}/admin/accept-invite?token={token}"


async def _caller_can_invite(db: AsyncSession, ctx: StaffContext, tenant_id: str) -> bool:
    if ctx.tenant.is_super_admin:
        return True
    res = await db.execute(
        select(UserRole.tenant_role).where(
            UserRole.user_id == ctx.user_id, UserRole.tenant_id == tenant_id
        )
    )
    return res.scalar_one_or_none() == Role.TENANT_ADMIN.value


async def list_pending_invitations(db: AsyncSession, tenant_id: Optional[str]):
    stmt = (
        select(StaffInvitation)
        .where(StaffInvitation.accepted_at.is_(None))
        .order_by(StaffInvitation.created_at.desc())
    )
    if tenant_id:
        stmt = stmt.where(StaffInvitation.tenant_id == tenant_id)
    res = await db.execute(stmt)
    return res.scalars().all()


async def send_invitation(
    db: AsyncSession, ctx: StaffContext, data: InvitationCreate
) -> Tuple[StaffInvitation, str, bool]:
    """Create or refresh an invitation. Returns (invitation, invite_url, email_sent)."""
    tenant_id = data.tenant_id or ctx.tenant.require_tenant_id()
    if ctx.tenant.is_impersonating:
        ctx.tenant.validate_tenant_mutation(tenant_id)

    if not await _caller_can_invite(db, ctx, tenant_id):
        raise TenantAccessError("Only tenant admins can invite staff")

    venue = await db.get(Venue, tenant_id)
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found")

    email = data.email.strip().lower()
    member = await db.execute(
        select(UserRole.id)
        .join(User, User.id == UserRole.user_id)
        .where(func.lower(User.email) == email, UserRole.tenant_id == tenant_id)
    )
    if member.scalar_one_or_none() is not None:
        raise HTTPException(status_code=400, detail="User already exists in this tenant")

    token = generate_invitation_token()
    expires_at = utcnow() + timedelta(days=settings.invitation_ttl_days)

    res = await db.execute(
        select(StaffInvitation).where(
            StaffInvitation.email == email,
            StaffInvitation.tenant_id == tenant_id,
            StaffInvitation.accepted_at.is_(None),
        )
    )
    invitation = res.scalars().first()
    if invitation:
        # Refresh instead of stacking a second pending invite
        invitation.token_hash = hash_token(token)
        invitation.expires_at = expires_at
        invitation.invited_by = ctx.user_id
        invitation.role = data.role
    else:
        invitation = StaffInvitation(
            tenant_id=tenant_id,
            email=email,
            role=data.role,
            token_hash=hash_token(token),
            invited_by=ctx.user_id,
            expires_at=expires_at,
        )
        db.add(invitation)

    log_audit_event(
        db, ctx.user_id, AuditAction.STAFF_INVITED,
        tenant_id=tenant_id,
        metadata={"email": email, "role": data.role, "expires_at": expires_at},
        impersonating=ctx.tenant.is_impersonating,
    )
    await db.commit()
    await db.refresh(invitation)

    url = invite_url(token)
    log.info("staff invitation created tenant=%s email=%s", tenant_id, email)
    result = send_invitation_email(email, venue.name, url, data.role)
    return invitation, url, bool(result.get("success"))


async def accept_invitation(db: AsyncSession, data: InvitationAccept) -> Tuple[User, StaffInvitation, bool]:
    """Returns (user, invitation, created_user)."""
    res = await db.execute(
        select(StaffInvitation).where(
            StaffInvitation.token_hash == hash_token(data.token),
            StaffInvitation.accepted_at.is_(None),
            StaffInvitation.expires_at > utcnow(),
        )
    )
    invitation = res.scalar_one_or_none()
    if not invitation:
        raise HTTPException(status_code=400, detail="Invalid or expired invitation")

    user = await get_user_by_email(db, invitation.email)
    created = False

    if user:
        existing = await db.execute(
            select(UserRole.id).where(
                UserRole.user_id == user.id, UserRole.tenant_id == invitation.tenant_id
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(status_code=400, detail="You already have access to this venue")
    else:
        if not data.password or len(data.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(status_code=400, detail="Password must be at least 6 characters")
        user = User(
            id=uuid.uuid4(),
            email=invitation.email,
            hashed_password=password_helper.hash(data.password),
            is_active=True,
            is_superuser=False,
            is_verified=True,
            display_name=data.display_name,
            venue_id=invitation.tenant_id,
        )
        db.add(user)
        created = True

    db.add(UserRole(
        user_id=user.id,
        tenant_id=invitation.tenant_id,
        tenant_role=invitation.role,
        role=legacy_role(invitation.role),
    ))
    invitation.accepted_at = utcnow()

    log_audit_event(
        db, user.id, AuditAction.INVITATION_ACCEPTED,
        target_user_id=user.id,
        tenant_id=invitation.tenant_id,
        metadata={"email": invitation.email, "role": invitation.role, "new_user": created},
    )
    await db.commit()

    log.info("invitation accepted tenant=%s user=%s new=%s", invitation.tenant_id, user.id, created)
    return user, invitation, created

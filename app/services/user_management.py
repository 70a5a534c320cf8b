# app/services/user_management.py
"""
Privileged account operations for venue staff.

Tenant admins act on users holding a role in their current tenant; super
admins act on anyone (scoped to the impersonated tenant while
impersonating). Every mutation is audited and the last active tenant admin
is protected from demotion, deactivation, archiving and deletion.
"""
import logging
import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from fastapi import HTTPException
from fastapi_users.password import PasswordHelper
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.auth.dependencies import StaffContext, is_super_admin_user
from app.auth.permissions import Role
from app.core.config import settings
from app.core.constants import MIN_PASSWORD_LENGTH
from app.models.user import User, UserRole, SuperAdmin, PasswordResetRateLimit
from app.models.venue import Venue
from app.schemas.user import StaffUserCreate, StaffUserUpdate
from app.services.admin_guard import ensure_admin_remains, ensure_admins_remain_everywhere
from app.services.audit import AuditAction, log_audit_event
from app.services.errors import RateLimitedError, TenantAccessError
from app.utils.security import generate_password
from app.utils.timezones import utcnow

log = logging.getLogger(__name__)

password_helper = PasswordHelper()


def legacy_role(tenant_role: str) -> str:
    return "admin" if tenant_role == Role.TENANT_ADMIN.value else "staff"


def _audit(db, ctx: StaffContext, action, target_user_id=None, tenant_id=None, metadata=None):
    log_audit_event(
        db,
        ctx.user_id,
        action,
        target_user_id=target_user_id,
        tenant_id=tenant_id,
        metadata=metadata,
        impersonating=ctx.tenant.is_impersonating,
    )


def serialize_user(user: User, role: Optional[UserRole]) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "venue_id": user.venue_id,
        "tenant_role": role.tenant_role if role else None,
        "is_active": user.is_active,
        "is_archived": user.is_archived,
        "archived_at": user.archived_at,
        "must_change_password": user.must_change_password,
        "created_at": user.created_at,
    }


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    return res.scalar_one_or_none()


async def load_target(db: AsyncSession, ctx: StaffContext, user_id) -> Tuple[User, Optional[UserRole]]:
    """The target user and their role in the tenant the actor is working in."""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    scope = ctx.tenant.tenant_filter()
    stmt = select(UserRole).where(UserRole.user_id == user.id)
    if scope:
        stmt = stmt.where(UserRole.tenant_id == scope)
    roles = (await db.execute(stmt)).scalars().all()

    if scope and not roles:
        # Outside the actor's tenant
        raise HTTPException(status_code=404, detail="User not found")

    role = next((r for r in roles if r.tenant_id == user.venue_id), roles[0] if roles else None)
    return user, role


async def other_tenant_ids(db: AsyncSession, user_id, tenant_id: str) -> List[str]:
    res = await db.execute(
        select(UserRole.tenant_id).where(UserRole.user_id == user_id, UserRole.tenant_id != tenant_id)
    )
    return list(res.scalars().all())


async def ensure_account_in_scope(db: AsyncSession, ctx: StaffContext, user: User) -> None:
    """
    A tenant-scoped actor may only make account-wide changes to users who
    belong to their tenant alone. Platform administrators are off limits.
    """
    scope = ctx.tenant.tenant_filter()
    if not scope:
        return
    if await is_super_admin_user(db, user.id):
        raise TenantAccessError("Platform administrators cannot be changed from a venue")
    if await other_tenant_ids(db, user.id, scope):
        raise TenantAccessError("User also belongs to other venues")


async def list_users(
    db: AsyncSession,
    ctx: StaffContext,
    archived: Optional[bool] = False,
    all_tenants: bool = False,
) -> List[dict]:
    scope = None if all_tenants else ctx.tenant.tenant_filter()
    stmt = select(User, UserRole).outerjoin(UserRole, UserRole.user_id == User.id)
    if scope:
        stmt = stmt.where(UserRole.tenant_id == scope)
    if archived is not None:
        stmt = stmt.where(User.is_archived.is_(archived))
    stmt = stmt.order_by(User.created_at.desc())

    rows = (await db.execute(stmt)).all()
    seen = set()
    users = []
    for user, role in rows:
        if user.id in seen:
            continue
        seen.add(user.id)
        users.append(serialize_user(user, role))
    return users


async def create_user(
    db: AsyncSession, ctx: StaffContext, data: StaffUserCreate
) -> Tuple[User, UserRole, Optional[str]]:
    """Returns the user, their tenant role and the generated password, if any."""
    if data.tenant_id and ctx.tenant.is_super_admin and not ctx.tenant.is_impersonating:
        tenant_id = data.tenant_id
    else:
        tenant_id = ctx.tenant.require_tenant_id()
        if data.tenant_id and data.tenant_id != tenant_id:
            raise TenantAccessError("Users can only be created in the current tenant")

    if not await db.get(Venue, tenant_id):
        raise HTTPException(status_code=404, detail="Venue not found")

    if await get_user_by_email(db, data.email):
        raise HTTPException(status_code=409, detail="A user with this email already exists")

    generated = None
    if data.password:
        if len(data.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(status_code=400, detail="Password must be at least 6 characters")
        password = data.password
    else:
        password = generated = generate_password()

    user = User(
        id=uuid.uuid4(),
        email=data.email.strip().lower(),
        hashed_password=password_helper.hash(password),
        is_active=True,
        is_superuser=False,
        is_verified=True,
        display_name=data.display_name,
        venue_id=tenant_id,
        must_change_password=generated is not None,
    )
    role = UserRole(
        user_id=user.id,
        tenant_id=tenant_id,
        tenant_role=data.tenant_role,
        role=legacy_role(data.tenant_role),
    )
    db.add(user)
    db.add(role)
    _audit(db, ctx, AuditAction.USER_CREATED, user.id, tenant_id,
           {"email": user.email, "tenant_role": data.tenant_role})
    await db.commit()

    log.info("user created tenant=%s user=%s by=%s", tenant_id, user.id, ctx.user_id)
    return await db.get(User, user.id), role, generated


async def update_user(
    db: AsyncSession, ctx: StaffContext, user_id, data: StaffUserUpdate
) -> dict:
    user, role = await load_target(db, ctx, user_id)
    updates = data.model_dump(exclude_unset=True)

    new_role = updates.get("tenant_role")
    if new_role is not None and not ctx.permissions.can_assign_roles:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    if new_role is not None and role is None:
        raise HTTPException(status_code=400, detail="User has no tenant to assign a role in")

    await ensure_admin_remains(
        db,
        role.tenant_id if role else None,
        user.id,
        new_tenant_role=new_role,
        detail="Cannot demote the last remaining admin",
    )
    new_active = updates.get("is_active")
    if new_active is not None and new_active != user.is_active:
        await ensure_account_in_scope(db, ctx, user)
        if new_active is False:
            await ensure_admins_remain_everywhere(
                db, user.id, is_active=False, detail="Cannot deactivate the last remaining admin"
            )

    tenant_id = role.tenant_id if role else None
    if "display_name" in updates:
        user.display_name = updates["display_name"]

    if new_role is not None and new_role != role.tenant_role:
        old_role = role.tenant_role
        role.tenant_role = new_role
        role.role = legacy_role(new_role)
        _audit(db, ctx, AuditAction.USER_ROLE_CHANGED, user.id, tenant_id,
               {"old_role": old_role, "new_role": new_role})

    if updates.get("is_active") is not None and updates["is_active"] != user.is_active:
        user.is_active = updates["is_active"]
        if not user.is_active:
            _audit(db, ctx, AuditAction.USER_DEACTIVATED, user.id, tenant_id)

    _audit(db, ctx, AuditAction.USER_UPDATED, user.id, tenant_id, {"fields": sorted(updates)})
    await db.commit()

    user = await db.get(User, user.id)
    return serialize_user(user, role)


async def _check_reset_rate_limit(db: AsyncSession, target_user_id):
    now = utcnow()
    window_start = now - timedelta(minutes=settings.password_reset_window_minutes)
    res = await db.execute(
        select(func.count(PasswordResetRateLimit.id)).where(
            PasswordResetRateLimit.target_user_id == target_user_id,
            PasswordResetRateLimit.created_at > window_start,
        )
    )
    if res.scalar_one() >= settings.password_reset_limit:
        raise RateLimitedError("Too many password reset attempts. Try again later.")

    db.add(PasswordResetRateLimit(target_user_id=target_user_id, created_at=now))
    cutoff = now - timedelta(minutes=settings.password_reset_retention_minutes)
    await db.execute(delete(PasswordResetRateLimit).where(PasswordResetRateLimit.created_at < cutoff))


async def reset_password(db: AsyncSession, ctx: StaffContext, user_id) -> str:
    """Issue a temporary password the user must replace at next login."""
    user, role = await load_target(db, ctx, user_id)
    await _check_reset_rate_limit(db, user.id)

    temporary = generate_password()
    user.hashed_password = password_helper.hash(temporary)
    user.must_change_password = True
    _audit(db, ctx, AuditAction.PASSWORD_RESET, user.id, role.tenant_id if role else None)
    await db.commit()

    log.info("password reset tenant=%s user=%s by=%s", role.tenant_id if role else None, user.id, ctx.user_id)
    return temporary


async def set_password(db: AsyncSession, ctx: StaffContext, user_id, password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")
    user, role = await load_target(db, ctx, user_id)
    user.hashed_password = password_helper.hash(password)
    _audit(db, ctx, AuditAction.PASSWORD_MODIFIED, user.id, role.tenant_id if role else None,
           {"method": "admin_set"})
    await db.commit()


async def change_own_password(db: AsyncSession, ctx: StaffContext, current_password: str, new_password: str) -> None:
    user = await db.get(User, ctx.user_id)
    verified, _ = password_helper.verify_and_update(current_password, user.hashed_password)
    if not verified:
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    user.hashed_password = password_helper.hash(new_password)
    user.must_change_password = False
    _audit(db, ctx, AuditAction.PASSWORD_MODIFIED, user.id, ctx.tenant_id, {"method": "self"})
    await db.commit()


async def deactivate_user(db: AsyncSession, ctx: StaffContext, user_id) -> dict:
    user, role = await load_target(db, ctx, user_id)
    await ensure_account_in_scope(db, ctx, user)
    await ensure_admins_remain_everywhere(
        db, user.id, is_active=False, detail="Cannot deactivate the last remaining admin"
    )

    user.is_active = False
    _audit(db, ctx, AuditAction.USER_DEACTIVATED, user.id, role.tenant_id if role else None)
    await db.commit()
    return serialize_user(await db.get(User, user.id), role)


async def archive_user(db: AsyncSession, ctx: StaffContext, user_id) -> dict:
    user, role = await load_target(db, ctx, user_id)
    if user.id == ctx.user_id:
        raise HTTPException(status_code=400, detail="Cannot archive your own account")
    await ensure_account_in_scope(db, ctx, user)
    await ensure_admins_remain_everywhere(
        db, user.id, removing=True, detail="Cannot archive the last remaining admin"
    )

    user.is_archived = True
    user.archived_at = utcnow()
    user.archived_by = ctx.user_id
    user.is_active = False
    _audit(db, ctx, AuditAction.USER_ARCHIVED, user.id, role.tenant_id if role else None, {"email": user.email})
    await db.commit()
    return serialize_user(await db.get(User, user.id), role)


async def restore_user(db: AsyncSession, ctx: StaffContext, user_id) -> dict:
    user, role = await load_target(db, ctx, user_id)
    if not user.is_archived:
        raise HTTPException(status_code=400, detail="User is not archived")

    user.is_archived = False
    user.archived_at = None
    user.archived_by = None
    user.is_active = True
    _audit(db, ctx, AuditAction.USER_RESTORED, user.id, role.tenant_id if role else None)
    await db.commit()
    return serialize_user(await db.get(User, user.id), role)


async def _remove_membership(db: AsyncSession, ctx: StaffContext, user: User, role: UserRole, others: List[str]) -> None:
    """Drop the user from one tenant; the account lives on in the others."""
    await ensure_admin_remains(
        db, role.tenant_id, user.id, removing=True, detail="Cannot delete the last remaining admin"
    )
    _audit(db, ctx, AuditAction.USER_DELETED, user.id, role.tenant_id,
           {"deleted_user": serialize_user(user, role), "membership_only": True})
    if user.venue_id == role.tenant_id:
        user.venue_id = others[0]
    await db.delete(role)
    await db.commit()
    log.info("user removed from tenant tenant=%s user=%s by=%s", role.tenant_id, user.id, ctx.user_id)


async def delete_user(db: AsyncSession, ctx: StaffContext, user_id) -> None:
    if str(user_id) == str(ctx.user_id):
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    user, role = await load_target(db, ctx, user_id)
    scope = ctx.tenant.tenant_filter()
    if scope:
        if await is_super_admin_user(db, user.id):
            raise TenantAccessError("Platform administrators cannot be changed from a venue")
        others = await other_tenant_ids(db, user.id, scope)
        if others:
            await _remove_membership(db, ctx, user, role, others)
            return

    await ensure_admins_remain_everywhere(
        db, user.id, removing=True, detail="Cannot delete the last remaining admin"
    )

    tenant_id = role.tenant_id if role else None
    # The audit row outlives the user, so keep what they were
    snapshot = serialize_user(user, role)
    _audit(db, ctx, AuditAction.USER_DELETED, user.id, tenant_id, {"deleted_user": snapshot})

    await db.execute(delete(UserRole).where(UserRole.user_id == user.id))
    await db.execute(delete(SuperAdmin).where(SuperAdmin.user_id == user.id))
    await db.delete(user)
    await db.commit()
    log.info("user deleted tenant=%s user=%s by=%s", tenant_id, user_id, ctx.user_id)

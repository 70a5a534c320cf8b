# auth/dependencies.py
import logging
from dataclasses import dataclass
from typing import List, Optional

from fastapi import Request, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.db import get_db
from app.auth.routes import get_current_user
from app.auth.permissions import Permissions, Role, get_permissions
from app.models.user import User, SuperAdmin, UserRole
from app.models.venue import Venue
from app.services.audit import AuditAction, log_audit_event
from app.utils.tenant import (
    TenantContext,
    resolve_tenant_context,
    get_impersonated_tenant_id,
    get_selected_tenant_id,
)

log = logging.getLogger(__name__)


@dataclass
class StaffContext:
    user: User
    role: Optional[Role]
    permissions: Permissions
    tenant: TenantContext

    @property
    def user_id(self):
        return self.user.id

    @property
    def tenant_id(self) -> Optional[str]:
        return self.tenant.tenant_id


async def is_super_admin_user(db: AsyncSession, user_id) -> bool:
    res = await db.execute(select(SuperAdmin.id).where(SuperAdmin.user_id == user_id))
    return res.scalar_one_or_none() is not None


async def get_user_roles(db: AsyncSession, user_id) -> List[UserRole]:
    res = await db.execute(select(UserRole).where(UserRole.user_id == user_id))
    return res.scalars().all()


async def resolve_role(db: AsyncSession, user_id, tenant_id: Optional[str]) -> Optional[Role]:
    if await is_super_admin_user(db, user_id):
        return Role.SUPER_ADMIN
    if not tenant_id:
        return None
    res = await db.execute(
        select(UserRole.tenant_role).where(
            UserRole.user_id == user_id, UserRole.tenant_id == tenant_id
        )
    )
    tenant_role = res.scalar_one_or_none()
    if tenant_role is None:
        return None
    try:
        return Role(tenant_role)
    except ValueError:
        return None


def _pick_auth_tenant(
    user: User, tenant_ids: List[str], selected: Optional[str], super_admin: bool = False
) -> Optional[str]:
    if selected and (super_admin or selected in tenant_ids):
        return selected
    if user.venue_id and user.venue_id in tenant_ids:
        return user.venue_id
    if tenant_ids:
        return tenant_ids[0]
    return user.venue_id


async def build_staff_context(request: Request, db: AsyncSession, user: User) -> StaffContext:
    super_admin = await is_super_admin_user(db, user.id)
    roles = await get_user_roles(db, user.id)
    tenant_ids = [r.tenant_id for r in roles]

    tenant = resolve_tenant_context(
        auth_tenant_id=_pick_auth_tenant(user, tenant_ids, get_selected_tenant_id(request), super_admin),
        tenant_ids=tenant_ids,
        is_super_admin=super_admin,
        impersonated_tenant_id=get_impersonated_tenant_id(request),
    )

    role = Role.SUPER_ADMIN if super_admin else await resolve_role(db, user.id, tenant.tenant_id)

    return StaffContext(user=user, role=role, permissions=get_permissions(role), tenant=tenant)


def _staff_context(allow_password_change: bool = False):
    async def _dep(
        request: Request,
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user),
    ) -> StaffContext:
        if user.is_archived:
            raise HTTPException(status_code=403, detail="Account has been archived")

        ctx = await build_staff_context(request, db, user)

        if not ctx.tenant.is_super_admin and ctx.tenant_id:
            venue = await db.get(Venue, ctx.tenant_id)
            if venue is not None and venue.is_suspended:
                raise HTTPException(status_code=403, detail="Venue suspended")

        if user.must_change_password and not allow_password_change:
            raise HTTPException(status_code=403, detail="Password change required")

        request.state.staff_context = ctx
        return ctx
    return _dep


get_staff_context = _staff_context()
# For the endpoints a user must reach while a password change is pending
get_staff_context_pending_password = _staff_context(allow_password_change=True)


def require_permission(permission: str):
    if permission not in Permissions.model_fields:
        raise ValueError(f"Unknown permission: {permission}")

    async def _dep(
        db: AsyncSession = Depends(get_db),
        ctx: StaffContext = Depends(get_staff_context),
    ) -> StaffContext:
        if not getattr(ctx.permissions, permission):
            log.warning(
                "permission denied tenant=%s user=%s permission=%s role=%s",
                ctx.tenant_id, ctx.user_id, permission, ctx.role,
            )
            log_audit_event(
                db,
                ctx.user_id,
                AuditAction.INVALID_ROLE_ACCESS_ATTEMPT,
                tenant_id=ctx.tenant_id,
                metadata={"permission": permission, "role": ctx.role.value if ctx.role else None},
                impersonating=ctx.tenant.is_impersonating,
            )
            await db.commit()
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return ctx
    return _dep

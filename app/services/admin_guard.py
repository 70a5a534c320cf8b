# app/services/admin_guard.py
import logging
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.permissions import Role
from app.models.user import User, UserRole
from app.services.errors import LastAdminError

log = logging.getLogger(__name__)

TENANT_ADMIN = Role.TENANT_ADMIN.value


async def count_active_tenant_admins(db: AsyncSession, tenant_id: str) -> int:
    res = await db.execute(
        select(func.count(UserRole.id))
        .join(User, User.id == UserRole.user_id)
        .where(
            UserRole.tenant_id == tenant_id,
            UserRole.tenant_role == TENANT_ADMIN,
            User.is_active.is_(True),
            User.is_archived.is_(False),
        )
    )
    return res.scalar_one()


def removes_admin_status(
    current_role: Optional[str],
    is_active: bool,
    new_role: Optional[str] = None,
    new_active: Optional[bool] = None,
    removing: bool = False,
) -> bool:
    """True when the change takes an active tenant admin out of that status."""
    if current_role != TENANT_ADMIN or not is_active:
        return False
    if removing:
        return True
    if new_role is not None and new_role != TENANT_ADMIN:
        return True
    return new_active is False


def would_orphan_tenant(
    active_admin_count: int,
    current_role: Optional[str],
    is_active: bool,
    new_role: Optional[str] = None,
    new_active: Optional[bool] = None,
    removing: bool = False,
) -> bool:
    if not removes_admin_status(current_role, is_active, new_role, new_active, removing):
        return False
    return active_admin_count <= 1


async def ensure_admin_remains(
    db: AsyncSession,
    tenant_id: Optional[str],
    user_id,
    new_tenant_role: Optional[str] = None,
    is_active: Optional[bool] = None,
    removing: bool = False,
    detail: Optional[str] = None,
) -> None:
    if not tenant_id:
        return

    res = await db.execute(
        select(UserRole, User)
        .join(User, User.id == UserRole.user_id)
        .where(UserRole.tenant_id == tenant_id, UserRole.user_id == user_id)
    )
    row = res.first()
    if row is None:
        return
    role, user = row
    currently_active = bool(user.is_active and not user.is_archived)

    if not removes_admin_status(role.tenant_role, currently_active, new_tenant_role, is_active, removing):
        return

    count = await count_active_tenant_admins(db, tenant_id)
    if would_orphan_tenant(count, role.tenant_role, currently_active, new_tenant_role, is_active, removing):
        log.info("last admin guard blocked change tenant=%s user=%s", tenant_id, user_id)
        raise LastAdminError(detail) if detail else LastAdminError()


async def admin_tenant_ids(db: AsyncSession, user_id) -> List[str]:
    res = await db.execute(
        select(UserRole.tenant_id).where(UserRole.user_id == user_id, UserRole.tenant_role == TENANT_ADMIN)
    )
    return list(res.scalars().all())


async def ensure_admins_remain_everywhere(
    db: AsyncSession,
    user_id,
    is_active: Optional[bool] = None,
    removing: bool = False,
    detail: Optional[str] = None,
) -> None:
    """Account-wide changes must leave every tenant the user administers with an admin."""
    for tenant_id in await admin_tenant_ids(db, user_id):
        await ensure_admin_remains(db, tenant_id, user_id, is_active=is_active, removing=removing, detail=detail)

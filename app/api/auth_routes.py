# app/api/auth_routes.py
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.auth.dependencies import (
    StaffContext,
    build_staff_context,
    get_staff_context_pending_password,
)
from app.core.constants import SESSION_CURRENT_TENANT, SESSION_IMPERSONATED_TENANT
from app.schemas.user import MeRead, PasswordChange, UserRead
from app.services.audit import AuditAction, log_audit_event
from app.services.user_management import change_own_password
from app.utils.tenant import set_session_tenant

router = APIRouter(prefix="/auth", tags=["auth"])


def _me(ctx: StaffContext) -> MeRead:
    return MeRead(
        user=UserRead.model_validate(ctx.user),
        role=ctx.role.value if ctx.role else None,
        permissions=ctx.permissions,
        tenant_id=ctx.tenant_id,
        tenant_ids=ctx.tenant.tenant_ids,
        is_super_admin=ctx.tenant.is_super_admin,
        is_impersonating=ctx.tenant.is_impersonating,
        must_change_password=ctx.user.must_change_password,
    )


@router.get("/me", response_model=MeRead)
async def read_me(ctx: StaffContext = Depends(get_staff_context_pending_password)):
    return _me(ctx)


@router.post("/change-password", status_code=204)
async def change_password(
    data: PasswordChange,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(get_staff_context_pending_password),
):
    await change_own_password(db, ctx, data.current_password, data.new_password)
    return Response(status_code=204)


@router.post("/tenant/{tenant_id}", response_model=MeRead)
async def set_current_tenant(
    tenant_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(get_staff_context_pending_password),
):
    if not ctx.tenant.is_super_admin and tenant_id not in ctx.tenant.tenant_ids:
        raise HTTPException(status_code=403, detail="You do not belong to this tenant")
    set_session_tenant(request, SESSION_CURRENT_TENANT, tenant_id)
    request.state.current_tenant_id = tenant_id
    return _me(await build_staff_context(request, db, ctx.user))


@router.post("/logout", status_code=204)
async def logout(
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(get_staff_context_pending_password),
):
    log_audit_event(db, ctx.user_id, AuditAction.LOGOUT, target_user_id=ctx.user_id, tenant_id=ctx.tenant_id)
    await db.commit()
    set_session_tenant(request, SESSION_IMPERSONATED_TENANT, None)
    set_session_tenant(request, SESSION_CURRENT_TENANT, None)
    return Response(status_code=204)

# app/api/super_admin_routes.py
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.db import get_db
from app.auth.dependencies import StaffContext, require_permission
from app.core.constants import SESSION_IMPERSONATED_TENANT
from app.crud import venue as venue_crud
from app.models.user import User, UserRole
from app.schemas.audit import AuditLogRead
from app.schemas.user import StaffUserRead
from app.schemas.venue import (
    AnalyticsSummary,
    FeatureFlagUpdate,
    TenantSummary,
    VenueCreate,
    VenueRead,
)
from app.services import user_management as users
from app.services.audit import AuditAction, list_audit_logs, log_audit_event
from app.utils.tenant import set_session_tenant

router = APIRouter(prefix="/super-admin", tags=["super-admin"])

can_manage_tenants = require_permission("can_manage_tenants")
can_manage_all_users = require_permission("can_manage_all_users")
can_view_global_analytics = require_permission("can_view_global_analytics")


# -----------------------
# Tenants
# -----------------------

@router.get("/tenants", response_model=List[TenantSummary])
async def list_tenants(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    return await venue_crud.list_tenants_with_counts(db)


@router.post("/tenants", response_model=VenueRead, status_code=201)
async def create_tenant(
    data: VenueCreate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    venue = await venue_crud.create_venue(db, data)
    log_audit_event(
        db, ctx.user_id, AuditAction.TENANT_CREATED,
        tenant_id=venue.id,
        metadata={"name": venue.name, "venue_slug": venue.venue_slug},
    )
    await db.commit()
    await db.refresh(venue)
    return venue


async def _set_suspension(db: AsyncSession, ctx: StaffContext, tenant_id: str, suspended: bool):
    venue = await venue_crud.get_venue(db, tenant_id)
    if venue.is_suspended == suspended:
        state = "suspended" if suspended else "active"
        raise HTTPException(status_code=409, detail=f"Tenant is already {state}")
    venue_crud.set_suspended(venue, suspended, ctx.user_id)
    log_audit_event(
        db, ctx.user_id,
        AuditAction.TENANT_SUSPENDED if suspended else AuditAction.TENANT_REACTIVATED,
        tenant_id=venue.id,
        metadata={"name": venue.name},
    )
    await db.commit()
    await db.refresh(venue)
    return venue


@router.post("/tenants/{tenant_id}/suspend", response_model=VenueRead)
async def suspend_tenant(
    tenant_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    return await _set_suspension(db, ctx, tenant_id, True)


@router.post("/tenants/{tenant_id}/reactivate", response_model=VenueRead)
async def reactivate_tenant(
    tenant_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    return await _set_suspension(db, ctx, tenant_id, False)


@router.get("/tenants/{tenant_id}/admins", response_model=List[StaffUserRead])
async def list_tenant_admins(
    tenant_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    await venue_crud.get_venue(db, tenant_id)
    res = await db.execute(
        select(User, UserRole)
        .join(UserRole, UserRole.user_id == User.id)
        .where(UserRole.tenant_id == tenant_id, UserRole.tenant_role == "tenant_admin")
        .order_by(User.email.asc())
    )
    return [users.serialize_user(u, r) for u, r in res.all()]


@router.get("/tenants/{tenant_id}/features", response_model=Dict[str, bool])
async def read_tenant_features(
    tenant_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    await venue_crud.get_venue(db, tenant_id)
    return await venue_crud.list_feature_flags(db, tenant_id)


@router.put("/tenants/{tenant_id}/features", response_model=Dict[str, bool])
async def update_tenant_features(
    tenant_id: str,
    data: FeatureFlagUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    await venue_crud.get_venue(db, tenant_id)
    flags = await venue_crud.upsert_feature_flags(db, tenant_id, data.flags)
    log_audit_event(
        db, ctx.user_id, AuditAction.FEATURE_FLAG_CHANGED,
        tenant_id=tenant_id,
        metadata={"changes": data.flags},
    )
    await db.commit()
    return flags


# -----------------------
# Impersonation
# -----------------------

@router.post("/impersonate/{tenant_id}", response_model=VenueRead)
async def start_impersonation(
    tenant_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    venue = await venue_crud.get_venue(db, tenant_id)
    set_session_tenant(request, SESSION_IMPERSONATED_TENANT, venue.id)
    log_audit_event(
        db, ctx.user_id, AuditAction.IMPERSONATION_START,
        tenant_id=venue.id,
        metadata={"tenant_name": venue.name},
    )
    await db.commit()
    return venue


@router.delete("/impersonate", status_code=204)
async def stop_impersonation(
    request: Request,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tenants),
):
    if ctx.tenant.is_impersonating:
        log_audit_event(db, ctx.user_id, AuditAction.IMPERSONATION_END, tenant_id=ctx.tenant_id)
        await db.commit()
    set_session_tenant(request, SESSION_IMPERSONATED_TENANT, None)
    return Response(status_code=204)


# -----------------------
# Users, audit, analytics
# -----------------------

@router.get("/users", response_model=List[StaffUserRead])
async def list_all_users(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_all_users),
):
    return await users.list_users(db, ctx, archived=False, all_tenants=True)


@router.get("/users/archived", response_model=List[StaffUserRead])
async def list_all_archived_users(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_all_users),
):
    return await users.list_users(db, ctx, archived=True, all_tenants=True)


@router.get("/audit-logs", response_model=List[AuditLogRead])
async def read_audit_logs(
    tenant_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_all_users),
):
    return await list_audit_logs(db, tenant_id=tenant_id, limit=limit)


@router.get("/analytics", response_model=List[AnalyticsSummary])
async def global_analytics(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_view_global_analytics),
):
    """Today's totals across the platform followed by one row per tenant."""
    rows = [await venue_crud.paid_order_summary(db, None)]
    for tenant in await venue_crud.list_tenants_with_counts(db):
        rows.append(await venue_crud.paid_order_summary(db, tenant["id"]))
    return rows

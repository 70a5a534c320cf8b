# app/api/admin/admin_venue_routes.py
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.auth.dependencies import StaffContext, get_staff_context, require_permission
from app.core.constants import ORDER_EXPIRY_MINUTES
from app.crud import venue as venue_crud
from app.schemas.payment import BankDetailsIn, BankDetailsRead
from app.schemas.venue import AnalyticsSummary, VenueSettingsUpdate
from app.services.audit import AuditAction, log_audit_event

router = APIRouter(prefix="/admin", tags=["admin-venue"])

can_manage_menu = require_permission("can_manage_menu")
can_manage_bank_details = require_permission("can_manage_bank_details")
can_access_analytics = require_permission("can_access_analytics")

# Settings a tenant admin may change, with their validators
EDITABLE_SETTINGS = {
    ORDER_EXPIRY_MINUTES: lambda v: v.isdigit() and 1 <= int(v) <= 24 * 60,
}


@router.get("/settings", response_model=Dict[str, str])
async def read_settings(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_menu),
):
    return await venue_crud.get_venue_settings(db, ctx.tenant.require_tenant_id())


@router.put("/settings", response_model=Dict[str, str])
async def update_settings(
    data: VenueSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_menu),
):
    venue_id = ctx.tenant.validate_tenant_mutation(ctx.tenant.require_tenant_id())
    for key, value in data.settings.items():
        check = EDITABLE_SETTINGS.get(key)
        if check is None:
            raise HTTPException(status_code=400, detail=f"Unknown setting: {key}")
        if not check(str(value)):
            raise HTTPException(status_code=400, detail=f"Invalid value for {key}")
    return await venue_crud.upsert_venue_settings(db, venue_id, data.settings)


@router.get("/features", response_model=Dict[str, bool])
async def read_features(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(get_staff_context),
):
    return await venue_crud.list_feature_flags(db, ctx.tenant.require_tenant_id())


@router.get("/bank-details", response_model=BankDetailsRead)
async def read_bank_details(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_bank_details),
):
    details = await venue_crud.get_active_bank_details(db, ctx.tenant.require_tenant_id())
    if not details:
        raise HTTPException(status_code=404, detail="Bank details not configured")
    return details


@router.put("/bank-details", response_model=BankDetailsRead)
async def update_bank_details(
    data: BankDetailsIn,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_bank_details),
):
    venue_id = ctx.tenant.validate_tenant_mutation(ctx.tenant.require_tenant_id())
    details = await venue_crud.replace_bank_details(db, venue_id, data)
    log_audit_event(
        db, ctx.user_id, AuditAction.BANK_DETAILS_UPDATED,
        tenant_id=venue_id,
        metadata={"bank_name": data.bank_name, "account_last4": data.account_number[-4:]},
        impersonating=ctx.tenant.is_impersonating,
    )
    await db.commit()
    await db.refresh(details)
    return details


@router.get("/analytics/today", response_model=AnalyticsSummary)
async def today_analytics(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_analytics),
):
    return await venue_crud.paid_order_summary(db, ctx.tenant.require_tenant_id())

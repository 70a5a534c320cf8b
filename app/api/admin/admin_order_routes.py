# app/api/admin/admin_order_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.db import get_db
from app.auth.dependencies import StaffContext, require_permission
from app.crud.order import get_order, list_orders, list_payment_claims, orders_with_claims
from app.models.order import OrderEvent, OrderStatus
from app.schemas.order import OrderEventRead, OrderStatusUpdate, StaffOrderRead
from app.schemas.payment import PaymentClaimRead, PaymentConfirm, PaymentConfirmationRead, SignedUrlRead
from app.services.order_status import (
    confirm_payment,
    get_payment_confirmation,
    next_statuses,
    update_order_status,
)
from app.services.payment_proofs import signed_url_for_staff

router = APIRouter(prefix="/admin", tags=["admin-orders"])

can_access_orders = require_permission("can_access_orders")


def _staff_view(order, claimed: bool) -> StaffOrderRead:
    view = StaffOrderRead.model_validate(order)
    view.next_statuses = next_statuses(order.status, order.payment_confirmed)
    view.has_payment_claim = claimed
    return view


async def _scoped_order(db: AsyncSession, ctx: StaffContext, order_id: str):
    order = await get_order(db, order_id, ctx.tenant.tenant_filter())
    if ctx.tenant.is_impersonating:
        ctx.tenant.validate_tenant_mutation(order.venue_id)
    return order


@router.get("/orders", response_model=List[StaffOrderRead])
async def admin_list_orders(
    status: Optional[OrderStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_orders),
):
    orders = await list_orders(db, ctx.tenant.tenant_filter(), status)
    claimed = await orders_with_claims(db, [o.id for o in orders])
    return [_staff_view(o, o.id in claimed) for o in orders]


@router.get("/orders/{order_id}", response_model=StaffOrderRead)
async def admin_get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_orders),
):
    order = await _scoped_order(db, ctx, order_id)
    claimed = await orders_with_claims(db, [order.id])
    return _staff_view(order, order.id in claimed)


@router.patch("/orders/{order_id}/status", response_model=StaffOrderRead)
async def admin_update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_orders),
):
    order = await _scoped_order(db, ctx, order_id)
    ctx.tenant.validate_tenant_mutation(order.venue_id)
    await update_order_status(db, order, data.status, ctx.user_id, impersonating=ctx.tenant.is_impersonating)
    await db.commit()

    order = await get_order(db, order.id)
    claimed = await orders_with_claims(db, [order.id])
    return _staff_view(order, order.id in claimed)


@router.post("/orders/{order_id}/confirm-payment", response_model=PaymentConfirmationRead)
async def admin_confirm_payment(
    order_id: str,
    data: Optional[PaymentConfirm] = None,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_orders),
):
    order = await _scoped_order(db, ctx, order_id)
    ctx.tenant.validate_tenant_mutation(order.venue_id)
    confirmation = await confirm_payment(
        db, order, ctx.user_id,
        method="manual",
        notes=data.notes if data else None,
        impersonating=ctx.tenant.is_impersonating,
    )
    await db.commit()
    await db.refresh(confirmation)
    return confirmation


@router.get("/orders/{order_id}/claims", response_model=List[PaymentClaimRead])
async def admin_order_claims(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_orders),
):
    order = await _scoped_order(db, ctx, order_id)
    return await list_payment_claims(db, order.id)


@router.get("/orders/{order_id}/confirmation", response_model=PaymentConfirmationRead)
async def admin_order_confirmation(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_orders),
):
    order = await _scoped_order(db, ctx, order_id)
    confirmation = await get_payment_confirmation(db, order.id)
    if not confirmation:
        raise HTTPException(status_code=404, detail="Payment not confirmed")
    return confirmation


@router.get("/orders/{order_id}/events", response_model=List[OrderEventRead])
async def admin_order_events(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_orders),
):
    order = await _scoped_order(db, ctx, order_id)
    res = await db.execute(
        select(OrderEvent).where(OrderEvent.order_id == order.id).order_by(OrderEvent.created_at.asc())
    )
    return res.scalars().all()


@router.get("/payment-proofs/url", response_model=SignedUrlRead)
async def admin_proof_url(
    key: str = Query(...),
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_access_orders),
):
    return await signed_url_for_staff(db, ctx, key)

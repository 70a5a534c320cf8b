# app/services/order_status.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.order import Order, OrderEvent, OrderStatus, PaymentMethod
from app.models.payment import PaymentConfirmation
from app.services.audit import AuditAction, log_audit_event
from app.utils.timezones import utcnow

log = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.EXPIRED})
AWAITING_PAYMENT = frozenset({OrderStatus.PENDING_PAYMENT, OrderStatus.CASH_ON_DELIVERY})

# Kitchen progression once payment is in
_PROGRESSION = {
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.COMPLETED,
}


def initial_status(payment_method) -> OrderStatus:
    if PaymentMethod(payment_method) == PaymentMethod.CASH:
        return OrderStatus.CASH_ON_DELIVERY
    return OrderStatus.PENDING_PAYMENT


def is_terminal(status) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def next_statuses(status, payment_confirmed: bool) -> List[OrderStatus]:
    """Statuses staff may move an order to from its current state."""
    status = OrderStatus(status)
    options: List[OrderStatus] = []
    if not payment_confirmed and status in AWAITING_PAYMENT:
        options.append(OrderStatus.CONFIRMED)
    if status in _PROGRESSION:
        options.append(_PROGRESSION[status])
    if status not in TERMINAL_STATUSES:
        options.append(OrderStatus.CANCELLED)
    return options


def record_order_event(
    db: AsyncSession,
    order: Order,
    event_type: str,
    old_status=None,
    new_status=None,
    actor_id=None,
    metadata: Optional[dict] = None,
) -> OrderEvent:
    event = OrderEvent(
        order_id=order.id,
        event_type=event_type,
        old_status=OrderStatus(old_status).value if old_status else None,
        new_status=OrderStatus(new_status).value if new_status else None,
        actor_id=actor_id,
        meta=metadata or {},
    )
    db.add(event)
    return event


async def get_payment_confirmation(db: AsyncSession, order_id: str) -> Optional[PaymentConfirmation]:
    res = await db.execute(select(PaymentConfirmation).where(PaymentConfirmation.order_id == order_id))
    return res.scalar_one_or_none()


async def confirm_payment(
    db: AsyncSession,
    order: Order,
    actor_id,
    method: str = "manual",
    notes: Optional[str] = None,
    impersonating: bool = False,
) -> PaymentConfirmation:
    if await get_payment_confirmation(db, order.id) is not None or order.payment_confirmed:
        raise HTTPException(status_code=409, detail="Payment already confirmed for this order")
    if is_terminal(order.status):
        raise HTTPException(status_code=409, detail=f"Cannot confirm payment for a {OrderStatus(order.status).value} order")

    old_status = OrderStatus(order.status)
    confirmation = PaymentConfirmation(order_id=order.id, confirmed_by=actor_id, method=method, notes=notes)
    db.add(confirmation)

    order.payment_confirmed = True
    order.status = OrderStatus.CONFIRMED
    order.updated_at = utcnow()

    record_order_event(
        db, order, "payment_confirmed",
        old_status=old_status, new_status=OrderStatus.CONFIRMED,
        actor_id=actor_id, metadata={"method": method},
    )
    log_audit_event(
        db, actor_id, AuditAction.PAYMENT_CONFIRMED,
        tenant_id=order.venue_id,
        metadata={"order_id": order.id, "order_reference": order.order_reference, "method": method},
        impersonating=impersonating,
    )
    log.info("payment confirmed tenant=%s user=%s order=%s", order.venue_id, actor_id, order.order_reference)
    return confirmation


async def update_order_status(
    db: AsyncSession,
    order: Order,
    new_status,
    actor_id,
    impersonating: bool = False,
) -> Order:
    new_status = OrderStatus(new_status)
    old_status = OrderStatus(order.status)
    allowed = next_statuses(old_status, order.payment_confirmed)

    if new_status not in allowed:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move order from {old_status.value} to {new_status.value}",
        )

    if new_status == OrderStatus.CONFIRMED:
        await confirm_payment(db, order, actor_id, method="manual", impersonating=impersonating)
        return order

    order.status = new_status
    order.updated_at = utcnow()
    record_order_event(db, order, "status_change", old_status=old_status, new_status=new_status, actor_id=actor_id)
    log_audit_event(
        db, actor_id, AuditAction.ORDER_STATUS_CHANGE,
        tenant_id=order.venue_id,
        metadata={
            "order_id": order.id,
            "order_reference": order.order_reference,
            "old_status": old_status.value,
            "new_status": new_status.value,
        },
        impersonating=impersonating,
    )
    log.info(
        "order status tenant=%s user=%s order=%s %s->%s",
        order.venue_id, actor_id, order.order_reference, old_status.value, new_status.value,
    )
    return order


async def expire_pending_orders(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Expire unpaid bank-transfer orders past their deadline. Caller commits."""
    now = now or utcnow()
    res = await db.execute(
        select(Order).where(
            Order.status == OrderStatus.PENDING_PAYMENT,
            Order.payment_confirmed.is_(False),
            Order.expires_at.is_not(None),
            Order.expires_at < now,
        )
    )
    orders = res.scalars().all()
    for order in orders:
        order.status = OrderStatus.EXPIRED
        order.updated_at = now
        record_order_event(
            db, order, "status_change",
            old_status=OrderStatus.PENDING_PAYMENT, new_status=OrderStatus.EXPIRED,
            metadata={"reason": "payment_window_elapsed"},
        )
    if orders:
        log.info("expired %s pending orders", len(orders))
    return len(orders)

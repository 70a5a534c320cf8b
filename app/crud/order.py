# app/crud/order.py
import logging
import uuid
import re
import secrets
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.auth.module_gates import get_enabled_features
from app.core.config import settings
from app.core.constants import ORDER_EXPIRY_MINUTES, PAYMENT_METHOD_FLAGS
from app.crud.table import resolve_table
from app.crud.venue import get_venue_setting
from app.models.menu.menu_item import MenuItem
from app.models.order import Order, OrderItem, OrderRateLimit, OrderStatus, PaymentMethod
from app.models.payment import PaymentClaim
from app.schemas.order import OrderCreate
from app.services.errors import RateLimitedError
from app.services.order_status import initial_status, record_order_event
from app.utils.timezones import utcnow

log = logging.getLogger(__name__)


def _order_query():
    return select(Order).options(selectinload(Order.items))


async def get_order(db: AsyncSession, order_id: str, venue_id: Optional[str] = None) -> Order:
    res = await db.execute(_order_query().where(Order.id == order_id))
    order = res.scalar_one_or_none()
    if not order or (venue_id and order.venue_id != venue_id):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


async def get_order_by_reference(db: AsyncSession, order_reference: str) -> Optional[Order]:
    res = await db.execute(_order_query().where(Order.order_reference == order_reference.strip().upper()))
    return res.scalar_one_or_none()


async def get_order_by_idempotency_key(db: AsyncSession, key: str) -> Optional[Order]:
    res = await db.execute(_order_query().where(Order.idempotency_key == key))
    return res.scalar_one_or_none()


async def list_orders(
    db: AsyncSession,
    venue_id: Optional[str],
    status: Optional[OrderStatus] = None,
    limit: int = 200,
) -> List[Order]:
    stmt = _order_query().order_by(Order.created_at.desc()).limit(limit)
    if venue_id:
        stmt = stmt.where(Order.venue_id == venue_id)
    if status:
        stmt = stmt.where(Order.status == status)
    res = await db.execute(stmt)
    return res.scalars().all()


async def generate_order_reference(db: AsyncSession) -> str:
    while True:
        ref = f"ORD-{secrets.token_hex(3).upper()}"
        res = await db.execute(select(Order.id).where(Order.order_reference == ref))
        if res.scalar_one_or_none() is None:
            return ref


async def check_rate_limit(db: AsyncSession, table_id: str, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    window_start = now - timedelta(minutes=settings.order_rate_limit_window_minutes)
    res = await db.execute(
        select(func.count(OrderRateLimit.id)).where(
            OrderRateLimit.table_id == table_id,
            OrderRateLimit.created_at > window_start,
        )
    )
    return res.scalar_one() < settings.order_rate_limit_max


async def record_rate_limit(db: AsyncSession, table_id: str, now: Optional[datetime] = None):
    now = now or utcnow()
    db.add(OrderRateLimit(table_id=table_id, created_at=now))
    cutoff = now - timedelta(minutes=settings.order_rate_limit_retention_minutes)
    await db.execute(delete(OrderRateLimit).where(OrderRateLimit.created_at < cutoff))


def _table_number(label: str) -> int:
    match = re.search(r"\d+", label or "")
    return int(match.group()) if match else 0


async def _order_expiry_minutes(db: AsyncSession, venue_id: str) -> int:
    raw = await get_venue_setting(db, venue_id, ORDER_EXPIRY_MINUTES)
    try:
        minutes = int(raw) if raw is not None else settings.order_expiry_minutes_default
    except ValueError:
        minutes = settings.order_expiry_minutes_default
    return minutes if minutes > 0 else settings.order_expiry_minutes_default


async def create_order(db: AsyncSession, venue_slug: str, data: OrderCreate) -> Order:
    if data.idempotency_key:
        existing = await get_order_by_idempotency_key(db, data.idempotency_key)
        if existing:
            log.info("returning existing order for idempotency key=%s", data.idempotency_key)
            return existing

    venue, table = await resolve_table(db, venue_slug, data.qr_token)

    flags = await get_enabled_features(db, venue.id)
    customer_name = (data.customer_name or "").strip() or None
    if flags.get("customer_name_required") and not customer_name:
        raise HTTPException(status_code=400, detail="Customer name is required")

    method = PaymentMethod(data.payment_method)
    # Payment methods are on unless the venue switched them off
    if flags.get(PAYMENT_METHOD_FLAGS[method.value]) is False:
        raise HTTPException(status_code=400, detail=f"Payment method not available: {method.value}")

    now = utcnow()
    if not await check_rate_limit(db, table.id, now):
        log.info("order rate limit hit tenant=%s table=%s", venue.id, table.id)
        raise RateLimitedError("Too many orders from this table. Please wait a few minutes.")

    item_ids = {line.menu_item_id for line in data.items}
    res = await db.execute(select(MenuItem).where(MenuItem.id.in_(item_ids)))
    menu_items = {m.id: m for m in res.scalars().all()}

    order_items = []
    total = 0
    for line in data.items:
        menu_item = menu_items.get(line.menu_item_id)
        if not menu_item or menu_item.venue_id != venue.id:
            raise HTTPException(status_code=400, detail=f"Menu item not found: {line.menu_item_id}")
        if not menu_item.is_available:
            raise HTTPException(status_code=400, detail=f"{menu_item.name} is currently unavailable")
        total += menu_item.price_kobo * line.quantity
        order_items.append(
            OrderItem(
                menu_item_id=menu_item.id,
                quantity=line.quantity,
                unit_price_kobo=menu_item.price_kobo,
                item_snapshot={
                    "name": menu_item.name,
                    "description": menu_item.description,
                    "price_kobo": menu_item.price_kobo,
                },
            )
        )

    expires_at = None
    if method == PaymentMethod.BANK_TRANSFER:
        expires_at = now + timedelta(minutes=await _order_expiry_minutes(db, venue.id))

    order = Order(
        id=str(uuid.uuid4()),
        order_reference=await generate_order_reference(db),
        venue_id=venue.id,
        table_id=table.id,
        table_number=_table_number(table.label),
        table_label=table.label,
        customer_name=customer_name,
        status=initial_status(method),
        payment_method=method,
        payment_confirmed=False,
        total_kobo=total,
        idempotency_key=data.idempotency_key,
        expires_at=expires_at,
        created_at=now,
        items=order_items,
    )
    db.add(order)
    record_order_event(
        db, order, "order_created",
        new_status=order.status,
        metadata={"payment_method": method.value, "total_kobo": total},
    )
    await record_rate_limit(db, table.id, now)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # Lost a race on the idempotency key
        if data.idempotency_key:
            existing = await get_order_by_idempotency_key(db, data.idempotency_key)
            if existing:
                return existing
        raise

    log.info("order created tenant=%s order=%s total=%s", venue.id, order.order_reference, total)
    return await get_order(db, order.id)


# -----------------------
# Payment claims
# -----------------------

def ensure_claimable(order: Order) -> None:
    if order.payment_method != PaymentMethod.BANK_TRANSFER:
        raise HTTPException(status_code=400, detail="Payment claims are only for bank transfers")
    if order.status != OrderStatus.PENDING_PAYMENT or order.payment_confirmed:
        raise HTTPException(status_code=409, detail="Order is not awaiting payment")


async def create_payment_claim(
    db: AsyncSession,
    order: Order,
    sender_name: Optional[str] = None,
    bank_name: Optional[str] = None,
    notes: Optional[str] = None,
    proof_key: Optional[str] = None,
) -> PaymentClaim:
    ensure_claimable(order)

    claim = PaymentClaim(
        order_id=order.id,
        sender_name=sender_name,
        bank_name=bank_name,
        notes=notes,
        proof_key=proof_key,
    )
    db.add(claim)
    await db.commit()
    await db.refresh(claim)
    log.info("payment claim tenant=%s order=%s proof=%s", order.venue_id, order.order_reference, bool(proof_key))
    return claim


async def list_payment_claims(db: AsyncSession, order_id: str) -> List[PaymentClaim]:
    res = await db.execute(
        select(PaymentClaim).where(PaymentClaim.order_id == order_id).order_by(PaymentClaim.claimed_at.desc())
    )
    return res.scalars().all()


async def orders_with_claims(db: AsyncSession, order_ids: List[str]) -> set:
    if not order_ids:
        return set()
    res = await db.execute(select(PaymentClaim.order_id).where(PaymentClaim.order_id.in_(order_ids)))
    return set(res.scalars().all())


async def find_claim_by_proof_key(db: AsyncSession, proof_key: str) -> Optional[PaymentClaim]:
    res = await db.execute(select(PaymentClaim).where(PaymentClaim.proof_key == proof_key))
    return res.scalars().first()

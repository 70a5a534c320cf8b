from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException
from typing import Dict, List, Optional

from app.core.constants import FEATURE_FLAGS, PAYMENT_METHOD_FLAGS
from app.models.feature_flag import TenantFeatureFlag
from app.models.order import Order, OrderStatus
from app.models.payment import BankDetails
from app.models.user import UserRole
from app.models.venue import Venue, VenueSetting
from app.schemas.payment import BankDetailsIn
from app.schemas.venue import VenueCreate
from app.utils.timezones import utcnow, day_bounds_utc

# Statuses that mean the money is in
PAID_STATUSES = (
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.COMPLETED,
)


# -----------------------
# Venues (tenants)
# -----------------------

async def get_venue(db: AsyncSession, venue_id: str) -> Venue:
    venue = await db.get(Venue, venue_id)
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found")
    return venue


async def list_tenants_with_counts(db: AsyncSession) -> List[dict]:
    venues = (await db.execute(select(Venue).order_by(Venue.name.asc()))).scalars().all()

    user_counts = dict(
        (await db.execute(
            select(UserRole.tenant_id, func.count(UserRole.id)).group_by(UserRole.tenant_id)
        )).all()
    )
    order_counts = dict(
        (await db.execute(
            select(Order.venue_id, func.count(Order.id)).group_by(Order.venue_id)
        )).all()
    )
    return [
        {
            "id": v.id,
            "name": v.name,
            "venue_slug": v.venue_slug,
            "is_suspended": v.is_suspended,
            "suspended_at": v.suspended_at,
            "created_at": v.created_at,
            "user_count": user_counts.get(v.id, 0),
            "order_count": order_counts.get(v.id, 0),
        }
        for v in venues
    ]


async def create_venue(db: AsyncSession, data: VenueCreate) -> Venue:
    venue = Venue(name=data.name.strip(), venue_slug=data.venue_slug)
    db.add(venue)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Venue slug already taken")
    return venue


def set_suspended(venue: Venue, suspended: bool, actor_id=None) -> Venue:
    venue.is_suspended = suspended
    venue.suspended_at = utcnow() if suspended else None
    venue.suspended_by = actor_id if suspended else None
    return venue


# -----------------------
# Settings
# -----------------------

async def get_venue_settings(db: AsyncSession, venue_id: str) -> Dict[str, str]:
    res = await db.execute(select(VenueSetting).where(VenueSetting.venue_id == venue_id))
    return {s.setting_key: s.setting_value for s in res.scalars().all()}


async def get_venue_setting(db: AsyncSession, venue_id: str, key: str) -> Optional[str]:
    res = await db.execute(
        select(VenueSetting.setting_value).where(
            VenueSetting.venue_id == venue_id, VenueSetting.setting_key == key
        )
    )
    return res.scalar_one_or_none()


async def upsert_venue_settings(db: AsyncSession, venue_id: str, values: Dict[str, str]) -> Dict[str, str]:
    res = await db.execute(select(VenueSetting).where(VenueSetting.venue_id == venue_id))
    existing = {s.setting_key: s for s in res.scalars().all()}
    for key, value in values.items():
        if key in existing:
            existing[key].setting_value = str(value)
        else:
            db.add(VenueSetting(venue_id=venue_id, setting_key=key, setting_value=str(value)))
    await db.commit()
    return await get_venue_settings(db, venue_id)


# -----------------------
# Feature flags
# -----------------------

async def list_feature_flags(db: AsyncSession, tenant_id: str) -> Dict[str, bool]:
    res = await db.execute(select(TenantFeatureFlag).where(TenantFeatureFlag.tenant_id == tenant_id))
    stored = {f.feature_key: f.is_enabled for f in res.scalars().all()}
    # Payment methods default to on; everything else is opt-in
    defaults = set(PAYMENT_METHOD_FLAGS.values())
    flags = {key: stored.get(key, key in defaults) for key in FEATURE_FLAGS}
    flags.update(stored)
    return flags


async def upsert_feature_flags(db: AsyncSession, tenant_id: str, flags: Dict[str, bool]) -> Dict[str, bool]:
    unknown = set(flags) - set(FEATURE_FLAGS)
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown feature flags: {', '.join(sorted(unknown))}")

    res = await db.execute(select(TenantFeatureFlag).where(TenantFeatureFlag.tenant_id == tenant_id))
    existing = {f.feature_key: f for f in res.scalars().all()}
    for key, enabled in flags.items():
        if key in existing:
            existing[key].is_enabled = enabled
            existing[key].updated_at = utcnow()
        else:
            db.add(TenantFeatureFlag(tenant_id=tenant_id, feature_key=key, is_enabled=enabled))
    await db.flush()
    return await list_feature_flags(db, tenant_id)


# -----------------------
# Bank details
# -----------------------

async def get_active_bank_details(db: AsyncSession, venue_id: str) -> Optional[BankDetails]:
    res = await db.execute(
        select(BankDetails)
        .where(BankDetails.venue_id == venue_id, BankDetails.is_active.is_(True))
        .order_by(BankDetails.created_at.desc())
    )
    return res.scalars().first()


async def replace_bank_details(db: AsyncSession, venue_id: str, data: BankDetailsIn) -> BankDetails:
    # Only one active account per venue; older rows are kept inactive
    res = await db.execute(
        select(BankDetails).where(BankDetails.venue_id == venue_id, BankDetails.is_active.is_(True))
    )
    for row in res.scalars().all():
        row.is_active = False

    details = BankDetails(venue_id=venue_id, is_active=True, **data.model_dump())
    db.add(details)
    await db.flush()
    return details


# -----------------------
# Analytics
# -----------------------

async def paid_order_summary(db: AsyncSession, venue_id: Optional[str], now=None) -> dict:
    start, end = day_bounds_utc(now)
    stmt = select(func.count(Order.id), func.coalesce(func.sum(Order.total_kobo), 0)).where(
        Order.status.in_(PAID_STATUSES),
        Order.created_at >= start,
        Order.created_at <= end,
    )
    if venue_id:
        stmt = stmt.where(Order.venue_id == venue_id)
    count, revenue = (await db.execute(stmt)).one()
    revenue = int(revenue or 0)
    return {
        "tenant_id": venue_id,
        "paid_orders": count,
        "revenue_kobo": revenue,
        "average_order_kobo": revenue // count if count else 0,
    }

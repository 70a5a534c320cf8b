from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from fastapi import HTTPException
from typing import List, Optional, Tuple

from app.core.config import settings
from app.models.table import VenueTable
from app.models.venue import Venue
from app.schemas.menu import TableCreate, TableBulkCreate, TableUpdate
from app.utils.security import generate_qr_token


def table_url(venue: Venue, table: VenueTable) -> str:
    return f"{settings.public_app_url.rstrip('/')}/v/{venue.venue_slug}/t/{table.qr_token}"


async def get_venue_by_slug(db: AsyncSession, venue_slug: str) -> Optional[Venue]:
    res = await db.execute(select(Venue).where(Venue.venue_slug == venue_slug))
    return res.scalar_one_or_none()


async def resolve_table(db: AsyncSession, venue_slug: str, qr_token: str) -> Tuple[Venue, VenueTable]:
    venue = await get_venue_by_slug(db, venue_slug)
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found")
    if venue.is_suspended:
        raise HTTPException(status_code=403, detail="This venue is not accepting orders right now")

    res = await db.execute(select(VenueTable).where(VenueTable.qr_token == qr_token))
    table = res.scalar_one_or_none()
    if not table:
        raise HTTPException(status_code=404, detail="Invalid QR code. Table not found.")
    if table.venue_id != venue.id:
        raise HTTPException(status_code=400, detail="Invalid QR code for this venue.")
    if not table.active:
        raise HTTPException(
            status_code=400,
            detail="This table is currently inactive. Please ask staff for assistance.",
        )
    return venue, table


async def list_tables(db: AsyncSession, venue_id: Optional[str]) -> List[VenueTable]:
    stmt = select(VenueTable).order_by(VenueTable.label.asc())
    if venue_id:
        stmt = stmt.where(VenueTable.venue_id == venue_id)
    res = await db.execute(stmt)
    return res.scalars().all()


async def get_table(db: AsyncSession, table_id: str, venue_id: Optional[str]) -> VenueTable:
    table = await db.get(VenueTable, table_id)
    if not table or (venue_id and table.venue_id != venue_id):
        raise HTTPException(status_code=404, detail="Table not found")
    return table


async def create_table(db: AsyncSession, venue_id: str, data: TableCreate) -> VenueTable:
    table = VenueTable(
        venue_id=venue_id,
        label=data.label.strip(),
        qr_token=generate_qr_token(),
        active=data.active,
    )
    db.add(table)
    await db.commit()
    await db.refresh(table)
    return table


async def bulk_create_tables(db: AsyncSession, venue_id: str, data: TableBulkCreate) -> List[VenueTable]:
    tables = [
        VenueTable(
            venue_id=venue_id,
            label=f"{data.label_prefix} {n}".strip(),
            qr_token=generate_qr_token(),
            active=True,
        )
        for n in range(data.start_at, data.start_at + data.count)
    ]
    db.add_all(tables)
    await db.commit()
    for t in tables:
        await db.refresh(t)
    return tables


async def update_table(db: AsyncSession, table: VenueTable, data: TableUpdate) -> VenueTable:
    updates = data.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(table, field, value)
    await db.commit()
    await db.refresh(table)
    return table


async def regenerate_qr_token(db: AsyncSession, table: VenueTable) -> VenueTable:
    # Old printed codes stop resolving
    table.qr_token = generate_qr_token()
    await db.commit()
    await db.refresh(table)
    return table


async def delete_table(db: AsyncSession, table: VenueTable):
    await db.delete(table)
    await db.commit()

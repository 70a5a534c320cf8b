# app/api/admin/admin_table_routes.py
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.auth.dependencies import StaffContext, require_permission
from app.crud import table as table_crud
from app.crud.venue import get_venue
from app.schemas.menu import TableBulkCreate, TableCreate, TableUpdate, TableWithUrl

router = APIRouter(prefix="/admin/tables", tags=["admin-tables"])

can_manage_tables = require_permission("can_manage_tables")


async def _with_url(db: AsyncSession, table) -> dict:
    venue = await get_venue(db, table.venue_id)
    return {
        "id": table.id,
        "venue_id": table.venue_id,
        "label": table.label,
        "qr_token": table.qr_token,
        "active": table.active,
        "url": table_crud.table_url(venue, table),
    }


@router.get("", response_model=List[TableWithUrl])
async def list_tables(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tables),
):
    tables = await table_crud.list_tables(db, ctx.tenant.tenant_filter())
    return [await _with_url(db, t) for t in tables]


@router.post("", response_model=TableWithUrl, status_code=201)
async def create_table(
    data: TableCreate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tables),
):
    venue_id = ctx.tenant.validate_tenant_mutation(ctx.tenant.require_tenant_id())
    table = await table_crud.create_table(db, venue_id, data)
    return await _with_url(db, table)


@router.post("/bulk", response_model=List[TableWithUrl], status_code=201)
async def bulk_create_tables(
    data: TableBulkCreate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tables),
):
    venue_id = ctx.tenant.validate_tenant_mutation(ctx.tenant.require_tenant_id())
    tables = await table_crud.bulk_create_tables(db, venue_id, data)
    return [await _with_url(db, t) for t in tables]


@router.patch("/{table_id}", response_model=TableWithUrl)
async def update_table(
    table_id: str,
    data: TableUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tables),
):
    table = await table_crud.get_table(db, table_id, ctx.tenant.tenant_filter())
    ctx.tenant.validate_tenant_mutation(table.venue_id)
    table = await table_crud.update_table(db, table, data)
    return await _with_url(db, table)


@router.post("/{table_id}/regenerate-qr", response_model=TableWithUrl)
async def regenerate_qr(
    table_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tables),
):
    table = await table_crud.get_table(db, table_id, ctx.tenant.tenant_filter())
    ctx.tenant.validate_tenant_mutation(table.venue_id)
    table = await table_crud.regenerate_qr_token(db, table)
    return await _with_url(db, table)


@router.delete("/{table_id}", status_code=204)
async def delete_table(
    table_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_tables),
):
    table = await table_crud.get_table(db, table_id, ctx.tenant.tenant_filter())
    ctx.tenant.validate_tenant_mutation(table.venue_id)
    await table_crud.delete_table(db, table)
    return Response(status_code=204)

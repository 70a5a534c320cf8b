# app/api/admin/admin_menu_routes.py
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.auth.dependencies import StaffContext, get_staff_context, require_permission
from app.crud import menu as menu_crud
from app.schemas.menu import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
)

router = APIRouter(prefix="/admin", tags=["admin-menu"])

can_manage_menu = require_permission("can_manage_menu")
can_manage_categories = require_permission("can_manage_categories")


# -----------------------
# Categories (global)
# -----------------------

@router.get("/categories", response_model=List[CategoryRead])
async def list_categories(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(get_staff_context),
):
    return await menu_crud.list_categories(db)


@router.post("/categories", response_model=CategoryRead, status_code=201)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_categories),
):
    return await menu_crud.create_category(db, data)


@router.patch("/categories/{category_id}", response_model=CategoryRead)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_categories),
):
    category = await menu_crud.get_category(db, category_id)
    return await menu_crud.update_category(db, category, data)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_categories),
):
    category = await menu_crud.get_category(db, category_id)
    await menu_crud.delete_category(db, category)
    return Response(status_code=204)


# -----------------------
# Menu items
# -----------------------

@router.get("/menu-items", response_model=List[MenuItemRead])
async def list_menu_items(
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_menu),
):
    return await menu_crud.list_menu_items(db, ctx.tenant.tenant_filter())


@router.post("/menu-items", response_model=MenuItemRead, status_code=201)
async def create_menu_item(
    data: MenuItemCreate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_menu),
):
    venue_id = ctx.tenant.validate_tenant_mutation(ctx.tenant.require_tenant_id())
    return await menu_crud.create_menu_item(db, venue_id, data)


@router.patch("/menu-items/{item_id}", response_model=MenuItemRead)
async def update_menu_item(
    item_id: str,
    data: MenuItemUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_menu),
):
    item = await menu_crud.get_menu_item(db, item_id, ctx.tenant.tenant_filter())
    ctx.tenant.validate_tenant_mutation(item.venue_id)
    return await menu_crud.update_menu_item(db, item, data)


@router.delete("/menu-items/{item_id}", status_code=204)
async def delete_menu_item(
    item_id: str,
    db: AsyncSession = Depends(get_db),
    ctx: StaffContext = Depends(can_manage_menu),
):
    item = await menu_crud.get_menu_item(db, item_id, ctx.tenant.tenant_filter())
    ctx.tenant.validate_tenant_mutation(item.venue_id)
    await menu_crud.delete_menu_item(db, item)
    return Response(status_code=204)

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from fastapi import HTTPException
from typing import List, Optional

from app.models.menu.menu_category import MenuCategory
from app.models.menu.menu_item import MenuItem
from app.schemas.menu import CategoryCreate, CategoryUpdate, MenuItemCreate, MenuItemUpdate


# -----------------------
# Categories (global)
# -----------------------

async def list_categories(db: AsyncSession) -> List[MenuCategory]:
    res = await db.execute(
        select(MenuCategory).order_by(MenuCategory.display_order.asc(), MenuCategory.name.asc())
    )
    return res.scalars().all()


async def get_category(db: AsyncSession, category_id: str) -> MenuCategory:
    category = await db.get(MenuCategory, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


async def create_category(db: AsyncSession, data: CategoryCreate) -> MenuCategory:
    category = MenuCategory(name=data.name.strip(), display_order=data.display_order)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


async def update_category(db: AsyncSession, category: MenuCategory, data: CategoryUpdate) -> MenuCategory:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(category, field, value)
    await db.commit()
    await db.refresh(category)
    return category


async def delete_category(db: AsyncSession, category: MenuCategory):
    in_use = await db.execute(
        select(func.count(MenuItem.id)).where(MenuItem.category_id == category.id)
    )
    if in_use.scalar_one():
        raise HTTPException(status_code=409, detail="Category still has menu items")
    await db.delete(category)
    await db.commit()


# -----------------------
# Menu items (per venue)
# -----------------------

async def list_menu_items(db: AsyncSession, venue_id: Optional[str]) -> List[MenuItem]:
    stmt = select(MenuItem).order_by(MenuItem.sort_order.asc(), MenuItem.name.asc())
    if venue_id:
        stmt = stmt.where(MenuItem.venue_id == venue_id)
    res = await db.execute(stmt)
    return res.scalars().all()


async def get_menu_item(db: AsyncSession, item_id: str, venue_id: Optional[str]) -> MenuItem:
    item = await db.get(MenuItem, item_id)
    if not item or (venue_id and item.venue_id != venue_id):
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item


async def create_menu_item(db: AsyncSession, venue_id: str, data: MenuItemCreate) -> MenuItem:
    await get_category(db, data.category_id)
    item = MenuItem(venue_id=venue_id, **data.model_dump())
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


async def update_menu_item(db: AsyncSession, item: MenuItem, data: MenuItemUpdate) -> MenuItem:
    updates = data.model_dump(exclude_unset=True)
    if updates.get("category_id"):
        await get_category(db, updates["category_id"])
    for field, value in updates.items():
        setattr(item, field, value)
    await db.commit()
    await db.refresh(item)
    return item


async def delete_menu_item(db: AsyncSession, item: MenuItem):
    await db.delete(item)
    await db.commit()


async def get_guest_menu(db: AsyncSession, venue_id: str) -> List[dict]:
    """Available items of a venue grouped under categories in display order."""
    categories = await list_categories(db)

    res = await db.execute(
        select(MenuItem)
        .where(MenuItem.venue_id == venue_id, MenuItem.is_available.is_(True))
        .order_by(MenuItem.sort_order.asc(), MenuItem.name.asc())
    )
    items = res.scalars().all()

    grouped: dict[str, list[MenuItem]] = {c.id: [] for c in categories}
    for it in items:
        if it.category_id in grouped:
            grouped[it.category_id].append(it)

    # Only show categories that actually have items
    return [
        {"category": c, "items": grouped[c.id]}
        for c in categories
        if grouped[c.id]
    ]

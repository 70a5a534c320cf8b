import uuid

from fastapi_users.password import PasswordHelper

from app.models.menu.menu_category import MenuCategory
from app.models.menu.menu_item import MenuItem
from app.models.table import VenueTable
from app.models.user import SuperAdmin, User, UserRole
from app.models.venue import Venue

password_helper = PasswordHelper()


async def make_venue(db, slug="mama-put", name="Mama Put", is_suspended=False):
    venue = Venue(id=str(uuid.uuid4()), name=name, venue_slug=slug, is_suspended=is_suspended)
    db.add(venue)
    await db.commit()
    return venue


async def make_user(
    db,
    email,
    venue=None,
    tenant_role=None,
    super_admin=False,
    password="secret123",
    is_active=True,
    must_change_password=False,
):
    user = User(
        id=uuid.uuid4(),
        email=email,
        hashed_password=password_helper.hash(password),
        is_active=is_active,
        is_superuser=False,
        is_verified=True,
        venue_id=venue.id if venue else None,
        must_change_password=must_change_password,
    )
    db.add(user)
    if venue is not None and tenant_role:
        db.add(UserRole(
            user_id=user.id,
            tenant_id=venue.id,
            tenant_role=tenant_role,
            role="admin" if tenant_role == "tenant_admin" else "staff",
        ))
    if super_admin:
        db.add(SuperAdmin(user_id=user.id))
    await db.commit()
    return user


async def make_category(db, name="Mains", display_order=0):
    category = MenuCategory(id=str(uuid.uuid4()), name=name, display_order=display_order)
    db.add(category)
    await db.commit()
    return category


async def make_item(db, venue, category, name="Jollof Rice", price_kobo=250000, is_available=True, sort_order=0):
    item = MenuItem(
        id=str(uuid.uuid4()),
        venue_id=venue.id,
        category_id=category.id,
        name=name,
        description=f"{name}, freshly made",
        price_kobo=price_kobo,
        is_available=is_available,
        sort_order=sort_order,
    )
    db.add(item)
    await db.commit()
    return item


async def make_table(db, venue, label="Table 4", active=True, qr_token=None):
    table = VenueTable(
        id=str(uuid.uuid4()),
        venue_id=venue.id,
        label=label,
        qr_token=qr_token or uuid.uuid4().hex,
        active=active,
    )
    db.add(table)
    await db.commit()
    return table


async def grant_role(db, user, venue, tenant_role="staff"):
    db.add(UserRole(
        user_id=user.id,
        tenant_id=venue.id,
        role="admin" if tenant_role == "tenant_admin" else "staff",
        tenant_role=tenant_role,
    ))
    await db.commit()

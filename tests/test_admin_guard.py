import pytest

from app.services.admin_guard import (
    count_active_tenant_admins,
    ensure_admin_remains,
    ensure_admins_remain_everywhere,
    removes_admin_status,
    would_orphan_tenant,
)
from app.services.errors import LastAdminError
from tests.factories import grant_role, make_user, make_venue


def test_removes_admin_status():
    assert removes_admin_status("tenant_admin", True, new_active=False)
    assert removes_admin_status("tenant_admin", True, new_role="staff")
    assert removes_admin_status("tenant_admin", True, removing=True)
    assert not removes_admin_status("tenant_admin", True, new_role="tenant_admin")
    assert not removes_admin_status("tenant_admin", False, new_active=False)
    assert not removes_admin_status("staff", True, removing=True)


def test_would_orphan_tenant():
    assert would_orphan_tenant(1, "tenant_admin", True, new_active=False)
    assert not would_orphan_tenant(2, "tenant_admin", True, new_active=False)
    assert not would_orphan_tenant(1, "staff", True, new_active=False)


async def test_sole_admin_cannot_be_deactivated(db):
    venue = await make_venue(db)
    admin = await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")

    assert await count_active_tenant_admins(db, venue.id) == 1
    with pytest.raises(LastAdminError) as exc:
        await ensure_admin_remains(db, venue.id, admin.id, is_active=False)
    assert exc.value.status_code == 400
    assert "last" in exc.value.detail.lower()

    with pytest.raises(LastAdminError):
        await ensure_admin_remains(db, venue.id, admin.id, new_tenant_role="staff")
    with pytest.raises(LastAdminError):
        await ensure_admin_remains(db, venue.id, admin.id, removing=True)


async def test_second_admin_allows_change(db):
    venue = await make_venue(db)
    admin = await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    await make_user(db, "deputy@mamaput.ng", venue, "tenant_admin")

    await ensure_admin_remains(db, venue.id, admin.id, is_active=False)


async def test_inactive_and_archived_admins_do_not_count(db):
    venue = await make_venue(db)
    admin = await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    await make_user(db, "gone@mamaput.ng", venue, "tenant_admin", is_active=False)
    archived = await make_user(db, "old@mamaput.ng", venue, "tenant_admin")
    archived.is_archived = True
    await db.commit()

    assert await count_active_tenant_admins(db, venue.id) == 1
    with pytest.raises(LastAdminError):
        await ensure_admin_remains(db, venue.id, admin.id, is_active=False)


async def test_admins_in_other_tenants_do_not_count(db):
    venue = await make_venue(db)
    other = await make_venue(db, slug="buka-hut", name="Buka Hut")
    admin = await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    await make_user(db, "boss@bukahut.ng", other, "tenant_admin")

    with pytest.raises(LastAdminError):
        await ensure_admin_remains(db, venue.id, admin.id, is_active=False)


async def test_staff_changes_are_never_blocked(db):
    venue = await make_venue(db)
    staff = await make_user(db, "waiter@mamaput.ng", venue, "staff")
    await ensure_admin_remains(db, venue.id, staff.id, is_active=False, removing=True)


async def test_every_administered_tenant_is_checked(db):
    venue = await make_venue(db)
    other = await make_venue(db, slug="buka-hut", name="Buka Hut")
    shared = await make_user(db, "shared@mamaput.ng", venue, "tenant_admin")
    await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    await grant_role(db, shared, other, "tenant_admin")

    # Fine for the first venue alone, but the second would be orphaned
    await ensure_admin_remains(db, venue.id, shared.id, is_active=False)
    with pytest.raises(LastAdminError) as exc:
        await ensure_admins_remain_everywhere(
            db, shared.id, removing=True, detail="Cannot delete the last remaining admin"
        )
    assert exc.value.detail == "Cannot delete the last remaining admin"
    assert await count_active_tenant_admins(db, other.id) == 1

from sqlalchemy import select

from app.models.audit_log import AuditLog
from app.models.order import Order, OrderStatus, PaymentMethod
from app.models.user import UserRole
from tests.factories import make_category, make_item, make_table, make_user, make_venue


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_jwt_login_and_me(client, db):
    venue = await make_venue(db)
    await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")

    bad = await client.post("/auth/jwt/login", data={"username": "boss@mamaput.ng", "password": "wrong-one"})
    assert bad.status_code == 400

    resp = await client.post("/auth/jwt/login", data={"username": "boss@mamaput.ng", "password": "secret123"})
    assert resp.status_code == 200, resp.text
    token = resp.json()["access_token"]

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    body = me.json()
    assert body["role"] == "tenant_admin"
    assert body["tenant_id"] == venue.id
    assert body["permissions"]["can_manage_users"] is True
    assert body["permissions"]["can_manage_tenants"] is False

    actions = (await db.execute(select(AuditLog.action).order_by(AuditLog.created_at))).scalars().all()
    assert actions == ["login_failed", "login_success"]


async def test_unauthenticated_admin_request(client):
    resp = await client.get("/admin/orders")
    assert resp.status_code == 401


async def test_suspended_venue_locks_out_staff(client, db, login_as):
    venue = await make_venue(db, is_suspended=True)
    staff = await make_user(db, "waiter@mamaput.ng", venue, "staff")
    login_as(staff)

    resp = await client.get("/admin/orders")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Venue suspended"


async def test_staff_order_queue(client, db, login_as):
    venue = await make_venue(db)
    other = await make_venue(db, slug="buka-hut", name="Buka Hut")
    staff = await make_user(db, "waiter@mamaput.ng", venue, "staff")
    table = await make_table(db, venue)
    other_table = await make_table(db, other, label="Table 1")

    for ref, v, t in (("ORD-AAAAAA", venue, table), ("ORD-BBBBBB", other, other_table)):
        db.add(Order(
            order_reference=ref,
            venue_id=v.id,
            table_id=t.id,
            table_number=1,
            table_label=t.label,
            status=OrderStatus.CASH_ON_DELIVERY,
            payment_method=PaymentMethod.CASH,
            total_kobo=250000,
        ))
    await db.commit()
    login_as(staff)

    queue = await client.get("/admin/orders")
    assert queue.status_code == 200
    orders = queue.json()
    assert [o["order_reference"] for o in orders] == ["ORD-AAAAAA"]
    assert orders[0]["next_statuses"] == ["confirmed", "cancelled"]
    order_id = orders[0]["id"]

    skip = await client.patch(f"/admin/orders/{order_id}/status", json={"status": "ready"})
    assert skip.status_code == 409

    confirmed = await client.patch(f"/admin/orders/{order_id}/status", json={"status": "confirmed"})
    assert confirmed.status_code == 200, confirmed.text
    assert confirmed.json()["payment_confirmed"] is True
    assert confirmed.json()["next_statuses"] == ["preparing", "cancelled"]

    confirmation = await client.get(f"/admin/orders/{order_id}/confirmation")
    assert confirmation.status_code == 200
    assert confirmation.json()["confirmed_by"] == str(staff.id)

    events = await client.get(f"/admin/orders/{order_id}/events")
    assert [e["event_type"] for e in events.json()] == ["payment_confirmed"]

    foreign = (await db.execute(select(Order).where(Order.order_reference == "ORD-BBBBBB"))).scalar_one()
    assert (await client.get(f"/admin/orders/{foreign.id}")).status_code == 404


async def test_staff_cannot_touch_menu(client, db, login_as):
    venue = await make_venue(db)
    staff = await make_user(db, "waiter@mamaput.ng", venue, "staff")
    category = await make_category(db)
    login_as(staff)

    resp = await client.post(
        "/admin/menu-items",
        json={"name": "Suya", "price_kobo": 150000, "category_id": category.id},
    )
    assert resp.status_code == 403


async def test_admin_manages_menu_and_tables(client, db, login_as):
    venue = await make_venue(db)
    admin = await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    category = await make_category(db)
    login_as(admin)

    created = await client.post(
        "/admin/menu-items",
        json={"name": "Suya", "price_kobo": 150000, "category_id": category.id},
    )
    assert created.status_code == 201, created.text
    assert created.json()["venue_id"] == venue.id

    # Categories are platform-wide
    assert (await client.post("/admin/categories", json={"name": "Drinks"})).status_code == 403

    tables = await client.post("/admin/tables/bulk", json={"count": 3, "label_prefix": "Table"})
    assert tables.status_code == 201, tables.text
    assert len(tables.json()) == 3
    assert all("/t/" in t["url"] for t in tables.json())


async def test_super_admin_tenants_and_impersonation(client, db, login_as):
    venue = await make_venue(db)
    await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    root = await make_user(db, "root@tableside.ng", super_admin=True)
    login_as(root)

    me = (await client.get("/auth/me")).json()
    assert me["role"] == "super_admin"
    assert me["tenant_id"] is None
    assert me["is_impersonating"] is False

    created = await client.post("/super-admin/tenants", json={"name": "Buka Hut", "venue_slug": "buka-hut"})
    assert created.status_code == 201
    assert (await client.post("/super-admin/tenants", json={"name": "Dup", "venue_slug": "buka-hut"})).status_code == 409

    tenants = await client.get("/super-admin/tenants")
    counts = {t["venue_slug"]: t["user_count"] for t in tenants.json()}
    assert counts == {"mama-put": 1, "buka-hut": 0}

    started = await client.post(f"/super-admin/impersonate/{venue.id}")
    assert started.status_code == 200
    me = (await client.get("/auth/me")).json()
    assert me["is_impersonating"] is True
    assert me["tenant_id"] == venue.id

    stopped = await client.delete("/super-admin/impersonate")
    assert stopped.status_code == 204
    me = (await client.get("/auth/me")).json()
    assert me["is_impersonating"] is False

    actions = (await db.execute(select(AuditLog.action))).scalars().all()
    assert {"tenant_created", "impersonation_start", "impersonation_end"} <= set(actions)


async def test_suspend_and_feature_flags(client, db, login_as):
    venue = await make_venue(db)
    root = await make_user(db, "root@tableside.ng", super_admin=True)
    login_as(root)

    assert (await client.post(f"/super-admin/tenants/{venue.id}/suspend")).json()["is_suspended"] is True
    assert (await client.post(f"/super-admin/tenants/{venue.id}/suspend")).status_code == 409
    assert (await client.post(f"/super-admin/tenants/{venue.id}/reactivate")).json()["is_suspended"] is False

    flags = await client.get(f"/super-admin/tenants/{venue.id}/features")
    assert flags.json()["cash_payments"] is True
    assert flags.json()["customer_name_required"] is False

    updated = await client.put(
        f"/super-admin/tenants/{venue.id}/features", json={"flags": {"customer_name_required": True}}
    )
    assert updated.status_code == 200
    assert updated.json()["customer_name_required"] is True

    bad = await client.put(f"/super-admin/tenants/{venue.id}/features", json={"flags": {"teleport": True}})
    assert bad.status_code == 400


async def test_tenant_admin_cannot_reach_super_admin_routes(client, db, login_as):
    venue = await make_venue(db)
    admin = await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    login_as(admin)

    assert (await client.get("/super-admin/tenants")).status_code == 403
    assert (await client.post(f"/super-admin/impersonate/{venue.id}")).status_code == 403


async def test_multi_tenant_user_switches_tenant(client, db, login_as):
    venue = await make_venue(db)
    other = await make_venue(db, slug="buka-hut", name="Buka Hut")
    user = await make_user(db, "floater@mamaput.ng", venue, "staff")
    db.add(UserRole(user_id=user.id, tenant_id=other.id, tenant_role="tenant_admin", role="admin"))
    await db.commit()
    login_as(user)

    me = (await client.get("/auth/me")).json()
    assert me["tenant_id"] == venue.id
    assert me["role"] == "staff"

    switched = await client.post(f"/auth/tenant/{other.id}")
    assert switched.status_code == 200
    assert switched.json()["role"] == "tenant_admin"
    assert (await client.get("/auth/me")).json()["tenant_id"] == other.id

    assert (await client.post("/auth/tenant/not-mine")).status_code == 403


async def test_today_analytics(client, db, login_as):
    venue = await make_venue(db)
    admin = await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    category = await make_category(db)
    item = await make_item(db, venue, category)
    table = await make_table(db, venue)
    login_as(admin)

    for _ in range(2):
        resp = await client.post(
            f"/venues/{venue.venue_slug}/orders",
            json={"qr_token": table.qr_token, "payment_method": "cash",
                  "items": [{"menu_item_id": item.id, "quantity": 1}]},
        )
        order_id = resp.json()["id"]
    await client.post(f"/admin/orders/{order_id}/confirm-payment", json={})

    summary = await client.get("/admin/analytics/today")
    assert summary.status_code == 200
    assert summary.json()["paid_orders"] == 1
    assert summary.json()["revenue_kobo"] == 250000


async def test_settings_and_bank_details(client, db, login_as):
    venue = await make_venue(db)
    admin = await make_user(db, "boss@mamaput.ng", venue, "tenant_admin")
    login_as(admin)

    assert (await client.put("/admin/settings", json={"settings": {"order_expiry_minutes": "0"}})).status_code == 400
    assert (await client.put("/admin/settings", json={"settings": {"theme": "dark"}})).status_code == 400
    saved = await client.put("/admin/settings", json={"settings": {"order_expiry_minutes": "30"}})
    assert saved.json() == {"order_expiry_minutes": "30"}

    for number in ("0123456789", "9876543210"):
        resp = await client.put(
            "/admin/bank-details",
            json={"bank_name": "GTBank", "account_name": "Mama Put Ltd", "account_number": number},
        )
        assert resp.status_code == 200, resp.text

    guest = await client.get(f"/venues/{venue.venue_slug}/bank-details")
    assert guest.json() == {"bank_name": "GTBank", "account_name": "Mama Put Ltd", "account_number": "9876543210"}

    audit = (await db.execute(select(AuditLog).where(AuditLog.action == "bank_details_updated"))).scalars().all()
    assert len(audit) == 2
    assert "9876543210" not in str([a.meta for a in audit])

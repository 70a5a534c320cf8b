import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from app.crud.order import create_order, create_payment_claim, get_order_by_reference
from app.models.feature_flag import TenantFeatureFlag
from app.models.order import Order, OrderEvent, OrderStatus
from app.models.venue import VenueSetting
from app.schemas.order import OrderCreate
from app.services.errors import RateLimitedError
from app.models.payment import PaymentClaim
from app.services import payment_proofs
from tests.factories import make_category, make_item, make_table, make_user, make_venue


@pytest.fixture
async def venue_setup(db):
    venue = await make_venue(db)
    category = await make_category(db)
    jollof = await make_item(db, venue, category, name="Jollof Rice", price_kobo=250000)
    suya = await make_item(db, venue, category, name="Suya", price_kobo=150000)
    table = await make_table(db, venue, label="Table 12")
    return venue, table, jollof, suya


def _payload(table, items, **kw):
    data = {
        "qr_token": table.qr_token,
        "payment_method": kw.pop("payment_method", "cash"),
        "items": [{"menu_item_id": item.id, "quantity": qty} for item, qty in items],
    }
    data.update(kw)
    return OrderCreate(**data)


async def test_cash_order_starts_cash_on_delivery(db, venue_setup):
    venue, table, jollof, suya = venue_setup
    order = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 2), (suya, 1)]))

    assert order.status == OrderStatus.CASH_ON_DELIVERY
    assert order.expires_at is None
    assert order.total_kobo == 2 * 250000 + 150000
    assert order.table_number == 12
    assert order.order_reference.startswith("ORD-")
    assert {i.item_snapshot["name"] for i in order.items} == {"Jollof Rice", "Suya"}

    events = (await db.execute(select(OrderEvent).where(OrderEvent.order_id == order.id))).scalars().all()
    assert [e.event_type for e in events] == ["order_created"]


async def test_bank_transfer_order_gets_payment_deadline(db, venue_setup):
    venue, table, jollof, _ = venue_setup
    db.add(VenueSetting(venue_id=venue.id, setting_key="order_expiry_minutes", setting_value="30"))
    await db.commit()

    order = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], payment_method="bank_transfer"))

    assert order.status == OrderStatus.PENDING_PAYMENT
    assert int((order.expires_at - order.created_at).total_seconds()) == 30 * 60


async def test_prices_come_from_the_menu_snapshot(db, venue_setup):
    venue, table, jollof, _ = venue_setup
    order = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)]))

    jollof.price_kobo = 999999
    jollof.name = "Party Jollof"
    await db.commit()

    refreshed = await get_order_by_reference(db, order.order_reference.lower())
    assert refreshed.items[0].unit_price_kobo == 250000
    assert refreshed.items[0].item_snapshot["name"] == "Jollof Rice"


async def test_idempotency_key_returns_existing_order(db, venue_setup):
    venue, table, jollof, _ = venue_setup
    first = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], idempotency_key="tap-1"))
    second = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 3)], idempotency_key="tap-1"))

    assert second.id == first.id
    assert (await db.execute(select(func.count(Order.id)))).scalar_one() == 1


async def test_table_rate_limit(db, venue_setup):
    venue, table, jollof, _ = venue_setup
    for _ in range(5):
        await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)]))

    with pytest.raises(RateLimitedError) as exc:
        await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)]))
    assert exc.value.status_code == 429


async def test_token_from_another_venue_is_rejected(db, venue_setup):
    venue, _, jollof, _ = venue_setup
    other = await make_venue(db, slug="buka-hut", name="Buka Hut")
    foreign_table = await make_table(db, other, label="Table 1")

    with pytest.raises(HTTPException) as exc:
        await create_order(db, venue.venue_slug, _payload(foreign_table, [(jollof, 1)]))
    assert exc.value.status_code == 400


async def test_inactive_table_and_suspended_venue(db, venue_setup):
    venue, table, jollof, _ = venue_setup
    table.active = False
    await db.commit()
    with pytest.raises(HTTPException) as exc:
        await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)]))
    assert exc.value.status_code == 400

    table.active = True
    venue.is_suspended = True
    await db.commit()
    with pytest.raises(HTTPException) as exc:
        await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)]))
    assert exc.value.status_code == 403


async def test_unavailable_or_foreign_items_are_rejected(db, venue_setup):
    venue, table, jollof, suya = venue_setup
    suya.is_available = False
    await db.commit()
    with pytest.raises(HTTPException) as exc:
        await create_order(db, venue.venue_slug, _payload(table, [(suya, 1)]))
    assert exc.value.status_code == 400

    other = await make_venue(db, slug="buka-hut", name="Buka Hut")
    category = await make_category(db, name="Drinks")
    zobo = await make_item(db, other, category, name="Zobo", price_kobo=50000)
    with pytest.raises(HTTPException) as exc:
        await create_order(db, venue.venue_slug, _payload(table, [(zobo, 1)]))
    assert exc.value.status_code == 400


async def test_feature_flags_gate_orders(db, venue_setup):
    venue, table, jollof, _ = venue_setup
    db.add(TenantFeatureFlag(tenant_id=venue.id, feature_key="customer_name_required", is_enabled=True))
    db.add(TenantFeatureFlag(tenant_id=venue.id, feature_key="cash_payments", is_enabled=False))
    await db.commit()

    with pytest.raises(HTTPException) as exc:
        await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], payment_method="bank_transfer"))
    assert exc.value.detail == "Customer name is required"

    with pytest.raises(HTTPException) as exc:
        await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], customer_name="Tunde"))
    assert "cash" in exc.value.detail

    order = await create_order(
        db, venue.venue_slug,
        _payload(table, [(jollof, 1)], payment_method="bank_transfer", customer_name="  Tunde "),
    )
    assert order.customer_name == "Tunde"


async def test_payment_claims_only_for_pending_bank_transfers(db, venue_setup):
    venue, table, jollof, _ = venue_setup
    cash = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)]))
    with pytest.raises(HTTPException) as exc:
        await create_payment_claim(db, cash, sender_name="Tunde")
    assert exc.value.status_code == 400

    bank = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], payment_method="bank_transfer"))
    claim = await create_payment_claim(db, bank, sender_name="Tunde", bank_name="GTBank")
    assert claim.order_id == bank.id

    bank.status = OrderStatus.EXPIRED
    await db.commit()
    with pytest.raises(HTTPException) as exc:
        await create_payment_claim(db, bank, sender_name="Tunde")
    assert exc.value.status_code == 409


async def test_guest_order_over_http(client, db, venue_setup):
    venue, table, jollof, _ = venue_setup

    menu = await client.get(f"/venues/{venue.venue_slug}/menu")
    assert menu.status_code == 200
    assert menu.json()[0]["items"][0]["name"] == "Jollof Rice"

    resp = await client.post(
        f"/venues/{venue.venue_slug}/orders",
        json={
            "qr_token": table.qr_token,
            "payment_method": "cash",
            "items": [{"menu_item_id": jollof.id, "quantity": 2}],
        },
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "cash_on_delivery"
    assert body["total_kobo"] == 500000

    tracked = await client.get(f"/orders/{body['order_reference']}")
    assert tracked.status_code == 200
    assert tracked.json()["id"] == body["id"]

    assert (await client.get("/orders/ORD-NOPE00")).status_code == 404


async def test_guest_payment_claim_over_http(client, db, venue_setup):
    venue, table, jollof, _ = venue_setup
    order = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], payment_method="bank_transfer"))

    assert (await client.get(f"/venues/{venue.venue_slug}/bank-details")).status_code == 404

    resp = await client.post(
        f"/orders/{order.order_reference}/payment-claims",
        data={"sender_name": " Tunde Bakare ", "bank_name": "GTBank"},
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["sender_name"] == "Tunde Bakare"

    # Nobody can sign a proof that is not attached to their order
    denied = await client.get(f"/orders/{order.order_reference}/proof-url", params={"key": "prod/payment-proofs/x.png"})
    assert denied.status_code == 401


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def fake_spaces(monkeypatch):
    uploads = []

    async def put_private_object(*, key, body, content_type):
        uploads.append(key)
        return key

    async def presigned_get_url(key, expires_in=None):
        return f"https://spaces.test/{key}?ttl={expires_in}"

    monkeypatch.setattr(payment_proofs, "spaces_configured", lambda: True)
    monkeypatch.setattr(payment_proofs, "put_private_object", put_private_object)
    monkeypatch.setattr(payment_proofs, "presigned_get_url", presigned_get_url)
    return uploads


async def test_rejected_claim_stores_no_proof(client, db, venue_setup, fake_spaces):
    venue, table, jollof, _ = venue_setup
    cash = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)]))

    resp = await client.post(
        f"/orders/{cash.order_reference}/payment-claims",
        data={"sender_name": "Tunde"},
        files={"proof": ("receipt.png", PNG, "image/png")},
    )
    assert resp.status_code == 400
    assert fake_spaces == []
    assert (await db.execute(select(func.count(PaymentClaim.id)))).scalar_one() == 0


async def test_guest_signs_own_proof(client, db, venue_setup, fake_spaces):
    venue, table, jollof, _ = venue_setup
    order = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], payment_method="bank_transfer"))
    other = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], payment_method="bank_transfer"))

    resp = await client.post(
        f"/orders/{order.order_reference}/payment-claims",
        data={"sender_name": "Tunde"},
        files={"proof": ("receipt.png", PNG, "image/png")},
    )
    assert resp.status_code == 201, resp.text
    key = resp.json()["proof_key"]
    assert fake_spaces == [key]
    assert f"/{venue.id}/{order.id}/" in key

    signed = await client.get(f"/orders/{order.order_reference}/proof-url", params={"key": key})
    assert signed.status_code == 200, signed.text
    assert signed.json()["url"].startswith("https://spaces.test/")
    assert signed.json()["expires_in"] == 3600

    stolen = await client.get(f"/orders/{other.order_reference}/proof-url", params={"key": key})
    assert stolen.status_code == 401


async def test_staff_sign_proofs_of_their_own_venue_only(client, db, login_as, venue_setup, fake_spaces):
    venue, table, jollof, _ = venue_setup
    other = await make_venue(db, slug="buka-hut", name="Buka Hut")
    order = await create_order(db, venue.venue_slug, _payload(table, [(jollof, 1)], payment_method="bank_transfer"))
    key = f"prod/payment-proofs/{venue.id}/{order.id}/receipt.png"
    await create_payment_claim(db, order, sender_name="Tunde", proof_key=key)

    outsider = await make_user(db, "cashier@bukahut.ng", other, "staff")
    login_as(outsider)
    denied = await client.get("/admin/payment-proofs/url", params={"key": key})
    assert denied.status_code == 403

    cashier = await make_user(db, "cashier@mamaput.ng", venue, "staff")
    login_as(cashier)
    allowed = await client.get("/admin/payment-proofs/url", params={"key": key})
    assert allowed.status_code == 200, allowed.text
    assert key in allowed.json()["url"]

    missing = await client.get("/admin/payment-proofs/url", params={"key": "prod/payment-proofs/nope.png"})
    assert missing.status_code == 404

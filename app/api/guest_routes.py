# app/api/guest_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.auth.module_gates import get_enabled_features
from app.crud.menu import get_guest_menu
from app.crud.order import create_order, create_payment_claim, ensure_claimable, get_order_by_reference
from app.crud.table import get_venue_by_slug, resolve_table
from app.crud.venue import get_active_bank_details
from app.schemas.invitation import InvitationAccept, InvitationAccepted
from app.schemas.menu import MenuGroup
from app.schemas.order import OrderCreate, OrderRead
from app.schemas.payment import PaymentClaimRead, SignedUrlRead
from app.services.invitations import accept_invitation
from app.services.payment_proofs import signed_url_for_guest, upload_proof

router = APIRouter(tags=["guest"])


async def _open_venue(db: AsyncSession, venue_slug: str):
    venue = await get_venue_by_slug(db, venue_slug)
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found")
    if venue.is_suspended:
        raise HTTPException(status_code=403, detail="This venue is not accepting orders right now")
    return venue


@router.get("/venues/{venue_slug}/tables/{qr_token}")
async def resolve_table_session(venue_slug: str, qr_token: str, db: AsyncSession = Depends(get_db)):
    venue, table = await resolve_table(db, venue_slug, qr_token)
    flags = await get_enabled_features(db, venue.id)
    return {
        "venue": {"id": venue.id, "name": venue.name, "venue_slug": venue.venue_slug},
        "table": {"id": table.id, "label": table.label, "qr_token": table.qr_token},
        "features": flags,
    }


@router.get("/venues/{venue_slug}/menu", response_model=List[MenuGroup])
async def guest_menu(venue_slug: str, db: AsyncSession = Depends(get_db)):
    venue = await _open_venue(db, venue_slug)
    return await get_guest_menu(db, venue.id)


@router.get("/venues/{venue_slug}/bank-details")
async def guest_bank_details(venue_slug: str, db: AsyncSession = Depends(get_db)):
    venue = await _open_venue(db, venue_slug)
    details = await get_active_bank_details(db, venue.id)
    if not details:
        raise HTTPException(status_code=404, detail="Bank details not configured")
    # Only what a guest needs to make the transfer
    return {
        "bank_name": details.bank_name,
        "account_name": details.account_name,
        "account_number": details.account_number,
    }


@router.post("/venues/{venue_slug}/orders", response_model=OrderRead, status_code=201)
async def place_order(venue_slug: str, data: OrderCreate, db: AsyncSession = Depends(get_db)):
    return await create_order(db, venue_slug, data)


@router.get("/orders/{order_reference}", response_model=OrderRead)
async def track_order(order_reference: str, db: AsyncSession = Depends(get_db)):
    order = await get_order_by_reference(db, order_reference)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/orders/{order_reference}/payment-claims", response_model=PaymentClaimRead, status_code=201)
async def submit_payment_claim(
    order_reference: str,
    sender_name: Optional[str] = Form(None),
    bank_name: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    proof: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
):
    order = await get_order_by_reference(db, order_reference)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    # Reject before anything reaches storage
    ensure_claimable(order)

    proof_key = None
    if proof is not None and proof.filename:
        proof_key = await upload_proof(order, proof)

    return await create_payment_claim(
        db, order,
        sender_name=(sender_name or "").strip() or None,
        bank_name=(bank_name or "").strip() or None,
        notes=(notes or "").strip() or None,
        proof_key=proof_key,
    )


@router.get("/orders/{order_reference}/proof-url", response_model=SignedUrlRead)
async def guest_proof_url(
    order_reference: str,
    key: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    return await signed_url_for_guest(db, order_reference, key)


@router.post("/invitations/accept", response_model=InvitationAccepted)
async def accept_staff_invitation(data: InvitationAccept, db: AsyncSession = Depends(get_db)):
    user, invitation, created = await accept_invitation(db, data)
    return {
        "user_id": user.id,
        "tenant_id": invitation.tenant_id,
        "role": invitation.role,
        "created_user": created,
    }

# app/services/payment_proofs.py
import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import StaffContext
from app.core.config import settings
from app.core.constants import PROOF_PREFIX
from app.crud.order import find_claim_by_proof_key, get_order, get_order_by_reference
from app.models.order import Order
from app.utils.security import generate_safe_filename, validate_and_read_image
from app.utils.spaces import prefixed_key, presigned_get_url, put_private_object, spaces_configured

log = logging.getLogger(__name__)


async def upload_proof(order: Order, file: UploadFile) -> str:
    contents = await validate_and_read_image(file)
    if not spaces_configured():
        raise HTTPException(status_code=503, detail="Proof uploads are not available")

    key = prefixed_key(f"{PROOF_PREFIX}/{order.venue_id}/{order.id}/{generate_safe_filename(file.filename)}")
    await put_private_object(key=key, body=contents, content_type=file.content_type)
    log.info("proof uploaded tenant=%s order=%s", order.venue_id, order.order_reference)
    return key


async def _sign(proof_key: str) -> dict:
    if not spaces_configured():
        raise HTTPException(status_code=503, detail="Proof storage is not configured")
    url = await presigned_get_url(proof_key, settings.proof_url_ttl_seconds)
    return {"url": url, "expires_in": settings.proof_url_ttl_seconds}


async def signed_url_for_guest(db: AsyncSession, order_reference: str, proof_key: str) -> dict:
    """A guest may only view the proof attached to their own order."""
    order: Optional[Order] = await get_order_by_reference(db, order_reference)
    claim = await find_claim_by_proof_key(db, proof_key) if order else None
    if not order or not claim or claim.order_id != order.id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return await _sign(proof_key)


async def signed_url_for_staff(db: AsyncSession, ctx: StaffContext, proof_key: str) -> dict:
    claim = await find_claim_by_proof_key(db, proof_key)
    if not claim:
        raise HTTPException(status_code=404, detail="Proof not found")
    order = await get_order(db, claim.order_id)
    if not ctx.tenant.has_access_to_tenant(order.venue_id) or (
        ctx.tenant.requires_tenant_scope and order.venue_id != ctx.tenant_id
    ):
        raise HTTPException(status_code=403, detail="Forbidden")
    return await _sign(proof_key)

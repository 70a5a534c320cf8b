# app/utils/security.py

import hashlib
import secrets
import uuid
from fastapi import UploadFile, HTTPException

from app.core.constants import (
    ALLOWED_IMAGE_TYPES,
    GENERATED_PASSWORD_LENGTH,
    MAX_PROOF_SIZE,
    PASSWORD_ALPHABET,
)


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    """Random password from an alphabet without look-alike characters (0/O, 1/l/I)."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))

def generate_invitation_token() -> str:
    # 32 random bytes -> 64 hex chars
    return secrets.token_hex(32)

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()

def generate_qr_token() -> str:
    return secrets.token_urlsafe(16)

async def validate_and_read_image(file: UploadFile) -> bytes:
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=400, detail="Invalid file type. Only JPEG and PNG are allowed.")
    
    contents = await file.read()

    if len(contents) > MAX_PROOF_SIZE:
        raise HTTPException(status_code=400, detail="File too large (10MB max).")
    
    return contents

def generate_safe_filename(original_filename: str) -> str:
    ext = (original_filename or "").split(".")[-1].lower()
    if ext not in ("jpg", "jpeg", "png"):
        ext = "jpg"
    return f"{uuid.uuid4()}.{ext}"

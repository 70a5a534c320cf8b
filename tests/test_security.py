import io

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from app.core.constants import PASSWORD_ALPHABET
from app.utils.security import (
    generate_invitation_token,
    generate_password,
    generate_safe_filename,
    hash_token,
    validate_and_read_image,
)
from app.utils.spaces import prefixed_key


def _upload(content_type: str, body: bytes = b"\x89PNG....", filename: str = "proof.png") -> UploadFile:
    return UploadFile(file=io.BytesIO(body), filename=filename, headers=Headers({"content-type": content_type}))


def test_generated_password_avoids_look_alikes():
    password = generate_password()
    assert len(password) == 16
    assert set(password) <= set(PASSWORD_ALPHABET)
    assert not set(password) & set("0O1lI")


def test_invitation_token_and_hash():
    token = generate_invitation_token()
    assert len(token) == 64
    assert hash_token(token) == hash_token(token)
    assert hash_token(token) != token


def test_safe_filename_keeps_only_image_extensions():
    assert generate_safe_filename("Receipt.PNG").endswith(".png")
    assert generate_safe_filename("evil.exe").endswith(".jpg")
    assert generate_safe_filename(None).endswith(".jpg")


def test_prefixed_key():
    assert prefixed_key("/payment-proofs/a.png") == "prod/payment-proofs/a.png"


async def test_image_validation():
    assert await validate_and_read_image(_upload("image/png")) == b"\x89PNG...."

    with pytest.raises(HTTPException) as exc:
        await validate_and_read_image(_upload("application/pdf", filename="proof.pdf"))
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        await validate_and_read_image(_upload("image/jpeg", body=b"x" * (10 * 1024 * 1024 + 1)))
    assert exc.value.status_code == 400

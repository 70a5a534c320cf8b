import aioboto3

from app.core.config import settings

_session = aioboto3.Session()

def spaces_configured() -> bool:
    return all([
        settings.do_spaces_key,
        settings.do_spaces_secret,
        settings.do_spaces_bucket,
        settings.do_spaces_endpoint,
    ])

def prefixed_key(key: str) -> str:
    key = key.lstrip("/")
    prefix = settings.do_spaces_prefix.strip("/")
    return f"{prefix}/{key}" if prefix else key

def _client():
    return _session.client(
        "s3",
        region_name=settings.do_spaces_region,
        endpoint_url=settings.do_spaces_endpoint,
        aws_access_key_id=settings.do_spaces_key,
        aws_secret_access_key=settings.do_spaces_secret,
    )

async def put_private_object(*, key: str, body: bytes, content_type: str) -> str:
    """
    Uploads a private object to Spaces and returns the object key.
    Private objects are only reachable through presigned URLs.
    """
    if not spaces_configured():
        raise RuntimeError("Spaces env vars not fully configured")

    key = key.lstrip("/")
    async with _client() as s3:
        await s3.put_object(
            Bucket=settings.do_spaces_bucket,
            Key=key,
            Body=body,
            ContentType=content_type or "application/octet-stream",
            ACL="private",
        )
    return key

async def presigned_get_url(key: str, expires_in: int = None) -> str:
    if not spaces_configured():
        raise RuntimeError("Spaces env vars not fully configured")

    async with _client() as s3:
        return await s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": settings.do_spaces_bucket, "Key": key.lstrip("/")},
            ExpiresIn=expires_in or settings.proof_url_ttl_seconds,
        )

from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.feature_flag import TenantFeatureFlag


async def get_enabled_features(db: AsyncSession, tenant_id: Optional[str]) -> Dict[str, bool]:
    """Flags explicitly stored for a tenant; anything absent is left to the caller's default."""
    if not tenant_id:
        return {}
    res = await db.execute(
        select(TenantFeatureFlag).where(TenantFeatureFlag.tenant_id == tenant_id)
    )
    rows = res.scalars().all()
    return {r.feature_key: bool(r.is_enabled) for r in rows}

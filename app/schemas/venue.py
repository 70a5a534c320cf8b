from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class VenueCreate(BaseModel):
    name: str = Field(min_length=1)
    venue_slug: str = Field(min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class VenueRead(BaseModel):
    id: str
    name: str
    venue_slug: str
    is_suspended: bool
    suspended_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TenantSummary(VenueRead):
    user_count: int = 0
    order_count: int = 0


class FeatureFlagUpdate(BaseModel):
    flags: Dict[str, bool]


class VenueSettingsUpdate(BaseModel):
    settings: Dict[str, str]


class AnalyticsSummary(BaseModel):
    tenant_id: Optional[str] = None
    paid_orders: int
    revenue_kobo: int
    average_order_kobo: int

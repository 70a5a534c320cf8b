import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditLogRead(BaseModel):
    id: str
    action: str
    actor_user_id: Optional[uuid.UUID] = None
    target_user_id: Optional[uuid.UUID] = None
    tenant_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

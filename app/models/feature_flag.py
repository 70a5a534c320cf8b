from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid

from app.models.base import Base
from app.utils.timezones import utcnow

class TenantFeatureFlag(Base):
    __tablename__ = "tenant_feature_flags"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(String, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False)
    feature_key = Column(String, nullable=False)   # e.g. "customer_name_required"
    is_enabled = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    tenant = relationship("Venue", back_populates="feature_flags")

    __table_args__ = (
        UniqueConstraint("tenant_id", "feature_key", name="uq_tenant_feature_key"),
    )

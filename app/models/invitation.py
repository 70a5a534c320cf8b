from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from fastapi_users_db_sqlalchemy.generics import GUID
import uuid

from app.models.base import Base
from app.utils.timezones import utcnow


class StaffInvitation(Base):
    __tablename__ = "staff_invitations"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String, nullable=False)  # stored lower-cased
    role = Column(String, nullable=False)  # "tenant_admin", "staff"
    token_hash = Column(String, nullable=False, unique=True)  # sha256 hex of the emailed token
    invited_by = Column(GUID, nullable=True)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    venue = relationship("Venue")

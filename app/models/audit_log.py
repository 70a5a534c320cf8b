from sqlalchemy import Column, String, DateTime, JSON, event
from fastapi_users_db_sqlalchemy.generics import GUID
import uuid

from app.models.base import Base
from app.utils.timezones import utcnow


class AuditLog(Base):
    __tablename__ = "admin_audit_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(String, nullable=False, index=True)
    actor_user_id = Column(GUID, nullable=True)
    target_user_id = Column(GUID, nullable=True)
    tenant_id = Column(String, nullable=True, index=True)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


@event.listens_for(AuditLog, "before_update")
def _refuse_update(mapper, connection, target):
    raise ValueError("Audit log entries are append-only")


@event.listens_for(AuditLog, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise ValueError("Audit log entries are append-only")

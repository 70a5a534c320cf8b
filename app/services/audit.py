# app/services/audit.py
import enum
import logging
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog
from app.utils.timezones import utcnow

log = logging.getLogger(__name__)


class AuditAction(str, enum.Enum):
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    IMPERSONATION_START = "impersonation_start"
    IMPERSONATION_END = "impersonation_end"
    PAYMENT_CONFIRMED = "payment_confirmed"
    ORDER_STATUS_CHANGE = "order_status_change"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DEACTIVATED = "user_deactivated"
    USER_ARCHIVED = "user_archived"
    USER_RESTORED = "user_restored"
    USER_DELETED = "user_deleted"
    USER_ROLE_CHANGED = "user_role_changed"
    PASSWORD_RESET = "password_reset"
    PASSWORD_MODIFIED = "password_modified"
    STAFF_INVITED = "staff_invited"
    INVITATION_ACCEPTED = "invitation_accepted"
    TENANT_CREATED = "tenant_created"
    TENANT_SUSPENDED = "tenant_suspended"
    TENANT_REACTIVATED = "tenant_reactivated"
    FEATURE_FLAG_CHANGED = "feature_flag_changed"
    BANK_DETAILS_UPDATED = "bank_details_updated"
    INVALID_ROLE_ACCESS_ATTEMPT = "invalid_role_access_attempt"


def log_audit_event(
    db: AsyncSession,
    actor_user_id,
    action,
    target_user_id=None,
    tenant_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    impersonating: bool = False,
) -> Optional[AuditLog]:
    """
    Queue an audit row on the caller's session; it is written with the
    caller's commit. Failures are logged and never propagate, so an audit
    problem cannot break the action being audited.
    """
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    try:
        meta = jsonable_encoder(metadata or {})
        meta["timestamp"] = utcnow().isoformat()
        if impersonating:
            meta["impersonated"] = True
        entry = AuditLog(
            action=action_value,
            actor_user_id=actor_user_id,
            target_user_id=target_user_id,
            tenant_id=tenant_id,
            meta=meta,
        )
        db.add(entry)
        return entry
    except (SQLAlchemyError, TypeError, ValueError) as exc:
        log.warning("audit write failed action=%s actor=%s: %s", action_value, actor_user_id, exc)
        return None


async def list_audit_logs(
    db: AsyncSession, tenant_id: Optional[str] = None, limit: int = 100
) -> List[AuditLog]:
    stmt = select(AuditLog).order_by(AuditLog.created_at.desc()).limit(limit)
    if tenant_id:
        stmt = stmt.where(AuditLog.tenant_id == tenant_id)
    res = await db.execute(stmt)
    return res.scalars().all()

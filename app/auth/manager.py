import logging
import uuid
from typing import Optional

from fastapi import Request
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_users import BaseUserManager, UUIDIDMixin

from app.models.user import User
from app.auth.config import auth_config
from app.services.audit import AuditAction, log_audit_event

log = logging.getLogger(__name__)


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = auth_config.secret
    verification_token_secret = auth_config.secret

    async def authenticate(self, credentials: OAuth2PasswordRequestForm) -> Optional[User]:
        user = await super().authenticate(credentials)
        if user is None:
            log.info("login failed email=%s", credentials.username)
            session = self.user_db.session
            log_audit_event(
                session,
                None,
                AuditAction.LOGIN_FAILED,
                metadata={"email": credentials.username},
            )
            await session.commit()
        return user

    async def on_after_login(self, user: User, request: Optional[Request] = None, response=None):
        log.info("login user=%s", user.id)
        session = self.user_db.session
        log_audit_event(session, user.id, AuditAction.LOGIN_SUCCESS, target_user_id=user.id, tenant_id=user.venue_id)
        await session.commit()

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.core.constants import SESSION_CURRENT_TENANT, SESSION_IMPERSONATED_TENANT


class TenantMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Runs inside SessionMiddleware, so the signed session is already decoded
        session = request.scope.get("session") or {}
        request.state.impersonated_tenant_id = session.get(SESSION_IMPERSONATED_TENANT)
        request.state.current_tenant_id = session.get(SESSION_CURRENT_TENANT)
        return await call_next(request)

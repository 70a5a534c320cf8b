# app/utils/tenant.py
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import Request

from app.core.constants import SESSION_CURRENT_TENANT, SESSION_IMPERSONATED_TENANT
from app.services.errors import TenantAccessError


@dataclass(frozen=True)
class TenantContext:
    tenant_id: Optional[str]  # None for a super admin viewing globally
    tenant_ids: List[str] = field(default_factory=list)
    is_super_admin: bool = False
    is_impersonating: bool = False

    @property
    def requires_tenant_scope(self) -> bool:
        return not self.is_super_admin or self.is_impersonating

    def has_access_to_tenant(self, tenant_id: Optional[str]) -> bool:
        if not tenant_id:
            return False
        if self.is_super_admin:
            return True
        return tenant_id in self.tenant_ids

    def tenant_filter(self) -> Optional[str]:
        """Tenant id to scope queries by, or None to see every tenant."""
        if self.is_super_admin and not self.tenant_id and not self.is_impersonating:
            return None
        return self.tenant_id

    def require_tenant_id(self) -> str:
        if self.requires_tenant_scope and not self.tenant_id:
            raise TenantAccessError("Tenant context is required but not available", status_code=400)
        if not self.tenant_id:
            raise TenantAccessError("No tenant selected", status_code=400)
        return self.tenant_id

    def validate_tenant_mutation(self, target_tenant_id: Optional[str]) -> str:
        if not target_tenant_id:
            raise TenantAccessError("Target tenant is required", status_code=400)
        if not self.has_access_to_tenant(target_tenant_id):
            raise TenantAccessError("Access denied: You do not have permission to access this tenant's data")
        # While impersonating, writes stay inside the impersonated tenant
        if self.is_impersonating and target_tenant_id != self.tenant_id:
            raise TenantAccessError("Cross-tenant mutation blocked during impersonation")
        return target_tenant_id


def resolve_tenant_context(
    auth_tenant_id: Optional[str],
    tenant_ids: List[str],
    is_super_admin: bool,
    impersonated_tenant_id: Optional[str] = None,
) -> TenantContext:
    is_impersonating = bool(is_super_admin and impersonated_tenant_id)
    effective = impersonated_tenant_id if is_impersonating else auth_tenant_id
    return TenantContext(
        tenant_id=effective,
        tenant_ids=list(tenant_ids),
        is_super_admin=is_super_admin,
        is_impersonating=is_impersonating,
    )


def get_impersonated_tenant_id(request: Request) -> Optional[str]:
    return getattr(request.state, "impersonated_tenant_id", None)


def get_selected_tenant_id(request: Request) -> Optional[str]:
    return getattr(request.state, "current_tenant_id", None)


def set_session_tenant(request: Request, key: str, tenant_id: Optional[str]) -> None:
    if key not in (SESSION_CURRENT_TENANT, SESSION_IMPERSONATED_TENANT):
        raise ValueError(f"Unknown session key: {key}")
    if tenant_id is None:
        request.session.pop(key, None)
    else:
        request.session[key] = tenant_id

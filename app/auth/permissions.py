# app/auth/permissions.py
import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    TENANT_ADMIN = "tenant_admin"
    STAFF = "staff"


class Permissions(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Super admin only
    can_manage_tenants: bool = False
    can_manage_all_users: bool = False
    can_view_global_analytics: bool = False
    can_manage_categories: bool = False

    # Tenant admin and up
    can_manage_menu: bool = False
    can_manage_tables: bool = False
    can_access_analytics: bool = False
    can_manage_bank_details: bool = False
    can_manage_users: bool = False
    can_reset_passwords: bool = False
    can_assign_roles: bool = False

    # Everyone with a role
    can_access_orders: bool = False
    can_modify_own_password: bool = False


PERMISSION_NAMES = tuple(Permissions.model_fields)

_SUPER_ADMIN_ONLY = {
    "can_manage_tenants",
    "can_manage_all_users",
    "can_view_global_analytics",
    "can_manage_categories",
}
_EVERY_ROLE = {"can_access_orders", "can_modify_own_password"}


def _coerce(role) -> Optional[Role]:
    if role is None or isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def get_permissions(role) -> Permissions:
    """Fixed permission set for a role; unknown or missing roles get nothing."""
    role = _coerce(role)
    if role is None:
        return Permissions()
    if role == Role.SUPER_ADMIN:
        return Permissions(**{name: True for name in PERMISSION_NAMES})
    if role == Role.TENANT_ADMIN:
        return Permissions(**{name: name not in _SUPER_ADMIN_ONLY for name in PERMISSION_NAMES})
    return Permissions(**{name: name in _EVERY_ROLE for name in PERMISSION_NAMES})


def is_super_admin(role) -> bool:
    return _coerce(role) == Role.SUPER_ADMIN


def is_tenant_admin(role) -> bool:
    """Tenant admin or higher."""
    return _coerce(role) in (Role.SUPER_ADMIN, Role.TENANT_ADMIN)


def is_staff_or_higher(role) -> bool:
    return _coerce(role) is not None

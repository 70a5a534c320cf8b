import pytest

from app.auth.permissions import (
    PERMISSION_NAMES,
    Role,
    get_permissions,
    is_staff_or_higher,
    is_super_admin,
    is_tenant_admin,
)


SUPER_ONLY = {"can_manage_tenants", "can_manage_all_users", "can_view_global_analytics", "can_manage_categories"}


def test_super_admin_has_everything():
    perms = get_permissions(Role.SUPER_ADMIN)
    assert all(getattr(perms, name) for name in PERMISSION_NAMES)


def test_tenant_admin_lacks_platform_permissions():
    perms = get_permissions("tenant_admin")
    for name in PERMISSION_NAMES:
        assert getattr(perms, name) is (name not in SUPER_ONLY), name


def test_staff_only_gets_orders_and_own_password():
    perms = get_permissions("staff")
    granted = {name for name in PERMISSION_NAMES if getattr(perms, name)}
    assert granted == {"can_access_orders", "can_modify_own_password"}


@pytest.mark.parametrize("role", [None, "", "owner", "ADMIN"])
def test_unknown_role_gets_nothing(role):
    perms = get_permissions(role)
    assert not any(getattr(perms, name) for name in PERMISSION_NAMES)


@pytest.mark.parametrize("role,expected", [
    ("super_admin", True),
    ("tenant_admin", True),
    ("staff", False),
    (None, False),
])
def test_can_manage_users(role, expected):
    assert get_permissions(role).can_manage_users is expected


def test_role_helpers():
    assert is_super_admin("super_admin")
    assert not is_super_admin("tenant_admin")
    assert is_tenant_admin("super_admin") and is_tenant_admin("tenant_admin")
    assert not is_tenant_admin("staff")
    assert is_staff_or_higher("staff")
    assert not is_staff_or_higher(None)
    assert not is_staff_or_higher("cashier")


def test_permissions_are_immutable():
    perms = get_permissions("staff")
    with pytest.raises(Exception):
        perms.can_manage_users = True

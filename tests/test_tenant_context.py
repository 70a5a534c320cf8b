import pytest

from app.services.errors import TenantAccessError
from app.utils.tenant import TenantContext, resolve_tenant_context


def test_regular_user_scoped_to_auth_tenant():
    ctx = resolve_tenant_context("t1", ["t1", "t2"], is_super_admin=False)
    assert ctx.tenant_id == "t1"
    assert not ctx.is_impersonating
    assert ctx.requires_tenant_scope
    assert ctx.tenant_filter() == "t1"


def test_impersonation_ignored_for_non_super_admin():
    ctx = resolve_tenant_context("t1", ["t1"], is_super_admin=False, impersonated_tenant_id="t9")
    assert ctx.tenant_id == "t1"
    assert not ctx.is_impersonating


def test_super_admin_impersonating_takes_impersonated_tenant():
    ctx = resolve_tenant_context(None, [], is_super_admin=True, impersonated_tenant_id="t9")
    assert ctx.tenant_id == "t9"
    assert ctx.is_impersonating
    assert ctx.requires_tenant_scope
    assert ctx.tenant_filter() == "t9"


def test_super_admin_global_view_has_no_filter():
    ctx = resolve_tenant_context(None, [], is_super_admin=True)
    assert ctx.tenant_filter() is None
    assert not ctx.requires_tenant_scope


def test_has_access_to_tenant():
    ctx = TenantContext(tenant_id="t1", tenant_ids=["t1", "t2"])
    assert ctx.has_access_to_tenant("t2")
    assert not ctx.has_access_to_tenant("t3")
    assert not ctx.has_access_to_tenant(None)
    assert TenantContext(tenant_id=None, is_super_admin=True).has_access_to_tenant("anything")


def test_require_tenant_id_missing():
    with pytest.raises(TenantAccessError) as exc:
        TenantContext(tenant_id=None, tenant_ids=[]).require_tenant_id()
    assert exc.value.status_code == 400

    with pytest.raises(TenantAccessError) as exc:
        TenantContext(tenant_id=None, is_super_admin=True).require_tenant_id()
    assert exc.value.status_code == 400


def test_validate_tenant_mutation():
    ctx = TenantContext(tenant_id="t1", tenant_ids=["t1"])
    assert ctx.validate_tenant_mutation("t1") == "t1"

    with pytest.raises(TenantAccessError) as exc:
        ctx.validate_tenant_mutation("t2")
    assert exc.value.status_code == 403

    with pytest.raises(TenantAccessError) as exc:
        ctx.validate_tenant_mutation(None)
    assert exc.value.status_code == 400


def test_impersonation_blocks_cross_tenant_writes():
    ctx = resolve_tenant_context(None, [], is_super_admin=True, impersonated_tenant_id="t1")
    assert ctx.validate_tenant_mutation("t1") == "t1"
    with pytest.raises(TenantAccessError) as exc:
        ctx.validate_tenant_mutation("t2")
    assert "impersonation" in exc.value.detail

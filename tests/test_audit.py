import uuid

import pytest
from sqlalchemy import select

from app.models.audit_log import AuditLog
from app.services.audit import AuditAction, list_audit_logs, log_audit_event


async def test_audit_row_written_with_caller_commit(db):
    actor = uuid.uuid4()
    entry = log_audit_event(
        db, actor, AuditAction.TENANT_SUSPENDED,
        tenant_id="t1",
        metadata={"reason": "unpaid invoice", "when": uuid.uuid4()},
        impersonating=True,
    )
    assert entry is not None
    await db.commit()

    rows = await list_audit_logs(db, tenant_id="t1")
    assert len(rows) == 1
    row = rows[0]
    assert row.action == "tenant_suspended"
    assert row.actor_user_id == actor
    assert row.meta["reason"] == "unpaid invoice"
    assert row.meta["impersonated"] is True
    assert "timestamp" in row.meta
    assert isinstance(row.meta["when"], str)


async def test_list_audit_logs_filters_by_tenant(db):
    log_audit_event(db, None, AuditAction.LOGIN_FAILED, tenant_id="t1")
    log_audit_event(db, None, AuditAction.LOGIN_FAILED, tenant_id="t2")
    await db.commit()

    assert len(await list_audit_logs(db)) == 2
    assert [r.tenant_id for r in await list_audit_logs(db, tenant_id="t2")] == ["t2"]


async def test_audit_entries_are_append_only(db):
    log_audit_event(db, None, AuditAction.LOGOUT)
    await db.commit()
    row = (await db.execute(select(AuditLog))).scalar_one()

    row.action = "tampered"
    with pytest.raises(ValueError):
        await db.commit()
    await db.rollback()
    await db.refresh(row)
    assert row.action == "logout"

    await db.delete(row)
    with pytest.raises(ValueError):
        await db.commit()

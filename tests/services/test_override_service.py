"""Administrative override writes (PeriodOverrideService)."""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from timelock_kernel.domain.lock_policy import LockScope
from timelock_kernel.exceptions import InvalidPeriodKeyError, ValidationError
from timelock_kernel.models.period_override import PeriodOverride
from timelock_kernel.selectors.override_selector import OverrideSelector

ACTOR = uuid4()


def _count(session) -> int:
    return session.execute(select(func.count()).select_from(PeriodOverride)).scalar_one()


class TestSetOverride:
    def test_upsert_keeps_one_row_per_scope_and_month(self, override_service, session, tenant_id):
        group_id = uuid4()
        override_service.set_override(tenant_id, LockScope.GROUP, group_id, "2025-03",
                                      locked=True, actor_id=ACTOR, reason="closed")
        record = override_service.set_override(tenant_id, LockScope.GROUP, group_id,
                                               "2025-03-28", locked=False, actor_id=ACTOR)
        session.commit()

        assert _count(session) == 1
        assert record.locked is False
        assert record.reason is None
        row = session.execute(select(PeriodOverride)).scalar_one()
        assert row.updated_by_id == ACTOR
        assert row.period_key == date(2025, 3, 1)

    def test_tenant_scope_uses_tenant_id(self, override_service, session, tenant_id):
        record = override_service.set_override(tenant_id, LockScope.TENANT, uuid4(), "2025-03",
                                               locked=True, actor_id=ACTOR)
        assert record.scope_id == str(tenant_id)

    def test_non_tenant_scope_requires_scope_id(self, override_service, tenant_id):
        with pytest.raises(ValidationError):
            override_service.set_override(tenant_id, LockScope.GROUP, None, "2025-03",
                                          locked=True, actor_id=ACTOR)

    def test_invalid_period_rejected(self, override_service, tenant_id):
        with pytest.raises(InvalidPeriodKeyError):
            override_service.set_override(tenant_id, LockScope.TENANT, None, "2025/03",
                                          locked=True, actor_id=ACTOR)

    def test_months_are_independent(self, override_service, session, tenant_id):
        override_service.set_override(tenant_id, LockScope.TENANT, None, "2025-03",
                                      locked=True, actor_id=ACTOR)
        override_service.set_override(tenant_id, LockScope.TENANT, None, "2025-04",
                                      locked=True, actor_id=ACTOR)
        session.commit()
        listed = OverrideSelector(session).list_for_scope(tenant_id, LockScope.TENANT, tenant_id)
        assert [r.period_key for r in listed] == [date(2025, 4, 1), date(2025, 3, 1)]


class TestClearOverride:
    def test_clear_removes_row(self, override_service, session, tenant_id):
        employee_id = uuid4()
        override_service.set_override(tenant_id, LockScope.EMPLOYEE, employee_id, "2025-03",
                                      locked=True, actor_id=ACTOR)
        assert override_service.clear_override(tenant_id, LockScope.EMPLOYEE, employee_id,
                                               "2025-03-15") is True
        session.commit()
        assert _count(session) == 0

    def test_clear_missing_returns_false(self, override_service, tenant_id):
        assert override_service.clear_override(tenant_id, LockScope.TENANT, None, "2025-03") is False

    def test_cleared_scope_falls_through(self, override_service, lock_service, org, session):
        employee = org.employee()
        override_service.set_override(org.tenant_id, LockScope.TENANT, None, "2025-03",
                                      locked=True, actor_id=ACTOR, reason="closed")
        override_service.set_override(org.tenant_id, LockScope.EMPLOYEE, employee.id, "2025-03",
                                      locked=False, actor_id=ACTOR)
        session.commit()
        assert lock_service.resolve(org.tenant_id, employee.id, "2025-03").locked is False

        override_service.clear_override(org.tenant_id, LockScope.EMPLOYEE, employee.id, "2025-03")
        session.commit()
        assert lock_service.resolve(org.tenant_id, employee.id, "2025-03").locked is True

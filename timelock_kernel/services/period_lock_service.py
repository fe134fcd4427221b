"""
PeriodLockService -- effective period lock for one employee and month.

Responsibility:
    Binds the pure resolver in ``domain.lock_policy`` to the policy store.
    Supplies a per-scope fetch that is only executed when the resolver
    reaches that scope, so an employee-level answer never touches the
    membership tables.

Architecture position:
    Kernel > Services -- read-only shell around a pure core.  Does not flush
    or commit.

Failure modes:
    - InvalidPeriodKeyError, raised before any query, for a malformed key.

Audit relevance:
    Each resolution logs ``period_lock_resolved`` with the deciding level,
    which is the evidence behind a PERIOD_LOCKED rejection.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from timelock_kernel.domain.lock_policy import (
    EffectiveLock,
    LockScope,
    OverrideRecord,
    resolve_effective_lock,
)
from timelock_kernel.domain.period_key import PeriodLike, normalize_period_key
from timelock_kernel.logging_config import get_logger
from timelock_kernel.selectors.membership_selector import MembershipSelector
from timelock_kernel.selectors.override_selector import OverrideSelector

logger = get_logger("services.period_lock")


class PeriodLockService:
    """
    Resolves the effective lock.

    Contract:
        ``resolve(tenant_id, employee_id, period)`` returns an
        ``EffectiveLock`` and never raises for missing memberships or
        missing overrides.

    Non-goals:
        - Does NOT apply the administrator bypass; that is caller policy.
        - Does NOT cache.  Lock changes are visible on the next call.
    """

    def __init__(self, session: Session):
        self._overrides = OverrideSelector(session)
        self._memberships = MembershipSelector(session)

    def resolve(
        self,
        tenant_id: UUID,
        employee_id: UUID,
        period: PeriodLike,
    ) -> EffectiveLock:
        period_key = normalize_period_key(period)
        group_ids: tuple[UUID, ...] | None = None

        def groups() -> tuple[UUID, ...]:
            nonlocal group_ids
            if group_ids is None:
                group_ids = self._memberships.groups_of(tenant_id, employee_id)
            return group_ids

        def fetch(scope: LockScope) -> Sequence[OverrideRecord]:
            if scope is LockScope.EMPLOYEE:
                record = self._overrides.get_override(
                    tenant_id, scope, employee_id, period_key
                )
                return (record,) if record is not None else ()
            if scope is LockScope.GROUP:
                return self._overrides.find_overrides(
                    tenant_id, scope, groups(), period_key
                )
            if scope is LockScope.ENVIRONMENT:
                environment_ids = self._memberships.environments_of(tenant_id, groups())
                return self._overrides.find_overrides(
                    tenant_id, scope, environment_ids, period_key
                )
            record = self._overrides.get_override(tenant_id, scope, tenant_id, period_key)
            return (record,) if record is not None else ()

        lock = resolve_effective_lock(fetch)

        logger.info(
            "period_lock_resolved",
            extra={
                "tenant_id": str(tenant_id),
                "employee_id": str(employee_id),
                "period_key": period_key.isoformat(),
                "locked": lock.locked,
                "lock_level": lock.level.value,
            },
        )
        return lock

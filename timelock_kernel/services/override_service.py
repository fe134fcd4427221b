"""
PeriodOverrideService -- administrative writes to the policy store.

Responsibility:
    Declares (upsert) and withdraws period lock overrides at any of the four
    scopes.  Reads belong to ``OverrideSelector``.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes only; the caller commits.

Invariants enforced:
    - One row per (tenant, scope, scope_id, period_key): ``set_override``
      updates the existing row instead of inserting a second one.
    - Period keys are normalized to the first day of the month before any
      read or write.
    - Tenant-scope overrides always use the tenant id as scope_id.

Failure modes:
    - InvalidPeriodKeyError for an unparseable period key.
    - ValidationError when a non-tenant override has no scope_id.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from timelock_kernel.domain.clock import Clock, SystemClock
from timelock_kernel.domain.lock_policy import LockScope, OverrideRecord
from timelock_kernel.domain.period_key import PeriodLike, normalize_period_key
from timelock_kernel.exceptions import ValidationError
from timelock_kernel.logging_config import get_logger
from timelock_kernel.models.period_override import PeriodOverride
from timelock_kernel.selectors.override_selector import to_override_record
from timelock_kernel.services.base import BaseService

logger = get_logger("services.override")


class PeriodOverrideService(BaseService):
    """Upserts and clears override records."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def set_override(
        self,
        tenant_id: UUID,
        scope: LockScope,
        scope_id: UUID | None,
        period: PeriodLike,
        locked: bool,
        actor_id: UUID,
        reason: str | None = None,
    ) -> OverrideRecord:
        """
        Declare a scope's lock decision for one month.

        ``scope_id`` is ignored for ``LockScope.TENANT``.
        """
        period_key = normalize_period_key(period)
        resolved_scope_id = tenant_id if scope is LockScope.TENANT else scope_id
        if resolved_scope_id is None:
            raise ValidationError(f"scope_id is required for {scope.value} overrides")

        row = self._find(tenant_id, scope, resolved_scope_id, period_key)
        now = self._clock.now()
        if row is None:
            row = PeriodOverride(
                tenant_id=tenant_id,
                scope=scope.value,
                scope_id=resolved_scope_id,
                period_key=period_key,
                locked=locked,
                reason=reason,
                created_at=now,
                updated_at=now,
                created_by_id=actor_id,
            )
            self.session.add(row)
            action = "created"
        else:
            row.locked = locked
            row.reason = reason
            row.updated_at = now
            row.updated_by_id = actor_id
            action = "updated"
        self.session.flush()

        logger.info(
            "period_override_set",
            extra={
                "tenant_id": str(tenant_id),
                "scope": scope.value,
                "scope_id": str(resolved_scope_id),
                "period_key": period_key.isoformat(),
                "locked": locked,
                "change": action,
            },
        )
        return to_override_record(row)

    def clear_override(
        self,
        tenant_id: UUID,
        scope: LockScope,
        scope_id: UUID | None,
        period: PeriodLike,
    ) -> bool:
        """Remove an override; returns False when none existed."""
        period_key = normalize_period_key(period)
        resolved_scope_id = tenant_id if scope is LockScope.TENANT else scope_id
        if resolved_scope_id is None:
            return False

        row = self._find(tenant_id, scope, resolved_scope_id, period_key)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()

        logger.info(
            "period_override_cleared",
            extra={
                "tenant_id": str(tenant_id),
                "scope": scope.value,
                "scope_id": str(resolved_scope_id),
                "period_key": period_key.isoformat(),
            },
        )
        return True

    def _find(self, tenant_id, scope, scope_id, period_key):
        return self.session.execute(
            select(PeriodOverride).where(
                PeriodOverride.tenant_id == tenant_id,
                PeriodOverride.scope == scope.value,
                PeriodOverride.scope_id == scope_id,
                PeriodOverride.period_key == period_key,
            )
        ).scalar_one_or_none()

"""
OverrideSelector -- read side of the policy store.

Returns ``OverrideRecord`` DTOs from the single ``period_overrides`` table.
Multi-id lookups (group and environment scopes) come back ordered by row
creation time and then scope id, which fixes which locked record supplies the
``reason`` under the any-locked-wins rule.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from uuid import UUID

from sqlalchemy import select

from timelock_kernel.domain.lock_policy import LockScope, OverrideRecord
from timelock_kernel.models.period_override import PeriodOverride
from timelock_kernel.selectors.base import BaseSelector


def to_override_record(row: PeriodOverride) -> OverrideRecord:
    return OverrideRecord(
        scope=LockScope(row.scope),
        scope_id=str(row.scope_id),
        period_key=row.period_key,
        locked=bool(row.locked),
        reason=row.reason,
    )


class OverrideSelector(BaseSelector):
    """Read-only access to override records."""

    def get_override(
        self,
        tenant_id: UUID,
        scope: LockScope,
        scope_id: UUID,
        period_key: date,
    ) -> OverrideRecord | None:
        row = self.session.execute(
            select(PeriodOverride).where(
                PeriodOverride.tenant_id == tenant_id,
                PeriodOverride.scope == scope.value,
                PeriodOverride.scope_id == scope_id,
                PeriodOverride.period_key == period_key,
            )
        ).scalar_one_or_none()
        return to_override_record(row) if row is not None else None

    def find_overrides(
        self,
        tenant_id: UUID,
        scope: LockScope,
        scope_ids: Sequence[UUID],
        period_key: date,
    ) -> tuple[OverrideRecord, ...]:
        if not scope_ids:
            return ()
        rows = self.session.execute(
            select(PeriodOverride)
            .where(
                PeriodOverride.tenant_id == tenant_id,
                PeriodOverride.scope == scope.value,
                PeriodOverride.scope_id.in_(list(scope_ids)),
                PeriodOverride.period_key == period_key,
            )
            .order_by(PeriodOverride.created_at, PeriodOverride.scope_id)
        ).scalars()
        return tuple(to_override_record(row) for row in rows)

    def list_for_scope(
        self,
        tenant_id: UUID,
        scope: LockScope,
        scope_id: UUID,
    ) -> tuple[OverrideRecord, ...]:
        """All overrides of one scope id, newest period first."""
        rows = self.session.execute(
            select(PeriodOverride)
            .where(
                PeriodOverride.tenant_id == tenant_id,
                PeriodOverride.scope == scope.value,
                PeriodOverride.scope_id == scope_id,
            )
            .order_by(PeriodOverride.period_key.desc())
        ).scalars()
        return tuple(to_override_record(row) for row in rows)

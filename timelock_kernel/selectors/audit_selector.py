"""
AuditSelector -- read side of the audit ledger.

The reconciliation workflow reads the ledger in two shapes: one event by id,
and "all events of action X against any of these resources".  Both are
tenant-scoped so a guessed id from another tenant never resolves.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select

from timelock_kernel.domain.reconciliation import (
    AcknowledgmentRecord,
    ManagerEditRecord,
    accepted_flag,
)
from timelock_kernel.models.audit_event import (
    AuditAction,
    AuditEvent,
    AuditResourceType,
)
from timelock_kernel.selectors.base import BaseSelector


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; the ledger is always written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_manager_edit(event: AuditEvent) -> ManagerEditRecord:
    new_values = event.new_values or {}
    return ManagerEditRecord(
        audit_id=event.id,
        entry_id=event.resource_id,
        actor_id=event.actor_id,
        created_at=_as_utc(event.created_at),
        justification=new_values.get("justification") or "",
    )


def to_acknowledgment(event: AuditEvent) -> AcknowledgmentRecord:
    new_values = event.new_values or {}
    return AcknowledgmentRecord(
        audit_id=event.id,
        edit_audit_id=event.resource_id,
        actor_id=event.actor_id,
        created_at=_as_utc(event.created_at),
        accepted=accepted_flag(new_values),
        note=new_values.get("note"),
    )


class AuditSelector(BaseSelector):
    """Read-only ledger queries."""

    def get(self, tenant_id: UUID, audit_id: UUID) -> AuditEvent | None:
        return self.session.execute(
            select(AuditEvent).where(
                AuditEvent.tenant_id == tenant_id,
                AuditEvent.id == audit_id,
            )
        ).scalar_one_or_none()

    def query_by_resource_ids(
        self,
        tenant_id: UUID,
        action: AuditAction,
        resource_type: AuditResourceType,
        resource_ids: Sequence[UUID],
        newest_first: bool = False,
    ) -> list[AuditEvent]:
        if not resource_ids:
            return []
        order = AuditEvent.created_at.desc() if newest_first else AuditEvent.created_at
        return list(
            self.session.execute(
                select(AuditEvent)
                .where(
                    AuditEvent.tenant_id == tenant_id,
                    AuditEvent.action == action.value,
                    AuditEvent.resource_type == resource_type.value,
                    AuditEvent.resource_id.in_(list(resource_ids)),
                )
                .order_by(order, AuditEvent.id)
            ).scalars()
        )

    def manager_edits_for_entries(
        self,
        tenant_id: UUID,
        entry_ids: Sequence[UUID],
        newest_first: bool = False,
    ) -> list[ManagerEditRecord]:
        events = self.query_by_resource_ids(
            tenant_id,
            AuditAction.MANAGER_EDIT_CLOSED_PERIOD,
            AuditResourceType.TIMESHEET_ENTRY,
            entry_ids,
            newest_first=newest_first,
        )
        return [to_manager_edit(e) for e in events]

    def acknowledgments_for_edits(
        self,
        tenant_id: UUID,
        edit_ids: Sequence[UUID],
    ) -> list[AcknowledgmentRecord]:
        events = self.query_by_resource_ids(
            tenant_id,
            AuditAction.EMPLOYEE_ACKNOWLEDGE_ADJUSTMENT,
            AuditResourceType.AUDIT_LOG,
            edit_ids,
        )
        return [to_acknowledgment(e) for e in events]

"""
ReconciliationSelector -- the two read contracts of the reconciliation workflow.

Responsibility:
    - ``pending_acknowledgments(employee_id)``: manager edits of closed
      periods on the employee's entries that the employee has not yet
      acknowledged, newest first, enriched for display.
    - ``reconciliation_status(timesheet_id)``: counters for one timesheet.

Architecture position:
    Kernel > Selectors.  Reads timesheets, entries, profiles and the audit
    ledger; the state itself comes from ``domain.reconciliation``.

Invariants enforced:
    - No reconciliation state is read from a stored column; everything is
      recomputed from the ledger on each call.
    - ``pending_ack == with_justification - acknowledged`` for every status.
    - Every empty stage of the pending query (no timesheets, no entries, no
      edits, nothing pending) returns an empty tuple immediately.

Failure modes:
    - TimesheetNotFoundError from ``reconciliation_status`` for an unknown id.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from timelock_config.schema import TimeLockConfig
from timelock_kernel.domain.reconciliation import (
    ReconciliationStatus,
    derive_states,
    pending_edits,
)
from timelock_kernel.exceptions import TimesheetNotFoundError
from timelock_kernel.logging_config import get_logger
from timelock_kernel.models.organization import UserProfile
from timelock_kernel.models.timesheet import Employee, Timesheet, TimesheetEntry
from timelock_kernel.selectors.audit_selector import AuditSelector
from timelock_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.reconciliation")


@dataclass(frozen=True)
class PendingAcknowledgment:
    """One manager edit awaiting the employee's acknowledgment."""

    audit_id: UUID
    created_at: datetime
    justification: str
    manager_name: str
    declaration_url: str
    entry_id: UUID | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "auditId": str(self.audit_id),
            "createdAt": self.created_at.isoformat(),
            "justification": self.justification,
            "managerName": self.manager_name,
            "declarationUrl": self.declaration_url,
        }


class ReconciliationSelector(BaseSelector):
    """Derives reconciliation views from the audit ledger."""

    def __init__(self, session: Session, config: TimeLockConfig | None = None):
        super().__init__(session)
        self._config = config or TimeLockConfig()
        self._audit = AuditSelector(session)

    def pending_acknowledgments(self, employee_id: UUID) -> tuple[PendingAcknowledgment, ...]:
        employee = self.session.get(Employee, employee_id)
        if employee is None:
            return ()
        tenant_id = employee.tenant_id

        timesheet_ids = list(
            self.session.execute(
                select(Timesheet.id).where(
                    Timesheet.tenant_id == tenant_id,
                    Timesheet.employee_id == employee_id,
                )
            ).scalars()
        )
        if not timesheet_ids:
            return ()

        entry_ids = self._entry_ids(tenant_id, timesheet_ids)
        if not entry_ids:
            return ()

        edits = self._audit.manager_edits_for_entries(tenant_id, entry_ids, newest_first=True)
        if not edits:
            return ()

        acks = self._audit.acknowledgments_for_edits(tenant_id, [e.audit_id for e in edits])
        pending = pending_edits(edits, acks)
        if not pending:
            return ()

        names = self._display_names(e.actor_id for e in pending)
        items = tuple(
            PendingAcknowledgment(
                audit_id=edit.audit_id,
                created_at=edit.created_at,
                justification=edit.justification,
                manager_name=names.get(edit.actor_id) or self._config.default_manager_name,
                declaration_url=self._config.declaration_url(edit.audit_id),
                entry_id=edit.entry_id,
            )
            for edit in pending
        )
        logger.debug(
            "pending_acknowledgments_derived",
            extra={
                "employee_id": str(employee_id),
                "edit_count": len(edits),
                "pending_count": len(items),
            },
        )
        return items

    def reconciliation_status(self, timesheet_id: UUID) -> ReconciliationStatus:
        timesheet = self.session.get(Timesheet, timesheet_id)
        if timesheet is None:
            raise TimesheetNotFoundError(str(timesheet_id))
        tenant_id = timesheet.tenant_id

        entry_ids = self._entry_ids(tenant_id, [timesheet_id])
        if not entry_ids:
            return ReconciliationStatus.empty()

        edits = self._audit.manager_edits_for_entries(tenant_id, entry_ids)
        if not edits:
            return ReconciliationStatus.empty(total=len(entry_ids))

        acks = self._audit.acknowledgments_for_edits(tenant_id, [e.audit_id for e in edits])
        return ReconciliationStatus.from_states(len(entry_ids), derive_states(edits, acks))

    def _entry_ids(self, tenant_id: UUID, timesheet_ids: list[UUID]) -> list[UUID]:
        return list(
            self.session.execute(
                select(TimesheetEntry.id).where(
                    TimesheetEntry.tenant_id == tenant_id,
                    TimesheetEntry.timesheet_id.in_(timesheet_ids),
                )
            ).scalars()
        )

    def _display_names(self, user_ids: Iterable[UUID]) -> dict[UUID, str | None]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        rows = self.session.execute(
            select(UserProfile.id, UserProfile.display_name).where(UserProfile.id.in_(ids))
        ).all()
        return {row.id: row.display_name for row in rows}

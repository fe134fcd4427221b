"""
ReconciliationService -- employee side of the manager-edit workflow.

Responsibility:
    Records an employee's acknowledgment (accept or contest) of a manager
    edit, and serves the reconciliation reads behind the authorization
    checks that the raw selector does not apply.

Architecture position:
    Kernel > Services -- imperative shell, owns transaction boundaries for
    the acknowledgment append.  Derivation lives in
    ``domain.reconciliation``; reads in ``ReconciliationSelector``.

Invariants enforced:
    - Only a ``manager_edit_closed_period`` event on a timesheet entry can
      be acknowledged.
    - Only the employee owning the edited timesheet (or an administrator of
      the tenant) can acknowledge it.
    - Acknowledgments are appended, never updated.  A second acknowledgment
      of the same edit is legal; the most recent one decides the state.

Failure modes:
    - Expected outcomes are statuses on the result objects.
    - A failing ledger append rolls back and re-raises: the acknowledgment
      IS the ledger row, there is nothing to degrade to.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from timelock_config.schema import TimeLockConfig
from timelock_kernel.domain.clock import Clock, SystemClock
from timelock_kernel.domain.dtos import Actor
from timelock_kernel.domain.reconciliation import (
    AcknowledgmentState,
    ReconciliationStatus,
)
from timelock_kernel.exceptions import AuditEventNotFoundError, TimesheetNotFoundError
from timelock_kernel.logging_config import LogContext, get_logger
from timelock_kernel.models.audit_event import AuditAction, AuditEvent, AuditResourceType
from timelock_kernel.models.timesheet import Employee, Timesheet, TimesheetEntry
from timelock_kernel.selectors.reconciliation_selector import (
    PendingAcknowledgment,
    ReconciliationSelector,
)
from timelock_kernel.services.auditor_service import AuditorService
from timelock_kernel.services.authorization import AccessDecision, AuthorizationGate

logger = get_logger("services.reconciliation")


class AcknowledgmentStatus(str, Enum):
    ACKNOWLEDGED = "acknowledged"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_AUDIT = "invalid_audit"
    INVALID_REQUEST = "invalid_request"


@dataclass(frozen=True)
class AcknowledgmentResult:
    """Result of ``acknowledge_adjustment``."""

    status: AcknowledgmentStatus
    edit_audit_id: UUID
    audit_id: UUID | None = None
    state: AcknowledgmentState | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == AcknowledgmentStatus.ACKNOWLEDGED


class StatusQueryOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class StatusQueryResult:
    outcome: StatusQueryOutcome
    reconciliation: ReconciliationStatus | None = None

    @property
    def is_success(self) -> bool:
        return self.outcome == StatusQueryOutcome.OK


class ReconciliationService:
    """
    Acknowledgments and gated reconciliation reads.

    Contract:
        No public method raises for an expected outcome.

    Non-goals:
        - Does NOT notify managers of acknowledgments.
        - Does NOT let anyone withdraw an acknowledgment; a later one
          supersedes it.
    """

    def __init__(
        self,
        session: Session,
        config: TimeLockConfig | None = None,
        clock: Clock | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._config = config or TimeLockConfig()
        self._clock = clock or SystemClock()
        self._auditor = auditor or AuditorService(session, self._clock)
        self._gate = AuthorizationGate(session)
        self._selector = ReconciliationSelector(session, self._config)

    def acknowledge_adjustment(
        self,
        actor: Actor,
        audit_id: UUID,
        accepted: bool = True,
        note: str | None = None,
    ) -> AcknowledgmentResult:
        """
        Accept or contest one manager edit.

        Postconditions:
            - ACKNOWLEDGED: one ``employee_acknowledge_adjustment`` event
              referencing ``audit_id`` is committed.
            - Any other status: nothing was written.

        Raises:
            Exception: Re-raises any unexpected exception after rollback.
        """
        with LogContext.bind(
            correlation_id=str(uuid4()),
            tenant_id=str(actor.tenant_id),
            actor_id=str(actor.user_id),
            audit_id=str(audit_id),
        ):
            try:
                result = self._do_acknowledge(actor, audit_id, accepted, note)
                if result.is_success:
                    self._session.commit()
                else:
                    self._session.rollback()
            except Exception:
                self._session.rollback()
                logger.error("acknowledgment_failed", exc_info=True)
                raise

            logger.info(
                "acknowledgment_completed",
                extra={
                    "status": result.status.value,
                    "accepted": accepted,
                    "state": result.state.value if result.state else None,
                },
            )
            return result

    def _do_acknowledge(
        self,
        actor: Actor,
        audit_id: UUID,
        accepted: bool,
        note: str | None,
    ) -> AcknowledgmentResult:
        if not isinstance(accepted, bool):
            return AcknowledgmentResult(
                status=AcknowledgmentStatus.INVALID_REQUEST,
                edit_audit_id=audit_id,
                message="accepted must be a boolean",
            )
        if note is not None and len(note) > self._config.max_ack_note_length:
            return AcknowledgmentResult(
                status=AcknowledgmentStatus.INVALID_REQUEST,
                edit_audit_id=audit_id,
                message=f"Note exceeds {self._config.max_ack_note_length} characters",
            )

        try:
            edit = self._auditor.get(actor.tenant_id, audit_id)
        except AuditEventNotFoundError as exc:
            return AcknowledgmentResult(
                status=AcknowledgmentStatus.NOT_FOUND,
                edit_audit_id=audit_id,
                message=str(exc),
            )

        if not edit.is_manager_edit:
            return AcknowledgmentResult(
                status=AcknowledgmentStatus.INVALID_AUDIT,
                edit_audit_id=audit_id,
                message=f"Audit event {audit_id} is not a manager edit",
            )

        timesheet = self._timesheet_of(edit)
        if timesheet is None:
            return AcknowledgmentResult(
                status=AcknowledgmentStatus.NOT_FOUND,
                edit_audit_id=audit_id,
                message="Edited timesheet no longer exists",
            )

        if not actor.is_admin and not self._gate.owns(actor, timesheet):
            return AcknowledgmentResult(
                status=AcknowledgmentStatus.FORBIDDEN,
                edit_audit_id=audit_id,
                message="Only the employee concerned can acknowledge this edit",
            )

        new_values: dict[str, object] = {
            "accepted": accepted,
            "timesheet_id": str(timesheet.id),
        }
        if note:
            new_values["note"] = note
        ack = self._auditor.append(
            tenant_id=actor.tenant_id,
            actor_id=actor.user_id,
            action=AuditAction.EMPLOYEE_ACKNOWLEDGE_ADJUSTMENT,
            resource_type=AuditResourceType.AUDIT_LOG,
            resource_id=audit_id,
            new_values=new_values,
        )
        return AcknowledgmentResult(
            status=AcknowledgmentStatus.ACKNOWLEDGED,
            edit_audit_id=audit_id,
            audit_id=ack.id,
            state=(
                AcknowledgmentState.ACKNOWLEDGED
                if accepted
                else AcknowledgmentState.CONTESTED
            ),
        )

    def _timesheet_of(self, edit: AuditEvent) -> Timesheet | None:
        entry = (
            self._session.get(TimesheetEntry, edit.resource_id)
            if edit.resource_id is not None
            else None
        )
        if entry is not None:
            timesheet_id = entry.timesheet_id
        else:
            # Deleted entries: the edit event carries its timesheet
            raw = (edit.new_values or {}).get("timesheet_id")
            if not raw:
                return None
            timesheet_id = UUID(raw)
        timesheet = self._session.get(Timesheet, timesheet_id)
        if timesheet is None or timesheet.tenant_id != edit.tenant_id:
            return None
        return timesheet

    def status_for(self, actor: Actor, timesheet_id: UUID) -> StatusQueryResult:
        """Reconciliation counters, for admins, delegated managers or the owner."""
        timesheet = self._session.get(Timesheet, timesheet_id)
        if timesheet is None or timesheet.tenant_id != actor.tenant_id:
            return StatusQueryResult(outcome=StatusQueryOutcome.NOT_FOUND)
        if (
            self._gate.can_act(actor, timesheet) != AccessDecision.ALLOW
            and not self._gate.owns(actor, timesheet)
        ):
            return StatusQueryResult(outcome=StatusQueryOutcome.FORBIDDEN)
        try:
            status = self._selector.reconciliation_status(timesheet_id)
        except TimesheetNotFoundError:
            return StatusQueryResult(outcome=StatusQueryOutcome.NOT_FOUND)
        return StatusQueryResult(outcome=StatusQueryOutcome.OK, reconciliation=status)

    def pending_for(self, actor: Actor) -> tuple[PendingAcknowledgment, ...]:
        """Pending acknowledgments of the actor's own employee record."""
        employee_id = self._session.execute(
            select(Employee.id).where(
                Employee.tenant_id == actor.tenant_id,
                Employee.user_id == actor.user_id,
            )
        ).scalars().first()
        if employee_id is None:
            return ()
        return self._selector.pending_acknowledgments(employee_id)

"""
TimesheetEditService -- guarded writes to timesheet entries.

Responsibility:
    The single entry point for creating, updating and deleting timesheet
    entries.  Applies the authorization gate, resolves the period lock,
    enforces the justification rule for edits to locked periods, performs
    the write, tags it in the audit ledger and notifies the employee.

Architecture position:
    Kernel > Services -- imperative shell, owns transaction boundaries.

Write flow:
    check_and_write(actor, write, justification)
      1. Load the timesheet (NOT_FOUND outside the actor's tenant)
      2. Authorization gate (FORBIDDEN) -- before any lock state is read
      3. Load / validate the target entry (NOT_FOUND, INVALID_REQUEST)
      4. Resolve the effective lock of the timesheet's month
      5. Locked: owners get PERIOD_LOCKED; managers need a justification
         (JUSTIFICATION_REQUIRED); administrators pass
      6. Apply the write and commit
      7. Append the audit event and commit (failure degrades, never raises)
      8. Notify the employee of a manager edit (failure degrades, never raises)

Invariants enforced:
    - A write into a locked period by a non-administrator is only applied
      together with a justification of at least ``min_justification_length``
      non-blank characters.
    - Every applied write into a locked period is followed by exactly one
      ``manager_edit_closed_period`` audit attempt.
    - An unauthorized actor never causes a lock resolution.

Failure modes:
    - Expected outcomes are statuses on ``EntryWriteResult``.
    - Unexpected errors during the primary write roll back and re-raise.
    - Audit or notification failures are logged at ERROR with
      ``degraded=True`` and reported as ``SideEffectStatus.FAILED``.

Audit relevance:
    Start, completion and every degraded side effect are logged with the
    correlation id, tenant, actor, timesheet and entry bound to the context.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from timelock_config.schema import TimeLockConfig
from timelock_kernel.domain.clock import Clock, SystemClock
from timelock_kernel.domain.dtos import Actor, EntryWrite, WriteOperation
from timelock_kernel.domain.lock_policy import EffectiveLock
from timelock_kernel.domain.period_key import format_period_key
from timelock_kernel.exceptions import EntryNotFoundError, ValidationError
from timelock_kernel.logging_config import LogContext, get_logger
from timelock_kernel.models.audit_event import AuditAction, AuditResourceType
from timelock_kernel.models.organization import UserProfile
from timelock_kernel.models.timesheet import Employee, Timesheet, TimesheetEntry
from timelock_kernel.services.auditor_service import AuditorService
from timelock_kernel.services.authorization import AccessDecision, AuthorizationGate
from timelock_kernel.services.notification_gateway import (
    LoggingNotificationGateway,
    NotificationGateway,
)
from timelock_kernel.services.period_lock_service import PeriodLockService

logger = get_logger("services.timesheet_edit")

_NULLABLE_FIELDS = frozenset({"start_time", "end_time", "note"})

_PLAIN_ACTIONS = {
    WriteOperation.CREATE: AuditAction.CREATE,
    WriteOperation.UPDATE: AuditAction.UPDATE,
    WriteOperation.DELETE: AuditAction.DELETE,
}


class EntryWriteStatus(str, Enum):
    """Outcome of a guarded write."""

    WRITTEN = "written"
    PERIOD_LOCKED = "period_locked"
    JUSTIFICATION_REQUIRED = "justification_required"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"


class SideEffectStatus(str, Enum):
    """Outcome of a best-effort step that follows the primary write."""

    RECORDED = "recorded"
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class EntryWriteResult:
    """Result of ``check_and_write``."""

    status: EntryWriteStatus
    entry_id: UUID | None = None
    lock: EffectiveLock | None = None
    manager_edit: bool = False
    audit_id: UUID | None = None
    audit: SideEffectStatus = SideEffectStatus.SKIPPED
    notification: SideEffectStatus = SideEffectStatus.SKIPPED
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == EntryWriteStatus.WRITTEN

    @property
    def degraded(self) -> bool:
        return SideEffectStatus.FAILED in (self.audit, self.notification)


def _entry_snapshot(entry: TimesheetEntry) -> dict[str, Any]:
    return {
        "entry_date": entry.entry_date.isoformat(),
        "entry_type": entry.entry_type,
        "start_time": entry.start_time.strftime("%H:%M") if entry.start_time else None,
        "end_time": entry.end_time.strftime("%H:%M") if entry.end_time else None,
        "note": entry.note,
    }


class TimesheetEditService:
    """
    Guarded entry writes with lock enforcement and manager-edit tagging.

    Contract:
        ``check_and_write`` never raises for an expected outcome; it returns
        an ``EntryWriteResult`` whose status says what happened.

    Guarantees:
        - The primary write is committed before any side effect starts, so
          a failing ledger or notifier can never lose the user's change.
        - Rejected requests leave the database untouched.

    Non-goals:
        - Does NOT retry failed audit appends or notifications.
        - Does NOT validate business rules of the entry content beyond
          required fields and the timesheet's date range.
    """

    def __init__(
        self,
        session: Session,
        config: TimeLockConfig | None = None,
        clock: Clock | None = None,
        notifier: NotificationGateway | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._config = config or TimeLockConfig()
        self._clock = clock or SystemClock()
        self._notifier = notifier or LoggingNotificationGateway()
        self._auditor = auditor or AuditorService(session, self._clock)
        self._gate = AuthorizationGate(session)
        self._locks = PeriodLockService(session)

    def check_and_write(
        self,
        actor: Actor,
        write: EntryWrite,
        justification: str | None = None,
    ) -> EntryWriteResult:
        """
        Apply ``write`` on behalf of ``actor`` if policy allows it.

        Postconditions:
            - WRITTEN: the entry change is committed; ``audit`` and
              ``notification`` report the side effects.
            - Any other status: nothing was written.

        Raises:
            Exception: Re-raises any unexpected exception after rollback.
        """
        correlation_id = str(uuid4())
        with LogContext.bind(
            correlation_id=correlation_id,
            tenant_id=str(actor.tenant_id),
            actor_id=str(actor.user_id),
            timesheet_id=str(write.timesheet_id),
            entry_id=str(write.entry_id) if write.entry_id else None,
        ):
            logger.info(
                "entry_write_started",
                extra={
                    "operation": write.operation.value,
                    "role": actor.role.value,
                    "has_justification": bool(justification and justification.strip()),
                },
            )
            t0 = time.monotonic()

            try:
                result = self._do_check_and_write(actor, write, justification)
            except Exception:
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                self._session.rollback()
                logger.error(
                    "entry_write_failed",
                    extra={"duration_ms": duration_ms},
                    exc_info=True,
                )
                raise

            if not result.is_success:
                self._session.rollback()

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(
                "entry_write_completed",
                extra={
                    "status": result.status.value,
                    "duration_ms": duration_ms,
                    "manager_edit": result.manager_edit,
                    "audit": result.audit.value,
                    "notification": result.notification.value,
                    "lock_level": result.lock.level.value if result.lock else None,
                },
            )
            return result

    def _do_check_and_write(
        self,
        actor: Actor,
        write: EntryWrite,
        justification: str | None,
    ) -> EntryWriteResult:
        """Policy checks and the primary write (commits on success)."""
        timesheet = self._session.get(Timesheet, write.timesheet_id)
        if timesheet is None or timesheet.tenant_id != actor.tenant_id:
            return EntryWriteResult(
                status=EntryWriteStatus.NOT_FOUND,
                message=f"Timesheet {write.timesheet_id} not found",
            )

        # Gate first: unauthorized actors never see lock state
        has_admin_access = self._gate.can_act(actor, timesheet) == AccessDecision.ALLOW
        if not has_admin_access and not self._gate.owns(actor, timesheet):
            return EntryWriteResult(
                status=EntryWriteStatus.FORBIDDEN,
                message="Actor may not modify this timesheet",
            )

        entry: TimesheetEntry | None = None
        if write.operation is not WriteOperation.CREATE:
            if write.entry_id is None:
                return EntryWriteResult(
                    status=EntryWriteStatus.INVALID_REQUEST,
                    message=f"entry_id is required for {write.operation.value}",
                )
            try:
                entry = self._load_entry(write.entry_id, timesheet)
            except EntryNotFoundError as exc:
                return EntryWriteResult(
                    status=EntryWriteStatus.NOT_FOUND,
                    entry_id=write.entry_id,
                    message=str(exc),
                )

        problem = self._validate_fields(write, timesheet)
        if problem is not None:
            return EntryWriteResult(
                status=EntryWriteStatus.INVALID_REQUEST,
                entry_id=write.entry_id,
                message=problem,
            )

        try:
            lock = self._locks.resolve(
                timesheet.tenant_id, timesheet.employee_id, timesheet.period_start
            )
        except ValidationError as exc:
            return EntryWriteResult(
                status=EntryWriteStatus.INVALID_REQUEST,
                entry_id=write.entry_id,
                message=str(exc),
            )

        reason_text: str | None = None
        if lock.locked:
            rejection = self._check_locked_write(actor, has_admin_access, lock, justification)
            if rejection is not None:
                return rejection
            reason_text = (justification or "").strip()

        old_values, new_values, entry_id = self._apply(write, timesheet, entry)
        # Primary write is durable before any side effect runs
        self._session.commit()

        manager_edit = reason_text is not None
        audit_status, audit_id = self._record_audit(
            actor, write.operation, entry_id, old_values, new_values,
            timesheet, lock, reason_text,
        )

        notification_status = SideEffectStatus.SKIPPED
        if manager_edit:
            notification_status = self._notify_employee(
                actor, timesheet, reason_text or "", audit_id
            )

        return EntryWriteResult(
            status=EntryWriteStatus.WRITTEN,
            entry_id=entry_id,
            lock=lock,
            manager_edit=manager_edit,
            audit_id=audit_id,
            audit=audit_status,
            notification=notification_status,
        )

    def _check_locked_write(
        self,
        actor: Actor,
        has_admin_access: bool,
        lock: EffectiveLock,
        justification: str | None,
    ) -> EntryWriteResult | None:
        """None when the write may proceed into the locked period."""
        if not has_admin_access:
            return EntryWriteResult(
                status=EntryWriteStatus.PERIOD_LOCKED,
                lock=lock,
                message=lock.reason or f"Period locked at {lock.level.value} level",
            )

        raw = justification or ""
        if len(raw) > self._config.max_justification_length:
            return EntryWriteResult(
                status=EntryWriteStatus.INVALID_REQUEST,
                lock=lock,
                message=(
                    "Justification exceeds "
                    f"{self._config.max_justification_length} characters"
                ),
            )
        if actor.is_admin:
            return None
        text = raw.strip()
        if len(text) < self._config.min_justification_length:
            return EntryWriteResult(
                status=EntryWriteStatus.JUSTIFICATION_REQUIRED,
                lock=lock,
                message=(
                    "A justification of at least "
                    f"{self._config.min_justification_length} characters is "
                    "required to edit a locked period"
                ),
            )
        return None

    def _validate_fields(self, write: EntryWrite, timesheet: Timesheet) -> str | None:
        fields = write.fields
        if fields.note is not None and len(fields.note) > self._config.max_entry_note_length:
            return f"note exceeds {self._config.max_entry_note_length} characters"
        if write.operation is WriteOperation.CREATE:
            if fields.entry_date is None or fields.entry_type is None:
                return "entry_date and entry_type are required to create an entry"
            if fields.cleared:
                return "cleared fields are not allowed on create"
        if write.operation is WriteOperation.UPDATE:
            invalid = set(fields.cleared) - _NULLABLE_FIELDS
            if invalid:
                return f"Fields cannot be cleared: {', '.join(sorted(invalid))}"
        if write.operation is not WriteOperation.DELETE and fields.entry_date is not None:
            if not self._within(fields.entry_date, timesheet):
                return (
                    f"entry_date {fields.entry_date.isoformat()} is outside the "
                    "timesheet period"
                )
        return None

    def _load_entry(self, entry_id: UUID, timesheet: Timesheet) -> TimesheetEntry:
        entry = self._session.get(TimesheetEntry, entry_id)
        if entry is None or entry.timesheet_id != timesheet.id:
            raise EntryNotFoundError(str(entry_id), str(timesheet.id))
        return entry

    @staticmethod
    def _within(day: date, timesheet: Timesheet) -> bool:
        return timesheet.period_start <= day <= timesheet.period_end

    def _apply(
        self,
        write: EntryWrite,
        timesheet: Timesheet,
        entry: TimesheetEntry | None,
    ) -> tuple[dict[str, Any] | None, dict[str, Any], UUID]:
        """Perform the write and flush; returns (old, new, entry_id)."""
        fields = write.fields
        if write.operation is WriteOperation.CREATE:
            entry = TimesheetEntry(
                tenant_id=timesheet.tenant_id,
                timesheet_id=timesheet.id,
                entry_date=fields.entry_date,
                entry_type=fields.entry_type.value,
                start_time=fields.start_time,
                end_time=fields.end_time,
                note=fields.note,
                created_at=self._clock.now(),
            )
            self._session.add(entry)
            self._session.flush()
            return None, _entry_snapshot(entry), entry.id

        assert entry is not None
        old_values = _entry_snapshot(entry)
        if write.operation is WriteOperation.DELETE:
            entry_id = entry.id
            self._session.delete(entry)
            self._session.flush()
            return old_values, {"deleted": True}, entry_id

        if fields.entry_date is not None:
            entry.entry_date = fields.entry_date
        if fields.entry_type is not None:
            entry.entry_type = fields.entry_type.value
        if fields.start_time is not None:
            entry.start_time = fields.start_time
        if fields.end_time is not None:
            entry.end_time = fields.end_time
        if fields.note is not None:
            entry.note = fields.note
        for name in fields.cleared:
            setattr(entry, name, None)
        self._session.flush()
        return old_values, fields.as_audit_values(), entry.id

    def _record_audit(
        self,
        actor: Actor,
        operation: WriteOperation,
        entry_id: UUID,
        old_values: dict[str, Any] | None,
        new_values: dict[str, Any],
        timesheet: Timesheet,
        lock: EffectiveLock,
        reason_text: str | None,
    ) -> tuple[SideEffectStatus, UUID | None]:
        """Append the audit event in its own transaction."""
        if reason_text is not None:
            action = AuditAction.MANAGER_EDIT_CLOSED_PERIOD
            new_values = {
                **new_values,
                "justification": reason_text,
                "operation": operation.value,
                "timesheet_id": str(timesheet.id),
                "period": format_period_key(timesheet.period_start),
                "lock_level": lock.level.value,
            }
        else:
            action = _PLAIN_ACTIONS[operation]

        try:
            event = self._auditor.append(
                tenant_id=actor.tenant_id,
                actor_id=actor.user_id,
                action=action,
                resource_type=AuditResourceType.TIMESHEET_ENTRY,
                resource_id=entry_id,
                old_values=old_values,
                new_values=new_values,
            )
            audit_id = event.id
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.error(
                "manager_edit_audit_failed"
                if reason_text is not None
                else "entry_write_audit_failed",
                extra={
                    "action": action.value,
                    "entry_id": str(entry_id),
                    "degraded": True,
                },
                exc_info=True,
            )
            return SideEffectStatus.FAILED, None
        return SideEffectStatus.RECORDED, audit_id

    def _notify_employee(
        self,
        actor: Actor,
        timesheet: Timesheet,
        justification: str,
        audit_id: UUID | None,
    ) -> SideEffectStatus:
        """Tell the employee their locked timesheet was adjusted."""
        try:
            employee = self._session.get(Employee, timesheet.employee_id)
            if employee is None or employee.user_id is None:
                logger.info(
                    "manager_edit_notification_skipped",
                    extra={"reason": "employee_has_no_user"},
                )
                return SideEffectStatus.SKIPPED

            employee_profile = self._session.get(UserProfile, employee.user_id)
            manager_name = actor.display_name
            if not manager_name:
                manager_profile = self._session.get(UserProfile, actor.user_id)
                manager_name = manager_profile.display_name if manager_profile else None

            payload: dict[str, Any] = {
                "employeeName": employee.display_name or self._config.default_employee_name,
                "managerName": manager_name or self._config.default_manager_name,
                "period": format_period_key(timesheet.period_start),
                "justification": justification,
                "url": self._config.timesheet_url(timesheet.id),
                "locale": (
                    employee_profile.locale
                    if employee_profile and employee_profile.locale
                    else self._config.default_locale
                ),
                "tenantId": str(timesheet.tenant_id),
            }
            if audit_id is not None:
                payload["auditId"] = str(audit_id)
                payload["declarationUrl"] = self._config.declaration_url(audit_id)

            self._notifier.send(self._config.notification_type, employee.user_id, payload)
        except Exception:
            logger.error(
                "manager_edit_notification_failed",
                extra={"degraded": True},
                exc_info=True,
            )
            return SideEffectStatus.FAILED
        return SideEffectStatus.SENT

"""Kernel services: the imperative shell around the pure domain layer."""

from timelock_kernel.services.auditor_service import AuditorService
from timelock_kernel.services.authorization import AccessDecision, AuthorizationGate
from timelock_kernel.services.notification_gateway import (
    LoggingNotificationGateway,
    NotificationGateway,
)
from timelock_kernel.services.override_service import PeriodOverrideService
from timelock_kernel.services.period_lock_service import PeriodLockService
from timelock_kernel.services.reconciliation_service import (
    AcknowledgmentResult,
    AcknowledgmentStatus,
    ReconciliationService,
    StatusQueryOutcome,
    StatusQueryResult,
)
from timelock_kernel.services.timesheet_edit_service import (
    EntryWriteResult,
    EntryWriteStatus,
    SideEffectStatus,
    TimesheetEditService,
)

__all__ = [
    "AccessDecision",
    "AcknowledgmentResult",
    "AcknowledgmentStatus",
    "AuditorService",
    "AuthorizationGate",
    "EntryWriteResult",
    "EntryWriteStatus",
    "LoggingNotificationGateway",
    "NotificationGateway",
    "PeriodLockService",
    "PeriodOverrideService",
    "ReconciliationService",
    "SideEffectStatus",
    "StatusQueryOutcome",
    "StatusQueryResult",
    "TimesheetEditService",
]

"""ORM models for the timelock kernel."""

from timelock_kernel.models.audit_event import AuditAction, AuditEvent, AuditResourceType
from timelock_kernel.models.organization import (
    EmployeeGroupMember,
    Environment,
    Group,
    ManagerGroupAssignment,
    UserProfile,
)
from timelock_kernel.models.period_override import PeriodOverride
from timelock_kernel.models.timesheet import (
    Employee,
    Timesheet,
    TimesheetEntry,
    TimesheetStatus,
)

__all__ = [
    "AuditAction",
    "AuditEvent",
    "AuditResourceType",
    "Employee",
    "EmployeeGroupMember",
    "Environment",
    "Group",
    "ManagerGroupAssignment",
    "PeriodOverride",
    "Timesheet",
    "TimesheetEntry",
    "TimesheetStatus",
    "UserProfile",
    "import_all_models",
]


def import_all_models() -> tuple[type, ...]:
    """Return every mapped class; importing this package registers their tables."""
    return (
        AuditEvent,
        Employee,
        EmployeeGroupMember,
        Environment,
        Group,
        ManagerGroupAssignment,
        PeriodOverride,
        Timesheet,
        TimesheetEntry,
        UserProfile,
    )

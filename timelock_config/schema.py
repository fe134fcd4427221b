"""
TimeLockConfig schema.

The frozen runtime configuration of the lock and reconciliation workflow.
YAML documents are parsed into this type by the loader; services receive the
instance through their constructors and never read files or environment
variables themselves.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TimeLockConfig:
    """Tunable values of the lock and reconciliation workflow."""

    # Justification required from managers editing a locked period
    min_justification_length: int = 10
    max_justification_length: int = 2000

    # Free-text note an employee may attach to an acknowledgment
    max_ack_note_length: int = 1000

    # Free-text note stored on a timesheet entry
    max_entry_note_length: int = 1000

    # Links rendered into notifications and pending-acknowledgment items
    base_url: str = ""
    declaration_path_template: str = (
        "/api/admin/declarations/manager-edit/{audit_id}?format=pdf"
    )
    timesheet_path_template: str = "/employee/timesheets/{timesheet_id}"

    # Notification dispatch
    notification_type: str = "timesheet_adjusted"
    default_locale: str = "en-GB"

    # Fallback display names
    default_manager_name: str = "Manager"
    default_employee_name: str = "Employee"

    def declaration_url(self, audit_id: object) -> str:
        return self.base_url + self.declaration_path_template.format(audit_id=audit_id)

    def timesheet_url(self, timesheet_id: object) -> str:
        return self.base_url + self.timesheet_path_template.format(
            timesheet_id=timesheet_id
        )

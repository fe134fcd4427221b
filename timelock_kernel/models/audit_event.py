"""
Module: timelock_kernel.models.audit_event
Responsibility: ORM persistence for the append-only audit ledger.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Audit rows are append-only; no UPDATE or DELETE (ORM listeners in
      db/immutability.py).
    - created_at comes from the injected Clock of the writing service.

Audit relevance:
    AuditEvent IS the audit trail, and also the only store of reconciliation
    state.  Two actions drive the reconciliation workflow:

    - MANAGER_EDIT_CLOSED_PERIOD: resource_type TIMESHEET_ENTRY,
      resource_id = entry id, new_values["justification"] = reason text.
    - EMPLOYEE_ACKNOWLEDGE_ADJUSTMENT: resource_type AUDIT_LOG,
      resource_id = id of the acknowledged edit event,
      new_values["accepted"] = bool (absent means accepted).
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from timelock_kernel.db.base import Base, UUIDString


class AuditAction(str, Enum):
    """Types of auditable actions."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MANAGER_EDIT_CLOSED_PERIOD = "manager_edit_closed_period"
    EMPLOYEE_ACKNOWLEDGE_ADJUSTMENT = "employee_acknowledge_adjustment"


class AuditResourceType(str, Enum):
    """Kinds of resources an audit event can point at."""

    TIMESHEET_ENTRY = "timesheet_entry"
    AUDIT_LOG = "audit_log"


class AuditEvent(Base):
    """
    One immutable ledger row.

    Guarantees:
        - Never updated or deleted once flushed.
        - (tenant_id, action, resource_type, resource_id) is indexed for the
          reconciliation joins.
    """

    __tablename__ = "audit_events"

    __table_args__ = (
        Index(
            "idx_audit_resource",
            "tenant_id",
            "action",
            "resource_type",
            "resource_id",
        ),
        Index("idx_audit_created", "created_at"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # Who performed the action
    actor_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    resource_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    resource_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    old_values: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
    )

    new_values: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditEvent {self.action} on {self.resource_type}:{self.resource_id}>"

    @property
    def is_manager_edit(self) -> bool:
        return (
            self.action == AuditAction.MANAGER_EDIT_CLOSED_PERIOD.value
            and self.resource_type == AuditResourceType.TIMESHEET_ENTRY.value
        )

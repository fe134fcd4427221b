"""
AuditorService -- the append-only audit ledger.

Responsibility:
    Appends immutable audit events and exposes the two ledger reads the
    reconciliation workflow needs (lookup by id, lookup by resource ids).

Architecture position:
    Kernel > Services -- imperative shell, called by TimesheetEditService and
    ReconciliationService.  Reads are delegated to ``AuditSelector``.

Invariants enforced:
    - Append-only: audit events are never modified or deleted (ORM listeners
      in ``db/immutability.py``).
    - ``created_at`` comes from the injected Clock, never from the database.

Failure modes:
    - AuditEventNotFoundError from ``get`` for an id unknown in the tenant.
    - Any database error from ``append`` propagates; callers decide whether
      the ledger write is critical.

Audit relevance:
    This IS the audit service.  Every event is logged as
    ``audit_event_created`` with its action and resource.
"""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from timelock_kernel.domain.clock import Clock, SystemClock
from timelock_kernel.exceptions import AuditEventNotFoundError
from timelock_kernel.logging_config import get_logger
from timelock_kernel.models.audit_event import (
    AuditAction,
    AuditEvent,
    AuditResourceType,
)
from timelock_kernel.selectors.audit_selector import AuditSelector
from timelock_kernel.services.base import BaseService

logger = get_logger("services.auditor")


class AuditorService(BaseService):
    """
    Writes and reads the audit ledger.

    Contract:
        ``append`` flushes one new ``AuditEvent`` into the caller's
        transaction and returns it with its id populated.

    Non-goals:
        - Does NOT commit.  The orchestrating service decides when the
          event becomes durable.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._reader = AuditSelector(session)

    def append(
        self,
        tenant_id: UUID,
        actor_id: UUID,
        action: AuditAction,
        resource_type: AuditResourceType,
        resource_id: UUID | None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditEvent:
        """Append one event to the ledger and flush it."""
        audit_event = AuditEvent(
            tenant_id=tenant_id,
            actor_id=actor_id,
            action=action.value,
            resource_type=resource_type.value,
            resource_id=resource_id,
            old_values=old_values,
            new_values=new_values,
            created_at=self._clock.now(),
        )
        self.session.add(audit_event)
        self.session.flush()

        logger.info(
            "audit_event_created",
            extra={
                "audit_id": str(audit_event.id),
                "action": action.value,
                "resource_type": resource_type.value,
                "resource_id": str(resource_id) if resource_id else None,
            },
        )
        return audit_event

    def get(self, tenant_id: UUID, audit_id: UUID) -> AuditEvent:
        event = self._reader.get(tenant_id, audit_id)
        if event is None:
            raise AuditEventNotFoundError(str(audit_id))
        return event

    def query_by_resource_ids(
        self,
        tenant_id: UUID,
        action: AuditAction,
        resource_type: AuditResourceType,
        resource_ids: Sequence[UUID],
    ) -> tuple[AuditEvent, ...]:
        return tuple(
            self._reader.query_by_resource_ids(
                tenant_id, action, resource_type, resource_ids
            )
        )

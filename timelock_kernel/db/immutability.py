"""
ORM-level append-only enforcement for the audit ledger.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners below intercept them for ``AuditEvent`` and raise
``ImmutabilityViolationError`` so the flush aborts and the database is never
modified:

    session.flush()
         |
         v
    [before_update] --> _check_audit_event_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_audit_event_delete() --------> ImmutabilityViolationError

The audit ledger is the source of truth for reconciliation state, so an
edited or deleted event would silently rewrite history.  Corrections are new
events (for example a second acknowledgment), never mutations.

Usage (once, at startup, after models are imported):

    from timelock_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

Tests that need to tamper on purpose may call
``unregister_immutability_listeners()`` and must re-register afterwards.
"""

from sqlalchemy import event

from timelock_kernel.exceptions import ImmutabilityViolationError
from timelock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_audit_event_immutability(mapper, connection, target):
    """Prevent any updates to AuditEvent records."""
    from timelock_kernel.models.audit_event import AuditEvent

    if not isinstance(target, AuditEvent):
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditEvent",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditEvent",
        entity_id=str(target.id),
        reason="Audit events are immutable and cannot be modified",
    )


def _check_audit_event_delete(mapper, connection, target):
    """Prevent deletion of AuditEvent records."""
    from timelock_kernel.models.audit_event import AuditEvent

    if not isinstance(target, AuditEvent):
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "AuditEvent",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="AuditEvent",
        entity_id=str(target.id),
        reason="Audit events cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register the append-only listeners on AuditEvent.

    Safe to call repeatedly; a listener is only attached once.
    """
    from timelock_kernel.models.audit_event import AuditEvent

    if not event.contains(AuditEvent, "before_update", _check_audit_event_immutability):
        event.listen(AuditEvent, "before_update", _check_audit_event_immutability)
    if not event.contains(AuditEvent, "before_delete", _check_audit_event_delete):
        event.listen(AuditEvent, "before_delete", _check_audit_event_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if it was never registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove the append-only listeners.

    WARNING: Only use this in tests that intentionally violate immutability.
    """
    from timelock_kernel.models.audit_event import AuditEvent

    _safe_remove_listener(AuditEvent, "before_update", _check_audit_event_immutability)
    _safe_remove_listener(AuditEvent, "before_delete", _check_audit_event_delete)

"""
Reconciliation -- pure derivation of acknowledgment state from the ledger.

Responsibility:
    Turn two event streams read from the audit ledger (manager edits of
    closed periods, and employee acknowledgments of those edits) into the
    current state of every edit and into per-timesheet counters.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Selectors convert
    ``AuditEvent`` rows into the records below and call these functions; no
    status column is ever stored.

State machine (per manager edit):

    Created --(justified write)--> PENDING
    PENDING --(ack accepted)-----> ACKNOWLEDGED
    PENDING --(ack rejected)-----> CONTESTED

    The ledger is append-only, so an edit can collect several
    acknowledgments.  The most recent one (greatest ``created_at``, ties
    broken by the greater audit id string) decides the state; older ones
    stay in history and are ignored here.

Counters:
    ``with_justification`` counts edits, ``acknowledged`` counts edits that
    have at least one acknowledgment (accepted OR contested), ``contested``
    counts edits whose deciding acknowledgment rejected the change, and
    ``pending_ack`` is always ``with_justification - acknowledged``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class AcknowledgmentState(str, Enum):
    """Derived reconciliation state of one manager edit."""

    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    CONTESTED = "contested"


@dataclass(frozen=True)
class ManagerEditRecord:
    """A ``manager_edit_closed_period`` event, as seen by the derivation."""

    audit_id: UUID
    entry_id: UUID | None
    actor_id: UUID
    created_at: datetime
    justification: str


@dataclass(frozen=True)
class AcknowledgmentRecord:
    """An ``employee_acknowledge_adjustment`` event."""

    audit_id: UUID
    edit_audit_id: UUID
    actor_id: UUID
    created_at: datetime
    accepted: bool
    note: str | None = None


def accepted_flag(new_values: Mapping[str, Any] | None) -> bool:
    """
    Read ``accepted`` from an acknowledgment payload.

    Only an explicit ``False`` contests; a missing key or any other value
    counts as accepted.
    """
    if not new_values:
        return True
    return new_values.get("accepted") is not False


def _recency_key(ack: AcknowledgmentRecord) -> tuple[datetime, str]:
    return (ack.created_at, str(ack.audit_id))


def latest_acknowledgments(
    acks: Iterable[AcknowledgmentRecord],
) -> dict[UUID, AcknowledgmentRecord]:
    """Pick the deciding acknowledgment for every referenced edit."""
    latest: dict[UUID, AcknowledgmentRecord] = {}
    for ack in acks:
        current = latest.get(ack.edit_audit_id)
        if current is None or _recency_key(ack) > _recency_key(current):
            latest[ack.edit_audit_id] = ack
    return latest


def state_of(ack: AcknowledgmentRecord | None) -> AcknowledgmentState:
    if ack is None:
        return AcknowledgmentState.PENDING
    if ack.accepted:
        return AcknowledgmentState.ACKNOWLEDGED
    return AcknowledgmentState.CONTESTED


def derive_states(
    edits: Iterable[ManagerEditRecord],
    acks: Iterable[AcknowledgmentRecord],
) -> dict[UUID, AcknowledgmentState]:
    """Map every edit's audit id to its derived state."""
    latest = latest_acknowledgments(acks)
    return {edit.audit_id: state_of(latest.get(edit.audit_id)) for edit in edits}


def pending_edits(
    edits: Iterable[ManagerEditRecord],
    acks: Iterable[AcknowledgmentRecord],
) -> list[ManagerEditRecord]:
    """Edits with no acknowledgment at all, in input order."""
    acknowledged_ids = {ack.edit_audit_id for ack in acks}
    return [edit for edit in edits if edit.audit_id not in acknowledged_ids]


@dataclass(frozen=True)
class ReconciliationStatus:
    """Per-timesheet reconciliation counters."""

    total: int
    with_justification: int
    acknowledged: int
    contested: int

    @property
    def pending_ack(self) -> int:
        return self.with_justification - self.acknowledged

    @classmethod
    def empty(cls, total: int = 0) -> ReconciliationStatus:
        return cls(total=total, with_justification=0, acknowledged=0, contested=0)

    @classmethod
    def from_states(
        cls,
        total: int,
        states: Mapping[UUID, AcknowledgmentState],
    ) -> ReconciliationStatus:
        values = list(states.values())
        return cls(
            total=total,
            with_justification=len(values),
            acknowledged=sum(1 for s in values if s is not AcknowledgmentState.PENDING),
            contested=sum(1 for s in values if s is AcknowledgmentState.CONTESTED),
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "withJustification": self.with_justification,
            "pendingAck": self.pending_ack,
            "contested": self.contested,
            "acknowledged": self.acknowledged,
        }

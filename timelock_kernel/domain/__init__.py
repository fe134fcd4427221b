"""
Pure domain layer.

Data transfer objects and decision logic with NO dependencies on the ORM,
the database, the clock or any other I/O.  Everything here is immutable and
deterministic.
"""

from timelock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from timelock_kernel.domain.dtos import (
    Actor,
    ActorRole,
    EntryFields,
    EntryType,
    EntryWrite,
    WriteOperation,
)
from timelock_kernel.domain.lock_policy import (
    SCOPE_PRECEDENCE,
    EffectiveLock,
    LockLevel,
    LockScope,
    OverrideRecord,
    resolve_effective_lock,
)
from timelock_kernel.domain.period_key import format_period_key, normalize_period_key
from timelock_kernel.domain.reconciliation import (
    AcknowledgmentRecord,
    AcknowledgmentState,
    ManagerEditRecord,
    ReconciliationStatus,
    derive_states,
)

__all__ = [
    "AcknowledgmentRecord",
    "AcknowledgmentState",
    "Actor",
    "ActorRole",
    "Clock",
    "DeterministicClock",
    "EffectiveLock",
    "EntryFields",
    "EntryType",
    "EntryWrite",
    "LockLevel",
    "LockScope",
    "ManagerEditRecord",
    "OverrideRecord",
    "ReconciliationStatus",
    "SCOPE_PRECEDENCE",
    "SystemClock",
    "WriteOperation",
    "derive_states",
    "format_period_key",
    "normalize_period_key",
    "resolve_effective_lock",
]

"""
Lock policy -- pure resolution of the effective period lock.

Responsibility:
    Given the override records visible to one employee for one period,
    decide whether the period is locked, why, and at which scope the
    decision was taken.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The service layer
    (``PeriodLockService``) supplies a per-scope fetch callable backed by the
    database; tests supply plain dicts.

Resolution:
    Scopes are tried in ``SCOPE_PRECEDENCE`` order and the first scope that
    has at least one record answers.  Scopes after it are never fetched.

        employee     -> the single record, verbatim
        group        -> any-locked-wins across all of the employee's groups
        environment  -> any-locked-wins across the environments of those groups
        tenant       -> the single tenant-wide record
        (nothing)    -> unlocked, level NONE

    Any-locked-wins: one locked group beats any number of unlocked groups.
    The reason comes from the first locked record in the order the fetch
    returned them, so fetchers must return records in a deterministic order.

    A missing record means "no opinion".  An explicit ``locked=False`` record
    at a lower scope DOES answer, and therefore unlocks a period that a
    higher scope would have locked.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum


class LockScope(str, Enum):
    """Scope at which an override can be declared."""

    EMPLOYEE = "employee"
    GROUP = "group"
    ENVIRONMENT = "environment"
    TENANT = "tenant"


class LockLevel(str, Enum):
    """Scope that produced an effective decision (NONE when no override exists)."""

    EMPLOYEE = "employee"
    GROUP = "group"
    ENVIRONMENT = "environment"
    TENANT = "tenant"
    NONE = "none"


# Most specific first.
SCOPE_PRECEDENCE: tuple[LockScope, ...] = (
    LockScope.EMPLOYEE,
    LockScope.GROUP,
    LockScope.ENVIRONMENT,
    LockScope.TENANT,
)


@dataclass(frozen=True)
class OverrideRecord:
    """One override row: a scope's opinion on one period."""

    scope: LockScope
    scope_id: str
    period_key: date
    locked: bool
    reason: str | None = None


@dataclass(frozen=True)
class EffectiveLock:
    """Outcome of lock resolution."""

    locked: bool
    reason: str | None
    level: LockLevel

    @classmethod
    def unlocked(cls) -> EffectiveLock:
        return cls(locked=False, reason=None, level=LockLevel.NONE)

    def as_dict(self) -> dict[str, object]:
        return {"locked": self.locked, "reason": self.reason, "level": self.level.value}


OverrideFetcher = Callable[[LockScope], Sequence[OverrideRecord]]


def combine_scope(scope: LockScope, records: Sequence[OverrideRecord]) -> EffectiveLock | None:
    """
    Collapse the records of a single scope into one decision.

    Returns None when the scope has no opinion (no records).
    """
    if not records:
        return None

    level = LockLevel(scope.value)
    if scope in (LockScope.EMPLOYEE, LockScope.TENANT):
        # At most one record per (scope_id, period); take it verbatim.
        record = records[0]
        return EffectiveLock(locked=record.locked, reason=record.reason, level=level)

    first_locked = next((r for r in records if r.locked), None)
    if first_locked is None:
        return EffectiveLock(locked=False, reason=None, level=level)
    return EffectiveLock(locked=True, reason=first_locked.reason, level=level)


def resolve_effective_lock(fetch: OverrideFetcher) -> EffectiveLock:
    """
    Walk the scopes in precedence order and return the first decision.

    ``fetch`` is called lazily, once per scope, and only until a scope
    answers.
    """
    for scope in SCOPE_PRECEDENCE:
        decision = combine_scope(scope, fetch(scope))
        if decision is not None:
            return decision
    return EffectiveLock.unlocked()


def resolve_from_mapping(
    overrides: Mapping[LockScope, Sequence[OverrideRecord]],
) -> EffectiveLock:
    """Resolve against pre-fetched records keyed by scope."""
    return resolve_effective_lock(lambda scope: overrides.get(scope, ()))

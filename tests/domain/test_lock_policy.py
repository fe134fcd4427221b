"""
Pure lock resolution tests.

Covers the precedence walk, any-locked-wins for multi-record scopes, the
fallthrough to "unlocked", and the laziness of per-scope fetching.
"""

from datetime import date

import pytest
from hypothesis import given
from hypothesis import strategies as st

from timelock_kernel.domain.lock_policy import (
    SCOPE_PRECEDENCE,
    EffectiveLock,
    LockLevel,
    LockScope,
    OverrideRecord,
    combine_scope,
    resolve_effective_lock,
    resolve_from_mapping,
)

MARCH = date(2025, 3, 1)


def rec(scope: LockScope, locked: bool, reason: str | None = None, scope_id: str = "x"):
    return OverrideRecord(scope=scope, scope_id=scope_id, period_key=MARCH,
                          locked=locked, reason=reason)


class TestPrecedence:
    def test_no_overrides_is_unlocked_at_level_none(self):
        assert resolve_from_mapping({}) == EffectiveLock(False, None, LockLevel.NONE)

    def test_employee_unlock_beats_tenant_lock(self):
        lock = resolve_from_mapping({
            LockScope.EMPLOYEE: [rec(LockScope.EMPLOYEE, False)],
            LockScope.TENANT: [rec(LockScope.TENANT, True, "closed")],
        })
        assert lock == EffectiveLock(False, None, LockLevel.EMPLOYEE)

    def test_employee_record_returned_verbatim(self):
        lock = resolve_from_mapping({
            LockScope.EMPLOYEE: [rec(LockScope.EMPLOYEE, True, "personal hold")],
        })
        assert lock == EffectiveLock(True, "personal hold", LockLevel.EMPLOYEE)

    def test_group_answers_before_environment(self):
        lock = resolve_from_mapping({
            LockScope.GROUP: [rec(LockScope.GROUP, False)],
            LockScope.ENVIRONMENT: [rec(LockScope.ENVIRONMENT, True, "rig closed")],
        })
        assert lock.level is LockLevel.GROUP
        assert lock.locked is False

    def test_environment_answers_before_tenant(self):
        lock = resolve_from_mapping({
            LockScope.ENVIRONMENT: [rec(LockScope.ENVIRONMENT, True, "rig closed")],
            LockScope.TENANT: [rec(LockScope.TENANT, False)],
        })
        assert lock == EffectiveLock(True, "rig closed", LockLevel.ENVIRONMENT)

    def test_tenant_only(self):
        lock = resolve_from_mapping({LockScope.TENANT: [rec(LockScope.TENANT, True, "payroll")]})
        assert lock == EffectiveLock(True, "payroll", LockLevel.TENANT)

    @given(st.dictionaries(st.sampled_from(list(LockScope)), st.booleans(), min_size=1))
    def test_most_specific_present_scope_decides(self, opinions):
        mapping = {scope: [rec(scope, locked)] for scope, locked in opinions.items()}
        winner = next(s for s in SCOPE_PRECEDENCE if s in opinions)
        lock = resolve_from_mapping(mapping)
        assert lock.level.value == winner.value
        assert lock.locked is opinions[winner]


class TestAnyLockedWins:
    @pytest.mark.parametrize("scope", [LockScope.GROUP, LockScope.ENVIRONMENT])
    def test_one_locked_among_unlocked_locks(self, scope):
        records = [
            rec(scope, False, scope_id="a"),
            rec(scope, True, "crew B closed", scope_id="b"),
            rec(scope, False, scope_id="c"),
        ]
        lock = combine_scope(scope, records)
        assert lock == EffectiveLock(True, "crew B closed", LockLevel(scope.value))

    def test_reason_comes_from_first_locked_record(self):
        records = [
            rec(LockScope.GROUP, True, "first", scope_id="a"),
            rec(LockScope.GROUP, True, "second", scope_id="b"),
        ]
        assert combine_scope(LockScope.GROUP, records).reason == "first"

    def test_all_unlocked_group_records_unlock_without_reason(self):
        records = [rec(LockScope.GROUP, False, "ignored", scope_id=s) for s in "ab"]
        assert combine_scope(LockScope.GROUP, records) == EffectiveLock(
            False, None, LockLevel.GROUP
        )

    def test_empty_scope_has_no_opinion(self):
        assert combine_scope(LockScope.GROUP, []) is None

    @given(st.lists(st.booleans(), min_size=1, max_size=8))
    def test_group_lock_is_logical_or(self, flags):
        records = [rec(LockScope.GROUP, f, scope_id=str(i)) for i, f in enumerate(flags)]
        assert combine_scope(LockScope.GROUP, records).locked is any(flags)


class TestLazyFetch:
    def test_scopes_after_the_answer_are_never_fetched(self):
        fetched = []

        def fetch(scope):
            fetched.append(scope)
            if scope is LockScope.GROUP:
                return [rec(scope, True, "crew")]
            return []

        resolve_effective_lock(fetch)
        assert fetched == [LockScope.EMPLOYEE, LockScope.GROUP]

    def test_every_scope_fetched_once_when_nothing_answers(self):
        fetched = []

        def fetch(scope):
            fetched.append(scope)
            return []

        assert resolve_effective_lock(fetch) == EffectiveLock.unlocked()
        assert fetched == list(SCOPE_PRECEDENCE)


def test_as_dict_shape():
    lock = EffectiveLock(True, "closed", LockLevel.TENANT)
    assert lock.as_dict() == {"locked": True, "reason": "closed", "level": "tenant"}

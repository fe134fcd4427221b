"""
Reconciliation reads derived from the audit ledger (ReconciliationSelector).

Edits and acknowledgments are appended straight through AuditorService so
each test controls timestamps and payloads exactly.
"""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from timelock_kernel.exceptions import TimesheetNotFoundError
from timelock_kernel.models.audit_event import AuditAction, AuditResourceType
from timelock_kernel.selectors.reconciliation_selector import ReconciliationSelector


@pytest.fixture
def selector(session, config):
    return ReconciliationSelector(session, config)


@pytest.fixture
def ledger(auditor, session, clock, tenant_id):
    """Append manager edits and acknowledgments with explicit timing."""

    class Ledger:
        def edit(self, entry, manager_id, justification="Corrected per rig log"):
            clock.advance(60)
            event = auditor.append(
                tenant_id=tenant_id,
                actor_id=manager_id,
                action=AuditAction.MANAGER_EDIT_CLOSED_PERIOD,
                resource_type=AuditResourceType.TIMESHEET_ENTRY,
                resource_id=entry.id,
                new_values={"justification": justification},
            )
            session.commit()
            return event

        def ack(self, edit, actor_id, accepted=None):
            clock.advance(60)
            values = {} if accepted is None else {"accepted": accepted}
            event = auditor.append(
                tenant_id=tenant_id,
                actor_id=actor_id,
                action=AuditAction.EMPLOYEE_ACKNOWLEDGE_ADJUSTMENT,
                resource_type=AuditResourceType.AUDIT_LOG,
                resource_id=edit.id,
                new_values=values,
            )
            session.commit()
            return event

    return Ledger()


class TestPendingAcknowledgments:
    def test_unknown_employee(self, selector):
        assert selector.pending_acknowledgments(uuid4()) == ()

    def test_employee_without_timesheets(self, selector, org):
        assert selector.pending_acknowledgments(org.employee().id) == ()

    def test_timesheet_without_entries(self, selector, org):
        employee = org.employee()
        org.timesheet(employee)
        assert selector.pending_acknowledgments(employee.id) == ()

    def test_entries_without_edits(self, selector, crew):
        assert selector.pending_acknowledgments(crew.employee.id) == ()

    def test_newest_first_and_acknowledged_removed(self, selector, org, crew, ledger, config):
        second_entry = org.entry(crew.timesheet, day=4)
        first = ledger.edit(crew.entry, crew.manager.user_id, "first correction")
        second = ledger.edit(second_entry, crew.manager.user_id, "second correction")
        third = ledger.edit(crew.entry, crew.manager.user_id, "third correction")
        ledger.ack(second, crew.employee.user_id, accepted=False)

        pending = selector.pending_acknowledgments(crew.employee.id)

        assert [p.audit_id for p in pending] == [third.id, first.id]
        assert pending[0].justification == "third correction"
        assert pending[0].manager_name == "Morgan Manager"
        assert pending[0].declaration_url == (
            f"https://timesheets.example.test/api/admin/declarations/manager-edit/{third.id}?format=pdf"
        )
        assert pending[0].entry_id == crew.entry.id

    def test_all_acknowledged_is_empty(self, selector, crew, ledger):
        edit = ledger.edit(crew.entry, crew.manager.user_id)
        ledger.ack(edit, crew.employee.user_id)
        assert selector.pending_acknowledgments(crew.employee.id) == ()

    def test_unknown_manager_uses_default_name(self, selector, crew, ledger):
        ledger.edit(crew.entry, uuid4())
        (item,) = selector.pending_acknowledgments(crew.employee.id)
        assert item.manager_name == "Manager"

    def test_other_employees_edits_excluded(self, selector, org, crew, ledger):
        colleague = org.employee("Colleague")
        colleague_entry = org.entry(org.timesheet(colleague))
        ledger.edit(colleague_entry, crew.manager.user_id)
        assert selector.pending_acknowledgments(crew.employee.id) == ()

    def test_as_dict_uses_camel_case(self, selector, crew, ledger):
        edit = ledger.edit(crew.entry, crew.manager.user_id)
        (item,) = selector.pending_acknowledgments(crew.employee.id)
        data = item.as_dict()
        assert data["auditId"] == str(edit.id)
        assert set(data) == {"auditId", "createdAt", "justification", "managerName",
                             "declarationUrl"}


class TestReconciliationStatus:
    def test_unknown_timesheet_raises(self, selector):
        with pytest.raises(TimesheetNotFoundError):
            selector.reconciliation_status(uuid4())

    def test_empty_timesheet(self, selector, org):
        timesheet = org.timesheet(org.employee())
        status = selector.reconciliation_status(timesheet.id)
        assert status.as_dict() == {
            "total": 0, "withJustification": 0, "pendingAck": 0,
            "contested": 0, "acknowledged": 0,
        }

    def test_entries_without_edits(self, selector, org, crew):
        org.entry(crew.timesheet, day=5)
        status = selector.reconciliation_status(crew.timesheet.id)
        assert (status.total, status.with_justification, status.pending_ack) == (2, 0, 0)

    def test_counts(self, selector, org, crew, ledger):
        other = org.entry(crew.timesheet, day=6)
        org.entry(crew.timesheet, day=7)
        accepted = ledger.edit(crew.entry, crew.manager.user_id)
        contested = ledger.edit(other, crew.manager.user_id)
        ledger.edit(crew.entry, crew.manager.user_id)
        ledger.ack(accepted, crew.employee.user_id)
        ledger.ack(contested, crew.employee.user_id, accepted=False)

        status = selector.reconciliation_status(crew.timesheet.id)

        assert status.total == 3
        assert status.with_justification == 3
        assert status.acknowledged == 2
        assert status.contested == 1
        assert status.pending_ack == 1

    def test_duplicate_acks_latest_decides(self, selector, crew, ledger):
        edit = ledger.edit(crew.entry, crew.manager.user_id)
        ledger.ack(edit, crew.employee.user_id, accepted=True)
        ledger.ack(edit, crew.employee.user_id, accepted=False)

        status = selector.reconciliation_status(crew.timesheet.id)
        assert (status.acknowledged, status.contested, status.pending_ack) == (1, 1, 0)

    def test_duplicate_acks_same_instant_tie_broken_by_id(
        self, selector, crew, auditor, session, tenant_id, clock
    ):
        edit = auditor.append(
            tenant_id=tenant_id,
            actor_id=crew.manager.user_id,
            action=AuditAction.MANAGER_EDIT_CLOSED_PERIOD,
            resource_type=AuditResourceType.TIMESHEET_ENTRY,
            resource_id=crew.entry.id,
            new_values={"justification": "Corrected per rig log"},
        )
        clock.set_time(datetime(2025, 4, 2, 8, 0, tzinfo=UTC))
        acks = [
            auditor.append(
                tenant_id=tenant_id,
                actor_id=crew.employee.user_id,
                action=AuditAction.EMPLOYEE_ACKNOWLEDGE_ADJUSTMENT,
                resource_type=AuditResourceType.AUDIT_LOG,
                resource_id=edit.id,
                new_values={"accepted": accepted},
            )
            for accepted in (True, False)
        ]
        session.commit()

        winner = max(acks, key=lambda e: str(e.id))
        status = selector.reconciliation_status(crew.timesheet.id)
        assert status.contested == (0 if winner.new_values["accepted"] else 1)
        assert status.acknowledged == 1

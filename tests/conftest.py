"""
Pytest fixtures for the timelock kernel test suite.

Provides:
- An in-memory SQLite database per test (tables created from metadata,
  append-only listeners registered)
- A DeterministicClock
- Factories for employees, groups, environments, managers, timesheets and
  entries
- A recording notification gateway
- ``captured_logs`` returning the JSON log stream as dicts
"""

import calendar
import json
import logging
from dataclasses import dataclass
from datetime import date, time
from io import StringIO
from typing import Any
from uuid import UUID, uuid4

import pytest
from hypothesis import HealthCheck, settings

from timelock_config.schema import TimeLockConfig
from timelock_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from timelock_kernel.db.immutability import register_immutability_listeners
from timelock_kernel.domain.clock import DeterministicClock
from timelock_kernel.domain.dtos import Actor, ActorRole, EntryType
from timelock_kernel.domain.lock_policy import LockScope
from timelock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from timelock_kernel.models.organization import (
    EmployeeGroupMember,
    Environment,
    Group,
    ManagerGroupAssignment,
    UserProfile,
)
from timelock_kernel.models.timesheet import Employee, Timesheet, TimesheetEntry
from timelock_kernel.services.auditor_service import AuditorService
from timelock_kernel.services.notification_gateway import NotificationGateway
from timelock_kernel.services.override_service import PeriodOverrideService
from timelock_kernel.services.period_lock_service import PeriodLockService
from timelock_kernel.services.reconciliation_service import ReconciliationService
from timelock_kernel.services.timesheet_edit_service import TimesheetEditService

MARCH = date(2025, 3, 1)
ADMIN_ID = uuid4()

# Autouse log-context fixtures are function scoped and hold no state hypothesis
# examples could leak through.
settings.register_profile(
    "timelock",
    suppress_health_check=[HealthCheck.function_scoped_fixture],
    deadline=None,
)
settings.load_profile("timelock")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture timelock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, edit_service):
            edit_service.check_and_write(...)
            logs = captured_logs()
            assert any(r["message"] == "entry_write_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("timelock_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session():
    """Fresh in-memory database for every test."""
    init_engine_from_url("sqlite://")
    register_immutability_listeners()
    create_tables()
    db_session = get_session()
    yield db_session
    db_session.close()
    reset_engine()


@pytest.fixture
def clock():
    return DeterministicClock()


@pytest.fixture
def config():
    return TimeLockConfig(base_url="https://timesheets.example.test")


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


# =============================================================================
# Notification doubles
# =============================================================================


class RecordingNotificationGateway(NotificationGateway):
    """Keeps every notification in memory."""

    def __init__(self):
        self.sent: list[tuple[str, UUID, dict[str, Any]]] = []

    def send(self, notification_type, recipient, payload):
        self.sent.append((notification_type, recipient, payload))


class FailingNotificationGateway(NotificationGateway):
    def send(self, notification_type, recipient, payload):
        raise ConnectionError("notification backend unavailable")


@pytest.fixture
def notifier():
    return RecordingNotificationGateway()


@pytest.fixture
def failing_notifier():
    return FailingNotificationGateway()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def auditor(session, clock):
    return AuditorService(session, clock)


@pytest.fixture
def override_service(session, clock):
    return PeriodOverrideService(session, clock)


@pytest.fixture
def lock_service(session):
    return PeriodLockService(session)


@pytest.fixture
def edit_service(session, config, clock, notifier):
    return TimesheetEditService(session, config=config, clock=clock, notifier=notifier)


@pytest.fixture
def reconciliation_service(session, config, clock):
    return ReconciliationService(session, config=config, clock=clock)


# =============================================================================
# Data factories
# =============================================================================


@dataclass
class Org:
    """Factory bound to one tenant; every helper commits."""

    session: Any
    tenant_id: UUID

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        return obj

    def profile(self, user_id: UUID, display_name: str | None, locale: str | None = None):
        return self._save(
            UserProfile(
                id=user_id,
                tenant_id=self.tenant_id,
                display_name=display_name,
                locale=locale,
            )
        )

    def employee(self, display_name: str = "Ada Employee", with_user: bool = True) -> Employee:
        user_id = uuid4() if with_user else None
        employee = self._save(
            Employee(tenant_id=self.tenant_id, user_id=user_id, display_name=display_name)
        )
        if user_id is not None:
            self.profile(user_id, display_name, locale="fr-FR")
        return employee

    def environment(self, name: str = "North Sea") -> Environment:
        return self._save(Environment(tenant_id=self.tenant_id, name=name))

    def group(self, name: str = "Crew A", environment: Environment | None = None) -> Group:
        return self._save(
            Group(
                tenant_id=self.tenant_id,
                name=name,
                environment_id=environment.id if environment else None,
            )
        )

    def add_member(self, employee: Employee, group: Group) -> None:
        self._save(
            EmployeeGroupMember(
                tenant_id=self.tenant_id, employee_id=employee.id, group_id=group.id
            )
        )

    def manager(self, *groups: Group, display_name: str | None = "Morgan Manager",
                role: ActorRole = ActorRole.MANAGER) -> Actor:
        user_id = uuid4()
        if display_name is not None:
            self.profile(user_id, display_name)
        for group in groups:
            self._save(
                ManagerGroupAssignment(
                    tenant_id=self.tenant_id, manager_user_id=user_id, group_id=group.id
                )
            )
        return Actor(user_id=user_id, tenant_id=self.tenant_id, role=role)

    def admin(self) -> Actor:
        return Actor(user_id=ADMIN_ID, tenant_id=self.tenant_id, role=ActorRole.ADMIN,
                     display_name="Alex Admin")

    def employee_actor(self, employee: Employee) -> Actor:
        return Actor(user_id=employee.user_id, tenant_id=self.tenant_id,
                     role=ActorRole.EMPLOYEE)

    def timesheet(self, employee: Employee, period_start: date = MARCH) -> Timesheet:
        last_day = calendar.monthrange(period_start.year, period_start.month)[1]
        return self._save(
            Timesheet(
                tenant_id=self.tenant_id,
                employee_id=employee.id,
                period_start=period_start,
                period_end=period_start.replace(day=last_day),
            )
        )

    def entry(self, timesheet: Timesheet, day: int = 3,
              entry_type: EntryType = EntryType.OFFSHORE) -> TimesheetEntry:
        return self._save(
            TimesheetEntry(
                tenant_id=self.tenant_id,
                timesheet_id=timesheet.id,
                entry_date=timesheet.period_start.replace(day=day),
                entry_type=entry_type.value,
                start_time=time(7, 0),
                end_time=time(19, 0),
            )
        )


@pytest.fixture
def org(session, tenant_id) -> Org:
    return Org(session=session, tenant_id=tenant_id)


@dataclass
class Crew:
    """One employee in one group with a delegated manager and a March timesheet."""

    employee: Employee
    employee_actor: Actor
    group: Group
    manager: Actor
    timesheet: Timesheet
    entry: TimesheetEntry


@pytest.fixture
def crew(org) -> Crew:
    employee = org.employee()
    group = org.group()
    org.add_member(employee, group)
    manager = org.manager(group)
    timesheet = org.timesheet(employee)
    entry = org.entry(timesheet)
    return Crew(
        employee=employee,
        employee_actor=org.employee_actor(employee),
        group=group,
        manager=manager,
        timesheet=timesheet,
        entry=entry,
    )


@pytest.fixture
def lock_tenant(override_service, tenant_id, session):
    """Lock a month tenant-wide."""

    def _lock(period=MARCH, reason: str | None = "Payroll closed"):
        record = override_service.set_override(
            tenant_id, scope=LockScope.TENANT, scope_id=None, period=period,
            locked=True, actor_id=ADMIN_ID, reason=reason,
        )
        session.commit()
        return record

    return _lock

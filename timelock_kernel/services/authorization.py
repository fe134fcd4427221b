"""
Authorization gate for timesheet writes and reconciliation reads.

Administrators pass everywhere in their tenant.  Managers pass only for
employees who share at least one group with them; an employee with no
groups is out of reach for every manager.  Employees may act on their own
timesheets through ``owns``.  Everything else is forbidden.

The gate is consulted before lock resolution so that a manager outside the
employee's groups cannot learn whether a period is locked.
"""

from enum import Enum

from sqlalchemy.orm import Session

from timelock_kernel.domain.dtos import Actor
from timelock_kernel.logging_config import get_logger
from timelock_kernel.models.timesheet import Employee, Timesheet
from timelock_kernel.selectors.membership_selector import MembershipSelector

logger = get_logger("services.authorization")


class AccessDecision(str, Enum):
    ALLOW = "allow"
    FORBID = "forbid"


class AuthorizationGate:
    """Decides whether an actor may act on a timesheet."""

    def __init__(self, session: Session):
        self._session = session
        self._memberships = MembershipSelector(session)

    def can_act(self, actor: Actor, timesheet: Timesheet) -> AccessDecision:
        """Administrative access: admins, or managers sharing a group."""
        if timesheet.tenant_id != actor.tenant_id:
            return AccessDecision.FORBID
        if actor.is_admin:
            return AccessDecision.ALLOW
        if not actor.is_manager:
            return AccessDecision.FORBID

        group_ids = self._memberships.groups_of(actor.tenant_id, timesheet.employee_id)
        if not group_ids:
            return self._forbid(actor, timesheet, "employee_has_no_groups")
        shared = self._memberships.manager_groups_among(
            actor.tenant_id, actor.user_id, group_ids
        )
        if not shared:
            return self._forbid(actor, timesheet, "no_shared_group")
        return AccessDecision.ALLOW

    def owns(self, actor: Actor, timesheet: Timesheet) -> bool:
        """True when the actor is the employee the timesheet belongs to."""
        if timesheet.tenant_id != actor.tenant_id:
            return False
        employee = self._session.get(Employee, timesheet.employee_id)
        return employee is not None and employee.user_id == actor.user_id

    def _forbid(self, actor: Actor, timesheet: Timesheet, reason: str) -> AccessDecision:
        logger.warning(
            "manager_access_denied",
            extra={
                "actor_id": str(actor.user_id),
                "timesheet_id": str(timesheet.id),
                "reason": reason,
            },
        )
        return AccessDecision.FORBID

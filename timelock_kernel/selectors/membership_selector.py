"""
MembershipSelector -- read side of the group/environment/manager edges.

Used by lock resolution (groups and environments of an employee) and by the
authorization gate (groups a manager is assigned to).  All queries are
tenant-scoped and return ids in a stable order.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select

from timelock_kernel.models.organization import (
    EmployeeGroupMember,
    Group,
    ManagerGroupAssignment,
)
from timelock_kernel.selectors.base import BaseSelector


class MembershipSelector(BaseSelector):
    """Read-only queries over membership edges."""

    def groups_of(self, tenant_id: UUID, employee_id: UUID) -> tuple[UUID, ...]:
        """Groups the employee belongs to."""
        rows = self.session.execute(
            select(EmployeeGroupMember.group_id)
            .where(
                EmployeeGroupMember.tenant_id == tenant_id,
                EmployeeGroupMember.employee_id == employee_id,
            )
            .order_by(EmployeeGroupMember.group_id)
        ).scalars()
        return tuple(rows)

    def environments_of(
        self, tenant_id: UUID, group_ids: Sequence[UUID]
    ) -> tuple[UUID, ...]:
        """Distinct environments reachable from the given groups."""
        if not group_ids:
            return ()
        rows = self.session.execute(
            select(Group.environment_id)
            .where(
                Group.tenant_id == tenant_id,
                Group.id.in_(list(group_ids)),
                Group.environment_id.is_not(None),
            )
            .distinct()
            .order_by(Group.environment_id)
        ).scalars()
        return tuple(rows)

    def manager_groups_among(
        self,
        tenant_id: UUID,
        manager_user_id: UUID,
        group_ids: Sequence[UUID],
    ) -> tuple[UUID, ...]:
        """Subset of ``group_ids`` the manager is assigned to."""
        if not group_ids:
            return ()
        rows = self.session.execute(
            select(ManagerGroupAssignment.group_id)
            .where(
                ManagerGroupAssignment.tenant_id == tenant_id,
                ManagerGroupAssignment.manager_user_id == manager_user_id,
                ManagerGroupAssignment.group_id.in_(list(group_ids)),
            )
            .order_by(ManagerGroupAssignment.group_id)
        ).scalars()
        return tuple(rows)

"""
Module: timelock_kernel.models.organization
Responsibility: Membership edges read by lock resolution and authorization.
Architecture position: Kernel > Models.  May import from db/base.py only.

These tables are owned by the administrative subsystem; the kernel only
reads them.  They exist here so the kernel can be exercised end to end.

    employee --< employee_group_members >-- group --> environment (optional)
    manager  --< manager_group_assignments >-- group
"""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timelock_kernel.db.base import Base, UUIDString


class UserProfile(Base):
    """Display data for an authenticated user (id = user id)."""

    __tablename__ = "user_profiles"

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    locale: Mapped[str | None] = mapped_column(String(10), nullable=True)


class Environment(Base):
    __tablename__ = "environments"

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)


class Group(Base):
    """An employee group; belongs to at most one environment."""

    __tablename__ = "groups"

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    environment_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("environments.id"),
        nullable=True,
    )


class EmployeeGroupMember(Base):
    __tablename__ = "employee_group_members"

    __table_args__ = (
        UniqueConstraint("employee_id", "group_id", name="uq_employee_group"),
    )

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("employees.id"),
        nullable=False,
    )
    group_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("groups.id"),
        nullable=False,
    )


class ManagerGroupAssignment(Base):
    """Delegation: a manager may act for the members of a group."""

    __tablename__ = "manager_group_assignments"

    __table_args__ = (
        UniqueConstraint("manager_user_id", "group_id", name="uq_manager_group"),
    )

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    manager_user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    group_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("groups.id"),
        nullable=False,
    )

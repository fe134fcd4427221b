"""
Module: timelock_kernel.models.timesheet
Responsibility: ORM persistence for employees, timesheets and their entries.
Architecture position: Kernel > Models.  May import from db/base.py only.

A timesheet covers one period for one employee.  Its ``period_start`` decides
which month's lock governs writes to any of its entries.
"""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, String, Time, func
from sqlalchemy.orm import Mapped, mapped_column

from timelock_kernel.db.base import Base, UUIDString


class TimesheetStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class Employee(Base):
    __tablename__ = "employees"

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    # Login user owning this employee record (None for unlinked employees)
    user_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True, index=True)

    display_name: Mapped[str] = mapped_column(String(200), nullable=False)


class Timesheet(Base):
    __tablename__ = "timesheets"

    __table_args__ = (
        Index("idx_timesheet_employee", "tenant_id", "employee_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("employees.id"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=TimesheetStatus.DRAFT.value,
        nullable=False,
    )


class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"

    __table_args__ = (
        Index("idx_entry_timesheet", "timesheet_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    timesheet_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("timesheets.id"),
        nullable=False,
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    entry_type: Mapped[str] = mapped_column(String(30), nullable=False)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    note: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

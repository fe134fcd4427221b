"""
DTOs -- immutable request objects that cross the service boundary.

Responsibility:
    Describes who is acting (``Actor``) and what they want to write
    (``EntryWrite``).  Authentication happens upstream; by the time an
    ``Actor`` reaches the kernel its role and tenant are trusted.

Architecture position:
    Kernel > Domain -- pure data, zero I/O, no ORM imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Any
from uuid import UUID


class ActorRole(str, Enum):
    """Roles recognised by the kernel."""

    ADMIN = "admin"
    MANAGER = "manager"
    MANAGER_TIMESHEET = "manager_timesheet"
    EMPLOYEE = "employee"


MANAGER_ROLES: frozenset[ActorRole] = frozenset(
    {ActorRole.MANAGER, ActorRole.MANAGER_TIMESHEET}
)


@dataclass(frozen=True)
class Actor:
    """An authenticated user acting inside one tenant."""

    user_id: UUID
    tenant_id: UUID
    role: ActorRole
    display_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is ActorRole.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES


class WriteOperation(str, Enum):
    """Kind of change requested on a timesheet entry."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntryType(str, Enum):
    BOARDING = "boarding"
    DISEMBARKING = "disembarking"
    TRANSFER = "transfer"
    ONSHORE = "onshore"
    OFFSHORE = "offshore"
    DAY_OFF = "day_off"


@dataclass(frozen=True)
class EntryFields:
    """
    Field values for a create or update.

    On UPDATE, ``None`` leaves the stored value untouched except for the
    nullable fields listed in ``cleared``.
    """

    entry_date: date | None = None
    entry_type: EntryType | None = None
    start_time: time | None = None
    end_time: time | None = None
    note: str | None = None
    cleared: frozenset[str] = field(default_factory=frozenset)

    def as_audit_values(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if self.entry_date is not None:
            values["entry_date"] = self.entry_date.isoformat()
        if self.entry_type is not None:
            values["entry_type"] = self.entry_type.value
        if self.start_time is not None:
            values["start_time"] = self.start_time.strftime("%H:%M")
        if self.end_time is not None:
            values["end_time"] = self.end_time.strftime("%H:%M")
        if self.note is not None:
            values["note"] = self.note
        for name in sorted(self.cleared):
            values[name] = None
        return values


@dataclass(frozen=True)
class EntryWrite:
    """A requested change to one entry of one timesheet."""

    operation: WriteOperation
    timesheet_id: UUID
    entry_id: UUID | None = None
    fields: EntryFields = field(default_factory=EntryFields)

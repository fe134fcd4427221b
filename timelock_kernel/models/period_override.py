"""
Module: timelock_kernel.models.period_override
Responsibility: ORM persistence for period lock overrides at every scope.
Architecture position: Kernel > Models.  May import from db/base.py only.

One table serves the four scopes (tenant, environment, group, employee);
the ``scope`` column tags the row and ``scope_id`` names the tenant,
environment, group or employee.  Tenant-scope rows use the tenant id as
their scope_id.

Invariants enforced:
    - At most one row per (tenant_id, scope, scope_id, period_key)
      (uq_period_override).
    - period_key is always the first day of a month (normalized by the
      writing service).
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timelock_kernel.db.base import TrackedBase, UUIDString


class PeriodOverride(TrackedBase):
    """A scope's locked/unlocked decision for one month."""

    __tablename__ = "period_overrides"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "scope",
            "scope_id",
            "period_key",
            name="uq_period_override",
        ),
        Index("idx_override_lookup", "tenant_id", "scope", "period_key"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # LockScope value
    scope: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    scope_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # First day of the month
    period_key: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    locked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )

    reason: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    def __repr__(self) -> str:
        state = "locked" if self.locked else "unlocked"
        return f"<PeriodOverride {self.scope}:{self.scope_id} {self.period_key} {state}>"

"""Read-only query layer."""

from timelock_kernel.selectors.audit_selector import AuditSelector
from timelock_kernel.selectors.membership_selector import MembershipSelector
from timelock_kernel.selectors.override_selector import OverrideSelector
from timelock_kernel.selectors.reconciliation_selector import (
    PendingAcknowledgment,
    ReconciliationSelector,
)

__all__ = [
    "AuditSelector",
    "MembershipSelector",
    "OverrideSelector",
    "PendingAcknowledgment",
    "ReconciliationSelector",
]

"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  Concrete services receive a
    SQLAlchemy ``Session`` and persist through ``session.flush()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: leaf services (AuditorService,
    PeriodOverrideService) flush within the caller's transaction and never
    commit or rollback.  The orchestrating services (TimesheetEditService,
    ReconciliationService) own commit/rollback.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT provide query-only (read) methods -- those belong
          in ``timelock_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session

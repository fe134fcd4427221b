"""
Module: timelock_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - Selectors return frozen dataclasses or tuples of ids, never ORM rows.
    - The caller owns the session and its transaction scope.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session

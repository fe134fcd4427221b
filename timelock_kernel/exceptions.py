"""
Typed exception hierarchy for the timelock kernel.

Every error class carries a machine-readable ``code`` class attribute and
stores its context as attributes, so callers catch by type and APIs render
by code instead of parsing messages.

    TimeLockError (base)
    |
    +-- ValidationError
    |   +-- InvalidPeriodKeyError
    |
    +-- LookupFailedError
    |   +-- TimesheetNotFoundError
    |   +-- EntryNotFoundError
    |   +-- AuditEventNotFoundError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- PolicyConfigError

Expected business outcomes (a locked period, a missing justification, a
forbidden actor) are NOT exceptions.  They are statuses on the frozen result
objects returned by the services (see ``EntryWriteStatus`` and
``AcknowledgmentStatus``).  The classes below cover validation failures
raised by inner layers and programming or integrity errors.

Category        | Code                      | When Raised
----------------|---------------------------|------------------------------------
Validation      | INVALID_PERIOD_KEY        | Period key not normalizable to a month
----------------|---------------------------|------------------------------------
Lookup          | TIMESHEET_NOT_FOUND       | Timesheet id unknown in tenant
                | ENTRY_NOT_FOUND           | Entry id unknown on the timesheet
                | AUDIT_EVENT_NOT_FOUND     | Audit event id unknown in tenant
----------------|---------------------------|------------------------------------
Immutability    | IMMUTABILITY_VIOLATION    | UPDATE/DELETE of an audit event
----------------|---------------------------|------------------------------------
Configuration   | POLICY_CONFIG_ERROR       | Invalid timelock configuration value
"""


class TimeLockError(Exception):
    """
    Base exception for all timelock kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "TIMELOCK_ERROR"


# Validation


class ValidationError(TimeLockError):
    """Base exception for rejected input."""

    code: str = "VALIDATION_ERROR"


class InvalidPeriodKeyError(ValidationError):
    """A period key could not be normalized to a calendar month."""

    code: str = "INVALID_PERIOD_KEY"

    def __init__(self, value: str, reason: str = "unrecognized format"):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid period key {value!r}: {reason}")


# Lookups


class LookupFailedError(TimeLockError):
    """Base exception for unknown identifiers."""

    code: str = "NOT_FOUND"


class TimesheetNotFoundError(LookupFailedError):
    """Timesheet with given ID was not found in the tenant."""

    code: str = "TIMESHEET_NOT_FOUND"

    def __init__(self, timesheet_id: str):
        self.timesheet_id = timesheet_id
        super().__init__(f"Timesheet not found: {timesheet_id}")


class EntryNotFoundError(LookupFailedError):
    """Timesheet entry was not found on the given timesheet."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str, timesheet_id: str):
        self.entry_id = entry_id
        self.timesheet_id = timesheet_id
        super().__init__(f"Entry {entry_id} not found on timesheet {timesheet_id}")


class AuditEventNotFoundError(LookupFailedError):
    """Audit event with given ID was not found in the tenant."""

    code: str = "AUDIT_EVENT_NOT_FOUND"

    def __init__(self, audit_id: str):
        self.audit_id = audit_id
        super().__init__(f"Audit event not found: {audit_id}")


# Immutability


class ImmutabilityError(TimeLockError):
    """Base exception for append-only violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempt to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


# Configuration


class PolicyConfigError(TimeLockError, ValueError):
    """A configuration value is out of range or inconsistent."""

    code: str = "POLICY_CONFIG_ERROR"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid configuration for {field_name}: {reason}")

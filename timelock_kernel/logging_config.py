"""
Structured JSON logging for the timelock kernel.

Every line is one JSON object: a fixed envelope (``ts``, ``level``,
``logger``, ``message``), the identifiers of the write or acknowledgment in
progress, then the ``extra`` fields of the call.  Event names are snake_case
(``entry_write_completed``, ``manager_edit_audit_failed``) so log queries can
match on ``message`` alone.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = (
    "correlation_id",
    "tenant_id",
    "actor_id",
    "timesheet_id",
    "entry_id",
    "audit_id",
)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"timelock_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """
    Identifiers stamped on every log line of the current request.

    A guarded write binds its correlation id, tenant, actor, timesheet and
    entry; an acknowledgment binds the audit event it answers.  Values live in
    context variables, so concurrent threads and tasks never see each other's
    identifiers.
    """

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set the given fields for the rest of the context; None is ignored."""
        for name, val in fields.items():
            if val is not None:
                _var(name).set(val)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {
            name: val
            for name, var in _CONTEXT_VARS.items()
            if (val := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @classmethod
    def bind(cls, **fields: str | None) -> "_BoundContext":
        """Set fields for the duration of a ``with`` block, then restore them."""
        return _BoundContext(fields)


def _var(name: str) -> ContextVar[str | None]:
    try:
        return _CONTEXT_VARS[name]
    except KeyError:
        raise TypeError(f"Unknown log context field: {name}") from None


class _BoundContext:
    def __init__(self, fields: dict[str, str | None]):
        self._values = [(_var(name), val) for name, val in fields.items() if val is not None]
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> type[LogContext]:
        for var, val in self._values:
            self._tokens.append((var, var.set(val)))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        # Tokens reset newest first
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class _JSONEncoder(json.JSONEncoder):
    """Ids, period keys and timestamps as strings."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return str(obj)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, bound context, extras, error."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())

        for key, val in vars(record).items():
            # Envelope and context keys win over a clashing extra
            if key not in _RECORD_ATTRS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_describe_error(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder)


def _describe_error(exc: BaseException) -> dict[str, Any]:
    """``exc_*`` fields; kernel errors also expose ``code`` and their attributes."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, val in vars(exc).items():
        if not name.startswith("_") and name not in ("args", "code"):
            fields[f"exc_{name}"] = val
    return fields


# ---------------------------------------------------------------------------
# Logger factory
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "timelock_kernel"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the timelock_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Configure the timelock_kernel logger hierarchy (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)

"""
Period keys -- canonical first-of-month dates.

Locks are granted per calendar month.  Every lookup goes through
``normalize_period_key`` so that ``"2025-03"``, ``"2025-03-17"``,
``"2025-03-01T08:30:00Z"``, ``date(2025, 3, 31)`` and ``datetime(2025, 3, 2)``
all address the same override rows.

Pure module: no I/O, no clock.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from timelock_kernel.exceptions import InvalidPeriodKeyError

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

PeriodLike = str | date | datetime


def normalize_period_key(value: PeriodLike) -> date:
    """
    Normalize a month, date or datetime to the first day of its month.

    Datetime strings are cut at the date part; no timezone conversion is
    applied, so ``2025-03-31T23:30:00-03:00`` stays in March.

    Raises:
        InvalidPeriodKeyError: if ``value`` is not a recognizable month,
            date or datetime, or names an impossible calendar date.
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, 1)
    if isinstance(value, date):
        return date(value.year, value.month, 1)
    if not isinstance(value, str):
        raise InvalidPeriodKeyError(repr(value), "expected a string, date or datetime")

    text = value.strip()
    match = _MONTH_RE.match(text)
    if match:
        year, month, day = int(match.group(1)), int(match.group(2)), 1
    else:
        match = _DATE_RE.match(text)
        if match is None:
            raise InvalidPeriodKeyError(value)
        year, month, day = (int(g) for g in match.groups())
        rest = text[10:]
        if rest and rest[0] not in ("T", " "):
            raise InvalidPeriodKeyError(value)

    try:
        # Validates the full date even though only the month survives.
        date(year, month, day)
    except ValueError as exc:
        raise InvalidPeriodKeyError(value, str(exc)) from exc
    return date(year, month, 1)


def format_period_key(value: PeriodLike) -> str:
    """Render the canonical ``YYYY-MM-01`` string for a period."""
    return normalize_period_key(value).isoformat()

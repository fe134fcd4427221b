"""Tests for period key normalization (timelock_kernel/domain/period_key.py)."""

from datetime import date, datetime, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from timelock_kernel.domain.period_key import format_period_key, normalize_period_key
from timelock_kernel.exceptions import InvalidPeriodKeyError

any_day = st.dates(min_value=date(1900, 1, 1), max_value=date(2999, 12, 31))


class TestAcceptedForms:
    """Every representation of a day lands on the first of its month."""

    @pytest.mark.parametrize(
        "value",
        [
            "2025-03",
            "2025-03-01",
            "2025-03-31",
            "2025-03-17T08:30:00Z",
            "2025-03-31T23:30:00-03:00",
            "2025-03-05 12:00:00",
            " 2025-03 ",
            date(2025, 3, 31),
            datetime(2025, 3, 2, 9, 15),
            datetime(2025, 3, 2, 9, 15, tzinfo=timezone.utc),
        ],
    )
    def test_normalizes_to_first_of_march(self, value):
        assert normalize_period_key(value) == date(2025, 3, 1)

    def test_format_renders_iso_first_of_month(self):
        assert format_period_key("2025-11-19") == "2025-11-01"


class TestRejectedForms:
    @pytest.mark.parametrize(
        "value",
        ["", "2025", "2025-3", "03-2025", "2025/03/01", "2025-13", "2025-02-30",
         "2025-03-01x", "not a month"],
    )
    def test_invalid_strings_raise(self, value):
        with pytest.raises(InvalidPeriodKeyError) as exc_info:
            normalize_period_key(value)
        assert exc_info.value.code == "INVALID_PERIOD_KEY"

    @pytest.mark.parametrize("value", [None, 202503, 2025.03, ["2025-03"]])
    def test_non_string_values_raise(self, value):
        with pytest.raises(InvalidPeriodKeyError):
            normalize_period_key(value)


class TestNormalizationProperties:
    @given(any_day)
    def test_idempotent(self, day):
        once = normalize_period_key(day)
        assert normalize_period_key(once) == once
        assert normalize_period_key(once.isoformat()) == once

    @given(any_day)
    def test_every_representation_agrees(self, day):
        expected = date(day.year, day.month, 1)
        assert normalize_period_key(day) == expected
        assert normalize_period_key(day.isoformat()) == expected
        assert normalize_period_key(day.strftime("%Y-%m")) == expected
        assert normalize_period_key(f"{day.isoformat()}T23:59:59Z") == expected

    @given(any_day, any_day)
    def test_same_month_same_key(self, a, b):
        same_month = (a.year, a.month) == (b.year, b.month)
        assert (normalize_period_key(a) == normalize_period_key(b)) is same_month

"""Tests for reporting window resolution."""

from datetime import datetime

import pytest

from finovate.domain.periods import (
    Period,
    category_period,
    income_expense_period,
    month_start,
    profit_period,
    resolve_count,
    resolve_period,
    year_start,
)

NOW = datetime(2024, 6, 15, 14, 30)


class TestResolveCount:
    """Tests for count parsing and clamping."""

    @pytest.mark.parametrize(
        "spec, expected",
        [
            (None, 12),
            ("", 12),
            ("abc", 12),
            (0, 12),
            ("0", 12),
            (6, 6),
            ("6", 6),
            ("6months", 6),
            (" 7 ", 7),
            (1000, 60),
            ("-5", 1),
            (-3, 1),
        ],
    )
    def test_resolve_count(self, spec, expected):
        assert resolve_count(spec, default=12, maximum=60) == expected

    def test_bool_is_not_a_count(self):
        assert resolve_count(True, default=12, maximum=60) == 12


class TestResolvePeriod:
    """Tests for resolve_period."""

    def test_month_window_truncated_to_midnight(self):
        period = resolve_period(3, unit="months", default=12, maximum=60, now=NOW)

        assert period.start == datetime(2024, 3, 15)
        assert period.end == NOW

    def test_day_window(self):
        period = resolve_period("10", unit="days", default=30, maximum=365, now=NOW)

        assert period.start == datetime(2024, 6, 5)

    @pytest.mark.parametrize(
        "bucket, days", [("weekly", 7), ("monthly", 30), ("yearly", 365), ("Weekly ", 7)]
    )
    def test_named_buckets_for_days(self, bucket, days):
        period = resolve_period(bucket, unit="days", default=30, maximum=365, now=NOW)
        expected = resolve_period(days, unit="days", default=30, maximum=365, now=NOW)

        assert period == expected

    def test_named_bucket_ignored_for_months(self):
        period = resolve_period("weekly", unit="months", default=12, maximum=60, now=NOW)

        assert period.start == datetime(2023, 6, 15)

    def test_month_arithmetic_clamps_day(self):
        period = resolve_period(1, unit="months", default=12, maximum=60, now=datetime(2024, 3, 31))

        assert period.start == datetime(2024, 2, 29)


def test_income_expense_period_defaults_to_twelve_months():
    period = income_expense_period(None, now=NOW)

    assert period.start == datetime(2023, 6, 15)


def test_income_expense_period_clamped_to_sixty_months():
    period = income_expense_period("1000", now=NOW)

    assert period.start == datetime(2019, 6, 15)


def test_category_period_defaults_to_thirty_days():
    period = category_period("nonsense", now=NOW)

    assert period.start == datetime(2024, 5, 16)


def test_category_period_clamped_to_a_year():
    period = category_period(1000, now=NOW)

    assert period.start == datetime(2023, 6, 16)


class TestProfitPeriod:
    """Tests for the month-aligned profit window."""

    def test_six_months_starts_on_first_of_month(self):
        period = profit_period(6, now=NOW)

        assert period.start == datetime(2024, 1, 1)
        assert period.end == NOW

    def test_default_is_twelve_months(self):
        assert profit_period(None, now=NOW).start == datetime(2023, 7, 1)

    def test_clamped_to_twenty_four_months(self):
        assert profit_period(100, now=NOW).start == datetime(2022, 7, 1)

    def test_single_month(self):
        assert profit_period(1, now=NOW).start == datetime(2024, 6, 1)


def test_period_contains_is_inclusive():
    period = Period(start=datetime(2024, 1, 1), end=datetime(2024, 1, 31))

    assert period.contains(datetime(2024, 1, 1))
    assert period.contains(datetime(2024, 1, 31))
    assert not period.contains(datetime(2024, 2, 1))


def test_month_and_year_start():
    assert month_start(NOW) == datetime(2024, 6, 1)
    assert year_start(NOW) == datetime(2024, 1, 1)

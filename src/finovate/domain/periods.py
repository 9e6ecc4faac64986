"""Reporting window resolution.

Report endpoints are best-effort dashboards: a missing or malformed period
falls back to the endpoint default instead of raising.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal, Optional, Union

from dateutil.relativedelta import relativedelta

PeriodSpec = Union[int, str, None]
PeriodUnit = Literal["months", "days"]

NAMED_BUCKETS: dict[str, int] = {
    "weekly": 7,
    "monthly": 30,
    "yearly": 365,
}

INCOME_EXPENSE_DEFAULT_MONTHS = 12
INCOME_EXPENSE_MAX_MONTHS = 60
CATEGORY_DEFAULT_DAYS = 30
CATEGORY_MAX_DAYS = 365
PROFIT_DEFAULT_MONTHS = 12
PROFIT_MAX_MONTHS = 24

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Period:
    """Resolved reporting window. Records up to and including ``end`` qualify."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


def utc_now() -> datetime:
    """Current instant as a naive UTC datetime, the representation used by storage."""
    return datetime.now(UTC).replace(tzinfo=None)


def start_of_day(instant: datetime) -> datetime:
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def month_start(instant: datetime) -> datetime:
    """First instant of the calendar month containing ``instant``."""
    return start_of_day(instant).replace(day=1)


def year_start(instant: datetime) -> datetime:
    """First instant of the calendar year containing ``instant``."""
    return month_start(instant).replace(month=1)


def _parse_count(spec: PeriodSpec) -> Optional[int]:
    """Read a count the way the dashboards always have: leading integer or nothing."""
    if spec is None or isinstance(spec, bool):
        return None
    if isinstance(spec, int):
        return spec
    match = _LEADING_INT.match(str(spec))
    if match is None:
        return None
    return int(match.group(1))


def resolve_count(spec: PeriodSpec, *, default: int, maximum: int, minimum: int = 1) -> int:
    """Resolve a requested count, falling back to ``default`` and clamping.

    Zero counts as missing, negative counts clamp to ``minimum``.
    """
    count = _parse_count(spec)
    if not count:
        count = default
    return min(max(minimum, count), maximum)


def resolve_period(
    spec: PeriodSpec,
    *,
    unit: PeriodUnit,
    default: int,
    maximum: int,
    now: Optional[datetime] = None,
) -> Period:
    """Turn a requested window into a concrete ``Period`` ending now.

    Args:
        spec: Count of trailing units, a numeric string, or a named bucket
            (``weekly``, ``monthly``, ``yearly``; day windows only)
        unit: ``"months"`` or ``"days"``
        default: Count used when ``spec`` is missing or unrecognized
        maximum: Upper clamp for the count
        now: Reference instant, defaults to the current UTC time

    Returns:
        Period whose start is truncated to midnight
    """
    end = now if now is not None else utc_now()

    count: Optional[int] = None
    if unit == "days" and isinstance(spec, str):
        count = NAMED_BUCKETS.get(spec.strip().lower())
    if count is None:
        count = resolve_count(spec, default=default, maximum=maximum)

    if unit == "months":
        start = end - relativedelta(months=count)
    else:
        start = end - timedelta(days=count)
    return Period(start=start_of_day(start), end=end)


def income_expense_period(spec: PeriodSpec = None, now: Optional[datetime] = None) -> Period:
    """Trailing months window for the income/expense series."""
    return resolve_period(
        spec,
        unit="months",
        default=INCOME_EXPENSE_DEFAULT_MONTHS,
        maximum=INCOME_EXPENSE_MAX_MONTHS,
        now=now,
    )


def category_period(spec: PeriodSpec = None, now: Optional[datetime] = None) -> Period:
    """Trailing days window for the category breakdown."""
    return resolve_period(
        spec,
        unit="days",
        default=CATEGORY_DEFAULT_DAYS,
        maximum=CATEGORY_MAX_DAYS,
        now=now,
    )


def profit_period(months: PeriodSpec = None, now: Optional[datetime] = None) -> Period:
    """Month-aligned window covering ``months`` calendar months up to the current one.

    The start is the first day of the month so a gap-filled series over this
    window has exactly ``months`` entries, the last being the current month.
    """
    end = now if now is not None else utc_now()
    count = resolve_count(months, default=PROFIT_DEFAULT_MONTHS, maximum=PROFIT_MAX_MONTHS)
    start = month_start(end) - relativedelta(months=count - 1)
    return Period(start=start, end=end)

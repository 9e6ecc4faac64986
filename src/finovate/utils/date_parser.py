"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta
from typing import Callable

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _year_start(day: date) -> date:
    return day.replace(month=1, day=1)


# Each unit maps to (start of the unit containing a day, one unit as a step)
_UNITS: dict[str, tuple[Callable[[date], date], relativedelta]] = {
    "week": (_week_start, relativedelta(weeks=1)),
    "month": (_month_start, relativedelta(months=1)),
    "year": (_year_start, relativedelta(years=1)),
}

_OFFSETS = {"last": -1, "this": 0, "next": 1}

_DAYS = {"yesterday": -1, "today": 0, "tomorrow": 1}


def _relative_date(text: str, today: date) -> date | None:
    if text in _DAYS:
        return today + timedelta(days=_DAYS[text])

    words = text.split()
    if len(words) != 2 or words[0] not in _OFFSETS or words[1] not in _UNITS:
        return None
    start_of, step = _UNITS[words[1]]
    return start_of(today) + step * _OFFSETS[words[0]]


def parse_date(date_str: str, today: date | None = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and relative
    ones: "today", "yesterday", "tomorrow", and "last|this|next week|month|year",
    which resolve to the first day of that week (Monday), month or year.

    Args:
        date_str: Date string in various formats
        today: Reference day for relative dates, defaults to the current day

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = " ".join(date_str.strip().lower().split())
    relative = _relative_date(text, today or date.today())
    if relative is not None:
        return relative

    try:
        return date_parser.parse(text).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_datetime(date_str: str) -> datetime:
    """Parse a date string into a naive datetime at midnight.

    Accepts everything ``parse_date`` accepts.
    """
    return datetime.combine(parse_date(date_str), time.min)

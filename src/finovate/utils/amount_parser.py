"""Parsing and coercion of monetary amounts."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥₹]")


def parse_amount(amount_str: str) -> Decimal:
    """Strictly parse user input such as "$1,234.56" or "€ 99".

    Currency symbols and thousands separators are dropped before conversion.

    Raises:
        ValueError: If nothing is left to parse, or the result is not a finite number
    """
    cleaned = _CURRENCY_SYMBOLS.sub("", amount_str or "").replace(",", "").strip()
    if not cleaned:
        raise ValueError(f"Empty amount: {amount_str!r}")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Not a number: {amount_str!r}") from None

    if not amount.is_finite():
        raise ValueError(f"Not a finite amount: {amount_str!r}")
    return amount


def coerce_amount(value: Any) -> Decimal:
    """Coerce a stored monetary value to Decimal without failing.

    Storage may hand back Decimal, int, float or a string-encoded decimal.
    Anything unparseable becomes zero and is logged.
    """
    if isinstance(value, Decimal):
        if value.is_finite():
            return value
    elif isinstance(value, bool):
        pass
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 stays 0.1
        amount = Decimal(str(value))
        if amount.is_finite():
            return amount
    elif isinstance(value, str):
        try:
            return parse_amount(value)
        except ValueError:
            pass

    logger.warning("amount_unparseable", raw_amount=repr(value))
    return ZERO

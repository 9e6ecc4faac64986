"""Utility functions for finovate."""

from finovate.utils.date_parser import parse_date, parse_datetime
from finovate.utils.amount_parser import parse_amount, coerce_amount

__all__ = ["parse_date", "parse_datetime", "parse_amount", "coerce_amount"]

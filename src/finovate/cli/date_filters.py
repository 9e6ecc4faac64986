"""CLI helpers for date option parsing."""

from datetime import datetime, time

import click

from finovate.utils.date_parser import parse_date


def parse_cli_date(ctx, value: str | None, label: str, end_of_day: bool = False) -> datetime | None:
    """Parse a date option, exiting with an error message if it is invalid.

    With ``end_of_day`` the result is the last instant of that day, so that
    an inclusive ``--to`` filter covers the whole day.
    """
    if value is None:
        return None
    try:
        day = parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)
    return datetime.combine(day, time.max if end_of_day else time.min)

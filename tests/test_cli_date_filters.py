"""Tests for CLI date option helper."""

from datetime import datetime

import click
import pytest

from finovate.cli.date_filters import parse_cli_date


def _ctx() -> click.Context:
    return click.Context(click.Command("test"))


def test_missing_value_is_none():
    assert parse_cli_date(_ctx(), None, "date") is None


def test_start_of_day():
    assert parse_cli_date(_ctx(), "2024-01-15", "date") == datetime(2024, 1, 15)


def test_end_of_day():
    result = parse_cli_date(_ctx(), "2024-01-15", "end date", end_of_day=True)

    assert result.date() == datetime(2024, 1, 15).date()
    assert (result.hour, result.minute, result.second) == (23, 59, 59)


def test_invalid_date_exits(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        parse_cli_date(_ctx(), "not a date", "start date")

    assert excinfo.value.exit_code == 1
    assert "Invalid start date" in capsys.readouterr().err

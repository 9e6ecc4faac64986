"""Tests for dashboard service."""

from datetime import datetime
from decimal import Decimal

import pytest

from conftest import OTHER_OWNER, OWNER
from finovate.domain.dashboard import DashboardService
from finovate.domain.entities import TransactionKind
from finovate.domain.invoice import InvoiceService

NOW = datetime(2024, 6, 15, 12, 0)


@pytest.fixture
def books(any_db):
    """A small set of books: entries across several months, two invoices, a goal."""
    entries = [
        (TransactionKind.CREDIT, "Retainer", "3000", datetime(2024, 6, 2), "Services"),
        (TransactionKind.DEBIT, "Rent", "1200", datetime(2024, 6, 3), "Rent"),
        (TransactionKind.DEBIT, "Groceries", "300", datetime(2024, 6, 10), "Food"),
        (TransactionKind.DEBIT, "Fuel", "100", datetime(2024, 5, 28), "Travel"),
        (TransactionKind.CREDIT, "Project", "2000", datetime(2024, 3, 15), "Services"),
        (TransactionKind.DEBIT, "Laptop", "900", datetime(2023, 12, 1), "Equipment"),
    ]
    for kind, description, amount, occurred_at, category in entries:
        any_db.create_transaction(
            OWNER,
            kind=kind,
            description=description,
            amount=Decimal(amount),
            occurred_at=occurred_at,
            category=category,
        )
    invoices = InvoiceService(any_db)
    invoices.create_invoice(OWNER, client_name="Acme", amount="500", issue_date=datetime(2024, 6, 1))
    invoices.create_invoice(OWNER, client_name="Globex", amount="250", issue_date=datetime(2024, 5, 1))
    any_db.set_goal(OWNER, Decimal("6000"))
    return any_db


@pytest.fixture
def service(books):
    return DashboardService(books)


class TestSummary:
    """Tests for the dashboard summary."""

    def test_totals(self, service):
        summary = service.summary(OWNER, now=NOW)

        assert summary.total_balance == Decimal("2500")
        assert summary.total_invoice_amount == Decimal("750")
        assert summary.monthly_income == Decimal("3000")
        assert summary.monthly_expenses == Decimal("1500")
        assert summary.monthly_profit == Decimal("1500")
        assert summary.monthly_goal == Decimal("6000")

    def test_goal_progress(self, service):
        progress = service.summary(OWNER, now=NOW).goal_progress

        assert progress.ratio == Decimal("0.5")

    def test_category_breakdown_is_current_month(self, service):
        breakdown = service.summary(OWNER, now=NOW).category_expenses

        assert [(item.category, item.percentage) for item in breakdown] == [
            ("Rent", 80),
            ("Food", 20),
        ]

    def test_series_is_year_to_date(self, service):
        series = service.summary(OWNER, now=NOW).income_expense_series

        assert [entry.month for entry in series] == ["2024-03", "2024-05", "2024-06"]

    def test_recent_records_capped(self, service):
        summary = service.summary(OWNER, now=NOW)

        assert len(summary.recent_transactions) == 5
        assert len(summary.recent_invoices) == 2

    def test_empty_books_for_other_owner(self, service):
        summary = service.summary(OTHER_OWNER, now=NOW)

        assert summary.total_balance == Decimal("0")
        assert summary.monthly_goal == Decimal("0")
        assert summary.goal_progress is None
        assert summary.category_expenses == ()
        assert summary.recent_transactions == ()


class TestReports:
    """Tests for the individual report endpoints."""

    def test_income_expense(self, service):
        series = service.income_expense(OWNER, "6", now=NOW)

        assert [(e.month, e.income, e.expenses) for e in series] == [
            ("2024-03", Decimal("2000"), Decimal("0")),
            ("2024-05", Decimal("0"), Decimal("100")),
            ("2024-06", Decimal("3000"), Decimal("1500")),
        ]

    def test_income_expense_default_covers_a_year(self, service):
        series = service.income_expense(OWNER, None, now=NOW)

        assert series[0].month == "2023-12"

    def test_category_expenses_weekly(self, service):
        breakdown = service.category_expenses(OWNER, "weekly", now=NOW)

        assert [item.category for item in breakdown] == ["Food"]

    def test_category_expenses_default_thirty_days(self, service):
        breakdown = service.category_expenses(OWNER, None, now=NOW)

        assert [item.category for item in breakdown] == ["Rent", "Food", "Travel"]
        assert [item.percentage for item in breakdown] == [75, 19, 6]

    def test_yearly_profit_gap_filled(self, service):
        series = service.yearly_profit(OWNER, 6, now=NOW)

        assert len(series) == 6
        assert [e.profit for e in series] == [
            Decimal("0"),
            Decimal("0"),
            Decimal("2000"),
            Decimal("0"),
            Decimal("-100"),
            Decimal("1500"),
        ]

    def test_yearly_profit_invalid_months_uses_default(self, service):
        assert len(service.yearly_profit(OWNER, "abc", now=NOW)) == 12

    def test_goal_passthrough(self, service):
        service.set_goal(OWNER, "7000")

        assert service.get_goal(OWNER) == Decimal("7000")


def test_paid_invoice_shows_up_in_balance(temp_db):
    invoices = InvoiceService(temp_db)
    dashboard = DashboardService(temp_db)
    invoice_id = invoices.create_invoice(OWNER, client_name="Acme", amount="1000", tax_amount="100")
    before = dashboard.summary(OWNER).total_balance

    invoices.mark_paid(OWNER, invoice_id)

    assert dashboard.summary(OWNER).total_balance - before == Decimal("1100")

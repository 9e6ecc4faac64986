"""Dashboard report domain service."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog

from finovate.database.base import Database
from finovate.domain import aggregation
from finovate.domain.entities import (
    CategoryExpense,
    DashboardSummary,
    MonthlyIncomeExpense,
    MonthlyProfit,
    TransactionKind,
)
from finovate.domain.goal import GoalService, goal_progress
from finovate.domain.periods import (
    Period,
    PeriodSpec,
    category_period,
    income_expense_period,
    month_start,
    profit_period,
    utc_now,
    year_start,
)

logger = structlog.get_logger(__name__)

RECENT_LIMIT = 5


class DashboardService:
    """Builds the dashboard reports for one owner.

    Each report resolves its window first, then reads the owner's ledger for
    that window, then aggregates in memory.
    """

    def __init__(self, db: Database, goals: Optional[GoalService] = None):
        """Initialize dashboard service.

        Args:
            db: Database instance
            goals: Goal service, created on the same database if omitted
        """
        self.db = db
        self.goals = goals or GoalService(db)

    def summary(self, owner_id: str, now: Optional[datetime] = None) -> DashboardSummary:
        """Balance, invoice total, current month figures, goal and chart data."""
        now = now or utc_now()
        transactions = self.db.find_transactions(owner_id)
        invoices = self.db.find_invoices(owner_id)

        monthly = aggregation.monthly_totals(transactions, now)
        goal = self.goals.get_goal(owner_id)
        summary = DashboardSummary(
            total_balance=aggregation.total_balance(transactions),
            total_invoice_amount=aggregation.total_invoice_amount(invoices),
            monthly_income=monthly.income,
            monthly_expenses=monthly.expenses,
            monthly_profit=monthly.profit,
            monthly_goal=goal,
            goal_progress=goal_progress(monthly.income, goal),
            category_expenses=tuple(
                aggregation.category_expenses(transactions, Period(month_start(now), now))
            ),
            income_expense_series=tuple(
                aggregation.income_expense_series(transactions, Period(year_start(now), now))
            ),
            recent_transactions=tuple(aggregation.most_recent(transactions, RECENT_LIMIT)),
            recent_invoices=tuple(aggregation.most_recent(invoices, RECENT_LIMIT)),
        )
        logger.debug(
            "dashboard_summary_built",
            owner_id=owner_id,
            transactions=len(transactions),
            invoices=len(invoices),
        )
        return summary

    def income_expense(
        self, owner_id: str, period: PeriodSpec = None, now: Optional[datetime] = None
    ) -> list[MonthlyIncomeExpense]:
        """Monthly income and expenses over the trailing ``period`` months."""
        window = income_expense_period(period, now)
        transactions = self.db.find_transactions(
            owner_id, date_from=window.start, date_to=window.end
        )
        return aggregation.income_expense_series(transactions, window)

    def category_expenses(
        self, owner_id: str, period: PeriodSpec = None, now: Optional[datetime] = None
    ) -> list[CategoryExpense]:
        """Expense breakdown by category over the trailing ``period`` days or bucket."""
        window = category_period(period, now)
        transactions = self.db.find_transactions(
            owner_id, date_from=window.start, date_to=window.end, kind=TransactionKind.DEBIT
        )
        return aggregation.category_expenses(transactions, window)

    def yearly_profit(
        self, owner_id: str, months: PeriodSpec = None, now: Optional[datetime] = None
    ) -> list[MonthlyProfit]:
        """Gap-filled monthly profit over the last ``months`` calendar months."""
        window = profit_period(months, now)
        transactions = self.db.find_transactions(
            owner_id, date_from=window.start, date_to=window.end
        )
        return aggregation.profit_series(transactions, window)

    def get_goal(self, owner_id: str) -> Decimal:
        """Current monthly goal, 0 if unset."""
        return self.goals.get_goal(owner_id)

    def set_goal(self, owner_id: str, value: Any) -> Decimal:
        """Replace the monthly goal; raises ValidationError when out of range."""
        return self.goals.set_goal(owner_id, value)

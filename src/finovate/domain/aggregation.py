"""Dashboard aggregation over ledger snapshots.

Every function here is pure: it reads the records it is given and returns
new report objects. Records are duck-typed so ORM rows, domain entities and
test doubles can all be aggregated. Malformed amounts or kinds degrade to
zero contributions instead of failing the report.
"""

from collections import defaultdict
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from finovate.domain.entities import (
    CategoryExpense,
    MonthlyIncomeExpense,
    MonthlyProfit,
    MonthlyTotals,
    TransactionKind,
)
from finovate.domain.kinds import read_kind
from finovate.domain.periods import Period, month_start
from finovate.utils.amount_parser import ZERO, coerce_amount

UNCATEGORIZED = "Uncategorized"
MONTH_KEY_FORMAT = "%Y-%m"


def month_key(instant: datetime) -> str:
    """``YYYY-MM`` bucket for an instant."""
    return instant.strftime(MONTH_KEY_FORMAT)


def month_keys(start: datetime, end: datetime) -> list[str]:
    """Every ``YYYY-MM`` key from the month of ``start`` to the month of ``end`` inclusive."""
    keys: list[str] = []
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        keys.append(month_key(current))
        current += relativedelta(months=1)
    return keys


def category_label(category: Optional[str]) -> str:
    """Reporting label for a transaction category."""
    if category is None or not str(category).strip():
        return UNCATEGORIZED
    return str(category)


def round_percentage(part: Decimal, total: Decimal) -> int:
    """``round(100 * part / total)`` with half-up rounding; 0 when total is 0."""
    if total <= ZERO:
        return 0
    return int((part * 100 / total).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _signed_parts(txn: Any) -> tuple[Optional[TransactionKind], Decimal]:
    return read_kind(txn.kind), coerce_amount(txn.amount)


def split_totals(transactions: Iterable[Any]) -> tuple[Decimal, Decimal]:
    """Sum credits and debits separately.

    Returns:
        Tuple of (credits, debits), both non-negative
    """
    credits = ZERO
    debits = ZERO
    for txn in transactions:
        kind, amount = _signed_parts(txn)
        if kind is TransactionKind.CREDIT:
            credits += amount
        elif kind is TransactionKind.DEBIT:
            debits += amount
    return credits, debits


def total_balance(transactions: Iterable[Any]) -> Decimal:
    """Credits minus debits over every transaction given."""
    credits, debits = split_totals(transactions)
    return credits - debits


def monthly_totals(transactions: Iterable[Any], now: datetime) -> MonthlyTotals:
    """Income, expenses and profit since the start of the current calendar month."""
    since = month_start(now)
    credits, debits = split_totals(txn for txn in transactions if txn.occurred_at >= since)
    return MonthlyTotals(income=credits, expenses=debits, profit=credits - debits)


def total_invoice_amount(invoices: Iterable[Any]) -> Decimal:
    """Sum of ``total_amount`` over all invoices, whatever their status."""
    return sum((coerce_amount(invoice.total_amount) for invoice in invoices), ZERO)


def category_expenses(
    transactions: Iterable[Any], period: Optional[Period] = None
) -> list[CategoryExpense]:
    """Group debits in ``period`` by category, largest first.

    Percentages are rounded independently, so they need not sum to 100.
    Ties keep first-seen group order.
    """
    groups: dict[str, dict[str, Any]] = {}
    for txn in transactions:
        if period is not None and not period.contains(txn.occurred_at):
            continue
        kind, amount = _signed_parts(txn)
        if kind is not TransactionKind.DEBIT:
            continue
        label = category_label(txn.category)
        group = groups.setdefault(label, {"amount": ZERO, "count": 0})
        group["amount"] += amount
        group["count"] += 1

    total = sum((group["amount"] for group in groups.values()), ZERO)
    results = [
        CategoryExpense(
            category=label,
            amount=group["amount"],
            count=group["count"],
            percentage=round_percentage(group["amount"], total),
        )
        for label, group in groups.items()
    ]
    results.sort(key=lambda item: item.amount, reverse=True)
    return results


def _group_by_month(
    transactions: Iterable[Any], period: Optional[Period]
) -> dict[str, dict[str, Decimal]]:
    by_month: dict[str, dict[str, Decimal]] = defaultdict(
        lambda: {"income": ZERO, "expenses": ZERO}
    )
    for txn in transactions:
        if period is not None and not period.contains(txn.occurred_at):
            continue
        kind, amount = _signed_parts(txn)
        if kind is None:
            continue
        bucket = by_month[month_key(txn.occurred_at)]
        if kind is TransactionKind.CREDIT:
            bucket["income"] += amount
        elif kind is TransactionKind.DEBIT:
            bucket["expenses"] += amount
    return by_month


def income_expense_series(
    transactions: Iterable[Any], period: Optional[Period] = None
) -> list[MonthlyIncomeExpense]:
    """One entry per month that has at least one transaction, oldest first."""
    by_month = _group_by_month(transactions, period)
    return [
        MonthlyIncomeExpense(month=key, income=data["income"], expenses=data["expenses"])
        for key, data in sorted(by_month.items())
    ]


def profit_series(transactions: Iterable[Any], period: Period) -> list[MonthlyProfit]:
    """Monthly profit for every month of ``period``, zero-filled where empty."""
    by_month = _group_by_month(transactions, period)
    series: list[MonthlyProfit] = []
    for key in month_keys(period.start, period.end):
        data = by_month.get(key)
        income = data["income"] if data else ZERO
        expenses = data["expenses"] if data else ZERO
        series.append(
            MonthlyProfit(month=key, income=income, expenses=expenses, profit=income - expenses)
        )
    return series


def most_recent(records: Sequence[Any], limit: int = 5) -> list[Any]:
    """Latest ``limit`` records by creation time."""
    return sorted(records, key=lambda record: record.created_at, reverse=True)[:limit]

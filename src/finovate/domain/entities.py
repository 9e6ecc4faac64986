"""Domain model entities for finovate.

These are pure data classes representing business concepts, independent of
database schema. Report types produced by the aggregation layer live here
too, so every layer shares one vocabulary.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class TransactionKind(str, Enum):
    """Direction of money for a ledger entry. The amount never carries a sign."""

    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class Transaction:
    """Ledger entry domain entity.

    ``kind`` is None only when a stored row carries a spelling that no
    longer maps to a known kind; such rows are skipped by aggregation.
    """

    id: int
    owner_id: str
    kind: Optional[TransactionKind]
    description: str
    amount: Decimal
    occurred_at: datetime
    category: Optional[str]
    created_at: datetime
    updated_at: datetime
    bank_account_id: Optional[int] = None
    source_invoice_id: Optional[int] = None


@dataclass(frozen=True)
class InvoiceItem:
    """Single invoice line."""

    name: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class ItemizedLines:
    """Invoice body made of individual line items."""

    items: tuple[InvoiceItem, ...]

    @property
    def subtotal(self) -> Decimal:
        return sum((item.amount for item in self.items), Decimal("0"))


@dataclass(frozen=True)
class SimpleAmount:
    """Invoice body made of a single bare amount."""

    amount: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.amount


InvoiceLines = Union[ItemizedLines, SimpleAmount]


@dataclass(frozen=True)
class Invoice:
    """Invoice domain entity."""

    id: int
    owner_id: str
    invoice_number: str
    client_name: str
    lines: InvoiceLines
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: InvoiceStatus
    issue_date: datetime
    created_at: datetime
    updated_at: datetime
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    notes: Optional[str] = None
    bank_account_id: Optional[int] = None


@dataclass(frozen=True)
class BankAccount:
    """Bank account domain entity."""

    id: int
    owner_id: str
    name: str
    bank_name: str
    account_type: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class BankAccountStats:
    """Bank account with its balance computed from linked transactions."""

    account: BankAccount
    credits: Decimal
    debits: Decimal
    balance: Decimal
    transaction_count: int


@dataclass(frozen=True)
class MonthlyTotals:
    """Signed split of the current calendar month."""

    income: Decimal
    expenses: Decimal
    profit: Decimal


@dataclass(frozen=True)
class CategoryExpense:
    """Debit total for one category within a period."""

    category: str
    amount: Decimal
    count: int
    percentage: int


@dataclass(frozen=True)
class MonthlyIncomeExpense:
    """Income and expenses for one ``YYYY-MM`` month."""

    month: str
    income: Decimal
    expenses: Decimal


@dataclass(frozen=True)
class MonthlyProfit:
    """Income, expenses and profit for one ``YYYY-MM`` month."""

    month: str
    income: Decimal
    expenses: Decimal
    profit: Decimal


@dataclass(frozen=True)
class GoalProgress:
    """Progress of monthly income against the monthly goal."""

    goal: Decimal
    income: Decimal
    ratio: Decimal
    percent_complete: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    """Dashboard aggregate for one owner at one instant."""

    total_balance: Decimal
    total_invoice_amount: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_profit: Decimal
    monthly_goal: Optional[Decimal]
    category_expenses: tuple[CategoryExpense, ...]
    income_expense_series: tuple[MonthlyIncomeExpense, ...]
    goal_progress: Optional[GoalProgress] = None
    recent_transactions: tuple[Transaction, ...] = field(default_factory=tuple)
    recent_invoices: tuple[Invoice, ...] = field(default_factory=tuple)

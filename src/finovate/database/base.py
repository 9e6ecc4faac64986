"""Abstract ledger database interface.

Every data method takes the owner id first. Implementations must never
return or modify rows that belong to a different owner.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from finovate.domain.entities import (
    BankAccount,
    Invoice,
    InvoiceLines,
    InvoiceStatus,
    Transaction,
    TransactionKind,
)


class Database(ABC):
    """Abstract database interface for finovate."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group writes into one all-or-nothing unit.

        Writes made inside the block are committed when it exits normally and
        discarded when it raises. Blocks may nest; only the outermost commits.
        """
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        owner_id: str,
        kind: TransactionKind,
        description: str,
        amount: Decimal,
        occurred_at: datetime,
        category: Optional[str] = None,
        bank_account_id: Optional[int] = None,
        source_invoice_id: Optional[int] = None,
    ) -> int:
        """Create a ledger entry. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, owner_id: str, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        owner_id: str,
        transaction_id: int,
        kind: Optional[TransactionKind] = None,
        description: Optional[str] = None,
        amount: Optional[Decimal] = None,
        occurred_at: Optional[datetime] = None,
        category: Optional[str] = None,
        bank_account_id: Optional[int] = None,
        clear_category: bool = False,
        clear_bank_account: bool = False,
    ) -> None:
        """Update transaction fields. None leaves a field unchanged."""
        pass

    @abstractmethod
    def delete_transaction(self, owner_id: str, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    @abstractmethod
    def find_transactions(
        self,
        owner_id: str,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        kind: Optional[TransactionKind] = None,
        category: Optional[str] = None,
        bank_account_id: Optional[int] = None,
        source_invoice_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[Transaction]:
        """Find transactions ordered by occurrence (newest first).

        ``date_from`` and ``date_to`` are inclusive. ``kind`` also matches rows
        stored with a legacy spelling of that kind.
        """
        pass

    @abstractmethod
    def delete_transactions_for_invoice(self, owner_id: str, invoice_id: int) -> int:
        """Delete every transaction linked to an invoice. Returns number deleted."""
        pass

    # Invoice operations
    @abstractmethod
    def create_invoice(
        self,
        owner_id: str,
        invoice_number: str,
        client_name: str,
        lines: InvoiceLines,
        subtotal: Decimal,
        tax_amount: Decimal,
        total_amount: Decimal,
        issue_date: datetime,
        status: InvoiceStatus = InvoiceStatus.PENDING,
        client_email: Optional[str] = None,
        client_address: Optional[str] = None,
        due_date: Optional[datetime] = None,
        notes: Optional[str] = None,
        bank_account_id: Optional[int] = None,
    ) -> int:
        """Create an invoice. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, owner_id: str, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def update_invoice(self, owner_id: str, invoice_id: int, **changes) -> None:
        """Update invoice fields.

        Keys of ``changes`` are Invoice attribute names (``lines``, ``status``,
        ``paid_date``, ...). A key present with value None clears the field.
        """
        pass

    @abstractmethod
    def delete_invoice(self, owner_id: str, invoice_id: int) -> None:
        """Delete an invoice."""
        pass

    @abstractmethod
    def find_invoices(
        self,
        owner_id: str,
        status: Optional[InvoiceStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        client_name: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Invoice]:
        """Find invoices ordered by issue date (newest first)."""
        pass

    # Goal operations
    @abstractmethod
    def get_goal(self, owner_id: str) -> Optional[Decimal]:
        """Get the monthly goal, or None if never set."""
        pass

    @abstractmethod
    def set_goal(self, owner_id: str, value: Decimal) -> None:
        """Store the monthly goal, replacing any previous value."""
        pass

    # Bank account operations
    @abstractmethod
    def create_bank_account(
        self, owner_id: str, name: str, bank_name: str, account_type: str = "CHECKING"
    ) -> int:
        """Create a bank account. Returns bank account ID."""
        pass

    @abstractmethod
    def get_bank_account(self, owner_id: str, bank_account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        pass

    @abstractmethod
    def list_bank_accounts(self, owner_id: str) -> list[BankAccount]:
        """List bank accounts ordered by name."""
        pass

    @abstractmethod
    def update_bank_account(
        self,
        owner_id: str,
        bank_account_id: int,
        name: Optional[str] = None,
        bank_name: Optional[str] = None,
        account_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> None:
        """Update bank account fields."""
        pass

    @abstractmethod
    def delete_bank_account(self, owner_id: str, bank_account_id: int) -> None:
        """Delete a bank account."""
        pass

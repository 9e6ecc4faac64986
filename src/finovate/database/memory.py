"""In-memory database implementation.

Rows are kept as plain dicts shaped like the SQL tables, so the same mappers
and read-side normalization apply as for the SQLAlchemy backend.
"""

import copy
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, Iterator, Optional

from finovate.database.base import Database
from finovate.database.mappers import (
    bank_account_to_domain,
    invoice_changes_to_columns,
    invoice_to_domain,
    lines_to_columns,
    transaction_to_domain,
)
from finovate.domain.entities import (
    BankAccount,
    Invoice,
    InvoiceLines,
    InvoiceStatus,
    Transaction,
    TransactionKind,
)
from finovate.domain.errors import (
    NotFoundError,
    bank_account_not_found,
    invoice_not_found,
    transaction_not_found,
)
from finovate.domain.kinds import stored_spellings
from finovate.domain.periods import utc_now

TABLES = ("transactions", "invoices", "bank_accounts", "monthly_goals")


class InMemoryDatabase(Database):
    """Process-local implementation of Database interface, used by tests and dry runs."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[Any, dict[str, Any]]] = {name: {} for name in TABLES}
        self._next_ids: dict[str, int] = {name: 1 for name in TABLES}
        self._atomic_depth = 0

    def connect(self) -> None:
        """Connect to the database."""
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Snapshot the tables and restore them if the outermost block raises."""
        snapshot = None
        if self._atomic_depth == 0:
            snapshot = (copy.deepcopy(self._tables), dict(self._next_ids))
        self._atomic_depth += 1
        try:
            yield
        except BaseException:
            if snapshot is not None:
                self._tables, self._next_ids = snapshot
            raise
        finally:
            self._atomic_depth -= 1

    def _insert(self, table: str, row: dict[str, Any]) -> int:
        row_id = self._next_ids[table]
        self._next_ids[table] += 1
        now = utc_now()
        row.setdefault("created_at", now)
        if table != "bank_accounts":
            row.setdefault("updated_at", now)
        row["id"] = row_id
        self._tables[table][row_id] = row
        return row_id

    def _owned(self, table: str, owner_id: str, row_id: int) -> Optional[dict[str, Any]]:
        row = self._tables[table].get(row_id)
        if row is None or row["owner_id"] != owner_id:
            return None
        return row

    def _rows(self, table: str, owner_id: str) -> list[dict[str, Any]]:
        return [row for row in self._tables[table].values() if row["owner_id"] == owner_id]

    def insert_raw_transaction(self, **row: Any) -> int:
        """Insert a transaction row as-is, bypassing write validation.

        Used to load historical data (legacy kind spellings, string amounts).
        """
        row.setdefault("category", None)
        row.setdefault("bank_account_id", None)
        row.setdefault("source_invoice_id", None)
        return self._insert("transactions", row)

    # Transaction operations
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
        return self._insert(
            "transactions",
            {
                "owner_id": owner_id,
                "kind": TransactionKind(kind).value,
                "description": description,
                "amount": amount,
                "occurred_at": occurred_at,
                "category": category,
                "bank_account_id": bank_account_id,
                "source_invoice_id": source_invoice_id,
            },
        )

    def get_transaction(self, owner_id: str, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        row = self._owned("transactions", owner_id, transaction_id)
        if row is None:
            return None
        return transaction_to_domain(SimpleNamespace(**row))

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
        row = self._owned("transactions", owner_id, transaction_id)
        if row is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        if kind is not None:
            row["kind"] = TransactionKind(kind).value
        if description is not None:
            row["description"] = description
        if amount is not None:
            row["amount"] = amount
        if occurred_at is not None:
            row["occurred_at"] = occurred_at
        if clear_category:
            row["category"] = None
        elif category is not None:
            row["category"] = category
        if clear_bank_account:
            row["bank_account_id"] = None
        elif bank_account_id is not None:
            row["bank_account_id"] = bank_account_id
        row["updated_at"] = utc_now()

    def delete_transaction(self, owner_id: str, transaction_id: int) -> None:
        """Delete a transaction."""
        if self._owned("transactions", owner_id, transaction_id) is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        del self._tables["transactions"][transaction_id]

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
        """Find transactions ordered by occurrence (newest first)."""
        spellings = stored_spellings(kind) if kind is not None else None
        needle = search.casefold() if search else None

        def matches(row: dict[str, Any]) -> bool:
            if date_from is not None and row["occurred_at"] < date_from:
                return False
            if date_to is not None and row["occurred_at"] > date_to:
                return False
            if spellings is not None and str(row["kind"]).lower() not in spellings:
                return False
            if category is not None and row["category"] != category:
                return False
            if bank_account_id is not None and row["bank_account_id"] != bank_account_id:
                return False
            if source_invoice_id is not None and row["source_invoice_id"] != source_invoice_id:
                return False
            if needle is not None:
                haystack = f"{row['description']} {row['category'] or ''}".casefold()
                if needle not in haystack:
                    return False
            return True

        rows = [row for row in self._rows("transactions", owner_id) if matches(row)]
        rows.sort(key=lambda row: (row["occurred_at"], row["id"]), reverse=True)
        return [transaction_to_domain(SimpleNamespace(**row)) for row in rows]

    def delete_transactions_for_invoice(self, owner_id: str, invoice_id: int) -> int:
        """Delete every transaction linked to an invoice. Returns number deleted."""
        doomed = [
            row["id"]
            for row in self._rows("transactions", owner_id)
            if row["source_invoice_id"] == invoice_id
        ]
        for row_id in doomed:
            del self._tables["transactions"][row_id]
        return len(doomed)

    # Invoice operations
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
        items, amount = lines_to_columns(lines)
        return self._insert(
            "invoices",
            {
                "owner_id": owner_id,
                "invoice_number": invoice_number,
                "client_name": client_name,
                "client_email": client_email,
                "client_address": client_address,
                "items": items,
                "amount": amount,
                "subtotal": subtotal,
                "tax_amount": tax_amount,
                "total_amount": total_amount,
                "status": InvoiceStatus(status).value,
                "issue_date": issue_date,
                "due_date": due_date,
                "paid_date": None,
                "notes": notes,
                "bank_account_id": bank_account_id,
            },
        )

    def get_invoice(self, owner_id: str, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        row = self._owned("invoices", owner_id, invoice_id)
        if row is None:
            return None
        return invoice_to_domain(SimpleNamespace(**row))

    def update_invoice(self, owner_id: str, invoice_id: int, **changes) -> None:
        """Update invoice fields."""
        row = self._owned("invoices", owner_id, invoice_id)
        if row is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        row.update(invoice_changes_to_columns(changes))
        row["updated_at"] = utc_now()

    def delete_invoice(self, owner_id: str, invoice_id: int) -> None:
        """Delete an invoice."""
        if self._owned("invoices", owner_id, invoice_id) is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        del self._tables["invoices"][invoice_id]

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
        status_value = InvoiceStatus(status).value if status is not None else None
        client_needle = client_name.casefold() if client_name else None
        needle = search.casefold() if search else None

        def matches(row: dict[str, Any]) -> bool:
            if status_value is not None and row["status"] != status_value:
                return False
            if date_from is not None and row["issue_date"] < date_from:
                return False
            if date_to is not None and row["issue_date"] > date_to:
                return False
            if client_needle is not None and client_needle not in row["client_name"].casefold():
                return False
            if needle is not None:
                haystack = " ".join(
                    str(row[key] or "") for key in ("client_name", "invoice_number", "notes")
                ).casefold()
                if needle not in haystack:
                    return False
            return True

        rows = [row for row in self._rows("invoices", owner_id) if matches(row)]
        rows.sort(key=lambda row: (row["issue_date"], row["id"]), reverse=True)
        return [invoice_to_domain(SimpleNamespace(**row)) for row in rows]

    # Goal operations
    def get_goal(self, owner_id: str) -> Optional[Decimal]:
        """Get the monthly goal, or None if never set."""
        row = self._tables["monthly_goals"].get(owner_id)
        if row is None:
            return None
        return row["value"]

    def set_goal(self, owner_id: str, value: Decimal) -> None:
        """Store the monthly goal, replacing any previous value."""
        self._tables["monthly_goals"][owner_id] = {
            "owner_id": owner_id,
            "value": value,
            "updated_at": utc_now(),
        }

    # Bank account operations
    def create_bank_account(
        self, owner_id: str, name: str, bank_name: str, account_type: str = "CHECKING"
    ) -> int:
        """Create a bank account. Returns bank account ID."""
        return self._insert(
            "bank_accounts",
            {
                "owner_id": owner_id,
                "name": name,
                "bank_name": bank_name,
                "account_type": account_type,
                "is_active": True,
            },
        )

    def get_bank_account(self, owner_id: str, bank_account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        row = self._owned("bank_accounts", owner_id, bank_account_id)
        if row is None:
            return None
        return bank_account_to_domain(SimpleNamespace(**row))

    def list_bank_accounts(self, owner_id: str) -> list[BankAccount]:
        """List bank accounts ordered by name."""
        rows = sorted(self._rows("bank_accounts", owner_id), key=lambda row: row["name"])
        return [bank_account_to_domain(SimpleNamespace(**row)) for row in rows]

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
        row = self._owned("bank_accounts", owner_id, bank_account_id)
        if row is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))
        if name is not None:
            row["name"] = name
        if bank_name is not None:
            row["bank_name"] = bank_name
        if account_type is not None:
            row["account_type"] = account_type
        if is_active is not None:
            row["is_active"] = is_active

    def delete_bank_account(self, owner_id: str, bank_account_id: int) -> None:
        """Delete a bank account."""
        if self._owned("bank_accounts", owner_id, bank_account_id) is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))
        del self._tables["bank_accounts"][bank_account_id]

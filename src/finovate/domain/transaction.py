"""Transaction domain service."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

import structlog

from finovate.database.base import Database
from finovate.domain.aggregation import category_label
from finovate.domain.entities import Transaction as TransactionEntity
from finovate.domain.errors import (
    ConflictError,
    FieldError,
    NotFoundError,
    ValidationError,
    bank_account_not_found,
    payment_transaction_locked,
    transaction_not_found,
)
from finovate.domain.kinds import normalize_kind
from finovate.domain.periods import utc_now
from finovate.utils.amount_parser import ZERO, coerce_amount, parse_amount

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CategoryUsage:
    """How often a category is used and how much money it carries."""

    category: str
    count: int
    total_amount: Decimal


def validate_amount(value: Any) -> Decimal:
    """Coerce and validate a transaction amount, which must be strictly positive.

    Raises:
        ValidationError: If the amount is missing, non-numeric or not positive
    """
    if value is None or isinstance(value, bool):
        raise ValidationError.for_field("amount", "Amount is required")
    try:
        amount = parse_amount(value) if isinstance(value, str) else Decimal(str(value))
    except (ValueError, ArithmeticError):
        raise ValidationError.for_field("amount", f"Invalid amount '{value}'")
    if not amount.is_finite() or amount <= ZERO:
        raise ValidationError.for_field("amount", "Amount must be positive")
    return amount


def validate_description(value: Optional[str]) -> str:
    """Strip and require a non-empty description."""
    if value is None or not value.strip():
        raise ValidationError.for_field("description", "Description is required")
    return value.strip()


def _clean_category(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


class TransactionService:
    """Service for managing ledger entries."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_bank_account(self, owner_id: str, bank_account_id: Optional[int]) -> None:
        if bank_account_id is not None and self.db.get_bank_account(owner_id, bank_account_id) is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))

    def _require(self, owner_id: str, transaction_id: int) -> TransactionEntity:
        txn = self.db.get_transaction(owner_id, transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def create_transaction(
        self,
        owner_id: str,
        kind: Any,
        description: str,
        amount: Any,
        occurred_at: Optional[datetime] = None,
        category: Optional[str] = None,
        bank_account_id: Optional[int] = None,
    ) -> int:
        """Create a ledger entry.

        Args:
            owner_id: Owner scope
            kind: CREDIT or DEBIT in any recognized spelling
            description: Non-empty description
            amount: Positive amount (number or numeric string)
            occurred_at: When the money moved, defaults to now
            category: Optional category label
            bank_account_id: Optional bank account ID

        Returns:
            Transaction ID

        Raises:
            ValidationError: If kind, description or amount is invalid
            NotFoundError: If the bank account does not exist for the owner
        """
        normalized_kind = normalize_kind(kind)
        clean_description = validate_description(description)
        clean_amount = validate_amount(amount)
        self._check_bank_account(owner_id, bank_account_id)

        transaction_id = self.db.create_transaction(
            owner_id=owner_id,
            kind=normalized_kind,
            description=clean_description,
            amount=clean_amount,
            occurred_at=occurred_at or utc_now(),
            category=_clean_category(category),
            bank_account_id=bank_account_id,
        )
        logger.info(
            "transaction_created",
            owner_id=owner_id,
            transaction_id=transaction_id,
            kind=normalized_kind.value,
        )
        return transaction_id

    def create_batch(self, owner_id: str, entries: Sequence[dict[str, Any]]) -> list[int]:
        """Create several ledger entries, all or nothing.

        Args:
            owner_id: Owner scope
            entries: Mappings with the keyword arguments of ``create_transaction``

        Returns:
            IDs of the created transactions, in input order

        Raises:
            ValidationError: If the batch is empty or any entry is invalid; the
                details name the offending entry index
        """
        if not entries:
            raise ValidationError.for_field("transactions", "At least one transaction is required")

        errors: list[FieldError] = []
        for index, entry in enumerate(entries):
            try:
                normalize_kind(entry.get("kind"))
                validate_description(entry.get("description"))
                validate_amount(entry.get("amount"))
            except ValidationError as e:
                errors.extend(
                    FieldError(f"transactions[{index}].{detail.field}", detail.message)
                    for detail in e.details
                )
        if errors:
            raise ValidationError("Invalid transactions in batch", errors)

        with self.db.atomic():
            ids = [self.create_transaction(owner_id, **entry) for entry in entries]
        logger.info("transaction_batch_created", owner_id=owner_id, count=len(ids))
        return ids

    def get_transaction(self, owner_id: str, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(owner_id, transaction_id)

    def update_transaction(
        self,
        owner_id: str,
        transaction_id: int,
        kind: Any = None,
        description: Optional[str] = None,
        amount: Any = None,
        occurred_at: Optional[datetime] = None,
        category: Optional[str] = None,
        bank_account_id: Optional[int] = None,
        clear_category: bool = False,
    ) -> TransactionEntity:
        """Update transaction fields in place.

        Raises:
            NotFoundError: If the transaction or bank account doesn't exist
            ValidationError: If a new value is invalid
            ConflictError: If the transaction records an invoice payment
        """
        txn = self._require(owner_id, transaction_id)
        if txn.source_invoice_id is not None:
            raise ConflictError(payment_transaction_locked(transaction_id, txn.source_invoice_id))
        if clear_category and category is not None:
            raise ValidationError.for_field("category", "Cannot set and clear category at once")

        self._check_bank_account(owner_id, bank_account_id)
        self.db.update_transaction(
            owner_id,
            transaction_id,
            kind=normalize_kind(kind) if kind is not None else None,
            description=validate_description(description) if description is not None else None,
            amount=validate_amount(amount) if amount is not None else None,
            occurred_at=occurred_at,
            category=_clean_category(category),
            bank_account_id=bank_account_id,
            clear_category=clear_category,
        )
        logger.info("transaction_updated", owner_id=owner_id, transaction_id=transaction_id)
        return self._require(owner_id, transaction_id)

    def delete_transaction(self, owner_id: str, transaction_id: int) -> None:
        """Delete a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ConflictError: If the transaction records an invoice payment
        """
        txn = self._require(owner_id, transaction_id)
        if txn.source_invoice_id is not None:
            raise ConflictError(payment_transaction_locked(transaction_id, txn.source_invoice_id))

        self.db.delete_transaction(owner_id, transaction_id)
        logger.info("transaction_deleted", owner_id=owner_id, transaction_id=transaction_id)

    def list_transactions(
        self,
        owner_id: str,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        kind: Any = None,
        category: Optional[str] = None,
        bank_account_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[TransactionEntity]:
        """List transactions with filters, newest first.

        Raises:
            ValidationError: If ``kind`` is not a recognized spelling
        """
        return self.db.find_transactions(
            owner_id,
            date_from=date_from,
            date_to=date_to,
            kind=normalize_kind(kind) if kind is not None else None,
            category=category,
            bank_account_id=bank_account_id,
            search=search,
        )

    def list_categories(self, owner_id: str) -> list[CategoryUsage]:
        """Categories in use with their counts and totals, largest total first."""
        usage: dict[str, dict[str, Any]] = defaultdict(lambda: {"count": 0, "total": ZERO})
        for txn in self.db.find_transactions(owner_id):
            if txn.category is None:
                continue
            bucket = usage[category_label(txn.category)]
            bucket["count"] += 1
            bucket["total"] += coerce_amount(txn.amount)

        results = [
            CategoryUsage(category=name, count=data["count"], total_amount=data["total"])
            for name, data in usage.items()
        ]
        results.sort(key=lambda item: item.total_amount, reverse=True)
        return results

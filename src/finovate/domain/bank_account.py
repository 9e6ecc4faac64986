"""Bank account domain service."""

from typing import Optional

import structlog

from finovate.database.base import Database
from finovate.domain.aggregation import split_totals
from finovate.domain.entities import BankAccount, BankAccountStats
from finovate.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    bank_account_delete_blocked,
    bank_account_not_found,
)

logger = structlog.get_logger(__name__)

ACCOUNT_TYPES = ("CHECKING", "SAVINGS", "CREDIT", "CASH", "OTHER")


class BankAccountService:
    """Service for managing bank accounts.

    Account balances are scoped to the account: credits minus debits of the
    transactions linked to it. The dashboard balance spans all of them.
    """

    def __init__(self, db: Database):
        """Initialize bank account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require(self, owner_id: str, bank_account_id: int) -> BankAccount:
        account = self.db.get_bank_account(owner_id, bank_account_id)
        if account is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))
        return account

    def create_account(
        self,
        owner_id: str,
        name: str,
        bank_name: Optional[str] = None,
        account_type: str = "CHECKING",
    ) -> int:
        """Create a new bank account.

        Args:
            owner_id: Owner scope
            name: Account name, unique per owner
            bank_name: Bank name, defaults to the account name
            account_type: One of ACCOUNT_TYPES

        Returns:
            Bank account ID

        Raises:
            ValidationError: If the name is empty or the type unknown
            ConflictError: If the owner already has an account with that name
        """
        if not name or not name.strip():
            raise ValidationError.for_field("name", "Account name is required")
        account_type = account_type.upper()
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError.for_field(
                "account_type", f"Account type must be one of {', '.join(ACCOUNT_TYPES)}"
            )

        name = name.strip()
        for existing in self.db.list_bank_accounts(owner_id):
            if existing.name == name:
                raise ConflictError(f"Bank account with name '{name}' already exists")

        account_id = self.db.create_bank_account(
            owner_id, name=name, bank_name=bank_name or name, account_type=account_type
        )
        logger.info("bank_account_created", owner_id=owner_id, bank_account_id=account_id)
        return account_id

    def get_account(self, owner_id: str, bank_account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID, or None if not found."""
        return self.db.get_bank_account(owner_id, bank_account_id)

    def list_accounts(self, owner_id: str) -> list[BankAccount]:
        """List the owner's bank accounts."""
        return self.db.list_bank_accounts(owner_id)

    def get_stats(self, owner_id: str, bank_account_id: int) -> BankAccountStats:
        """Bank account with the balance of its linked transactions.

        Raises:
            NotFoundError: If the account does not exist for the owner
        """
        account = self._require(owner_id, bank_account_id)
        transactions = self.db.find_transactions(owner_id, bank_account_id=bank_account_id)
        credits, debits = split_totals(transactions)
        return BankAccountStats(
            account=account,
            credits=credits,
            debits=debits,
            balance=credits - debits,
            transaction_count=len(transactions),
        )

    def list_with_stats(self, owner_id: str) -> list[BankAccountStats]:
        """All bank accounts with their balances."""
        return [self.get_stats(owner_id, account.id) for account in self.list_accounts(owner_id)]

    def toggle_active(self, owner_id: str, bank_account_id: int) -> BankAccount:
        """Flip an account between active and inactive."""
        account = self._require(owner_id, bank_account_id)
        self.db.update_bank_account(owner_id, bank_account_id, is_active=not account.is_active)
        return self._require(owner_id, bank_account_id)

    def delete_account(self, owner_id: str, bank_account_id: int) -> None:
        """Delete a bank account that no transaction references.

        Raises:
            NotFoundError: If the account does not exist for the owner
            ConflictError: If transactions are still linked to it
        """
        self._require(owner_id, bank_account_id)
        linked = self.db.find_transactions(owner_id, bank_account_id=bank_account_id)
        if linked:
            raise ConflictError(bank_account_delete_blocked(bank_account_id, len(linked)))
        self.db.delete_bank_account(owner_id, bank_account_id)
        logger.info("bank_account_deleted", owner_id=owner_id, bank_account_id=bank_account_id)

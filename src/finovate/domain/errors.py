"""Shared domain error messages and error types."""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation problem."""

    field: str
    message: str


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic.

    Carries the list of offending fields so callers can render a
    field-level detail list.
    """

    def __init__(self, message: str, details: Optional[Iterable[FieldError]] = None):
        super().__init__(message)
        self.details: list[FieldError] = list(details or [])

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        """Build an error for a single field."""
        return cls(message, [FieldError(field=field, message=message)])


class NotFoundError(DomainError):
    """Requested owner-scoped entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ReconciliationError(DomainError):
    """Invoice payment linkage could not be written atomically."""


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def bank_account_not_found(bank_account_id: int) -> str:
    """Return message for missing bank account."""
    return f"Bank account {bank_account_id} not found"


def duplicate_invoice_number(invoice_number: str) -> str:
    """Return message for duplicate invoice number."""
    return f"Invoice number '{invoice_number}' already exists"


def payment_transaction_locked(transaction_id: int, invoice_id: int) -> str:
    """Return message when a payment entry is edited directly."""
    return (
        f"Transaction {transaction_id} records the payment of invoice {invoice_id}. "
        "Mark the invoice as unpaid instead."
    )


def invoice_paid_locked(invoice_id: int, what: str) -> str:
    """Return message when a paid invoice field tied to its payment entry is changed."""
    return f"Invoice {invoice_id} is paid. Mark it as unpaid before changing {what}."


def bank_account_delete_blocked(bank_account_id: int, transaction_count: int) -> str:
    """Return message when a bank account still has linked transactions."""
    return (
        f"Cannot delete bank account {bank_account_id}: it has "
        f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}. "
        "Please reassign or delete them first."
    )

"""Invoice payment reconciliation.

A paid invoice is represented in the ledger by exactly one CREDIT entry whose
``source_invoice_id`` points back at the invoice. Every status transition
that crosses the Paid boundary writes the invoice and its ledger entry in one
atomic unit, serialized per invoice.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional, TypeVar

import structlog

from finovate.database.base import Database
from finovate.domain.entities import Invoice, InvoiceStatus, TransactionKind
from finovate.domain.errors import (
    DomainError,
    NotFoundError,
    ReconciliationError,
    ValidationError,
    invoice_not_found,
)
from finovate.domain.periods import utc_now

logger = structlog.get_logger(__name__)

T = TypeVar("T")

PAYMENT_CATEGORY = "Invoice Payment"
MAX_ATTEMPTS = 2


def payment_description(invoice_number: str) -> str:
    """Description written on the ledger entry for an invoice payment."""
    return f"Payment received for invoice {invoice_number}"


class PaymentReconciler:
    """Keeps invoice payment status and its ledger entry in lockstep."""

    def __init__(self, db: Database):
        """Initialize payment reconciler.

        Args:
            db: Database instance
        """
        self.db = db
        self._locks: dict[tuple[str, int], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, owner_id: str, invoice_id: int) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault((owner_id, invoice_id), threading.Lock())

    def _require_invoice(self, owner_id: str, invoice_id: int) -> Invoice:
        invoice = self.db.get_invoice(owner_id, invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    @contextmanager
    def locked(self, owner_id: str, invoice_id: int) -> Iterator[None]:
        """Hold the invoice lock and an atomic block for writes outside the reconciler.

        Other writers of an invoice use this so their read, check and write
        cannot interleave with a payment transition.
        """
        with self._lock_for(owner_id, invoice_id):
            with self.db.atomic():
                yield

    def _run(self, action: str, owner_id: str, invoice_id: int, step: Callable[[], T]) -> T:
        """Run ``step`` atomically under the invoice lock, retrying one storage failure."""
        attempt = 1
        with self._lock_for(owner_id, invoice_id):
            while True:
                try:
                    with self.db.atomic():
                        return step()
                except DomainError:
                    raise
                except Exception as e:
                    logger.warning(
                        "reconciliation_attempt_failed",
                        action=action,
                        owner_id=owner_id,
                        invoice_id=invoice_id,
                        attempt=attempt,
                        error=str(e),
                    )
                    if attempt >= MAX_ATTEMPTS:
                        raise ReconciliationError(
                            f"Could not {action} invoice {invoice_id}: {e}"
                        ) from e
                    attempt += 1

    def _write_payment(self, invoice: Invoice, paid_date: datetime) -> int:
        return self.db.create_transaction(
            owner_id=invoice.owner_id,
            kind=TransactionKind.CREDIT,
            description=payment_description(invoice.invoice_number),
            amount=invoice.total_amount,
            occurred_at=paid_date,
            category=PAYMENT_CATEGORY,
            bank_account_id=invoice.bank_account_id,
            source_invoice_id=invoice.id,
        )

    def payment_transactions(self, owner_id: str, invoice_id: int):
        """Ledger entries recording the payment of an invoice."""
        return self.db.find_transactions(owner_id, source_invoice_id=invoice_id)

    def mark_paid(
        self, owner_id: str, invoice_id: int, paid_date: Optional[datetime] = None
    ) -> Invoice:
        """Mark an invoice as paid and record its payment in the ledger.

        Idempotent: an invoice that is already paid keeps its paid date, and
        its payment entries are brought back to exactly one.

        Raises:
            NotFoundError: If the invoice does not exist for the owner
            ReconciliationError: If the atomic write failed twice
        """

        def step() -> Invoice:
            invoice = self._require_invoice(owner_id, invoice_id)
            payments = self.payment_transactions(owner_id, invoice_id)

            if invoice.status is InvoiceStatus.PAID:
                if len(payments) == 1:
                    return invoice
                self.db.delete_transactions_for_invoice(owner_id, invoice_id)
                self._write_payment(invoice, invoice.paid_date or utc_now())
                logger.warning(
                    "invoice_payment_repaired",
                    owner_id=owner_id,
                    invoice_id=invoice_id,
                    found=len(payments),
                )
                return invoice

            when = paid_date or utc_now()
            if payments:
                self.db.delete_transactions_for_invoice(owner_id, invoice_id)
            self.db.update_invoice(owner_id, invoice_id, status=InvoiceStatus.PAID, paid_date=when)
            self._write_payment(invoice, when)
            logger.info(
                "invoice_marked_paid",
                owner_id=owner_id,
                invoice_id=invoice_id,
                amount=str(invoice.total_amount),
            )
            return self._require_invoice(owner_id, invoice_id)

        return self._run("mark paid", owner_id, invoice_id, step)

    def mark_unpaid(
        self,
        owner_id: str,
        invoice_id: int,
        status: InvoiceStatus = InvoiceStatus.PENDING,
    ) -> Invoice:
        """Move a paid invoice back to ``status`` and remove its payment entry.

        A no-op for invoices that are not paid.

        Raises:
            ValidationError: If ``status`` is PAID
            NotFoundError: If the invoice does not exist for the owner
            ReconciliationError: If the atomic write failed twice
        """
        status = InvoiceStatus(status)
        if status is InvoiceStatus.PAID:
            raise ValidationError.for_field("status", "Target status of mark-unpaid cannot be PAID")

        def step() -> Invoice:
            invoice = self._require_invoice(owner_id, invoice_id)
            if invoice.status is not InvoiceStatus.PAID:
                return invoice
            return self._revert_payment(owner_id, invoice_id, status)

        return self._run("mark unpaid", owner_id, invoice_id, step)

    def _revert_payment(self, owner_id: str, invoice_id: int, status: InvoiceStatus) -> Invoice:
        self.db.update_invoice(owner_id, invoice_id, status=status, paid_date=None)
        removed = self.db.delete_transactions_for_invoice(owner_id, invoice_id)
        logger.info(
            "invoice_marked_unpaid",
            owner_id=owner_id,
            invoice_id=invoice_id,
            status=status.value,
            payments_removed=removed,
        )
        return self._require_invoice(owner_id, invoice_id)

    def set_status(
        self,
        owner_id: str,
        invoice_id: int,
        status: InvoiceStatus,
        paid_date: Optional[datetime] = None,
    ) -> Invoice:
        """Apply any status transition, reconciling the ledger when Paid is involved."""
        status = InvoiceStatus(status)
        if status is InvoiceStatus.PAID:
            return self.mark_paid(owner_id, invoice_id, paid_date)

        def step() -> Invoice:
            invoice = self._require_invoice(owner_id, invoice_id)
            if invoice.status is InvoiceStatus.PAID:
                return self._revert_payment(owner_id, invoice_id, status)

            self.db.update_invoice(owner_id, invoice_id, status=status)
            logger.info(
                "invoice_status_updated",
                owner_id=owner_id,
                invoice_id=invoice_id,
                status=status.value,
            )
            return self._require_invoice(owner_id, invoice_id)

        return self._run("set status", owner_id, invoice_id, step)

    def delete_invoice(self, owner_id: str, invoice_id: int) -> int:
        """Delete an invoice together with its payment entries.

        Returns:
            Number of payment transactions removed
        """

        def step() -> int:
            self._require_invoice(owner_id, invoice_id)
            removed = self.db.delete_transactions_for_invoice(owner_id, invoice_id)
            self.db.delete_invoice(owner_id, invoice_id)
            logger.info(
                "invoice_deleted",
                owner_id=owner_id,
                invoice_id=invoice_id,
                payments_removed=removed,
            )
            return removed

        return self._run("delete", owner_id, invoice_id, step)

"""Invoice domain service."""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

import structlog

from finovate.database.base import Database
from finovate.domain.entities import (
    Invoice,
    InvoiceItem,
    InvoiceLines,
    InvoiceStatus,
    ItemizedLines,
    SimpleAmount,
)
from finovate.domain.errors import (
    ConflictError,
    FieldError,
    NotFoundError,
    ValidationError,
    bank_account_not_found,
    duplicate_invoice_number,
    invoice_not_found,
    invoice_paid_locked,
)
from finovate.domain.periods import utc_now
from finovate.domain.reconciler import PaymentReconciler
from finovate.utils.amount_parser import ZERO, parse_amount

logger = structlog.get_logger(__name__)

INVOICE_NUMBER_PREFIX = "INV-"
INVOICE_NUMBER_WIDTH = 4
_TRAILING_DIGITS = re.compile(r"(\d+)$")


@dataclass(frozen=True)
class InvoiceTotals:
    """Derived money fields of an invoice."""

    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def _decimal(value: Any, field: str, errors: list[FieldError]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        if isinstance(value, str):
            return parse_amount(value)
        amount = Decimal(str(value))
    except (ValueError, ArithmeticError):
        errors.append(FieldError(field, "Must be a number"))
        return None
    if not amount.is_finite():
        errors.append(FieldError(field, "Must be a finite number"))
        return None
    return amount


def _positive(
    value: Any, field: str, errors: list[FieldError], required: bool = True
) -> Optional[Decimal]:
    if value is None:
        if required:
            errors.append(FieldError(field, "Required"))
        return None
    amount = _decimal(value, field, errors)
    if amount is not None and amount <= ZERO:
        errors.append(FieldError(field, "Must be positive"))
        return None
    return amount


def build_lines(
    items: Optional[Sequence[dict[str, Any]]] = None, amount: Any = None
) -> InvoiceLines:
    """Build invoice lines from either line items or a bare amount.

    Each item is a mapping with ``name``, ``quantity``, ``rate`` and optionally
    ``amount`` (defaults to quantity * rate) and ``description``.

    Raises:
        ValidationError: If both or neither representation is given, or a value
            is missing, non-numeric or not positive
    """
    if items and amount is not None:
        raise ValidationError.for_field("items", "Provide either items or amount, not both")
    if not items and amount is None:
        raise ValidationError.for_field("items", "Either items or amount must be provided")

    errors: list[FieldError] = []
    if amount is not None:
        value = _positive(amount, "amount", errors)
        if errors:
            raise ValidationError("Invalid invoice amount", errors)
        return SimpleAmount(amount=value)

    lines: list[InvoiceItem] = []
    for index, item in enumerate(items):
        prefix = f"items[{index}]"
        before = len(errors)
        name = str(item.get("name") or "").strip()
        if not name:
            errors.append(FieldError(f"{prefix}.name", "Item name is required"))
        quantity = _positive(item.get("quantity"), f"{prefix}.quantity", errors)
        rate = _positive(item.get("rate"), f"{prefix}.rate", errors)
        line_amount = _positive(item.get("amount"), f"{prefix}.amount", errors, required=False)
        if len(errors) > before:
            continue
        lines.append(
            InvoiceItem(
                name=name,
                description=item.get("description"),
                quantity=quantity,
                rate=rate,
                amount=line_amount if line_amount is not None else quantity * rate,
            )
        )

    if errors:
        raise ValidationError("Invalid invoice items", errors)
    return ItemizedLines(items=tuple(lines))


def compute_totals(
    lines: InvoiceLines, tax_amount: Any = None, total_amount: Any = None
) -> InvoiceTotals:
    """Derive subtotal, tax and total for invoice lines.

    ``total_amount`` overrides the derived total when given.

    Raises:
        ValidationError: If tax is negative or the override is not positive
    """
    errors: list[FieldError] = []
    tax = _decimal(tax_amount, "tax_amount", errors)
    override = _decimal(total_amount, "total_amount", errors)
    if tax is not None and tax < ZERO:
        errors.append(FieldError("tax_amount", "Tax amount cannot be negative"))
    if override is not None and override <= ZERO:
        errors.append(FieldError("total_amount", "Total amount must be positive"))
    if errors:
        raise ValidationError("Invalid invoice totals", errors)

    subtotal = lines.subtotal
    tax = tax if tax is not None else ZERO
    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax,
        total_amount=override if override is not None else subtotal + tax,
    )


def next_invoice_number(existing: Sequence[str]) -> str:
    """Next ``INV-NNNN`` number after the highest numeric suffix in ``existing``."""
    highest = 0
    for number in existing:
        match = _TRAILING_DIGITS.search(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{INVOICE_NUMBER_PREFIX}{highest + 1:0{INVOICE_NUMBER_WIDTH}d}"


class InvoiceService:
    """Service for managing invoices."""

    def __init__(self, db: Database, reconciler: Optional[PaymentReconciler] = None):
        """Initialize invoice service.

        Args:
            db: Database instance
            reconciler: Payment reconciler, created on the same database if omitted
        """
        self.db = db
        self.reconciler = reconciler or PaymentReconciler(db)

    def _existing_numbers(self, owner_id: str) -> list[str]:
        return [invoice.invoice_number for invoice in self.db.find_invoices(owner_id)]

    def _check_bank_account(self, owner_id: str, bank_account_id: Optional[int]) -> None:
        if bank_account_id is not None and self.db.get_bank_account(owner_id, bank_account_id) is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))

    def create_invoice(
        self,
        owner_id: str,
        client_name: str,
        items: Optional[Sequence[dict[str, Any]]] = None,
        amount: Any = None,
        invoice_number: Optional[str] = None,
        tax_amount: Any = None,
        total_amount: Any = None,
        issue_date: Optional[datetime] = None,
        due_date: Optional[datetime] = None,
        client_email: Optional[str] = None,
        client_address: Optional[str] = None,
        notes: Optional[str] = None,
        bank_account_id: Optional[int] = None,
    ) -> int:
        """Create a pending invoice.

        Args:
            owner_id: Owner scope
            client_name: Client name (required)
            items: Line items; exclusive with ``amount``
            amount: Bare amount for a simple invoice; exclusive with ``items``
            invoice_number: Explicit number, generated as INV-NNNN if omitted
            tax_amount: Optional tax added to the subtotal
            total_amount: Optional override of the derived total
            issue_date: Issue date, defaults to now
            due_date: Optional due date
            client_email: Optional client email
            client_address: Optional client address
            notes: Optional notes
            bank_account_id: Optional bank account receiving the payment

        Returns:
            Invoice ID

        Raises:
            ValidationError: If required fields are missing or amounts are invalid
            ConflictError: If the invoice number is already used by the owner
            NotFoundError: If the bank account does not exist
        """
        if not client_name or not client_name.strip():
            raise ValidationError.for_field("client_name", "Client name is required")

        lines = build_lines(items, amount)
        totals = compute_totals(lines, tax_amount, total_amount)
        self._check_bank_account(owner_id, bank_account_id)

        existing = self._existing_numbers(owner_id)
        if invoice_number is None or not invoice_number.strip():
            invoice_number = next_invoice_number(existing)
        elif invoice_number in existing:
            raise ConflictError(duplicate_invoice_number(invoice_number))

        invoice_id = self.db.create_invoice(
            owner_id=owner_id,
            invoice_number=invoice_number.strip(),
            client_name=client_name.strip(),
            client_email=client_email,
            client_address=client_address,
            lines=lines,
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            status=InvoiceStatus.PENDING,
            issue_date=issue_date or utc_now(),
            due_date=due_date,
            notes=notes,
            bank_account_id=bank_account_id,
        )
        logger.info(
            "invoice_created", owner_id=owner_id, invoice_id=invoice_id, invoice_number=invoice_number
        )
        return invoice_id

    def get_invoice(self, owner_id: str, invoice_id: int) -> Invoice:
        """Get invoice by ID.

        Raises:
            NotFoundError: If the invoice does not exist for the owner
        """
        invoice = self.db.get_invoice(owner_id, invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def list_invoices(
        self,
        owner_id: str,
        status: Optional[InvoiceStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        client_name: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Invoice]:
        """List invoices with filters, newest issue date first."""
        return self.db.find_invoices(
            owner_id,
            status=status,
            date_from=date_from,
            date_to=date_to,
            client_name=client_name,
            search=search,
        )

    def update_invoice(
        self,
        owner_id: str,
        invoice_id: int,
        client_name: Optional[str] = None,
        items: Optional[Sequence[dict[str, Any]]] = None,
        amount: Any = None,
        invoice_number: Optional[str] = None,
        tax_amount: Any = None,
        total_amount: Any = None,
        issue_date: Optional[datetime] = None,
        due_date: Optional[datetime] = None,
        client_email: Optional[str] = None,
        client_address: Optional[str] = None,
        notes: Optional[str] = None,
        bank_account_id: Optional[int] = None,
    ) -> Invoice:
        """Update invoice details. Status changes go through the reconciler.

        Money fields and the number of a paid invoice are frozen while its
        payment entry in the ledger records them. The read, checks and write
        hold the reconciler lock for the invoice.

        Raises:
            NotFoundError: If the invoice or bank account does not exist
            ValidationError: If the new values are invalid
            ConflictError: If the new number is taken, or money fields or the
                number of a paid invoice are changed
        """
        with self.reconciler.locked(owner_id, invoice_id):
            invoice = self.get_invoice(owner_id, invoice_id)
            paid = invoice.status is InvoiceStatus.PAID
            changes: dict[str, Any] = {}

            money_changed = any(v is not None for v in (items, amount, tax_amount, total_amount))
            if money_changed:
                if paid:
                    raise ConflictError(invoice_paid_locked(invoice_id, "amounts"))
                if items is not None or amount is not None:
                    lines = build_lines(items, amount)
                else:
                    lines = invoice.lines
                tax = tax_amount if tax_amount is not None else invoice.tax_amount
                totals = compute_totals(lines, tax, total_amount)
                changes.update(
                    lines=lines,
                    subtotal=totals.subtotal,
                    tax_amount=totals.tax_amount,
                    total_amount=totals.total_amount,
                )

            if client_name is not None:
                if not client_name.strip():
                    raise ValidationError.for_field("client_name", "Client name is required")
                changes["client_name"] = client_name.strip()
            if invoice_number is not None and invoice_number != invoice.invoice_number:
                # The payment entry's description names the number
                if paid:
                    raise ConflictError(invoice_paid_locked(invoice_id, "the number"))
                if invoice_number in self._existing_numbers(owner_id):
                    raise ConflictError(duplicate_invoice_number(invoice_number))
                changes["invoice_number"] = invoice_number
            if bank_account_id is not None:
                self._check_bank_account(owner_id, bank_account_id)
                changes["bank_account_id"] = bank_account_id

            for key, value in (
                ("issue_date", issue_date),
                ("due_date", due_date),
                ("client_email", client_email),
                ("client_address", client_address),
                ("notes", notes),
            ):
                if value is not None:
                    changes[key] = value

            if changes:
                self.db.update_invoice(owner_id, invoice_id, **changes)
                logger.info(
                    "invoice_updated",
                    owner_id=owner_id,
                    invoice_id=invoice_id,
                    fields=sorted(changes),
                )
            return self.get_invoice(owner_id, invoice_id)

    def duplicate_invoice(self, owner_id: str, invoice_id: int) -> int:
        """Copy an invoice under a fresh number as a new pending invoice issued now.

        Returns:
            ID of the new invoice
        """
        source = self.get_invoice(owner_id, invoice_id)
        new_id = self.db.create_invoice(
            owner_id=owner_id,
            invoice_number=next_invoice_number(self._existing_numbers(owner_id)),
            client_name=source.client_name,
            client_email=source.client_email,
            client_address=source.client_address,
            lines=source.lines,
            subtotal=source.subtotal,
            tax_amount=source.tax_amount,
            total_amount=source.total_amount,
            status=InvoiceStatus.PENDING,
            issue_date=utc_now(),
            due_date=source.due_date,
            notes=source.notes,
            bank_account_id=source.bank_account_id,
        )
        logger.info("invoice_duplicated", owner_id=owner_id, source_id=invoice_id, invoice_id=new_id)
        return new_id

    def mark_paid(
        self, owner_id: str, invoice_id: int, paid_date: Optional[datetime] = None
    ) -> Invoice:
        """Mark an invoice as paid and record the payment in the ledger."""
        return self.reconciler.mark_paid(owner_id, invoice_id, paid_date)

    def mark_unpaid(
        self, owner_id: str, invoice_id: int, status: InvoiceStatus = InvoiceStatus.PENDING
    ) -> Invoice:
        """Revert a paid invoice and remove its payment from the ledger."""
        return self.reconciler.mark_unpaid(owner_id, invoice_id, status)

    def set_status(
        self,
        owner_id: str,
        invoice_id: int,
        status: InvoiceStatus,
        paid_date: Optional[datetime] = None,
    ) -> Invoice:
        """Apply a status transition."""
        return self.reconciler.set_status(owner_id, invoice_id, status, paid_date)

    def delete_invoice(self, owner_id: str, invoice_id: int) -> int:
        """Delete an invoice and its payment entries. Returns payments removed."""
        return self.reconciler.delete_invoice(owner_id, invoice_id)

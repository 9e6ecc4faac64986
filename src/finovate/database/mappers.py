"""Mapper functions to convert between domain models and stored rows.

This layer isolates the conversion logic. Mappers read attributes only, so
they accept SQLAlchemy models and the in-memory store's row namespaces alike.
Read-side normalization (legacy kinds, string-encoded amounts) happens here.
"""

from decimal import Decimal
from typing import Any, Optional

import structlog

from finovate.domain import entities as domain
from finovate.domain.kinds import read_kind
from finovate.utils.amount_parser import coerce_amount

logger = structlog.get_logger(__name__)


def lines_to_columns(lines: domain.InvoiceLines) -> tuple[Optional[list[dict]], Optional[Decimal]]:
    """Split invoice lines into the stored ``(items, amount)`` column pair."""
    if isinstance(lines, domain.ItemizedLines):
        items = [
            {
                "name": item.name,
                "description": item.description,
                "quantity": str(item.quantity),
                "rate": str(item.rate),
                "amount": str(item.amount),
            }
            for item in lines.items
        ]
        return items, None
    return None, lines.amount


def lines_from_columns(items: Optional[list[dict]], amount: Any) -> domain.InvoiceLines:
    """Rebuild invoice lines from the stored ``(items, amount)`` column pair."""
    if items:
        return domain.ItemizedLines(
            items=tuple(
                domain.InvoiceItem(
                    name=item.get("name", ""),
                    description=item.get("description"),
                    quantity=coerce_amount(item.get("quantity")),
                    rate=coerce_amount(item.get("rate")),
                    amount=coerce_amount(item.get("amount")),
                )
                for item in items
            )
        )
    return domain.SimpleAmount(amount=coerce_amount(amount))


INVOICE_COLUMNS = frozenset(
    {
        "invoice_number",
        "client_name",
        "client_email",
        "client_address",
        "subtotal",
        "tax_amount",
        "total_amount",
        "status",
        "issue_date",
        "due_date",
        "paid_date",
        "notes",
        "bank_account_id",
    }
)


def invoice_changes_to_columns(changes: dict[str, Any]) -> dict[str, Any]:
    """Translate Invoice attribute changes into stored column values.

    Raises:
        ValueError: If a key does not name an updatable invoice field
    """
    columns: dict[str, Any] = {}
    for key, value in changes.items():
        if key == "lines":
            columns["items"], columns["amount"] = lines_to_columns(value)
        elif key == "status":
            columns["status"] = domain.InvoiceStatus(value).value
        elif key in INVOICE_COLUMNS:
            columns[key] = value
        else:
            raise ValueError(f"Unknown invoice field '{key}'")
    return columns


def transaction_to_domain(row: Any) -> domain.Transaction:
    """Convert a stored transaction row to a domain Transaction entity."""
    return domain.Transaction(
        id=row.id,
        owner_id=row.owner_id,
        kind=read_kind(row.kind),
        description=row.description,
        amount=coerce_amount(row.amount),
        occurred_at=row.occurred_at,
        category=row.category,
        created_at=row.created_at,
        updated_at=row.updated_at,
        bank_account_id=row.bank_account_id,
        source_invoice_id=row.source_invoice_id,
    )


def read_invoice_status(raw: Any) -> domain.InvoiceStatus:
    """Map a stored status to the enum, reading unknown values as PENDING.

    An unknown status is never treated as PAID, so no payment entry is implied.
    """
    try:
        return domain.InvoiceStatus(str(raw).strip().upper())
    except ValueError:
        logger.warning("invoice_status_unrecognized", raw_status=raw)
        return domain.InvoiceStatus.PENDING


def invoice_to_domain(row: Any) -> domain.Invoice:
    """Convert a stored invoice row to a domain Invoice entity."""
    return domain.Invoice(
        id=row.id,
        owner_id=row.owner_id,
        invoice_number=row.invoice_number,
        client_name=row.client_name,
        client_email=row.client_email,
        client_address=row.client_address,
        lines=lines_from_columns(row.items, row.amount),
        subtotal=coerce_amount(row.subtotal),
        tax_amount=coerce_amount(row.tax_amount),
        total_amount=coerce_amount(row.total_amount),
        status=read_invoice_status(row.status),
        issue_date=row.issue_date,
        due_date=row.due_date,
        paid_date=row.paid_date,
        notes=row.notes,
        bank_account_id=row.bank_account_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def bank_account_to_domain(row: Any) -> domain.BankAccount:
    """Convert a stored bank account row to a domain BankAccount entity."""
    return domain.BankAccount(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        bank_name=row.bank_name,
        account_type=row.account_type,
        is_active=bool(row.is_active),
        created_at=row.created_at,
    )

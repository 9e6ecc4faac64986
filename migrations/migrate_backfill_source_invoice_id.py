#!/usr/bin/env python3
"""Link invoice payment entries to the invoice they pay.

Older databases recorded an invoice payment only as a ledger entry whose
description reads "Payment received for invoice <number>". This script adds
the transactions.source_invoice_id column when it is missing and points one
such entry per paid invoice at its invoice. Additional matching entries are
listed for manual review and left unlinked.

Usage:
    python migrations/migrate_backfill_source_invoice_id.py [--db-path PATH]
"""

import argparse
import sys
from pathlib import Path

# Make the finovate package importable without installing it
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from sqlalchemy import inspect, text
from finovate.database.factories import create_sqlite_database
from finovate.database.models import Invoice, Transaction
from finovate.domain.entities import InvoiceStatus
from finovate.domain.reconciler import payment_description

ADD_COLUMN_SQL = (
    "ALTER TABLE transactions ADD COLUMN source_invoice_id INTEGER REFERENCES invoices(id)"
)


def has_column(engine, table: str, column: str) -> bool:
    return any(info["name"] == column for info in inspect(engine).get_columns(table))


def link_payments(session) -> int:
    """Link the first unlinked payment entry of every paid invoice."""
    linked = 0
    for invoice in session.query(Invoice).filter(Invoice.status == InvoiceStatus.PAID.value):
        has_payment = session.query(
            session.query(Transaction).filter(Transaction.source_invoice_id == invoice.id).exists()
        ).scalar()
        if has_payment:
            continue

        matches = (
            session.query(Transaction)
            .filter(
                Transaction.owner_id == invoice.owner_id,
                Transaction.source_invoice_id.is_(None),
                Transaction.description == payment_description(invoice.invoice_number),
            )
            .order_by(Transaction.id)
            .all()
        )
        if not matches:
            print(f"  Invoice {invoice.invoice_number} is paid but has no payment entry")
            continue

        payment, *duplicates = matches
        payment.source_invoice_id = invoice.id
        linked += 1
        if duplicates:
            ids = ", ".join(str(txn.id) for txn in duplicates)
            print(f"  Invoice {invoice.invoice_number}: left duplicate entries {ids} unlinked")
    return linked


def migrate_database(database_path: str | None = None) -> int:
    """Add source_invoice_id if needed and backfill it.

    Args:
        database_path: SQLite file to migrate; FINOVATE_DB_PATH or the
            default location when omitted

    Returns:
        Number of payment entries linked
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()
    session = db.session_factory()
    try:
        engine = session.get_bind()
        missing = {"transactions", "invoices"} - set(inspect(engine).get_table_names())
        if missing:
            raise RuntimeError(
                f"Missing table(s) {', '.join(sorted(missing))}; initialize the schema first"
            )

        if has_column(engine, "transactions", "source_invoice_id"):
            print("transactions.source_invoice_id already present")
        else:
            with engine.begin() as conn:
                conn.execute(text(ADD_COLUMN_SQL))
            print("Added transactions.source_invoice_id")

        linked = link_payments(session)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
        db.disconnect()

    print(f"Linked {linked} payment entr{'y' if linked == 1 else 'ies'}")
    return linked


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--db-path",
        help="Database file (defaults to FINOVATE_DB_PATH or ~/.finovate/finovate.db)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
    except Exception as e:
        print(f"Migration failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

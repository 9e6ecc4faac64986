"""Tests for the standalone migration scripts."""

import importlib.util
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from sqlalchemy import text

from conftest import OWNER
from finovate.domain.entities import InvoiceStatus, SimpleAmount, TransactionKind
from finovate.domain.reconciler import payment_description

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


def load_migration(name):
    spec = importlib.util.spec_from_file_location(name, MIGRATIONS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def insert_raw_kind(db, kind, description):
    session = db.session_factory()
    try:
        session.execute(
            text(
                "INSERT INTO transactions (owner_id, kind, description, amount, occurred_at, "
                "created_at, updated_at) VALUES (:owner, :kind, :description, 10, "
                "'2020-01-01 00:00:00', '2020-01-01 00:00:00', '2020-01-01 00:00:00')"
            ),
            {"owner": OWNER, "kind": kind, "description": description},
        )
        session.commit()
    finally:
        session.close()


class TestNormalizeKinds:
    """Tests for rewriting legacy kind spellings."""

    def test_rewrites_known_spellings(self, temp_db):
        insert_raw_kind(temp_db, "income", "Old sale")
        insert_raw_kind(temp_db, " dr ", "Old expense")
        insert_raw_kind(temp_db, "CREDIT", "Current")
        insert_raw_kind(temp_db, "transfer", "Unknown")
        migration = load_migration("migrate_normalize_transaction_kinds")

        assert migration.migrate_database(temp_db.database_path) == 2

        by_description = {t.description: t.kind for t in temp_db.find_transactions(OWNER)}
        assert by_description["Old sale"] is TransactionKind.CREDIT
        assert by_description["Old expense"] is TransactionKind.DEBIT
        assert by_description["Unknown"] is None

    def test_dry_run_writes_nothing(self, temp_db):
        insert_raw_kind(temp_db, "expense", "Old expense")
        migration = load_migration("migrate_normalize_transaction_kinds")

        assert migration.migrate_database(temp_db.database_path, dry_run=True) == 1

        session = temp_db.session_factory()
        try:
            stored = session.execute(text("SELECT kind FROM transactions")).scalar_one()
        finally:
            session.close()
        assert stored == "expense"


def test_backfill_links_one_payment_per_invoice(temp_db):
    invoice_id = temp_db.create_invoice(
        OWNER,
        invoice_number="INV-0007",
        client_name="Acme",
        lines=SimpleAmount(Decimal("500")),
        subtotal=Decimal("500"),
        tax_amount=Decimal("0"),
        total_amount=Decimal("500"),
        issue_date=datetime(2023, 5, 1),
    )
    temp_db.update_invoice(OWNER, invoice_id, status=InvoiceStatus.PAID)
    first, second = (
        temp_db.create_transaction(
            OWNER,
            kind=TransactionKind.CREDIT,
            description=payment_description("INV-0007"),
            amount=Decimal("500"),
            occurred_at=datetime(2023, 5, 10),
        )
        for _ in range(2)
    )
    migration = load_migration("migrate_backfill_source_invoice_id")

    assert migration.migrate_database(temp_db.database_path) == 1
    assert temp_db.get_transaction(OWNER, first).source_invoice_id == invoice_id
    assert temp_db.get_transaction(OWNER, second).source_invoice_id is None

    # Already linked invoices are skipped on a second run
    assert migration.migrate_database(temp_db.database_path) == 0

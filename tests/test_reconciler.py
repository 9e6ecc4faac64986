"""Tests for invoice payment reconciliation."""

import threading
from datetime import datetime
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from conftest import OWNER
from finovate.domain.aggregation import total_balance
from finovate.domain.entities import InvoiceStatus, TransactionKind
from finovate.domain.errors import NotFoundError, ReconciliationError, ValidationError
from finovate.domain.invoice import InvoiceService
from finovate.domain.reconciler import PAYMENT_CATEGORY, PaymentReconciler, payment_description


@pytest.fixture
def service(any_db):
    return InvoiceService(any_db, PaymentReconciler(any_db))


@pytest.fixture
def invoice_id(service):
    return service.create_invoice(
        OWNER, client_name="Acme Corp", amount="1000", tax_amount="100", invoice_number="INV-0001"
    )


def payments(db, invoice_id):
    return db.find_transactions(OWNER, source_invoice_id=invoice_id)


class TestMarkPaid:
    """Tests for marking invoices paid."""

    def test_records_one_credit_for_total(self, any_db, service, invoice_id):
        paid_at = datetime(2024, 3, 20, 9, 0)

        invoice = service.mark_paid(OWNER, invoice_id, paid_at)

        assert invoice.status is InvoiceStatus.PAID
        assert invoice.paid_date == paid_at
        entries = payments(any_db, invoice_id)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.kind is TransactionKind.CREDIT
        assert entry.amount == Decimal("1100")
        assert entry.occurred_at == paid_at
        assert entry.category == PAYMENT_CATEGORY
        assert entry.description == payment_description("INV-0001")

    def test_balance_increases_by_total(self, any_db, service, invoice_id):
        before = total_balance(any_db.find_transactions(OWNER))

        service.mark_paid(OWNER, invoice_id)

        assert total_balance(any_db.find_transactions(OWNER)) - before == Decimal("1100")

    def test_is_idempotent(self, any_db, service, invoice_id):
        first = service.mark_paid(OWNER, invoice_id, datetime(2024, 3, 20))
        second = service.mark_paid(OWNER, invoice_id, datetime(2024, 4, 1))

        assert second.paid_date == first.paid_date
        assert len(payments(any_db, invoice_id)) == 1

    def test_repairs_duplicate_payment_entries(self, any_db, service, invoice_id):
        service.mark_paid(OWNER, invoice_id)
        invoice = service.get_invoice(OWNER, invoice_id)
        any_db.create_transaction(
            OWNER,
            kind=TransactionKind.CREDIT,
            description=payment_description(invoice.invoice_number),
            amount=invoice.total_amount,
            occurred_at=datetime(2024, 3, 21),
            source_invoice_id=invoice_id,
        )

        with capture_logs() as logs:
            service.mark_paid(OWNER, invoice_id)

        assert len(payments(any_db, invoice_id)) == 1
        assert any(entry["event"] == "invoice_payment_repaired" for entry in logs)

    def test_uses_invoice_bank_account(self, any_db):
        account_id = any_db.create_bank_account(OWNER, name="Checking", bank_name="Bank")
        service = InvoiceService(any_db)
        invoice_id = service.create_invoice(
            OWNER, client_name="Acme", amount="50", bank_account_id=account_id
        )

        service.mark_paid(OWNER, invoice_id)

        assert payments(any_db, invoice_id)[0].bank_account_id == account_id

    def test_unknown_invoice(self, service):
        with pytest.raises(NotFoundError):
            service.mark_paid(OWNER, 999)


class TestMarkUnpaid:
    """Tests for reverting paid invoices."""

    def test_removes_payment_entry(self, any_db, service, invoice_id):
        service.mark_paid(OWNER, invoice_id)

        invoice = service.mark_unpaid(OWNER, invoice_id)

        assert invoice.status is InvoiceStatus.PENDING
        assert invoice.paid_date is None
        assert payments(any_db, invoice_id) == []

    def test_round_trip_restores_balance(self, any_db, service, invoice_id):
        before = total_balance(any_db.find_transactions(OWNER))

        service.mark_paid(OWNER, invoice_id)
        service.mark_unpaid(OWNER, invoice_id)

        assert total_balance(any_db.find_transactions(OWNER)) == before

    def test_noop_when_not_paid(self, any_db, service, invoice_id):
        invoice = service.mark_unpaid(OWNER, invoice_id, InvoiceStatus.OVERDUE)

        assert invoice.status is InvoiceStatus.PENDING

    def test_target_status(self, service, invoice_id):
        service.mark_paid(OWNER, invoice_id)

        invoice = service.mark_unpaid(OWNER, invoice_id, InvoiceStatus.CANCELLED)

        assert invoice.status is InvoiceStatus.CANCELLED

    def test_rejects_paid_target(self, service, invoice_id):
        with pytest.raises(ValidationError):
            service.mark_unpaid(OWNER, invoice_id, InvoiceStatus.PAID)


class TestSetStatus:
    """Tests for generic status transitions."""

    def test_to_paid_records_payment(self, any_db, service, invoice_id):
        service.set_status(OWNER, invoice_id, InvoiceStatus.PAID)

        assert len(payments(any_db, invoice_id)) == 1

    def test_from_paid_removes_payment(self, any_db, service, invoice_id):
        service.set_status(OWNER, invoice_id, InvoiceStatus.PAID)

        invoice = service.set_status(OWNER, invoice_id, InvoiceStatus.OVERDUE)

        assert invoice.status is InvoiceStatus.OVERDUE
        assert payments(any_db, invoice_id) == []

    def test_between_unpaid_states_touches_no_ledger(self, any_db, service, invoice_id):
        invoice = service.set_status(OWNER, invoice_id, InvoiceStatus.OVERDUE)

        assert invoice.status is InvoiceStatus.OVERDUE
        assert any_db.find_transactions(OWNER) == []


class TestDeleteInvoice:
    """Tests for deleting invoices with payments."""

    def test_deletes_payment_entries(self, any_db, service, invoice_id):
        service.mark_paid(OWNER, invoice_id)

        removed = service.delete_invoice(OWNER, invoice_id)

        assert removed == 1
        assert any_db.get_invoice(OWNER, invoice_id) is None
        assert any_db.find_transactions(OWNER) == []

    def test_unknown_invoice(self, service):
        with pytest.raises(NotFoundError):
            service.delete_invoice(OWNER, 999)


class TestAtomicity:
    """Tests for rollback and retry on storage failures."""

    def test_failed_payment_write_rolls_back_status(self, any_db, service, invoice_id, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(any_db, "create_transaction", fail)

        with pytest.raises(ReconciliationError):
            service.mark_paid(OWNER, invoice_id)

        monkeypatch.undo()
        assert service.get_invoice(OWNER, invoice_id).status is InvoiceStatus.PENDING
        assert payments(any_db, invoice_id) == []

    def test_single_failure_is_retried(self, any_db, service, invoice_id, monkeypatch):
        original = any_db.create_transaction
        calls = {"count": 0}

        def flaky(*args, **kwargs):
            calls["count"] += 1
            if calls["count"] == 1:
                raise RuntimeError("database is locked")
            return original(*args, **kwargs)

        monkeypatch.setattr(any_db, "create_transaction", flaky)

        with capture_logs() as logs:
            invoice = service.mark_paid(OWNER, invoice_id)

        assert invoice.status is InvoiceStatus.PAID
        assert calls["count"] == 2
        assert len(payments(any_db, invoice_id)) == 1
        assert [entry["attempt"] for entry in logs if entry["event"] == "reconciliation_attempt_failed"] == [1]

    def test_failed_unpaid_keeps_payment(self, any_db, service, invoice_id, monkeypatch):
        service.mark_paid(OWNER, invoice_id)

        def fail(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(any_db, "delete_transactions_for_invoice", fail)

        with pytest.raises(ReconciliationError):
            service.mark_unpaid(OWNER, invoice_id)

        monkeypatch.undo()
        assert service.get_invoice(OWNER, invoice_id).status is InvoiceStatus.PAID
        assert len(payments(any_db, invoice_id)) == 1


def test_concurrent_mark_paid_writes_one_payment(memory_db):
    service = InvoiceService(memory_db)
    invoice_id = service.create_invoice(OWNER, client_name="Acme", amount="250")
    barrier = threading.Barrier(4)

    def worker():
        barrier.wait()
        service.mark_paid(OWNER, invoice_id)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(payments(memory_db, invoice_id)) == 1


def run_mark_paid_during_first_update(monkeypatch, db, service, invoice_id):
    """Start a competing mark_paid right before the first invoice write.

    The competing call gets a short head start. Under the invoice lock it
    cannot run until the interrupted operation has finished.
    """
    original = db.update_invoice
    competitors = []

    def interleaved(*args, **kwargs):
        if not competitors:
            thread = threading.Thread(target=service.mark_paid, args=(OWNER, invoice_id))
            competitors.append(thread)
            thread.start()
            thread.join(timeout=0.5)
        return original(*args, **kwargs)

    monkeypatch.setattr(db, "update_invoice", interleaved)
    return competitors


def test_set_status_does_not_interleave_with_mark_paid(memory_db, monkeypatch):
    service = InvoiceService(memory_db)
    invoice_id = service.create_invoice(OWNER, client_name="Acme", amount="100")
    competitors = run_mark_paid_during_first_update(monkeypatch, memory_db, service, invoice_id)

    service.set_status(OWNER, invoice_id, InvoiceStatus.OVERDUE)
    competitors[0].join()

    invoice = service.get_invoice(OWNER, invoice_id)
    paid = invoice.status is InvoiceStatus.PAID
    assert paid == (invoice.paid_date is not None)
    assert len(payments(memory_db, invoice_id)) == (1 if paid else 0)


def test_amount_update_does_not_interleave_with_mark_paid(memory_db, monkeypatch):
    service = InvoiceService(memory_db)
    invoice_id = service.create_invoice(OWNER, client_name="Acme", amount="100")
    competitors = run_mark_paid_during_first_update(monkeypatch, memory_db, service, invoice_id)

    service.update_invoice(OWNER, invoice_id, amount="500")
    competitors[0].join()

    invoice = service.get_invoice(OWNER, invoice_id)
    [payment] = payments(memory_db, invoice_id)
    assert invoice.status is InvoiceStatus.PAID
    assert invoice.total_amount == Decimal("500")
    assert payment.amount == invoice.total_amount

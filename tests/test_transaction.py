"""Tests for transaction service."""

from datetime import datetime
from decimal import Decimal

import pytest

from conftest import OTHER_OWNER, OWNER
from finovate.domain.entities import TransactionKind
from finovate.domain.errors import ConflictError, NotFoundError, ValidationError
from finovate.domain.periods import utc_now
from finovate.domain.transaction import validate_amount


class TestValidateAmount:
    """Tests for amount validation."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("12.50", Decimal("12.50")),
            (3, Decimal("3")),
            (0.1, Decimal("0.1")),
            ("$1,200", Decimal("1200")),
        ],
    )
    def test_valid(self, value, expected):
        assert validate_amount(value) == expected

    @pytest.mark.parametrize("value", [None, 0, "-4", "abc", True, float("nan")])
    def test_invalid(self, value):
        with pytest.raises(ValidationError) as excinfo:
            validate_amount(value)

        assert excinfo.value.details[0].field == "amount"


class TestCreateTransaction:
    """Tests for creating ledger entries."""

    def test_create_normalizes_kind(self, transaction_service):
        transaction_id = transaction_service.create_transaction(
            OWNER,
            kind="income",
            description=" Consulting ",
            amount="5000",
            occurred_at=datetime(2024, 1, 10),
            category="Services",
        )

        txn = transaction_service.get_transaction(OWNER, transaction_id)
        assert txn.kind is TransactionKind.CREDIT
        assert txn.description == "Consulting"
        assert txn.amount == Decimal("5000")
        assert txn.category == "Services"
        assert txn.source_invoice_id is None

    def test_defaults_occurred_at_to_now(self, transaction_service):
        transaction_id = transaction_service.create_transaction(
            OWNER, kind="DEBIT", description="Coffee", amount="3"
        )

        txn = transaction_service.get_transaction(OWNER, transaction_id)
        assert (utc_now() - txn.occurred_at).total_seconds() < 60

    def test_invalid_kind(self, transaction_service):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(
                OWNER, kind="transfer", description="x", amount="1"
            )

    def test_description_required(self, transaction_service):
        with pytest.raises(ValidationError) as excinfo:
            transaction_service.create_transaction(OWNER, kind="DEBIT", description="  ", amount="1")

        assert excinfo.value.details[0].field == "description"

    def test_unknown_bank_account(self, transaction_service):
        with pytest.raises(NotFoundError):
            transaction_service.create_transaction(
                OWNER, kind="DEBIT", description="x", amount="1", bank_account_id=99
            )

    def test_blank_category_stored_as_none(self, transaction_service):
        transaction_id = transaction_service.create_transaction(
            OWNER, kind="DEBIT", description="x", amount="1", category="   "
        )

        assert transaction_service.get_transaction(OWNER, transaction_id).category is None


class TestCreateBatch:
    """Tests for all-or-nothing batches."""

    def test_creates_all(self, transaction_service):
        ids = transaction_service.create_batch(
            OWNER,
            [
                {"kind": "CREDIT", "description": "a", "amount": "10"},
                {"kind": "DEBIT", "description": "b", "amount": "4"},
            ],
        )

        assert len(ids) == 2
        assert len(transaction_service.list_transactions(OWNER)) == 2

    def test_invalid_entry_writes_nothing(self, transaction_service):
        with pytest.raises(ValidationError) as excinfo:
            transaction_service.create_batch(
                OWNER,
                [
                    {"kind": "CREDIT", "description": "a", "amount": "10"},
                    {"kind": "DEBIT", "description": "b", "amount": "-4"},
                ],
            )

        assert [detail.field for detail in excinfo.value.details] == ["transactions[1].amount"]
        assert transaction_service.list_transactions(OWNER) == []

    def test_storage_level_failure_rolls_back(self, transaction_service):
        with pytest.raises(NotFoundError):
            transaction_service.create_batch(
                OWNER,
                [
                    {"kind": "CREDIT", "description": "a", "amount": "10"},
                    {"kind": "DEBIT", "description": "b", "amount": "4", "bank_account_id": 77},
                ],
            )

        assert transaction_service.list_transactions(OWNER) == []

    def test_empty_batch(self, transaction_service):
        with pytest.raises(ValidationError):
            transaction_service.create_batch(OWNER, [])


class TestUpdateAndDelete:
    """Tests for editing ledger entries."""

    def test_update_fields(self, transaction_service, sample_ledger):
        txn = transaction_service.update_transaction(
            OWNER, sample_ledger[1], amount="250", kind="credit", category="Office"
        )

        assert txn.amount == Decimal("250")
        assert txn.kind is TransactionKind.CREDIT
        assert txn.category == "Office"
        assert txn.description == "Office rent"

    def test_clear_category(self, transaction_service, sample_ledger):
        txn = transaction_service.update_transaction(OWNER, sample_ledger[1], clear_category=True)

        assert txn.category is None

    def test_update_other_owner(self, transaction_service, sample_ledger):
        with pytest.raises(NotFoundError):
            transaction_service.update_transaction(OTHER_OWNER, sample_ledger[0], amount="1")

    def test_delete(self, transaction_service, sample_ledger):
        transaction_service.delete_transaction(OWNER, sample_ledger[0])

        assert transaction_service.get_transaction(OWNER, sample_ledger[0]) is None

    def test_payment_entries_are_locked(
        self, temp_db, transaction_service, invoice_service, sample_invoice
    ):
        invoice_service.mark_paid(OWNER, sample_invoice.id)
        payment = temp_db.find_transactions(OWNER, source_invoice_id=sample_invoice.id)[0]

        with pytest.raises(ConflictError):
            transaction_service.update_transaction(OWNER, payment.id, amount="1")
        with pytest.raises(ConflictError):
            transaction_service.delete_transaction(OWNER, payment.id)


class TestListTransactions:
    """Tests for listing and filtering."""

    def test_newest_first(self, transaction_service, sample_ledger):
        txns = transaction_service.list_transactions(OWNER)

        assert [t.id for t in txns] == list(reversed(sample_ledger))

    def test_filter_by_kind_any_spelling(self, transaction_service, sample_ledger):
        debits = transaction_service.list_transactions(OWNER, kind="dr")

        assert {t.description for t in debits} == {"Office rent", "Lunch"}

    def test_filter_by_date_range(self, transaction_service, sample_ledger):
        txns = transaction_service.list_transactions(
            OWNER, date_from=datetime(2024, 2, 1), date_to=datetime(2024, 2, 3)
        )

        assert [t.description for t in txns] == ["Workshop"]

    def test_search(self, transaction_service, sample_ledger):
        txns = transaction_service.list_transactions(OWNER, search="RENT")

        assert [t.description for t in txns] == ["Office rent"]

    def test_owner_isolation(self, transaction_service, sample_ledger):
        assert transaction_service.list_transactions(OTHER_OWNER) == []

    def test_list_categories(self, transaction_service, sample_ledger):
        usage = transaction_service.list_categories(OWNER)

        assert [(u.category, u.count, u.total_amount) for u in usage] == [
            ("Services", 2, Decimal("5100")),
            ("Rent", 1, Decimal("200")),
            ("Food", 1, Decimal("110")),
        ]

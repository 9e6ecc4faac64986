"""Shared pytest fixtures for finovate tests."""

import logging
import os
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest
import structlog

from finovate.database.factories import create_memory_database, create_sqlite_database
from finovate.domain.bank_account import BankAccountService
from finovate.domain.dashboard import DashboardService
from finovate.domain.goal import GoalService
from finovate.domain.invoice import InvoiceService
from finovate.domain.reconciler import PaymentReconciler
from finovate.domain.transaction import TransactionService

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration made by CLI invocations."""
    yield
    structlog.reset_defaults()
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path, query_timeout_secs=5)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def memory_db():
    """Create an empty in-memory database."""
    db = create_memory_database()
    db.connect()
    db.initialize_schema()
    return db


@pytest.fixture(params=["sqlite", "memory"])
def any_db(request):
    """Run a test against both database backends."""
    if request.param == "sqlite":
        return request.getfixturevalue("temp_db")
    return request.getfixturevalue("memory_db")


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def reconciler(temp_db):
    """Create a PaymentReconciler with a temporary database."""
    return PaymentReconciler(temp_db)


@pytest.fixture
def invoice_service(temp_db, reconciler):
    """Create an InvoiceService sharing the fixture reconciler."""
    return InvoiceService(temp_db, reconciler)


@pytest.fixture
def bank_account_service(temp_db):
    """Create a BankAccountService with a temporary database."""
    return BankAccountService(temp_db)


@pytest.fixture
def goal_service(temp_db):
    """Create a GoalService with a temporary database."""
    return GoalService(temp_db)


@pytest.fixture
def dashboard_service(temp_db, goal_service):
    """Create a DashboardService with a temporary database."""
    return DashboardService(temp_db, goal_service)


@pytest.fixture
def sample_bank_account(bank_account_service):
    """Create a sample bank account for testing."""
    account_id = bank_account_service.create_account(
        OWNER, name="Business Checking", bank_name="Test Bank"
    )
    return bank_account_service.get_account(OWNER, account_id)


@pytest.fixture
def sample_ledger(transaction_service):
    """Four entries whose balance is 4790: two credits and two debits."""
    entries = [
        ("CREDIT", "Consulting", "5000", datetime(2024, 1, 10), "Services"),
        ("DEBIT", "Office rent", "200", datetime(2024, 1, 12), "Rent"),
        ("CREDIT", "Workshop", "100", datetime(2024, 2, 3), "Services"),
        ("DEBIT", "Lunch", "110", datetime(2024, 2, 5), "Food"),
    ]
    return [
        transaction_service.create_transaction(
            OWNER,
            kind=kind,
            description=description,
            amount=Decimal(amount),
            occurred_at=occurred_at,
            category=category,
        )
        for kind, description, amount, occurred_at, category in entries
    ]


@pytest.fixture
def sample_invoice(invoice_service):
    """Create a pending invoice for 1000 with 100 tax."""
    invoice_id = invoice_service.create_invoice(
        OWNER,
        client_name="Acme Corp",
        amount="1000",
        tax_amount="100",
        issue_date=datetime(2024, 3, 1),
    )
    return invoice_service.get_invoice(OWNER, invoice_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

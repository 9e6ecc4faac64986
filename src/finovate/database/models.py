"""SQLAlchemy models for finovate database."""

from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class BankAccount(Base):
    """Bank account model."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    bank_name = Column(String, nullable=False)
    account_type = Column(String, nullable=False, default="CHECKING")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="bank_account")


class Invoice(Base):
    """Invoice model.

    Exactly one of ``items`` (JSON list of line dicts) and ``amount`` is set.
    """

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    invoice_number = Column(String, nullable=False)
    client_name = Column(String, nullable=False)
    client_email = Column(String, nullable=True)
    client_address = Column(String, nullable=True)
    items = Column(JSON, nullable=True)
    amount = Column(Numeric(14, 2), nullable=True)
    subtotal = Column(Numeric(14, 2), nullable=False)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False)
    status = Column(String, nullable=False, default="PENDING")
    issue_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=True)
    paid_date = Column(DateTime, nullable=True)
    notes = Column(String, nullable=True)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("owner_id", "invoice_number", name="uq_owner_invoice_number"),
    )

    # Relationships
    payments = relationship("Transaction", back_populates="source_invoice")


class Transaction(Base):
    """Ledger entry model.

    ``kind`` is stored as free text because rows written before the
    uppercase convention still hold lowercase spellings.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    kind = Column(String, nullable=False)
    description = Column(String, nullable=False)
    category = Column(String, nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    occurred_at = Column(DateTime, nullable=False, index=True)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=True)
    source_invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    bank_account = relationship("BankAccount", back_populates="transactions")
    source_invoice = relationship("Invoice", back_populates="payments")


class MonthlyGoal(Base):
    """Monthly goal model, one row per owner."""

    __tablename__ = "monthly_goals"

    owner_id = Column(String, primary_key=True)
    value = Column(Numeric(14, 2), nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


def create_session_factory(
    database_url: str, query_timeout_secs: Optional[float] = None
) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if query_timeout_secs is not None and database_url.startswith("sqlite"):
        connect_args["timeout"] = query_timeout_secs
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

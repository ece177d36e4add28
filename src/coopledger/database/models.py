"""SQLAlchemy models for the coopledger database.

Collections are flat and related by id columns only; categorization is stored
as a (category_type, category_id) pair rather than a foreign key.
"""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(18, 2)


class CoaMaster(Base):
    """Chart of accounts master (Assets, Liabilities, ...)."""

    __tablename__ = "coa_masters"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    code = Column(String, nullable=True)
    description = Column(String, default="", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class CoaSubmenu(Base):
    """Chart of accounts submenu (category under a master)."""

    __tablename__ = "coa_submenus"

    id = Column(Integer, primary_key=True)
    master_id = Column(Integer, ForeignKey("coa_masters.id"), nullable=False)
    name = Column(String, nullable=False)
    code = Column(String, nullable=True)
    description = Column(String, default="", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("master_id", "name", name="uq_submenu_master_name"),)


class CoaAccount(Base):
    """Chart of accounts leaf account."""

    __tablename__ = "coa_accounts"

    id = Column(Integer, primary_key=True)
    submenu_id = Column(Integer, ForeignKey("coa_submenus.id"), nullable=False)
    code = Column(String, unique=True, nullable=True)
    name = Column(String(255), nullable=False)
    currency = Column(String(10), default="", nullable=False)
    description = Column(String, default="", nullable=False)
    balance = Column(MONEY, default=0, nullable=False)
    last_transaction = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class AccountingTransaction(Base):
    """Deposit/withdrawal against one account."""

    __tablename__ = "accounting_transactions"

    id = Column(Integer, primary_key=True)
    transaction_date = Column(Date, nullable=False)
    description = Column(String, default="", nullable=False)
    account_id = Column(Integer, ForeignKey("coa_accounts.id"), nullable=False)
    transaction_type = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    category_id = Column(Integer, nullable=True)
    category_type = Column(String, nullable=True)
    include_sales_tax = Column(Boolean, default=False, nullable=False)
    sales_tax_id = Column(String, nullable=True)
    customer_id = Column(String, nullable=True)
    vendor_id = Column(String, nullable=True)
    notes = Column(String, default="", nullable=False)
    receipt_file = Column(String, nullable=True)
    reviewed = Column(Boolean, default=False, nullable=False)
    is_split = Column(Boolean, default=False, nullable=False)
    sender_name = Column(String, default="", nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("ix_txn_account_date", "account_id", "transaction_date"),
        Index("ix_txn_date", "transaction_date"),
    )


class TransactionSplit(Base):
    """Categorized portion of a split transaction."""

    __tablename__ = "transaction_splits"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("accounting_transactions.id"), nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    category_id = Column(Integer, nullable=True)
    category_type = Column(String, nullable=True)
    description = Column(String, default="", nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class BankReconciliation(Base):
    """Reconciliation of an account against a bank statement."""

    __tablename__ = "bank_reconciliations"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("coa_accounts.id"), nullable=False)
    statement_end_date = Column(Date, nullable=False)
    starting_balance = Column(MONEY, default=0, nullable=False)
    closing_balance = Column(MONEY, nullable=False)
    matched_balance = Column(MONEY, default=0, nullable=False)
    difference = Column(MONEY, default=0, nullable=False)
    status = Column(String, default="in_progress", nullable=False)
    reconciled_on = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        Index("ix_recon_account_status", "account_id", "status"),
        Index("ix_recon_account_end", "account_id", "statement_end_date"),
    )


class BankReconciliationItem(Base):
    """Transaction included in a reconciliation, with its match state."""

    __tablename__ = "bank_reconciliation_items"

    id = Column(Integer, primary_key=True)
    reconciliation_id = Column(Integer, ForeignKey("bank_reconciliations.id"), nullable=False, index=True)
    # Plain id reference: items can outlive their transaction and are pruned on read.
    transaction_id = Column(Integer, nullable=False, index=True)
    is_matched = Column(Boolean, default=False, nullable=False)
    matched_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

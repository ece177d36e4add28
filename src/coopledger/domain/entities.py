"""Domain model entities for coopledger.

These are pure data classes representing the bookkeeping concepts, independent
of the database schema. Rows are related by id references only; nothing is
embedded.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class MasterName(str, Enum):
    """The five fixed top-level account classes."""

    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSES = "Expenses"


class TransactionType(str, Enum):
    """Ledger transaction direction."""

    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"


class CategoryType(str, Enum):
    """Level of the chart of accounts a category points at."""

    MASTER = "master"
    SUBMENU = "submenu"
    ACCOUNT = "account"


class ReconciliationStatus(str, Enum):
    """Bank reconciliation lifecycle state."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Category:
    """Categorization target: a master, a submenu or a single account."""

    kind: CategoryType
    id: int

    @classmethod
    def master(cls, master_id: int) -> "Category":
        return cls(CategoryType.MASTER, master_id)

    @classmethod
    def submenu(cls, submenu_id: int) -> "Category":
        return cls(CategoryType.SUBMENU, submenu_id)

    @classmethod
    def account(cls, account_id: int) -> "Category":
        return cls(CategoryType.ACCOUNT, account_id)


@dataclass(frozen=True)
class Master:
    """Top-level chart of accounts class."""

    id: int
    name: MasterName
    code: Optional[str]
    description: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Submenu:
    """Named subcategory belonging to one master."""

    id: int
    master_id: int
    name: str
    code: Optional[str]
    description: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Leaf of the chart of accounts; carries the cached running balance."""

    id: int
    submenu_id: int
    code: Optional[str]
    name: str
    currency: str
    description: str
    balance: Decimal
    last_transaction: Optional[datetime]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Deposit or withdrawal against one (cash/bank) account."""

    id: int
    account_id: int
    transaction_type: TransactionType
    amount: Decimal
    transaction_date: date
    description: str
    category: Optional[Category]
    is_split: bool
    created_at: datetime
    include_sales_tax: bool = False
    sales_tax_id: Optional[str] = None
    customer_id: Optional[str] = None
    vendor_id: Optional[str] = None
    notes: str = ""
    receipt_file: Optional[str] = None
    reviewed: bool = False
    sender_name: str = ""


@dataclass(frozen=True)
class Split:
    """One categorized portion of a split transaction."""

    id: int
    transaction_id: int
    amount: Decimal
    category: Optional[Category]
    description: str
    created_at: datetime


@dataclass(frozen=True)
class SplitLine:
    """Split input row, before it is persisted."""

    amount: Decimal
    category: Optional[Category]
    description: str = ""


@dataclass(frozen=True)
class BankReconciliation:
    """Reconciliation of one account against a bank statement period."""

    id: int
    account_id: int
    statement_end_date: date
    starting_balance: Decimal
    closing_balance: Decimal
    matched_balance: Decimal
    difference: Decimal
    status: ReconciliationStatus
    reconciled_on: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class ReconciliationItem:
    """Link between a reconciliation and a transaction with its match state."""

    id: int
    reconciliation_id: int
    transaction_id: int
    is_matched: bool
    matched_at: Optional[datetime]

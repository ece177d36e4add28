"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

# Import entities directly; services import this module
from coopledger.domain.entities import (
    Master,
    Submenu,
    Account,
    Transaction,
    Split,
    Category,
    BankReconciliation,
    ReconciliationItem,
    ReconciliationStatus,
)


class Database(ABC):
    """Abstract database interface for coopledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group several writes into one commit, rolled back on error.

        Nested units join the outermost one.
        """
        pass

    # Master operations
    @abstractmethod
    def create_master(self, name: str, code: Optional[str] = None, description: str = "") -> int:
        """Create a master. Returns master ID."""
        pass

    @abstractmethod
    def get_master_by_name(self, name: str) -> Optional[Master]:
        """Get master by name."""
        pass

    @abstractmethod
    def list_masters(self, include_inactive: bool = False) -> list[Master]:
        """List masters."""
        pass

    # Submenu operations
    @abstractmethod
    def create_submenu(self, master_id: int, name: str, code: Optional[str] = None, description: str = "") -> int:
        """Create a submenu. Returns submenu ID."""
        pass

    @abstractmethod
    def get_submenu(self, submenu_id: int) -> Optional[Submenu]:
        """Get submenu by ID."""
        pass

    @abstractmethod
    def get_submenu_by_name(self, master_id: int, name: str) -> Optional[Submenu]:
        """Get submenu of a master by name."""
        pass

    @abstractmethod
    def list_submenus(self, master_id: Optional[int] = None, include_inactive: bool = False) -> list[Submenu]:
        """List submenus, optionally filtered by master."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        submenu_id: int,
        name: str,
        code: Optional[str] = None,
        currency: str = "",
        description: str = "",
    ) -> int:
        """Create a new account with zero balance. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID (active or not)."""
        pass

    @abstractmethod
    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get account by code."""
        pass

    @abstractmethod
    def list_accounts(self, submenu_id: Optional[int] = None, include_inactive: bool = False) -> list[Account]:
        """List accounts, optionally filtered by submenu."""
        pass

    @abstractmethod
    def list_account_codes(self, master_id: int) -> list[str]:
        """List codes of every account under a master, inactive ones included."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        code: Optional[str] = None,
        currency: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        """Update account fields that are not None."""
        pass

    @abstractmethod
    def deactivate_account(self, account_id: int) -> None:
        """Soft delete an account."""
        pass

    @abstractmethod
    def adjust_account_balance(self, account_id: int, delta: Decimal, touched_at: datetime) -> bool:
        """Add ``delta`` to the cached balance. Returns False when the account is missing."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, balance: Decimal) -> None:
        """Overwrite the cached balance."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        transaction_type: str,
        amount: Decimal,
        transaction_date: date,
        description: str = "",
        category: Optional[Category] = None,
        is_split: bool = False,
        include_sales_tax: bool = False,
        sales_tax_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        notes: str = "",
        receipt_file: Optional[str] = None,
        sender_name: str = "",
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """List transactions by date, creation time and id."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        account_id: int,
        transaction_type: str,
        amount: Decimal,
        transaction_date: date,
        description: str,
        category: Optional[Category],
        is_split: bool,
        include_sales_tax: bool,
        sales_tax_id: Optional[str],
        customer_id: Optional[str],
        vendor_id: Optional[str],
        notes: str,
        receipt_file: Optional[str],
        sender_name: str,
    ) -> None:
        """Replace every editable field of a transaction."""
        pass

    @abstractmethod
    def set_transaction_reviewed(self, transaction_id: int, reviewed: bool) -> None:
        """Set the reviewed flag."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction row."""
        pass

    @abstractmethod
    def get_transaction_years(self) -> list[int]:
        """Distinct years that have transactions."""
        pass

    # Split operations
    @abstractmethod
    def create_split(
        self, transaction_id: int, amount: Decimal, category: Optional[Category], description: str = ""
    ) -> int:
        """Create a split row. Returns split ID."""
        pass

    @abstractmethod
    def list_splits(self, transaction_id: Optional[int] = None) -> list[Split]:
        """List splits in creation order, optionally for one transaction."""
        pass

    @abstractmethod
    def delete_splits(self, transaction_id: int) -> int:
        """Delete every split of a transaction. Returns number deleted."""
        pass

    # Reconciliation operations
    @abstractmethod
    def create_reconciliation(
        self,
        account_id: int,
        statement_end_date: date,
        starting_balance: Decimal,
        closing_balance: Decimal,
    ) -> int:
        """Create an in-progress reconciliation. Returns reconciliation ID."""
        pass

    @abstractmethod
    def get_reconciliation(self, reconciliation_id: int) -> Optional[BankReconciliation]:
        """Get reconciliation by ID."""
        pass

    @abstractmethod
    def list_reconciliations(
        self, account_id: int, status: Optional[ReconciliationStatus] = None
    ) -> list[BankReconciliation]:
        """List reconciliations of an account, newest statement first."""
        pass

    @abstractmethod
    def update_reconciliation(
        self,
        reconciliation_id: int,
        matched_balance: Optional[Decimal] = None,
        difference: Optional[Decimal] = None,
        closing_balance: Optional[Decimal] = None,
        status: Optional[ReconciliationStatus] = None,
        reconciled_on: Optional[datetime] = None,
    ) -> None:
        """Update reconciliation fields that are not None."""
        pass

    @abstractmethod
    def delete_reconciliation(self, reconciliation_id: int) -> None:
        """Delete a reconciliation row."""
        pass

    # Reconciliation item operations
    @abstractmethod
    def create_reconciliation_item(self, reconciliation_id: int, transaction_id: int) -> int:
        """Create an unmatched item. Returns item ID."""
        pass

    @abstractmethod
    def list_reconciliation_items(
        self, reconciliation_id: Optional[int] = None, transaction_id: Optional[int] = None
    ) -> list[ReconciliationItem]:
        """List items by reconciliation and/or transaction."""
        pass

    @abstractmethod
    def set_reconciliation_item_matched(
        self, item_id: int, is_matched: bool, matched_at: Optional[datetime]
    ) -> None:
        """Set the match state of an item."""
        pass

    @abstractmethod
    def delete_reconciliation_items(
        self,
        reconciliation_id: Optional[int] = None,
        transaction_ids: Optional[list[int]] = None,
    ) -> int:
        """Delete items by reconciliation and/or transactions. Returns number deleted."""
        pass

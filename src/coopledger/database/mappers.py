"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the mapping between the
stored (category_type, category_id) column pair and the domain ``Category``
value.
"""

from decimal import Decimal
from typing import Optional

from coopledger.domain import entities as domain
from coopledger.database.models import (
    CoaMaster as ORMMaster,
    CoaSubmenu as ORMSubmenu,
    CoaAccount as ORMAccount,
    AccountingTransaction as ORMTransaction,
    TransactionSplit as ORMSplit,
    BankReconciliation as ORMReconciliation,
    BankReconciliationItem as ORMReconciliationItem,
)


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def category_from_columns(category_type: Optional[str], category_id: Optional[int]) -> Optional[domain.Category]:
    """Build a Category from its stored column pair."""
    if category_type is None or category_id is None:
        return None
    return domain.Category(kind=domain.CategoryType(category_type), id=category_id)


def category_to_columns(category: Optional[domain.Category]) -> tuple[Optional[str], Optional[int]]:
    """Split a Category into its (category_type, category_id) column values."""
    if category is None:
        return None, None
    return domain.CategoryType(category.kind).value, category.id


def master_to_domain(orm_master: ORMMaster) -> domain.Master:
    """Convert SQLAlchemy CoaMaster model to domain Master entity."""
    return domain.Master(
        id=orm_master.id,
        name=domain.MasterName(orm_master.name),
        code=orm_master.code,
        description=orm_master.description or "",
        is_active=orm_master.is_active,
        created_at=orm_master.created_at,
    )


def submenu_to_domain(orm_submenu: ORMSubmenu) -> domain.Submenu:
    """Convert SQLAlchemy CoaSubmenu model to domain Submenu entity."""
    return domain.Submenu(
        id=orm_submenu.id,
        master_id=orm_submenu.master_id,
        name=orm_submenu.name,
        code=orm_submenu.code,
        description=orm_submenu.description or "",
        is_active=orm_submenu.is_active,
        created_at=orm_submenu.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy CoaAccount model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        submenu_id=orm_account.submenu_id,
        code=orm_account.code,
        name=orm_account.name,
        currency=orm_account.currency or "",
        description=orm_account.description or "",
        balance=_money(orm_account.balance),
        last_transaction=orm_account.last_transaction,
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy AccountingTransaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        amount=_money(orm_transaction.amount),
        transaction_date=orm_transaction.transaction_date,
        description=orm_transaction.description or "",
        category=category_from_columns(orm_transaction.category_type, orm_transaction.category_id),
        is_split=orm_transaction.is_split,
        created_at=orm_transaction.created_at,
        include_sales_tax=orm_transaction.include_sales_tax,
        sales_tax_id=orm_transaction.sales_tax_id,
        customer_id=orm_transaction.customer_id,
        vendor_id=orm_transaction.vendor_id,
        notes=orm_transaction.notes or "",
        receipt_file=orm_transaction.receipt_file,
        reviewed=orm_transaction.reviewed,
        sender_name=orm_transaction.sender_name or "",
    )


def split_to_domain(orm_split: ORMSplit) -> domain.Split:
    """Convert SQLAlchemy TransactionSplit model to domain Split entity."""
    return domain.Split(
        id=orm_split.id,
        transaction_id=orm_split.transaction_id,
        amount=_money(orm_split.amount),
        category=category_from_columns(orm_split.category_type, orm_split.category_id),
        description=orm_split.description or "",
        created_at=orm_split.created_at,
    )


def reconciliation_to_domain(orm_reconciliation: ORMReconciliation) -> domain.BankReconciliation:
    """Convert SQLAlchemy BankReconciliation model to domain entity."""
    return domain.BankReconciliation(
        id=orm_reconciliation.id,
        account_id=orm_reconciliation.account_id,
        statement_end_date=orm_reconciliation.statement_end_date,
        starting_balance=_money(orm_reconciliation.starting_balance),
        closing_balance=_money(orm_reconciliation.closing_balance),
        matched_balance=_money(orm_reconciliation.matched_balance),
        difference=_money(orm_reconciliation.difference),
        status=domain.ReconciliationStatus(orm_reconciliation.status),
        reconciled_on=orm_reconciliation.reconciled_on,
        created_at=orm_reconciliation.created_at,
    )


def reconciliation_item_to_domain(orm_item: ORMReconciliationItem) -> domain.ReconciliationItem:
    """Convert SQLAlchemy BankReconciliationItem model to domain entity."""
    return domain.ReconciliationItem(
        id=orm_item.id,
        reconciliation_id=orm_item.reconciliation_id,
        transaction_id=orm_item.transaction_id,
        is_matched=orm_item.is_matched,
        matched_at=orm_item.matched_at,
    )

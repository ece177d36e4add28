"""Transaction ledger domain service."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union

from coopledger.config import DEFAULT_TAXONOMY, LedgerTaxonomy
from coopledger.database.base import Database
from coopledger.domain.balance import ZERO, cash_flow, normalize_money
from coopledger.domain.entities import (
    Category,
    CategoryType,
    MasterName,
    ReconciliationStatus,
    Split,
    SplitLine,
    Transaction,
    TransactionType,
)
from coopledger.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    invalid_transaction_type,
    transaction_not_found,
)
from coopledger.domain.hierarchy import CoaHierarchy
from coopledger.domain.reconciliation import ReconciliationService

logger = logging.getLogger(__name__)

SplitInput = Union[SplitLine, Mapping[str, Any]]


@dataclass(frozen=True)
class SplitView:
    """Split row with its resolved category name."""

    split: Split
    category_name: str


@dataclass(frozen=True)
class TransactionView:
    """Transaction enriched for listing and detail display."""

    transaction: Transaction
    account_name: str
    category_name: str
    splits: list[SplitView] = field(default_factory=list)
    is_reconciled: bool = False


def normalize_transaction_type(value: Any) -> TransactionType:
    """Parse a transaction type case-insensitively.

    Raises:
        ValidationError: If the value is neither Deposit nor Withdrawal
    """
    if isinstance(value, TransactionType):
        return value
    text = str(value or "").strip().lower()
    for transaction_type in TransactionType:
        if transaction_type.value.lower() == text:
            return transaction_type
    raise ValidationError(invalid_transaction_type(value))


def category_from_input(
    category_id: Any, category_type: Any, default_type: Optional[CategoryType] = None
) -> Optional[Category]:
    """Build a Category from loose id/type values, None when incomplete."""
    if category_id in (None, "", "null", "undefined"):
        return None
    kind_text = str(category_type).strip().lower() if category_type not in (None, "") else None
    if kind_text is None:
        if default_type is None:
            return None
        kind = default_type
    else:
        try:
            kind = CategoryType(kind_text)
        except ValueError:
            raise ValidationError(f"Invalid category type '{category_type}'") from None
    try:
        return Category(kind=kind, id=int(category_id))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid category id '{category_id}'") from None


def normalize_split_lines(splits: Optional[Iterable[SplitInput]]) -> list[SplitLine]:
    """Normalize split input rows.

    Amounts become absolute values, rows with a zero amount are dropped and a
    category without an explicit type is treated as an account.
    """
    lines: list[SplitLine] = []
    for row in splits or []:
        if isinstance(row, SplitLine):
            amount = normalize_money(row.amount)
            category = row.category
            description = row.description or ""
        else:
            amount = normalize_money(row.get("amount", row.get("split_amount")))
            category = category_from_input(
                row.get("category_id", row.get("categoryId")),
                row.get("category_type", row.get("categoryType")),
                default_type=CategoryType.ACCOUNT,
            )
            description = row.get("description") or row.get("notes") or ""
        if amount > ZERO:
            lines.append(SplitLine(amount=amount, category=category, description=description))
    return lines


class TransactionService:
    """Service for recording ledger transactions and their splits."""

    def __init__(self, db: Database, taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY):
        """Initialize transaction service.

        Args:
            db: Database instance
            taxonomy: Business taxonomy (tolerances, submenu tables)
        """
        self.db = db
        self.taxonomy = taxonomy

    def _hierarchy(self) -> CoaHierarchy:
        return CoaHierarchy(
            self.db.list_masters(), self.db.list_submenus(), self.db.list_accounts(), self.taxonomy
        )

    def _require_asset_account(self, hierarchy: CoaHierarchy, account_id: int) -> None:
        """A transaction's own account must be an active Asset account."""
        if account_id is None:
            raise ValidationError("Account is required")
        resolved = hierarchy.accounts_by_id.get(account_id)
        if resolved is None:
            if self.db.get_account(account_id) is None:
                raise NotFoundError(account_not_found(account_id))
            raise ValidationError(f"Account {account_id} is inactive")
        if resolved.master_name != MasterName.ASSETS:
            raise ValidationError(
                f"Account '{resolved.name}' is under {resolved.master_name.value}; "
                "transactions must be recorded against an Asset account"
            )

    def require_asset_account(self, account_id: int) -> None:
        """Raise unless the account can carry transactions."""
        self._require_asset_account(self._hierarchy(), account_id)

    def _validate_category(self, hierarchy: CoaHierarchy, category: Optional[Category]) -> None:
        if category is not None and hierarchy.master_of(category) is None:
            raise ValidationError(f"Category {category.kind.value} {category.id} not found")

    @staticmethod
    def _require_one_categorization(category: Optional[Category], split_lines: list[SplitLine]) -> None:
        if category is not None and split_lines:
            raise ValidationError("Give either a category or split rows, not both")

    @staticmethod
    def _parse_amount(amount: Any) -> Decimal:
        value = normalize_money(amount)
        if value <= ZERO:
            raise ValidationError("Amount must be greater than zero")
        return value

    def update_account_balance(
        self, account_id: int, amount: Decimal, transaction_type: TransactionType, reverse: bool = False
    ) -> bool:
        """Apply (or reverse) a transaction's effect on its account's cached balance.

        Deposits add to the balance and withdrawals subtract. A missing account
        is left alone and reported with a warning.

        Returns:
            True if the account was updated
        """
        delta = cash_flow(transaction_type, amount)
        if reverse:
            delta = -delta
        updated = self.db.adjust_account_balance(account_id, delta, datetime.now(UTC))
        if not updated:
            logger.warning("Balance update skipped: account %s not found", account_id)
        return updated

    def record_transaction(
        self,
        account_id: int,
        transaction_type: Union[str, TransactionType],
        amount: Any,
        transaction_date: date,
        description: str = "",
        category: Optional[Category] = None,
        splits: Optional[Iterable[SplitInput]] = None,
        include_sales_tax: bool = False,
        sales_tax_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        notes: str = "",
        receipt_file: Optional[str] = None,
        sender_name: str = "",
    ) -> int:
        """Record a deposit or withdrawal against an Asset account.

        The transaction is categorized either by ``category`` or by ``splits``,
        never both. Split rows with a zero amount are dropped.

        Args:
            account_id: Cash/bank account affected
            transaction_type: "Deposit" or "Withdrawal" (any case)
            amount: Transaction amount, stored as an absolute value
            transaction_date: Transaction date
            description: Optional description
            category: Single category (master, submenu or account)
            splits: Split rows (SplitLine or mappings with amount/category_id/category_type)

        Returns:
            Transaction ID

        Raises:
            ValidationError: If required fields are missing or invalid
            NotFoundError: If the account does not exist
        """
        txn_type = normalize_transaction_type(transaction_type)
        value = self._parse_amount(amount)
        if transaction_date is None:
            raise ValidationError("Transaction date is required")

        hierarchy = self._hierarchy()
        self._require_asset_account(hierarchy, account_id)
        split_lines = normalize_split_lines(splits)
        self._require_one_categorization(category, split_lines)
        is_split = bool(split_lines)
        self._validate_category(hierarchy, category)
        for line in split_lines:
            self._validate_category(hierarchy, line.category)

        with self.db.unit_of_work():
            transaction_id = self.db.create_transaction(
                account_id=account_id,
                transaction_type=txn_type.value,
                amount=value,
                transaction_date=transaction_date,
                description=description or "",
                category=category,
                is_split=is_split,
                include_sales_tax=include_sales_tax,
                sales_tax_id=sales_tax_id,
                customer_id=customer_id,
                vendor_id=vendor_id,
                notes=notes or "",
                receipt_file=receipt_file,
                sender_name=sender_name or "",
            )
            for line in split_lines:
                self.db.create_split(transaction_id, line.amount, line.category, line.description)
            self.update_account_balance(account_id, value, txn_type)

        logger.info(
            "Recorded %s %s on account %s (transaction %s, %d splits)",
            txn_type.value,
            value,
            account_id,
            transaction_id,
            len(split_lines),
        )
        return transaction_id

    def update_transaction(
        self,
        transaction_id: int,
        account_id: Optional[int] = None,
        transaction_type: Union[str, TransactionType, None] = None,
        amount: Any = None,
        transaction_date: Optional[date] = None,
        description: Optional[str] = None,
        category: Optional[Category] = None,
        splits: Optional[Iterable[SplitInput]] = None,
        include_sales_tax: Optional[bool] = None,
        sales_tax_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        notes: Optional[str] = None,
        receipt_file: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> None:
        """Replace a transaction's fields and splits.

        The old balance effect is reversed on the old account before the new
        effect is applied to the (possibly different) new account, so replaying
        the same update leaves balances unchanged. Fields passed as None keep
        their current value, except the categorization: the category and split
        rows always come from this call.

        Raises:
            NotFoundError: If the transaction or new account does not exist
            ValidationError: If the new values are invalid
        """
        old = self.db.get_transaction(transaction_id)
        if old is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        txn_type = normalize_transaction_type(transaction_type) if transaction_type else old.transaction_type
        value = self._parse_amount(amount) if amount is not None else old.amount
        new_account_id = account_id if account_id is not None else old.account_id

        hierarchy = self._hierarchy()
        if new_account_id != old.account_id:
            self._require_asset_account(hierarchy, new_account_id)
        split_lines = normalize_split_lines(splits)
        self._require_one_categorization(category, split_lines)
        is_split = bool(split_lines)
        self._validate_category(hierarchy, category)
        for line in split_lines:
            self._validate_category(hierarchy, line.category)

        with self.db.unit_of_work():
            self.update_account_balance(old.account_id, old.amount, old.transaction_type, reverse=True)
            self.db.update_transaction(
                transaction_id,
                account_id=new_account_id,
                transaction_type=txn_type.value,
                amount=value,
                transaction_date=transaction_date or old.transaction_date,
                description=description if description is not None else old.description,
                category=category,
                is_split=is_split,
                include_sales_tax=include_sales_tax if include_sales_tax is not None else old.include_sales_tax,
                sales_tax_id=sales_tax_id if sales_tax_id is not None else old.sales_tax_id,
                customer_id=customer_id if customer_id is not None else old.customer_id,
                vendor_id=vendor_id if vendor_id is not None else old.vendor_id,
                notes=notes if notes is not None else old.notes,
                receipt_file=receipt_file if receipt_file is not None else old.receipt_file,
                sender_name=sender_name if sender_name is not None else old.sender_name,
            )
            self.db.delete_splits(transaction_id)
            for line in split_lines:
                self.db.create_split(transaction_id, line.amount, line.category, line.description)
            self.update_account_balance(new_account_id, value, txn_type)

        logger.info("Updated transaction %s", transaction_id)

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction, its splits and its reconciliation items.

        The balance effect is reversed and every in-progress reconciliation
        that lost an item is recomputed.

        Raises:
            NotFoundError: If transaction not found
        """
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        reconciliations = ReconciliationService(self.db, self.taxonomy)
        with self.db.unit_of_work():
            items = self.db.list_reconciliation_items(transaction_id=transaction_id)
            affected = sorted({item.reconciliation_id for item in items})
            self.db.delete_reconciliation_items(transaction_ids=[transaction_id])
            self.update_account_balance(
                transaction.account_id, transaction.amount, transaction.transaction_type, reverse=True
            )
            self.db.delete_splits(transaction_id)
            self.db.delete_transaction(transaction_id)
            for reconciliation_id in affected:
                reconciliation = self.db.get_reconciliation(reconciliation_id)
                if reconciliation is not None and reconciliation.status == ReconciliationStatus.IN_PROGRESS:
                    reconciliations.recompute(reconciliation_id)

        logger.info("Deleted transaction %s (%d reconciliation items removed)", transaction_id, len(items))

    def toggle_reviewed(self, transaction_id: int) -> bool:
        """Flip the reviewed flag. Returns the new value."""
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        reviewed = not transaction.reviewed
        self.db.set_transaction_reviewed(transaction_id, reviewed)
        return reviewed

    def _view(
        self, hierarchy: CoaHierarchy, transaction: Transaction, splits: list[Split], reconciled: set[int]
    ) -> TransactionView:
        account = hierarchy.accounts_by_id.get(transaction.account_id)
        if account is not None:
            account_name = account.name
        else:
            raw = self.db.get_account(transaction.account_id)
            account_name = raw.name if raw else ""
        return TransactionView(
            transaction=transaction,
            account_name=account_name,
            category_name=(
                "Split" if transaction.is_split else hierarchy.category_name(transaction.category)
            ),
            splits=[SplitView(split=s, category_name=hierarchy.category_name(s.category)) for s in splits],
            is_reconciled=transaction.id in reconciled,
        )

    def list_transactions(self, account_id: Optional[int] = None) -> list[TransactionView]:
        """List transactions newest first with category names and split rows.

        Args:
            account_id: Optional account to filter by
        """
        hierarchy = self._hierarchy()
        transactions = self.db.list_transactions(account_id=account_id)
        splits_by_transaction: dict[int, list[Split]] = {}
        for split in self.db.list_splits():
            splits_by_transaction.setdefault(split.transaction_id, []).append(split)
        reconciled = {item.transaction_id for item in self.db.list_reconciliation_items() if item.is_matched}

        views = [
            self._view(hierarchy, txn, splits_by_transaction.get(txn.id, []), reconciled)
            for txn in reversed(transactions)
        ]
        return views

    def get_transaction(self, transaction_id: int) -> TransactionView:
        """Get one transaction with its splits in creation order.

        Raises:
            NotFoundError: If transaction not found
        """
        transaction = self.db.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        reconciled = {
            item.transaction_id
            for item in self.db.list_reconciliation_items(transaction_id=transaction_id)
            if item.is_matched
        }
        return self._view(self._hierarchy(), transaction, self.db.list_splits(transaction_id), reconciled)

    def recompute_balance(self, account_id: int) -> Decimal:
        """Rebuild an account's cached balance from its transactions.

        Raises:
            NotFoundError: If account not found
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        balance = sum(
            (cash_flow(t.transaction_type, t.amount) for t in self.db.list_transactions(account_id=account_id)),
            ZERO,
        )
        if balance != account.balance:
            logger.warning(
                "Cached balance of account %s drifted: %s, ledger says %s", account_id, account.balance, balance
            )
        self.db.set_account_balance(account_id, balance)
        return balance

    def recompute_all_balances(self) -> dict[int, Decimal]:
        """Rebuild the cached balance of every account (inactive ones included)."""
        with self.db.unit_of_work():
            return {
                account.id: self.recompute_balance(account.id)
                for account in self.db.list_accounts(include_inactive=True)
            }

    def find_unallocated_splits(self) -> list[dict[str, Any]]:
        """Split transactions whose split rows do not add up to the transaction amount.

        Returns:
            One dict per mismatched transaction, largest absolute remainder first
        """
        split_totals: dict[int, Decimal] = {}
        for split in self.db.list_splits():
            split_totals[split.transaction_id] = split_totals.get(split.transaction_id, ZERO) + normalize_money(
                split.amount
            )

        account_names: dict[int, str] = {a.id: a.name for a in self.db.list_accounts(include_inactive=True)}
        issues = []
        for txn in self.db.list_transactions():
            if not txn.is_split:
                continue
            amount = normalize_money(txn.amount)
            split_total = split_totals.get(txn.id, ZERO)
            remaining = amount - split_total
            if abs(remaining) <= self.taxonomy.balance_tolerance:
                continue
            issues.append(
                {
                    "id": txn.id,
                    "transaction_date": txn.transaction_date.isoformat(),
                    "description": txn.description,
                    "transaction_type": txn.transaction_type.value,
                    "transaction_amount": amount,
                    "total_split_amount": split_total,
                    "remaining_unallocated": remaining,
                    "account_name": account_names.get(txn.account_id, ""),
                }
            )
        if issues:
            logger.warning("%d split transactions are not fully allocated", len(issues))
        issues.sort(key=lambda issue: abs(issue["remaining_unallocated"]), reverse=True)
        return issues

    def create_transaction_from_expense(
        self,
        account_id: int,
        transaction_date: date,
        description: str,
        lines: Iterable[SplitInput],
        expected_total: Any,
        vendor_id: Optional[str] = None,
        notes: str = "",
        receipt_file: Optional[str] = None,
    ) -> int:
        """Convert an approved expense into a withdrawal.

        A single expense line becomes the transaction's category; several lines
        become a split transaction.

        Raises:
            ValidationError: If there are no lines, a line has no category, or
                the lines do not add up to the expected total
        """
        total = self._parse_amount(expected_total)
        expense_lines = normalize_split_lines(lines)
        if not expense_lines:
            raise ValidationError("Expense has no category lines")
        for line in expense_lines:
            if line.category is None:
                raise ValidationError("Every expense line needs a category")
        lines_total = sum((line.amount for line in expense_lines), ZERO)
        if abs(lines_total - total) > self.taxonomy.balance_tolerance:
            raise ValidationError(
                f"Expense lines total {lines_total} does not match the expense amount {total}"
            )

        if len(expense_lines) == 1:
            category, splits = expense_lines[0].category, None
        else:
            category, splits = None, expense_lines

        return self.record_transaction(
            account_id=account_id,
            transaction_type=TransactionType.WITHDRAWAL,
            amount=total,
            transaction_date=transaction_date,
            description=description,
            category=category,
            splits=splits,
            vendor_id=vendor_id,
            notes=notes,
            receipt_file=receipt_file,
        )

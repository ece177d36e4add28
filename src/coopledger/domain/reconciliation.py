"""Bank reconciliation domain service.

A reconciliation walks ``in_progress`` -> ``completed`` (terminal) or is
cancelled, which deletes it. Each account has at most one in-progress
reconciliation, and completed reconciliations are read-only.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from coopledger.config import DEFAULT_TAXONOMY, LedgerTaxonomy
from coopledger.database.base import Database
from coopledger.domain.balance import ZERO, cash_flow
from coopledger.domain.entities import (
    Account,
    BankReconciliation,
    MasterName,
    ReconciliationStatus,
    Transaction,
)
from coopledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    reconciliation_not_editable,
    reconciliation_not_found,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationState:
    """Reconciliation overview for one account."""

    account: Account
    history: list[BankReconciliation]
    active: Optional[BankReconciliation]
    last_completed: Optional[BankReconciliation]
    starting_balance: Decimal


@dataclass(frozen=True)
class ReconciliationLine:
    """Transaction shown in a reconciliation with its match state."""

    transaction: Transaction
    item_id: int
    is_matched: bool
    matched_at: Optional[datetime]


@dataclass(frozen=True)
class ReconciliationDetail:
    """Reconciliation with its account and transaction lines."""

    reconciliation: BankReconciliation
    account: Optional[Account]
    transactions: list[ReconciliationLine] = field(default_factory=list)
    matched_balance: Decimal = ZERO
    unmatched_count: int = 0


@dataclass(frozen=True)
class MatchSummary:
    """Balances after a toggle, removal or closing balance change."""

    matched_balance: Decimal
    difference: Decimal
    unmatched_count: int


def parse_balance(value: Any) -> Decimal:
    """Parse a statement balance, which may be negative.

    Raises:
        ValidationError: If the value is missing or not a number
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Closing balance is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid closing balance '{value}'") from None
    if not amount.is_finite():
        raise ValidationError(f"Invalid closing balance '{value}'")
    return amount


class ReconciliationService:
    """Service for matching ledger transactions against bank statements."""

    def __init__(self, db: Database, taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            taxonomy: Business taxonomy (balancing tolerance)
        """
        self.db = db
        self.taxonomy = taxonomy

    def _get(self, reconciliation_id: int) -> BankReconciliation:
        reconciliation = self.db.get_reconciliation(reconciliation_id)
        if reconciliation is None:
            raise NotFoundError(reconciliation_not_found(reconciliation_id))
        return reconciliation

    def _get_editable(self, reconciliation_id: int) -> BankReconciliation:
        reconciliation = self._get(reconciliation_id)
        if reconciliation.status != ReconciliationStatus.IN_PROGRESS:
            raise ConflictError(reconciliation_not_editable(reconciliation_id))
        return reconciliation

    def _get_account(self, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def _last_completed(self, account_id: int) -> Optional[BankReconciliation]:
        completed = self.db.list_reconciliations(account_id, status=ReconciliationStatus.COMPLETED)
        return completed[0] if completed else None

    def _active(self, account_id: int) -> Optional[BankReconciliation]:
        active = self.db.list_reconciliations(account_id, status=ReconciliationStatus.IN_PROGRESS)
        return active[0] if active else None

    def get_state(self, account_id: int) -> ReconciliationState:
        """History, active reconciliation and next starting balance for an account."""
        account = self._get_account(account_id)
        history = self.db.list_reconciliations(account_id, status=ReconciliationStatus.COMPLETED)
        last_completed = history[0] if history else None
        return ReconciliationState(
            account=account,
            history=history,
            active=self._active(account_id),
            last_completed=last_completed,
            starting_balance=last_completed.closing_balance if last_completed else ZERO,
        )

    def _require_asset_account(self, account: Account) -> None:
        submenu = self.db.get_submenu(account.submenu_id)
        master = None
        if submenu is not None:
            master = next((m for m in self.db.list_masters() if m.id == submenu.master_id), None)
        if master is None or master.name != MasterName.ASSETS:
            raise ValidationError(f"Account '{account.name}' is not an Asset account and cannot be reconciled")

    def start(self, account_id: int, statement_end_date: date, closing_balance: Any) -> int:
        """Start a reconciliation for an account up to a statement end date.

        The starting balance is the closing balance of the last completed
        reconciliation (or 0). Every transaction on the account dated on or
        before the end date that was not matched in a completed
        reconciliation becomes an unmatched item.

        Args:
            account_id: Cash/bank account to reconcile
            statement_end_date: Last day covered by the bank statement
            closing_balance: Balance printed on the statement

        Returns:
            Reconciliation ID

        Raises:
            ValidationError: If inputs are missing or the account is not an Asset account
            NotFoundError: If the account does not exist
            ConflictError: If the account already has an in-progress reconciliation
        """
        if statement_end_date is None:
            raise ValidationError("Statement end date is required")
        closing = parse_balance(closing_balance)
        account = self._get_account(account_id)
        self._require_asset_account(account)

        if self._active(account_id) is not None:
            raise ConflictError("There is already an active reconciliation for this account")

        last_completed = self._last_completed(account_id)
        starting_balance = last_completed.closing_balance if last_completed else ZERO

        reconciled: set[int] = set()
        for completed in self.db.list_reconciliations(account_id, status=ReconciliationStatus.COMPLETED):
            reconciled.update(
                item.transaction_id
                for item in self.db.list_reconciliation_items(reconciliation_id=completed.id)
                if item.is_matched
            )

        with self.db.unit_of_work():
            reconciliation_id = self.db.create_reconciliation(
                account_id=account_id,
                statement_end_date=statement_end_date,
                starting_balance=starting_balance,
                closing_balance=closing,
            )
            created = 0
            for txn in self.db.list_transactions(account_id=account_id, end_date=statement_end_date):
                if txn.id not in reconciled:
                    self.db.create_reconciliation_item(reconciliation_id, txn.id)
                    created += 1
            self.recompute(reconciliation_id)

        logger.info(
            "Started reconciliation %s for account %s through %s (%d items)",
            reconciliation_id,
            account_id,
            statement_end_date,
            created,
        )
        return reconciliation_id

    def compute_matched_balance(self, reconciliation_id: int) -> Decimal:
        """Signed sum of matched items, deposits positive and withdrawals negative."""
        total = ZERO
        for item in self.db.list_reconciliation_items(reconciliation_id=reconciliation_id):
            if not item.is_matched:
                continue
            txn = self.db.get_transaction(item.transaction_id)
            if txn is not None:
                total += cash_flow(txn.transaction_type, txn.amount)
        return total

    def _unmatched_count(self, reconciliation_id: int) -> int:
        return sum(
            1 for item in self.db.list_reconciliation_items(reconciliation_id=reconciliation_id) if not item.is_matched
        )

    def recompute(self, reconciliation_id: int) -> MatchSummary:
        """Recompute and persist matched balance and difference."""
        reconciliation = self._get(reconciliation_id)
        matched_balance = reconciliation.starting_balance + self.compute_matched_balance(reconciliation_id)
        difference = reconciliation.closing_balance - matched_balance
        self.db.update_reconciliation(reconciliation_id, matched_balance=matched_balance, difference=difference)
        return MatchSummary(
            matched_balance=matched_balance,
            difference=difference,
            unmatched_count=self._unmatched_count(reconciliation_id),
        )

    def toggle_match(self, reconciliation_id: int, transaction_id: int) -> MatchSummary:
        """Flip the match state of one transaction and recompute.

        Raises:
            NotFoundError: If the reconciliation or item does not exist
            ConflictError: If the reconciliation is completed
        """
        self._get_editable(reconciliation_id)
        items = self.db.list_reconciliation_items(reconciliation_id=reconciliation_id, transaction_id=transaction_id)
        if not items:
            raise NotFoundError(f"Transaction {transaction_id} is not part of reconciliation {reconciliation_id}")
        item = items[0]
        is_matched = not item.is_matched
        with self.db.unit_of_work():
            self.db.set_reconciliation_item_matched(item.id, is_matched, datetime.now(UTC) if is_matched else None)
            return self.recompute(reconciliation_id)

    def remove_items(self, reconciliation_id: int, transaction_ids: Iterable[int]) -> MatchSummary:
        """Delete items from an in-progress reconciliation and recompute.

        Raises:
            ValidationError: If no transaction ids are given
            ConflictError: If the reconciliation is completed
        """
        ids = list(transaction_ids or [])
        if not ids:
            raise ValidationError("transaction_ids are required")
        self._get_editable(reconciliation_id)
        with self.db.unit_of_work():
            removed = self.db.delete_reconciliation_items(reconciliation_id=reconciliation_id, transaction_ids=ids)
            summary = self.recompute(reconciliation_id)
        logger.info("Removed %d items from reconciliation %s", removed, reconciliation_id)
        return summary

    def update_closing_balance(self, reconciliation_id: int, closing_balance: Any) -> MatchSummary:
        """Change the statement closing balance and recompute the difference."""
        closing = parse_balance(closing_balance)
        self._get_editable(reconciliation_id)
        with self.db.unit_of_work():
            self.db.update_reconciliation(reconciliation_id, closing_balance=closing)
            return self.recompute(reconciliation_id)

    def complete(self, reconciliation_id: int) -> BankReconciliation:
        """Mark a balanced reconciliation completed.

        Raises:
            ConflictError: If the difference exceeds the tolerance or the
                reconciliation is already completed
        """
        reconciliation = self._get_editable(reconciliation_id)
        if abs(reconciliation.difference) > self.taxonomy.balance_tolerance:
            raise ConflictError(
                f"Cannot complete reconciliation: difference is {reconciliation.difference}, must be 0.00"
            )
        self.db.update_reconciliation(
            reconciliation_id, status=ReconciliationStatus.COMPLETED, reconciled_on=datetime.now(UTC)
        )
        logger.info("Completed reconciliation %s for account %s", reconciliation_id, reconciliation.account_id)
        return self._get(reconciliation_id)

    def cancel(self, reconciliation_id: int) -> None:
        """Delete an in-progress reconciliation and its items."""
        self._get_editable(reconciliation_id)
        with self.db.unit_of_work():
            self.db.delete_reconciliation_items(reconciliation_id=reconciliation_id)
            self.db.delete_reconciliation(reconciliation_id)
        logger.info("Cancelled reconciliation %s", reconciliation_id)

    def prune_orphans(self, reconciliation_id: int) -> int:
        """Delete items whose transaction no longer exists. Returns number pruned."""
        orphans = [
            item.transaction_id
            for item in self.db.list_reconciliation_items(reconciliation_id=reconciliation_id)
            if self.db.get_transaction(item.transaction_id) is None
        ]
        if not orphans:
            return 0
        self.db.delete_reconciliation_items(reconciliation_id=reconciliation_id, transaction_ids=orphans)
        logger.warning("Pruned %d orphaned items from reconciliation %s", len(orphans), reconciliation_id)
        return len(orphans)

    def _lines(self, reconciliation_id: int, matched_only: bool = False) -> list[ReconciliationLine]:
        lines = []
        for item in self.db.list_reconciliation_items(reconciliation_id=reconciliation_id):
            if matched_only and not item.is_matched:
                continue
            txn = self.db.get_transaction(item.transaction_id)
            if txn is None:
                continue
            lines.append(
                ReconciliationLine(
                    transaction=txn, item_id=item.id, is_matched=item.is_matched, matched_at=item.matched_at
                )
            )
        lines.sort(key=lambda line: (line.transaction.transaction_date, line.transaction.id), reverse=True)
        return lines

    def process(self, reconciliation_id: int) -> ReconciliationDetail:
        """Prepare a reconciliation for matching.

        Orphaned items are pruned first. Balances of an in-progress
        reconciliation are recomputed and persisted.
        """
        reconciliation = self._get(reconciliation_id)
        with self.db.unit_of_work():
            self.prune_orphans(reconciliation_id)
            if reconciliation.status == ReconciliationStatus.IN_PROGRESS:
                self.recompute(reconciliation_id)
        reconciliation = self._get(reconciliation_id)
        lines = self._lines(reconciliation_id)
        return ReconciliationDetail(
            reconciliation=reconciliation,
            account=self.db.get_account(reconciliation.account_id),
            transactions=lines,
            matched_balance=reconciliation.matched_balance,
            unmatched_count=sum(1 for line in lines if not line.is_matched),
        )

    def view(self, reconciliation_id: int) -> ReconciliationDetail:
        """Read-only view with the matched transactions only."""
        reconciliation = self._get(reconciliation_id)
        lines = self._lines(reconciliation_id, matched_only=True)
        return ReconciliationDetail(
            reconciliation=reconciliation,
            account=self.db.get_account(reconciliation.account_id),
            transactions=lines,
            matched_balance=reconciliation.matched_balance,
            unmatched_count=0,
        )

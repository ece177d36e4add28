"""In-process boundary for callers that want outcomes instead of exceptions.

Every ``LedgerApi`` method returns an ``Outcome``. Domain errors become failure
outcomes carrying the error kind; anything else is logged and reported as a
generic failure.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Mapping, Optional

from coopledger.config import DEFAULT_TAXONOMY, LedgerTaxonomy
from coopledger.database.base import Database
from coopledger.domain.balance_sheet import BalanceSheetService
from coopledger.domain.coa import CoaService
from coopledger.domain.csv_import import CSVImportService
from coopledger.domain.entities import Category
from coopledger.domain.errors import DomainError
from coopledger.domain.general_ledger import GeneralLedgerService
from coopledger.domain.profit_loss import ProfitLossService
from coopledger.domain.reconciliation import ReconciliationService
from coopledger.domain.transaction import TransactionService

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "Unexpected error"
REPORT_ERROR = "Failed to build report"


@dataclass(frozen=True)
class Outcome:
    """Result envelope: ok flag, human readable message and optional payload."""

    ok: bool
    message: str
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, message: str, data: Any = None) -> "Outcome":
        return cls(ok=True, message=message, data=data)

    @classmethod
    def failure(cls, message: str, error: str = "error") -> "Outcome":
        return cls(ok=False, message=message, error=error)


class LedgerApi:
    """Facade over the domain services."""

    def __init__(self, db: Database, taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY):
        self.db = db
        self.coa = CoaService(db, taxonomy)
        self.transactions = TransactionService(db, taxonomy)
        self.imports = CSVImportService(db, taxonomy)
        self.reconciliations = ReconciliationService(db, taxonomy)
        self.profit_loss = ProfitLossService(db, taxonomy)
        self.balance_sheet = BalanceSheetService(db, taxonomy)
        self.general_ledger = GeneralLedgerService(db, taxonomy)

    @staticmethod
    def _run(action: Callable[[], Any], message: str, failure_message: str = UNEXPECTED_ERROR) -> Outcome:
        try:
            data = action()
        except DomainError as e:
            return Outcome.failure(str(e), e.kind)
        except Exception:
            logger.exception("%s failed", message)
            return Outcome.failure(failure_message)
        return Outcome.success(message, data)

    # Chart of accounts

    def seed_chart(self) -> Outcome:
        return self._run(self.coa.seed_chart, "Chart of accounts initialized")

    def create_account(self, submenu_id: int, name: str, **fields: Any) -> Outcome:
        return self._run(lambda: self.coa.create_account(submenu_id, name, **fields), "Account created successfully")

    def update_account(self, account_id: int, **fields: Any) -> Outcome:
        return self._run(lambda: self.coa.update_account(account_id, **fields), "Account updated successfully")

    def delete_account(self, account_id: int) -> Outcome:
        return self._run(lambda: self.coa.delete_account(account_id), "Account deleted successfully")

    def get_account(self, account_id: int) -> Outcome:
        return self._run(lambda: self.coa.get_account_detail(account_id), "Account found")

    def list_accounts_by_type(self, master_type: Optional[str] = None) -> Outcome:
        return self._run(lambda: self.coa.list_accounts_by_type(master_type), "Accounts listed")

    def create_submenu(self, master_name: str, name: str, **fields: Any) -> Outcome:
        return self._run(lambda: self.coa.create_submenu(master_name, name, **fields), "Submenu created successfully")

    def list_submenus(self, master_type: str) -> Outcome:
        return self._run(lambda: self.coa.list_submenus(master_type), "Submenus listed")

    def list_categories(self) -> Outcome:
        return self._run(self.coa.list_categories, "Categories listed")

    def list_asset_accounts(self) -> Outcome:
        return self._run(self.coa.list_asset_accounts, "Asset accounts listed")

    # Transactions

    def record_transaction(
        self,
        account_id: int,
        transaction_type: str,
        amount: Any,
        transaction_date: date,
        category: Optional[Category] = None,
        splits: Optional[Iterable[Any]] = None,
        **fields: Any,
    ) -> Outcome:
        return self._run(
            lambda: self.transactions.record_transaction(
                account_id, transaction_type, amount, transaction_date, category=category, splits=splits, **fields
            ),
            "Transaction created successfully",
        )

    def update_transaction(self, transaction_id: int, **fields: Any) -> Outcome:
        return self._run(
            lambda: self.transactions.update_transaction(transaction_id, **fields), "Transaction updated successfully"
        )

    def delete_transaction(self, transaction_id: int) -> Outcome:
        return self._run(
            lambda: self.transactions.delete_transaction(transaction_id), "Transaction deleted successfully"
        )

    def toggle_reviewed(self, transaction_id: int) -> Outcome:
        return self._run(lambda: self.transactions.toggle_reviewed(transaction_id), "Review status updated")

    def list_transactions(self, account_id: Optional[int] = None) -> Outcome:
        return self._run(lambda: self.transactions.list_transactions(account_id), "Transactions listed")

    def get_transaction(self, transaction_id: int) -> Outcome:
        return self._run(lambda: self.transactions.get_transaction(transaction_id), "Transaction found")

    def find_unallocated_splits(self) -> Outcome:
        return self._run(self.transactions.find_unallocated_splits, "Split allocation checked")

    def recompute_all_balances(self) -> Outcome:
        return self._run(self.transactions.recompute_all_balances, "Balances recomputed")

    def create_transaction_from_expense(self, account_id: int, transaction_date: date, **fields: Any) -> Outcome:
        return self._run(
            lambda: self.transactions.create_transaction_from_expense(account_id, transaction_date, **fields),
            "Expense recorded as transaction",
        )

    def import_rows(self, account_id: int, rows: Iterable[Mapping[str, Any]], all_or_nothing: bool = False) -> Outcome:
        outcome = self._run(
            lambda: self.imports.import_rows(account_id, list(rows), all_or_nothing=all_or_nothing),
            "Import finished",
        )
        if outcome.ok:
            return Outcome.success(f"{outcome.data['imported']} transactions imported successfully", outcome.data)
        return outcome

    # Reconciliation

    def reconciliation_state(self, account_id: int) -> Outcome:
        return self._run(lambda: self.reconciliations.get_state(account_id), "Reconciliation state loaded")

    def start_reconciliation(self, account_id: int, statement_end_date: date, closing_balance: Any) -> Outcome:
        return self._run(
            lambda: self.reconciliations.start(account_id, statement_end_date, closing_balance),
            "Reconciliation started",
        )

    def process_reconciliation(self, reconciliation_id: int) -> Outcome:
        return self._run(lambda: self.reconciliations.process(reconciliation_id), "Reconciliation loaded")

    def toggle_match(self, reconciliation_id: int, transaction_id: int) -> Outcome:
        return self._run(
            lambda: self.reconciliations.toggle_match(reconciliation_id, transaction_id), "Match status updated"
        )

    def remove_reconciliation_items(self, reconciliation_id: int, transaction_ids: Iterable[int]) -> Outcome:
        return self._run(
            lambda: self.reconciliations.remove_items(reconciliation_id, list(transaction_ids)),
            "Transactions removed from reconciliation",
        )

    def update_closing_balance(self, reconciliation_id: int, closing_balance: Any) -> Outcome:
        return self._run(
            lambda: self.reconciliations.update_closing_balance(reconciliation_id, closing_balance),
            "Closing balance updated",
        )

    def complete_reconciliation(self, reconciliation_id: int) -> Outcome:
        return self._run(lambda: self.reconciliations.complete(reconciliation_id), "Reconciliation completed")

    def cancel_reconciliation(self, reconciliation_id: int) -> Outcome:
        return self._run(lambda: self.reconciliations.cancel(reconciliation_id), "Reconciliation cancelled")

    def view_reconciliation(self, reconciliation_id: int) -> Outcome:
        return self._run(lambda: self.reconciliations.view(reconciliation_id), "Reconciliation loaded")

    # Reports

    def profit_loss_report(self, options: Mapping[str, Any]) -> Outcome:
        return self._run(lambda: self.profit_loss.build_payload(options), "Profit & Loss built", REPORT_ERROR)

    def balance_sheet_report(self, options: Mapping[str, Any]) -> Outcome:
        return self._run(lambda: self.balance_sheet.build_payload(options), "Balance Sheet built", REPORT_ERROR)

    def general_ledger_report(self, options: Mapping[str, Any]) -> Outcome:
        return self._run(
            lambda: self.general_ledger.build_payload(options), "Account Transactions built", REPORT_ERROR
        )

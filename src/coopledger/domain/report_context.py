"""In-memory window of the ledger shared by the report builders.

Reports load every transaction dated on or before their end date, with its
splits, once per request and aggregate synchronously.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterator, Optional

from coopledger.database.base import Database
from coopledger.domain.balance import normalize_money
from coopledger.domain.entities import Category, Split, Transaction
from coopledger.domain.hierarchy import CoaHierarchy, ReportTarget


@dataclass(frozen=True)
class CategoryLine:
    """One categorized amount of a transaction: the transaction itself or one split."""

    transaction: Transaction
    amount: Decimal
    category: Optional[Category]


class ReportContext:
    """Transactions up to an end date, with splits grouped per transaction."""

    def __init__(
        self,
        hierarchy: CoaHierarchy,
        transactions: list[Transaction],
        splits_by_transaction: dict[int, list[Split]],
    ):
        self.hierarchy = hierarchy
        self.transactions = transactions
        self.splits_by_transaction = splits_by_transaction

    @classmethod
    def load(cls, db: Database, hierarchy: CoaHierarchy, end_date: Optional[date]) -> "ReportContext":
        """Load transactions dated on or before ``end_date`` (all when None)."""
        transactions = db.list_transactions(end_date=end_date)
        ids = {txn.id for txn in transactions}
        splits_by_transaction: dict[int, list[Split]] = {}
        for split in db.list_splits():
            if split.transaction_id in ids:
                splits_by_transaction.setdefault(split.transaction_id, []).append(split)
        return cls(hierarchy, transactions, splits_by_transaction)

    def between(self, start: Optional[date], end: Optional[date]) -> Iterator[Transaction]:
        """Transactions dated within [start, end]; an open bound is unbounded."""
        for txn in self.transactions:
            if start is not None and txn.transaction_date < start:
                continue
            if end is not None and txn.transaction_date > end:
                continue
            yield txn

    def category_lines(self, txn: Transaction) -> list[CategoryLine]:
        """Categorized amounts of a transaction.

        A split transaction contributes one line per split; any other
        transaction contributes its own amount and category.
        """
        if txn.is_split:
            return [
                CategoryLine(txn, normalize_money(split.amount), split.category)
                for split in self.splits_by_transaction.get(txn.id, [])
            ]
        if txn.category is None:
            return []
        return [CategoryLine(txn, normalize_money(txn.amount), txn.category)]

    def target_lines(self, txn: Transaction) -> list[tuple[ReportTarget, Decimal]]:
        """(report row, amount) pairs of a transaction; each line lands on exactly one row."""
        targets = []
        for line in self.category_lines(txn):
            target = self.hierarchy.report_target(line.category)
            if target is not None:
                targets.append((target, line.amount))
        return targets


def available_years(db: Database, today: date) -> list[int]:
    """Years with transactions plus the current year and its neighbours, newest first."""
    years = set(db.get_transaction_years())
    years.update({today.year - 1, today.year, today.year + 1})
    return sorted(years, reverse=True)


def pick(options, *keys, default=None):
    """First non-empty value among snake_case/camelCase option keys."""
    for key in keys:
        value = options.get(key)
        if value not in (None, ""):
            return value
    return default


def as_flag(value, default: bool = False) -> bool:
    """Interpret checkbox-style values ("1", "true", "on", ...)."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")

"""Bulk transaction import domain service."""

import csv
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Mapping

from coopledger.config import DEFAULT_TAXONOMY, LedgerTaxonomy
from coopledger.database.base import Database
from coopledger.domain.entities import TransactionType
from coopledger.domain.errors import ValidationError
from coopledger.domain.transaction import TransactionService
from coopledger.utils.amount_parser import parse_amount
from coopledger.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "amount")


class CSVImportService:
    """Service for importing uncategorized transactions into one account."""

    def __init__(self, db: Database, taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY):
        """Initialize CSV import service.

        Args:
            db: Database instance
            taxonomy: Business taxonomy used for validation
        """
        self.db = db
        self.transaction_service = TransactionService(db, taxonomy)

    @staticmethod
    def _row_type(value: Any, amount: Decimal) -> TransactionType:
        text = str(value or "").strip().lower()
        for txn_type in TransactionType:
            if txn_type.value.lower() == text:
                return txn_type
        return TransactionType.DEPOSIT if amount >= 0 else TransactionType.WITHDRAWAL

    def parse_row(self, line_num: int, row: Mapping[str, Any]) -> tuple[date, Decimal, TransactionType, str]:
        """Validate one import row.

        Returns:
            Tuple of (date, absolute amount, transaction type, description)

        Raises:
            ValidationError: With a line-numbered message
        """
        raw_date = row.get("date")
        raw_amount = row.get("amount")
        if not raw_date or raw_amount is None or str(raw_amount).strip() == "":
            raise ValidationError(f"Line {line_num}: Missing date or amount")
        try:
            txn_date = parse_date(str(raw_date))
        except ValueError:
            raise ValidationError(f"Line {line_num}: Invalid date format") from None
        try:
            amount = parse_amount(raw_amount)
        except ValueError:
            raise ValidationError(f"Line {line_num}: Invalid amount") from None
        if amount == 0:
            raise ValidationError(f"Line {line_num}: Invalid amount")
        return txn_date, abs(amount), self._row_type(row.get("type"), amount), str(row.get("description") or "")

    def import_rows(
        self, account_id: int, rows: Iterable[Mapping[str, Any]], all_or_nothing: bool = False
    ) -> dict[str, Any]:
        """Import rows of ``{date, amount, description, type}`` as uncategorized transactions.

        Invalid rows are reported and skipped. When ``type`` is missing or
        unrecognised it follows the sign of the amount. With
        ``all_or_nothing`` nothing is written unless every row is valid.

        Args:
            account_id: Asset account the rows belong to
            rows: Row mappings
            all_or_nothing: Reject the whole batch on any invalid row

        Returns:
            Dict with import statistics:
            - imported: number of transactions imported
            - errors: list of error messages

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the account is not an active Asset account
        """
        self.transaction_service.require_asset_account(account_id)

        parsed = []
        errors = []
        for line_num, row in enumerate(rows, start=1):
            try:
                parsed.append(self.parse_row(line_num, row))
            except ValidationError as e:
                errors.append(str(e))

        if errors and all_or_nothing:
            logger.info("Rejected import into account %s: %d invalid rows", account_id, len(errors))
            return {"imported": 0, "errors": errors}

        with self.db.unit_of_work():
            for txn_date, amount, txn_type, description in parsed:
                self.transaction_service.record_transaction(
                    account_id=account_id,
                    transaction_type=txn_type,
                    amount=amount,
                    transaction_date=txn_date,
                    description=description,
                )

        logger.info("Imported %d transactions into account %s (%d errors)", len(parsed), account_id, len(errors))
        return {"imported": len(parsed), "errors": errors}

    def import_csv(self, csv_file_path: str, account_id: int, all_or_nothing: bool = False) -> dict[str, Any]:
        """Import transactions from a CSV file with date, amount, description and type columns.

        Raises:
            ValidationError: If required columns are missing
            FileNotFoundError: If CSV file doesn't exist
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None:
                raise ValidationError("CSV file has no columns")
            columns = {name.strip().lower() for name in reader.fieldnames if name}
            missing = [col for col in REQUIRED_COLUMNS if col not in columns]
            if missing:
                raise ValidationError(f"CSV file missing required columns: {', '.join(missing)}")
            rows = [
                {(key or "").strip().lower(): (value.strip() if isinstance(value, str) else value) for key, value in row.items()}
                for row in reader
            ]

        return self.import_rows(account_id, rows, all_or_nothing=all_or_nothing)

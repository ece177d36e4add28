"""Domain tests for CSV import service."""

from datetime import date
from decimal import Decimal

import pytest

from coopledger.domain.entities import TransactionType
from coopledger.domain.errors import NotFoundError, ValidationError


def _transactions(temp_db, account_id):
    return temp_db.list_transactions(account_id=account_id)


def test_import_csv_result_contract(temp_db, csv_import_service, accounts, fixtures_dir):
    """Import returns counts and an empty error list for a clean file."""
    result = csv_import_service.import_csv(str(fixtures_dir / "sample_transactions.csv"), accounts["Bank BCA"])

    assert result == {"imported": 4, "errors": []}

    txns = _transactions(temp_db, accounts["Bank BCA"])
    assert [(t.transaction_date, t.amount, t.transaction_type) for t in txns] == [
        (date(2024, 1, 5), Decimal("1500000"), TransactionType.DEPOSIT),
        (date(2024, 1, 10), Decimal("250000"), TransactionType.WITHDRAWAL),
        (date(2024, 1, 15), Decimal("75000"), TransactionType.WITHDRAWAL),
        (date(2024, 1, 20), Decimal("500000"), TransactionType.DEPOSIT),
    ]
    assert all(t.category is None and not t.is_split for t in txns)
    assert txns[0].description == "Member savings deposit"


def test_import_updates_account_balance(temp_db, csv_import_service, accounts, fixtures_dir):
    csv_import_service.import_csv(str(fixtures_dir / "sample_transactions.csv"), accounts["Bank BCA"])

    assert temp_db.get_account(accounts["Bank BCA"]).balance == Decimal("1675000")


def test_invalid_rows_are_reported_and_skipped(temp_db, csv_import_service, accounts, fixtures_dir):
    result = csv_import_service.import_csv(str(fixtures_dir / "invalid_transactions.csv"), accounts["Bank BCA"])

    assert result["imported"] == 1
    assert result["errors"] == [
        "Line 2: Invalid date format",
        "Line 3: Missing date or amount",
        "Line 4: Invalid amount",
        "Line 5: Invalid amount",
    ]
    assert len(_transactions(temp_db, accounts["Bank BCA"])) == 1


def test_all_or_nothing_rejects_whole_batch(temp_db, csv_import_service, accounts, fixtures_dir):
    result = csv_import_service.import_csv(
        str(fixtures_dir / "invalid_transactions.csv"), accounts["Bank BCA"], all_or_nothing=True
    )

    assert result["imported"] == 0
    assert len(result["errors"]) == 4
    assert _transactions(temp_db, accounts["Bank BCA"]) == []


def test_import_rows_infers_type_from_sign(temp_db, csv_import_service, accounts):
    result = csv_import_service.import_rows(
        accounts["Petty Cash"],
        [
            {"date": "2024-03-01", "amount": "-20", "description": "Stamps"},
            {"date": "2024-03-02", "amount": 35, "type": "Transfer"},
            {"date": "2024-03-03", "amount": "10", "type": "WITHDRAWAL"},
        ],
    )

    assert result["imported"] == 3
    types = [t.transaction_type for t in _transactions(temp_db, accounts["Petty Cash"])]
    assert types == [TransactionType.WITHDRAWAL, TransactionType.DEPOSIT, TransactionType.WITHDRAWAL]


def test_import_requires_asset_account(csv_import_service, accounts):
    with pytest.raises(ValidationError, match="Asset account"):
        csv_import_service.import_rows(accounts["Product Sales"], [{"date": "2024-01-01", "amount": "1"}])

    with pytest.raises(NotFoundError):
        csv_import_service.import_rows(4242, [{"date": "2024-01-01", "amount": "1"}])


def test_import_csv_missing_columns_raises(csv_import_service, accounts, tmp_path):
    """Missing required columns raises a validation error."""
    csv_path = tmp_path / "no_amount.csv"
    csv_path.write_text("Date,Description\n2024-01-15,Test\n", encoding="utf-8")

    with pytest.raises(ValidationError) as excinfo:
        csv_import_service.import_csv(str(csv_path), accounts["Bank BCA"])

    assert "missing required columns: amount" in str(excinfo.value).lower()


def test_import_csv_missing_file(csv_import_service, accounts, tmp_path):
    with pytest.raises(FileNotFoundError):
        csv_import_service.import_csv(str(tmp_path / "nope.csv"), accounts["Bank BCA"])


def test_parse_row_returns_absolute_amount(csv_import_service):
    assert csv_import_service.parse_row(1, {"date": "2024-05-01", "amount": "(1.250,50)"}) == (
        date(2024, 5, 1),
        Decimal("1250.50"),
        TransactionType.WITHDRAWAL,
        "",
    )

"""Tests for CSV export of the report payloads."""

import csv
from datetime import date

import pytest

from coopledger.domain.entities import Category
from coopledger.domain.report_export import balance_sheet_rows, general_ledger_rows, profit_loss_rows, write_csv

TODAY = date(2024, 6, 30)


@pytest.fixture
def activity(transaction_service, accounts):
    bank = accounts["Bank BCA"]
    transaction_service.record_transaction(
        bank, "Deposit", 1_000_000, date(2024, 2, 1), description="Sale", category=Category.account(accounts["Product Sales"])
    )
    transaction_service.record_transaction(
        bank, "Withdrawal", "250000.50", date(2024, 2, 2), description="Rent", category=Category.account(accounts["Office Rent"])
    )


def test_profit_loss_rows(profit_loss_service, activity):
    payload = profit_loss_service.build_payload({"start_date": "2024-01-01", "end_date": "2024-06-30"}, today=TODAY)
    rows = profit_loss_rows(payload)

    assert rows[0] == ["Profit & Loss Statement"]
    assert rows[1] == ["Period: 2024-01-01 to 2024-06-30"]
    assert ["Product Sales", "1000000.00"] in rows
    assert ["Office Rent", "250000.50"] in rows
    assert ["Total Income", "1000000.00"] in rows
    assert rows[-1] == ["Net Profit", "749999.50"]


def test_balance_sheet_rows_skip_zero_balances(balance_sheet_service, activity):
    payload = balance_sheet_service.build_payload({"as_of_date": "2024-06-30"}, today=TODAY)
    rows = balance_sheet_rows(payload)

    assert rows[:2] == [["Balance Sheet"], ["As of: 2024-06-30"]]
    assert ["  Bank BCA", "749999.50"] in rows
    assert not any(row and row[0] == "  Petty Cash" for row in rows)
    assert ["Total Assets", "749999.50"] in rows
    assert rows[-1] == ["Total Liabilities + Equity", "749999.50"]


def test_general_ledger_rows(general_ledger_service, activity):
    payload = general_ledger_service.build_payload({"start_date": "2024-01-01", "end_date": "2024-12-31"}, today=TODAY)
    rows = general_ledger_rows(payload)

    assert rows[0] == ["Account Transactions (General Ledger)"]
    assert ["Office Rent"] in rows
    assert ["Under: Expenses > Operating Expenses"] in rows
    assert ["2024-02-02", "Rent", "", "250000.50", "-250000.50"] in rows
    assert ["Totals and Ending Balance", "", "0.00", "1000000.00", "-1000000.00"] in rows
    assert ["Balance Change", "", "-1000000.00", "", ""] in rows


def test_write_csv_creates_parent_directories(tmp_path):
    target = tmp_path / "reports" / "2024" / "out.csv"

    written = write_csv(target, [["Account", "Amount"], ["Kas, Kecil", "10.00"]])

    assert written == target
    with open(target, newline="", encoding="utf-8") as f:
        assert list(csv.reader(f)) == [["Account", "Amount"], ["Kas, Kecil", "10.00"]]

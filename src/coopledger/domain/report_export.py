"""Flat CSV rows for the report payloads."""

import csv
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Union


def _money(value: Any) -> str:
    return f"{Decimal(value or 0):.2f}"


def profit_loss_rows(payload: dict[str, Any]) -> list[list[str]]:
    data = payload["report_data"]
    rows = [
        ["Profit & Loss Statement"],
        [f"Period: {payload['start_date']} to {payload['end_date']}"],
        [""],
        ["Account", "Amount"],
        [""],
        ["INCOME"],
    ]
    rows.extend([a["account_name"], _money(a["total"])] for a in data["income"]["accounts"])
    rows.append(["Total Income", _money(data["income"]["total"])])
    rows.append([""])
    rows.append(["COST OF GOODS SOLD"])
    rows.extend([a["account_name"], _money(a["total"])] for a in data["cogs"]["accounts"])
    rows.append(["Total Cost of Goods Sold", _money(data["cogs"]["total"])])
    rows.append([""])
    rows.append(["Gross Profit", _money(data["gross_profit"])])
    rows.append([""])
    rows.append(["OPERATING EXPENSES"])
    rows.extend([a["account_name"], _money(a["total"])] for a in data["operating_expenses"]["accounts"])
    rows.append(["Total Operating Expenses", _money(data["operating_expenses"]["total"])])
    rows.append([""])
    rows.append(["Net Profit", _money(data["net_profit"])])
    return rows


def _section_rows(title: str, section: dict[str, Any], total_label: str, total: Any) -> list[list[str]]:
    rows = [[""], [title]]
    for category_name, category in section["categories"].items():
        rows.append([category_name])
        for account in category["accounts"]:
            if Decimal(account["balance"] or 0) != 0:
                rows.append([f"  {account['account_name']}", _money(account["balance"])])
        rows.append([f"Total {category_name}", _money(category["total"])])
    rows.append([total_label, _money(total)])
    return rows


def balance_sheet_rows(payload: dict[str, Any]) -> list[list[str]]:
    """Assets, liabilities and equity by category; zero balances are left out."""
    data = payload["report_data"]
    rows = [["Balance Sheet"], [f"As of: {payload['as_of_date']}"], [""], ["Account", "Balance"]]
    rows.extend(_section_rows("ASSETS", data["assets"], "Total Assets", data["total_assets"]))
    rows.extend(_section_rows("LIABILITIES", data["liabilities"], "Total Liabilities", data["total_liabilities"]))
    rows.extend(_section_rows("EQUITY", data["equity"], "Total Equity", data["total_equity"]))
    rows.append([""])
    rows.append(["Total Liabilities + Equity", _money(data["total_liabilities_equity"])])
    return rows


def general_ledger_rows(payload: dict[str, Any]) -> list[list[str]]:
    """One block per account: starting balance, rows, totals and balance change."""
    rows = [
        ["Account Transactions (General Ledger)"],
        [f"Period: {payload['start_date']} to {payload['end_date']}"],
        [""],
    ]
    for ledger in payload["report_data"]:
        rows.append([""])
        rows.append([ledger["account_name"]])
        rows.append([f"Under: {ledger['master_name']} > {ledger['submenu_name']}"])
        rows.append([""])
        rows.append(["Date", "Description", "Debit", "Credit", "Balance"])
        rows.append(["Starting Balance", "", "", "", _money(ledger["starting_balance"])])
        for row in ledger["transactions"]:
            rows.append(
                [
                    row["date"],
                    row["description"],
                    _money(row["debit"]) if row["debit"] > 0 else "",
                    _money(row["credit"]) if row["credit"] > 0 else "",
                    _money(row["balance"]),
                ]
            )
        rows.append(
            [
                "Totals and Ending Balance",
                "",
                _money(ledger["total_debit"]),
                _money(ledger["total_credit"]),
                _money(ledger["ending_balance"]),
            ]
        )
        rows.append(["Balance Change", "", _money(ledger["ending_balance"] - ledger["starting_balance"]), "", ""])
    return rows


def write_csv(path: Union[str, Path], rows: Iterable[list[str]]) -> Path:
    """Write rows to a CSV file, creating parent directories."""
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerows(rows)
    return path

"""Static business taxonomy for the chart of accounts and reports.

The lists here are business constants rather than runtime state. Services take
a ``LedgerTaxonomy`` argument (defaulting to ``DEFAULT_TAXONOMY``) so tests and
other cooperatives can substitute their own tables.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping

DB_PATH_ENV_VAR = "COOPLEDGER_DB_PATH"
LOG_LEVEL_ENV_VAR = "COOPLEDGER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class LedgerTaxonomy:
    """Submenu lookup tables and numeric conventions used across the engine."""

    account_code_bases: Mapping[str, int]
    submenu_order: Mapping[str, tuple[str, ...]]
    cogs_submenus: frozenset[str]
    cash_submenus: frozenset[str]
    long_term_asset_submenus: frozenset[str]
    long_term_liability_submenus: frozenset[str]
    default_currency: str = "Rp"
    balance_tolerance: Decimal = field(default=Decimal("0.01"))

    def code_base(self, master_name: str) -> int:
        """Return the first code of a master's numeric range."""
        return self.account_code_bases.get(master_name, 1000)

    def submenu_sort_key(self, master_name: str, submenu_name: str) -> tuple[int, str]:
        """Canonical position first, unknown names last in alphabetical order."""
        order = self.submenu_order.get(master_name, ())
        if submenu_name in order:
            return (order.index(submenu_name), "")
        return (len(order), submenu_name.lower())

    def asset_category(self, submenu_name: str) -> str:
        """Balance sheet bucket for an asset submenu."""
        if submenu_name in self.cash_submenus:
            return "Cash and Bank"
        if submenu_name in self.long_term_asset_submenus:
            return "Long-term Assets"
        return "Other Current Assets"

    def liability_category(self, submenu_name: str) -> str:
        """Balance sheet bucket for a liability submenu."""
        if submenu_name in self.long_term_liability_submenus:
            return "Long-term Liabilities"
        return "Current Liabilities"


DEFAULT_TAXONOMY = LedgerTaxonomy(
    account_code_bases={
        "Assets": 1000,
        "Liabilities": 2000,
        "Equity": 3000,
        "Income": 4000,
        "Expenses": 5000,
    },
    submenu_order={
        "Assets": (
            "Cash and Bank",
            "Cash on Hand",
            "Bank Accounts",
            "Money in Transit",
            "Accounts Receivable",
            "Other Current Assets",
            "Fixed Assets",
            "Property, Plant, Equipment",
            "Property and Equipment",
            "Accumulated Depreciation",
            "Depreciation and Amortization",
            "Long-term Assets",
            "Other Long-Term Asset",
        ),
        "Liabilities": (
            "Accounts Payable",
            "Credit Card",
            "Other Current Liabilities",
            "Loan and Line of Credit",
            "Notes Payable",
            "Loans Payable",
            "Long Term Liabilities",
            "Long-term Liabilities",
            "Other Long-Term Liability",
        ),
        "Equity": (
            "Owner's Equity",
            "Retained Earnings",
        ),
        "Income": (
            "Sales Revenue",
            "Other Income",
        ),
        "Expenses": (
            "Cost of Goods Sold",
            "COGS",
            "Direct Costs",
            "Cost of Sales",
            "Operating Expenses",
            "Operating Expense",
            "Payroll Expenses",
            "Other Expenses",
        ),
    },
    cogs_submenus=frozenset({"Cost of Goods Sold", "COGS", "Direct Costs", "Cost of Sales"}),
    cash_submenus=frozenset({"Cash and Bank", "Cash on Hand", "Bank Accounts", "Money in Transit"}),
    long_term_asset_submenus=frozenset(
        {
            "Long-term Assets",
            "Other Long-Term Asset",
            "Property, Plant, Equipment",
            "Depreciation and Amortization",
            "Property and Equipment",
            "Fixed Assets",
            "Accumulated Depreciation",
        }
    ),
    long_term_liability_submenus=frozenset(
        {
            "Loan and Line of Credit",
            "Long-term Liabilities",
            "Long Term Liabilities",
            "Notes Payable",
            "Loans Payable",
            "Other Long-Term Liability",
        }
    ),
)


# Default chart of accounts: (master name, master code, description, submenus)
# where each submenu is (name, code, description).
DEFAULT_CHART: tuple[tuple[str, str, str, tuple[tuple[str, str, str], ...]], ...] = (
    (
        "Assets",
        "1000",
        "Resources owned by the organization",
        (
            ("Cash and Bank", "1100", "Cash on hand and bank accounts"),
            ("Accounts Receivable", "1200", "Amounts owed to the organization"),
            ("Other Current Assets", "1300", "Other short-term assets"),
            ("Fixed Assets", "1400", "Long-term tangible assets"),
        ),
    ),
    (
        "Liabilities",
        "2000",
        "Obligations owed by the organization",
        (
            ("Accounts Payable", "2100", "Amounts owed to vendors"),
            ("Credit Card", "2200", "Credit card balances"),
            ("Other Current Liabilities", "2300", "Other short-term obligations"),
            ("Long Term Liabilities", "2400", "Long-term obligations"),
        ),
    ),
    (
        "Equity",
        "3000",
        "Owner's interest in the organization",
        (
            ("Owner's Equity", "3100", "Owner's capital and investments"),
            ("Retained Earnings", "3200", "Accumulated profits"),
        ),
    ),
    (
        "Income",
        "4000",
        "Revenue earned by the organization",
        (
            ("Sales Revenue", "4100", "Revenue from sales"),
            ("Other Income", "4200", "Non-operating income"),
        ),
    ),
    (
        "Expenses",
        "5000",
        "Costs incurred by the organization",
        (
            ("Cost of Goods Sold", "5050", "Direct cost of goods and services sold"),
            ("Operating Expenses", "5100", "Day-to-day business expenses"),
            ("Payroll Expenses", "5200", "Employee compensation"),
            ("Other Expenses", "5300", "Non-operating expenses"),
        ),
    ),
)


def get_log_level() -> str:
    """Return the configured log level name."""
    return os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()

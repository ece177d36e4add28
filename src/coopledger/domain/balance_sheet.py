"""Balance sheet report builder."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional

from coopledger.config import DEFAULT_TAXONOMY, LedgerTaxonomy
from coopledger.database.base import Database
from coopledger.domain.balance import ZERO, cash_flow, signed_balance
from coopledger.domain.entities import CategoryType, MasterName
from coopledger.domain.hierarchy import CoaHierarchy, ReportTarget
from coopledger.domain.profit_loss import ProfitLossService
from coopledger.domain.report_context import ReportContext, available_years, pick
from coopledger.utils.date_parser import parse_date_or_default

logger = logging.getLogger(__name__)

ASSET_CATEGORIES = ("Cash and Bank", "Other Current Assets", "Long-term Assets")
LIABILITY_CATEGORIES = ("Current Liabilities", "Long-term Liabilities")


def _short_date(day: date) -> str:
    return day.strftime("%b %d, %Y")


class BalanceSheetService:
    """Service for building balance sheets as of a date."""

    def __init__(self, db: Database, taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY):
        self.db = db
        self.taxonomy = taxonomy
        self.profit_loss = ProfitLossService(db, taxonomy)

    def _hierarchy(self) -> CoaHierarchy:
        return CoaHierarchy(
            self.db.list_masters(), self.db.list_submenus(), self.db.list_accounts(), self.taxonomy
        )

    def account_flow_balance(self, context: ReportContext, account_id: int, as_of: date) -> Decimal:
        """Balance from transactions recorded against the account itself."""
        return sum(
            (
                cash_flow(txn.transaction_type, txn.amount)
                for txn in context.between(None, as_of)
                if txn.account_id == account_id
            ),
            ZERO,
        )

    def category_balances(self, context: ReportContext, as_of: date) -> dict[str, Decimal]:
        """Signed balance per report row from the lines categorized to it.

        Each line counts once, on its account row or on the submenu or
        master row it is categorized to.
        """
        balances: dict[str, Decimal] = {}
        for txn in context.between(None, as_of):
            for target, amount in context.target_lines(txn):
                signed = signed_balance(target.master_name, txn.transaction_type, amount)
                balances[target.key] = balances.get(target.key, ZERO) + signed
        return balances

    def _row(self, target: ReportTarget, balance: Decimal) -> dict[str, Any]:
        return {
            "id": target.row_id,
            "account_code": target.code or "",
            "account_name": target.name,
            "currency": target.currency or self.taxonomy.default_currency,
            "submenu_name": target.submenu_name,
            "balance": balance,
        }

    def _rows(
        self, context: ReportContext, master_name: MasterName, balances: dict[str, Decimal], as_of: date
    ) -> Iterator[tuple[ReportTarget, Decimal]]:
        """(row, balance) pairs of a master; submenu and master rows only when lines land on them."""
        for target in context.hierarchy.report_targets(master_name):
            is_account = target.kind == CategoryType.ACCOUNT
            if master_name == MasterName.ASSETS and target.submenu_name in self.taxonomy.cash_submenus:
                if is_account:
                    yield target, self.account_flow_balance(context, target.id, as_of)
                continue
            if not is_account and target.key not in balances:
                continue
            yield target, balances.get(target.key, ZERO)

    def build_report(self, context: ReportContext, as_of: date) -> dict[str, Any]:
        """Assets, liabilities and equity as of a date.

        Cash and bank accounts are valued by their own transactions; every
        other row by the lines categorized to it. Liability and equity
        rows show magnitudes. Retained earnings are all-time income minus
        expenses, split into prior years and the current calendar year.
        ``is_balanced`` reports, rather than enforces, whether assets equal
        liabilities plus equity.
        """
        asset_categories = {name: {"accounts": [], "total": ZERO} for name in ASSET_CATEGORIES}
        liability_categories = {name: {"accounts": [], "total": ZERO} for name in LIABILITY_CATEGORIES}
        balances = self.category_balances(context, as_of)

        total_assets = ZERO
        for target, balance in self._rows(context, MasterName.ASSETS, balances, as_of):
            bucket = asset_categories[self.taxonomy.asset_category(target.submenu_name)]
            bucket["accounts"].append(self._row(target, balance))
            bucket["total"] += balance
            total_assets += balance

        total_liabilities = ZERO
        for target, balance in self._rows(context, MasterName.LIABILITIES, balances, as_of):
            balance = abs(balance)
            bucket = liability_categories[self.taxonomy.liability_category(target.submenu_name)]
            bucket["accounts"].append(self._row(target, balance))
            bucket["total"] += balance
            total_liabilities += balance

        other_equity = []
        other_equity_total = ZERO
        for target, balance in self._rows(context, MasterName.EQUITY, balances, as_of):
            balance = abs(balance)
            other_equity.append(self._row(target, balance))
            other_equity_total += balance

        year_start = date(as_of.year, 1, 1)
        master_profit = self.profit_loss.master_profit
        retained_earnings = master_profit(context, MasterName.INCOME, as_of) - master_profit(
            context, MasterName.EXPENSES, as_of
        )
        current_profit = master_profit(context, MasterName.INCOME, as_of, start=year_start) - master_profit(
            context, MasterName.EXPENSES, as_of, start=year_start
        )
        prior_profit = retained_earnings - current_profit

        equity_categories = {
            "Other Equity": {"accounts": other_equity, "total": other_equity_total},
            "Retained Earnings": {
                "accounts": [
                    {
                        "id": "prior_years",
                        "account_name": "Profit for all prior years",
                        "balance": prior_profit,
                        "is_calculated": True,
                    },
                    {
                        "id": "current_period",
                        "account_name": f"Profit between {_short_date(year_start)} and {_short_date(as_of)}",
                        "balance": current_profit,
                        "is_calculated": True,
                    },
                ],
                "total": retained_earnings,
            },
        }

        total_equity = other_equity_total + retained_earnings
        total_liabilities_equity = total_liabilities + total_equity
        is_balanced = abs(total_assets - total_liabilities_equity) < self.taxonomy.balance_tolerance
        if not is_balanced:
            logger.info(
                "Balance sheet as of %s is out of balance: assets %s, liabilities and equity %s",
                as_of,
                total_assets,
                total_liabilities_equity,
            )

        return {
            "assets": {"categories": asset_categories, "total": total_assets},
            "liabilities": {"categories": liability_categories, "total": total_liabilities},
            "equity": {
                "categories": equity_categories,
                "total": total_equity,
                "retained_earnings": retained_earnings,
            },
            "total_assets": total_assets,
            "total_liabilities": total_liabilities,
            "total_equity": total_equity,
            "cash_and_bank": asset_categories["Cash and Bank"]["total"],
            "to_be_received": asset_categories["Other Current Assets"]["total"],
            "to_be_paid_out": liability_categories["Current Liabilities"]["total"],
            "net_worth": total_assets - total_liabilities,
            "total_liabilities_equity": total_liabilities_equity,
            "is_balanced": is_balanced,
        }

    def balance_sheet(self, as_of: date) -> dict[str, Any]:
        """Build the balance sheet as of a date from the database."""
        context = ReportContext.load(self.db, self._hierarchy(), as_of)
        return self.build_report(context, as_of)

    def build_payload(self, options: Mapping[str, Any], today: Optional[date] = None) -> dict[str, Any]:
        """Report payload from query-string or form style options; the date defaults to today."""
        today = today or date.today()
        as_of = parse_date_or_default(pick(options, "as_of_date", "asOfDate"), today)
        year = pick(options, "year")
        try:
            year = int(year) if year is not None else as_of.year
        except (TypeError, ValueError):
            year = as_of.year
        return {
            "title": "Balance Sheet",
            "year": year,
            "as_of_date": as_of.isoformat(),
            "report_type": pick(options, "report_type", "reportType", default="accrual"),
            "view_mode": pick(options, "view_mode", "viewMode", default="summary"),
            "available_years": available_years(self.db, today),
            "report_data": self.balance_sheet(as_of),
        }

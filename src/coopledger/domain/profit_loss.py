"""Profit and loss report builder."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from dateutil.relativedelta import relativedelta

from coopledger.config import DEFAULT_TAXONOMY, LedgerTaxonomy
from coopledger.database.base import Database
from coopledger.domain.balance import ZERO, master_report_signed
from coopledger.domain.entities import CategoryType, MasterName
from coopledger.domain.hierarchy import CoaHierarchy, ReportTarget
from coopledger.domain.report_context import ReportContext, as_flag, available_years, pick
from coopledger.utils.date_parser import parse_date_or_default

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
COMPARE_PERIODS = ("previous_year", "previous_period", "custom")


def comparison_dates(start: date, end: date, compare_period: str) -> tuple[date, date]:
    """Bounds of the comparison window for a report period.

    ``previous_year`` shifts both bounds back one year; anything else yields
    the window of equal length ending the day before ``start``.
    """
    if compare_period == "previous_year":
        return start - relativedelta(years=1), end - relativedelta(years=1)
    compare_end = start - timedelta(days=1)
    return compare_end - (end - start), compare_end


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= ZERO:
        return ZERO
    return part / whole * HUNDRED


class ProfitLossService:
    """Service for building profit and loss statements."""

    def __init__(self, db: Database, taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY):
        self.db = db
        self.taxonomy = taxonomy

    def _hierarchy(self) -> CoaHierarchy:
        return CoaHierarchy(
            self.db.list_masters(), self.db.list_submenus(), self.db.list_accounts(), self.taxonomy
        )

    def account_totals(
        self,
        context: ReportContext,
        master_name: MasterName,
        start: date,
        end: date,
        include_submenus: Optional[Iterable[str]] = None,
        exclude_submenus: Optional[Iterable[str]] = None,
        skip_zero: bool = False,
    ) -> dict[str, Any]:
        """Per-row totals of one master for a date range.

        Every line is counted once, on its account row, or on a single
        submenu or master row when it is categorized at that level. A row's
        raw total is the report-signed sum of its lines; the displayed total
        is its magnitude. Submenu and master rows only appear when lines
        land on them.

        Args:
            context: Loaded ledger window
            master_name: Master to total (Income or Expenses)
            start: First day of the period
            end: Last day of the period
            include_submenus: Only rows in these submenus
            exclude_submenus: Skip rows in these submenus
            skip_zero: Leave out rows whose total rounds to zero

        Returns:
            Dict with ``accounts`` (flat), ``grouped`` (per submenu with subtotal) and ``total``
        """
        include = set(include_submenus) if include_submenus is not None else None
        exclude = set(exclude_submenus) if exclude_submenus is not None else None

        def selected(target: ReportTarget) -> bool:
            return (
                target.master_name == master_name
                and (include is None or target.submenu_name in include)
                and (exclude is None or target.submenu_name not in exclude)
            )

        raw_totals: dict[str, Decimal] = {}
        for txn in context.between(start, end):
            for target, amount in context.target_lines(txn):
                if not selected(target):
                    continue
                signed = master_report_signed(master_name, txn.transaction_type, amount)
                raw_totals[target.key] = raw_totals.get(target.key, ZERO) + signed

        grouped: dict[str, dict[str, Any]] = {}
        flat = []
        total = ZERO
        for target in context.hierarchy.report_targets(master_name):
            if not selected(target):
                continue
            if target.kind != CategoryType.ACCOUNT and target.key not in raw_totals:
                continue
            raw_total = raw_totals.get(target.key, ZERO)
            display_total = abs(raw_total)
            if skip_zero and display_total < self.taxonomy.balance_tolerance:
                continue
            row = {
                "id": target.row_id,
                "account_code": target.code or "",
                "account_name": target.name,
                "currency": target.currency or self.taxonomy.default_currency,
                "submenu_name": target.submenu_name,
                "total": display_total,
                "raw_total": raw_total,
            }
            group = grouped.setdefault(
                target.submenu_name,
                {
                    "submenu_name": target.submenu_name,
                    "submenu_id": target.submenu.id if target.submenu else None,
                    "accounts": [],
                    "subtotal": ZERO,
                },
            )
            group["accounts"].append(row)
            group["subtotal"] += display_total
            flat.append(row)
            total += display_total

        return {"accounts": flat, "grouped": list(grouped.values()), "total": total}

    def build_report(self, context: ReportContext, start: date, end: date) -> dict[str, Any]:
        """Income, cost of goods sold, operating expenses and profit for a period."""
        cogs_submenus = self.taxonomy.cogs_submenus
        income = self.account_totals(context, MasterName.INCOME, start, end)
        cogs = self.account_totals(context, MasterName.EXPENSES, start, end, include_submenus=cogs_submenus)
        operating_expenses = self.account_totals(
            context, MasterName.EXPENSES, start, end, exclude_submenus=cogs_submenus, skip_zero=True
        )

        total_income = income["total"]
        total_cogs = cogs["total"]
        total_operating_expenses = operating_expenses["total"]
        gross_profit = total_income - total_cogs
        net_profit = gross_profit - total_operating_expenses

        return {
            "income": income,
            "cogs": cogs,
            "operating_expenses": operating_expenses,
            "total_income": total_income,
            "total_cogs": total_cogs,
            "total_operating_expenses": total_operating_expenses,
            "gross_profit": gross_profit,
            "gross_profit_percentage": percentage(gross_profit, total_income),
            "net_profit": net_profit,
            "net_profit_percentage": percentage(net_profit, total_income),
        }

    def profit_loss(self, start: date, end: date) -> dict[str, Any]:
        """Build the statement for [start, end] from the database."""
        context = ReportContext.load(self.db, self._hierarchy(), end)
        return self.build_report(context, start, end)

    def master_profit(
        self, context: ReportContext, master_name: MasterName, end: date, start: Optional[date] = None
    ) -> Decimal:
        """Magnitude of all lines categorized anywhere under a master.

        Every line is counted once, whatever level of the hierarchy its
        category points at.
        """
        total = ZERO
        for txn in context.between(start, end):
            for target, amount in context.target_lines(txn):
                if target.master_name != master_name:
                    continue
                total += master_report_signed(master_name, txn.transaction_type, amount)
        return abs(total)

    def build_payload(self, options: Mapping[str, Any], today: Optional[date] = None) -> dict[str, Any]:
        """Report payload from query-string or form style options.

        Malformed dates fall back to January 1 of the current year and today.
        """
        today = today or date.today()
        start = parse_date_or_default(pick(options, "start_date", "startDate"), date(today.year, 1, 1))
        end = parse_date_or_default(pick(options, "end_date", "endDate"), today)
        compare_enabled = as_flag(pick(options, "compare_enabled", "compareEnabled"))
        compare_period = str(pick(options, "compare_period", "comparePeriod", default="custom"))
        compare_start_text = pick(options, "compare_start_date", "compareStartDate", default="")
        compare_end_text = pick(options, "compare_end_date", "compareEndDate", default="")

        hierarchy = self._hierarchy()
        context = ReportContext.load(self.db, hierarchy, None)
        report_data = self.build_report(context, start, end)

        compare_bounds = None
        comparison_data = None
        if compare_enabled:
            compare_bounds = comparison_dates(start, end, compare_period)
            if compare_period == "custom" and compare_start_text and compare_end_text:
                compare_bounds = (
                    parse_date_or_default(compare_start_text, compare_bounds[0]),
                    parse_date_or_default(compare_end_text, compare_bounds[1]),
                )
            comparison_data = self.build_report(context, *compare_bounds)

        year = pick(options, "year")
        try:
            year = int(year) if year is not None else start.year
        except (TypeError, ValueError):
            year = start.year

        logger.debug("Built profit and loss %s..%s (compare=%s)", start, end, compare_enabled)
        return {
            "title": "Profit & Loss",
            "year": year,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "report_type": pick(options, "report_type", "reportType", default="accrual"),
            "view_mode": pick(options, "view_mode", "viewMode", default="summary"),
            "compare_enabled": compare_enabled,
            "compare_period": compare_period,
            "compare_start_date": compare_start_text,
            "compare_end_date": compare_end_text,
            "comparison_dates": (
                {"start": compare_bounds[0].isoformat(), "end": compare_bounds[1].isoformat()}
                if compare_bounds
                else None
            ),
            "available_years": available_years(self.db, today),
            "report_data": report_data,
            "comparison_data": comparison_data,
        }

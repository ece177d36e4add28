"""General ledger (account transactions) report builder."""

import logging
from datetime import date
from typing import Any, Mapping, Optional
from urllib.parse import quote, unquote

from coopledger.config import DEFAULT_TAXONOMY, LedgerTaxonomy
from coopledger.database.base import Database
from coopledger.domain.balance import ZERO, debit_credit
from coopledger.domain.entities import Category, CategoryType, Transaction
from coopledger.domain.hierarchy import CoaHierarchy, ReportTarget, ResolvedAccount
from coopledger.domain.report_context import ReportContext, available_years, pick
from coopledger.utils.date_parser import parse_date_or_default

logger = logging.getLogger(__name__)

ALL = "all"


def _parse_id(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


def _parse_filter(account_filter: Optional[str]) -> tuple[str, Optional[int]]:
    value = str(account_filter or ALL)
    if value == ALL:
        return ALL, None
    prefix, _, raw_id = value.partition("_")
    if prefix not in ("account", "submenu", "master"):
        return ALL, None
    return prefix, _parse_id(raw_id)


def resolve_filtered_accounts(hierarchy: CoaHierarchy, account_filter: Optional[str]) -> list[ResolvedAccount]:
    """Accounts selected by an ``all`` / ``master_<id>`` / ``submenu_<id>`` / ``account_<id>`` filter.

    Unknown filter shapes select every account; unknown ids select none.
    """
    everything = [a for master in hierarchy.masters_by_id for a in hierarchy.accounts_by_master[master]]
    prefix, item_id = _parse_filter(account_filter)
    if prefix == ALL:
        return everything
    if item_id is None:
        return []
    selected = hierarchy.accounts_under(Category(CategoryType(prefix), item_id))
    return [account for account in everything if account.id in selected]


def target_in_filter(target: ReportTarget, account_filter: Optional[str]) -> bool:
    """Whether a submenu or master row falls inside an account filter."""
    prefix, item_id = _parse_filter(account_filter)
    if prefix == ALL:
        return True
    if prefix == "submenu":
        return target.kind == CategoryType.SUBMENU and target.id == item_id
    if prefix == "master":
        return target.master.id == item_id
    return False


def matches_contact(txn: Transaction, contact_filter: Optional[str]) -> bool:
    """Customer filters match the id exactly, vendor filters the name case-insensitively."""
    value = str(contact_filter or ALL)
    if value == ALL:
        return True
    if value.startswith("customer_"):
        return (txn.customer_id or "") == value[len("customer_"):]
    if value.startswith("vendor_"):
        vendor = unquote(value[len("vendor_"):]).strip().lower()
        return (txn.vendor_id or "").strip().lower() == vendor
    return True


class GeneralLedgerService:
    """Service for building per-account ledgers with running balances."""

    def __init__(self, db: Database, taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY):
        self.db = db
        self.taxonomy = taxonomy

    def _hierarchy(self) -> CoaHierarchy:
        return CoaHierarchy(
            self.db.list_masters(), self.db.list_submenus(), self.db.list_accounts(), self.taxonomy
        )

    def _ledger(self, target: ReportTarget) -> dict[str, Any]:
        return {
            "account_id": target.row_id,
            "account_code": target.code or "",
            "account_name": target.name,
            "currency": target.currency or self.taxonomy.default_currency,
            "submenu_name": target.submenu_name,
            "master_name": target.master_name.value,
            "starting_balance": ZERO,
            "transactions": [],
            "total_debit": ZERO,
            "total_credit": ZERO,
            "ending_balance": ZERO,
        }

    def build_report(
        self,
        context: ReportContext,
        start: date,
        end: date,
        account_filter: Optional[str] = ALL,
        contact_filter: Optional[str] = ALL,
    ) -> list[dict[str, Any]]:
        """Ledger of every filtered account for [start, end].

        Lines dated before ``start`` fold into the starting balance. Rows run
        in date order, then creation time, then transaction id, each carrying
        the running balance. With the ``all`` filter accounts without rows in
        the period are left out. Lines categorized to a whole submenu or
        master get one ledger for that submenu or master.

        Args:
            context: Loaded ledger window
            start: First day of the period
            end: Last day of the period
            account_filter: ``all``, ``master_<id>``, ``submenu_<id>`` or ``account_<id>``
            contact_filter: ``all``, ``customer_<id>`` or ``vendor_<name>``

        Returns:
            List of ledgers sorted by master, submenu and account name
        """
        ledgers: dict[str, dict[str, Any]] = {}
        pending_rows: dict[str, list[tuple[tuple, dict[str, Any]]]] = {}
        for account in resolve_filtered_accounts(context.hierarchy, account_filter):
            target = ReportTarget.for_account(account)
            ledgers[target.key] = self._ledger(target)
            pending_rows[target.key] = []

        for txn in context.between(None, end):
            if not matches_contact(txn, contact_filter):
                continue
            contact_name = txn.customer_id or txn.vendor_id or ""
            for target, amount in context.target_lines(txn):
                if target.key not in ledgers:
                    if target.kind == CategoryType.ACCOUNT or not target_in_filter(target, account_filter):
                        continue
                    ledgers[target.key] = self._ledger(target)
                    pending_rows[target.key] = []
                entry = debit_credit(target.master_name, txn.transaction_type, amount)
                if txn.transaction_date < start:
                    ledgers[target.key]["starting_balance"] += entry.signed
                    continue
                row = {
                    "transaction_id": txn.id,
                    "date": txn.transaction_date.isoformat(),
                    "account_name": target.name,
                    "description": txn.description or "",
                    "notes": txn.notes or "",
                    "contact_name": contact_name,
                    "debit": entry.debit,
                    "credit": entry.credit,
                }
                pending_rows[target.key].append(((txn.transaction_date, txn.created_at, txn.id), row))

        result = []
        include_empty = str(account_filter or ALL) != ALL
        for key, ledger in ledgers.items():
            rows = [row for _, row in sorted(pending_rows[key], key=lambda item: item[0])]
            if not rows and not include_empty:
                continue
            balance = ledger["starting_balance"]
            for row in rows:
                ledger["total_debit"] += row["debit"]
                ledger["total_credit"] += row["credit"]
                balance += row["debit"] - row["credit"]
                row["balance"] = balance
            ledger["transactions"] = rows
            ledger["ending_balance"] = balance
            result.append(ledger)

        result.sort(key=lambda l: (l["master_name"], l["submenu_name"], l["account_name"]))
        return result

    def general_ledger(
        self, start: date, end: date, account_filter: Optional[str] = ALL, contact_filter: Optional[str] = ALL
    ) -> list[dict[str, Any]]:
        """Build the ledgers for [start, end] from the database."""
        context = ReportContext.load(self.db, self._hierarchy(), end)
        return self.build_report(context, start, end, account_filter, contact_filter)

    def accounts_hierarchy(self, hierarchy: CoaHierarchy) -> list[dict[str, Any]]:
        """Filter options: all accounts, then each master with its submenus and accounts."""
        options: list[dict[str, Any]] = [{"id": ALL, "name": "All Accounts", "type": "all"}]
        for master in sorted(hierarchy.masters_by_id.values(), key=lambda m: m.name.value):
            options.append(
                {"id": f"master_{master.id}", "name": master.name.value, "type": "master", "master_id": master.id}
            )
            submenus = sorted(hierarchy.submenus_by_master.get(master.id, []), key=lambda s: s.name)
            for submenu in submenus:
                options.append(
                    {
                        "id": f"submenu_{submenu.id}",
                        "name": f"  └ {submenu.name}",
                        "type": "submenu",
                        "submenu_id": submenu.id,
                        "master_name": master.name.value,
                    }
                )
                for account in hierarchy.accounts_by_submenu.get(submenu.id, []):
                    options.append(
                        {
                            "id": f"account_{account.id}",
                            "name": f"      └ {account.name}",
                            "type": "account",
                            "account_id": account.id,
                            "submenu_name": submenu.name,
                            "master_name": master.name.value,
                        }
                    )
        return options

    def contacts(self, transactions: list[Transaction]) -> list[dict[str, str]]:
        """Contact filter options from the customers and vendors seen on transactions."""
        customers = sorted({txn.customer_id.strip() for txn in transactions if txn.customer_id and txn.customer_id.strip()})
        vendors = sorted(
            {txn.vendor_id.strip() for txn in transactions if txn.vendor_id and txn.vendor_id.strip()},
            key=str.lower,
        )
        options = [{"id": ALL, "name": "All Contacts"}]
        options.extend({"id": f"customer_{customer}", "name": customer} for customer in customers)
        options.extend({"id": f"vendor_{quote(vendor)}", "name": f"{vendor} (Vendor)"} for vendor in vendors)
        return options

    def build_payload(self, options: Mapping[str, Any], today: Optional[date] = None) -> dict[str, Any]:
        """Report payload from query-string or form style options.

        Dates default to January 1 and December 31 of the current year.
        """
        today = today or date.today()
        start = parse_date_or_default(pick(options, "start_date", "startDate"), date(today.year, 1, 1))
        end = parse_date_or_default(pick(options, "end_date", "endDate"), date(today.year, 12, 31))
        account_filter = str(pick(options, "account_filter", "accountFilter", default=ALL))
        contact_filter = str(pick(options, "contact_filter", "contactFilter", default=ALL))
        year = pick(options, "year")
        try:
            year = int(year) if year is not None else today.year
        except (TypeError, ValueError):
            year = today.year

        hierarchy = self._hierarchy()
        context = ReportContext.load(self.db, hierarchy, end)
        report_data = self.build_report(context, start, end, account_filter, contact_filter)
        logger.debug(
            "Built general ledger %s..%s for %s/%s: %d accounts",
            start,
            end,
            account_filter,
            contact_filter,
            len(report_data),
        )
        return {
            "title": "Account Transactions",
            "year": year,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "account_filter": account_filter,
            "contact_filter": contact_filter,
            "report_type": pick(options, "report_type", "reportType", default="accrual"),
            "date_preset": pick(options, "date_preset", "datePreset", default="custom"),
            "report_data": report_data,
            "accounts_hierarchy": self.accounts_hierarchy(hierarchy),
            "available_years": available_years(self.db, today),
            "contacts": self.contacts(self.db.list_transactions()),
        }

"""Indexed chart of accounts tree.

A ``CoaHierarchy`` is built from one bulk load of masters, submenus and
accounts and answers the parent/child questions every report asks in O(1).
Only active rows are indexed.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from coopledger.config import LedgerTaxonomy, DEFAULT_TAXONOMY
from coopledger.domain.entities import (
    Account,
    Category,
    CategoryType,
    Master,
    MasterName,
    Submenu,
)


@dataclass(frozen=True)
class ResolvedAccount:
    """Account together with its submenu and master."""

    account: Account
    submenu: Submenu
    master: Master

    @property
    def id(self) -> int:
        return self.account.id

    @property
    def name(self) -> str:
        return self.account.name

    @property
    def code(self) -> Optional[str]:
        return self.account.code

    @property
    def currency(self) -> str:
        return self.account.currency

    @property
    def submenu_name(self) -> str:
        return self.submenu.name

    @property
    def master_name(self) -> MasterName:
        return self.master.name


@dataclass(frozen=True)
class ReportTarget:
    """Report row a category line lands on: one account, or a submenu or master as a whole."""

    kind: CategoryType
    id: int
    name: str
    code: Optional[str]
    currency: Optional[str]
    master: Master
    submenu: Optional[Submenu] = None

    @property
    def key(self) -> str:
        return f"{self.kind.value}_{self.id}"

    @property
    def row_id(self):
        """Account id for account rows, ``submenu_<id>`` / ``master_<id>`` otherwise."""
        return self.id if self.kind == CategoryType.ACCOUNT else self.key

    @property
    def master_name(self) -> MasterName:
        return self.master.name

    @property
    def submenu_name(self) -> str:
        """Submenu the row is grouped under; master rows group under the master name."""
        return self.submenu.name if self.submenu else self.master.name.value

    @classmethod
    def for_account(cls, resolved: ResolvedAccount) -> "ReportTarget":
        return cls(
            CategoryType.ACCOUNT,
            resolved.id,
            resolved.name,
            resolved.code,
            resolved.currency,
            resolved.master,
            resolved.submenu,
        )


class CoaHierarchy:
    """Master -> Submenu -> Account tree with lookup indices."""

    def __init__(
        self,
        masters: Iterable[Master],
        submenus: Iterable[Submenu],
        accounts: Iterable[Account],
        taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY,
    ):
        self.taxonomy = taxonomy
        self.masters_by_id: dict[int, Master] = {m.id: m for m in masters if m.is_active}
        self.master_by_name: dict[MasterName, Master] = {m.name: m for m in self.masters_by_id.values()}
        self.submenus_by_id: dict[int, Submenu] = {
            s.id: s for s in submenus if s.is_active and s.master_id in self.masters_by_id
        }
        self.submenus_by_master: dict[int, list[Submenu]] = {m_id: [] for m_id in self.masters_by_id}
        for submenu in self.submenus_by_id.values():
            self.submenus_by_master[submenu.master_id].append(submenu)

        self.accounts_by_id: dict[int, ResolvedAccount] = {}
        self.accounts_by_submenu: dict[int, list[ResolvedAccount]] = {s_id: [] for s_id in self.submenus_by_id}
        self.accounts_by_master: dict[int, list[ResolvedAccount]] = {m_id: [] for m_id in self.masters_by_id}
        for account in accounts:
            if not account.is_active:
                continue
            submenu = self.submenus_by_id.get(account.submenu_id)
            if submenu is None:
                continue
            resolved = ResolvedAccount(account, submenu, self.masters_by_id[submenu.master_id])
            self.accounts_by_id[account.id] = resolved
            self.accounts_by_submenu[submenu.id].append(resolved)

        for master_id, master in self.masters_by_id.items():
            ordered = self.sorted_submenus(master.id)
            self.submenus_by_master[master_id] = ordered
            for submenu in ordered:
                accounts_in_submenu = sorted(self.accounts_by_submenu[submenu.id], key=_account_sort_key)
                self.accounts_by_submenu[submenu.id] = accounts_in_submenu
                self.accounts_by_master[master_id].extend(accounts_in_submenu)

    def sorted_submenus(self, master_id: int) -> list[Submenu]:
        """Submenus of a master in canonical display order."""
        master = self.masters_by_id.get(master_id)
        if master is None:
            return []
        return sorted(
            self.submenus_by_master.get(master_id, []),
            key=lambda s: self.taxonomy.submenu_sort_key(master.name.value, s.name),
        )

    def master(self, name: MasterName) -> Optional[Master]:
        return self.master_by_name.get(MasterName(name))

    def accounts_of_master(self, name: MasterName) -> list[ResolvedAccount]:
        """Accounts under a master, by canonical submenu order then code and name."""
        master = self.master(name)
        if master is None:
            return []
        return self.accounts_by_master[master.id]

    def accounts_under(self, category: Optional[Category]) -> frozenset[int]:
        """Ids of the active accounts a category covers.

        An account category resolves to itself, a submenu to every account in
        it and a master to every account under any of its submenus. Reports
        count amounts through ``report_target``; this only scopes filters.
        """
        if category is None:
            return frozenset()
        if category.kind == CategoryType.ACCOUNT:
            return frozenset({category.id}) if category.id in self.accounts_by_id else frozenset()
        if category.kind == CategoryType.SUBMENU:
            return frozenset(a.id for a in self.accounts_by_submenu.get(category.id, []))
        if category.kind == CategoryType.MASTER:
            return frozenset(a.id for a in self.accounts_by_master.get(category.id, []))
        return frozenset()

    def report_target(self, category: Optional[Category]) -> Optional[ReportTarget]:
        """The single report row a category line is counted on.

        Account categories land on the account; submenu and master
        categories land on one row for the submenu or master instead of
        being repeated on every account below it. Unknown or inactive
        categories resolve to None.
        """
        if category is None:
            return None
        if category.kind == CategoryType.ACCOUNT:
            resolved = self.accounts_by_id.get(category.id)
            return ReportTarget.for_account(resolved) if resolved else None
        if category.kind == CategoryType.SUBMENU:
            submenu = self.submenus_by_id.get(category.id)
            if submenu is None:
                return None
            master = self.masters_by_id[submenu.master_id]
            return ReportTarget(CategoryType.SUBMENU, submenu.id, submenu.name, submenu.code, None, master, submenu)
        if category.kind == CategoryType.MASTER:
            master = self.masters_by_id.get(category.id)
            if master is None:
                return None
            return ReportTarget(CategoryType.MASTER, master.id, master.name.value, master.code, None, master)
        return None

    def report_targets(self, name: MasterName) -> list[ReportTarget]:
        """Every row of a master in display order.

        Each submenu row comes before the accounts of that submenu; the
        master row comes last.
        """
        master = self.master(name)
        if master is None:
            return []
        targets = []
        for submenu in self.submenus_by_master[master.id]:
            targets.append(self.report_target(Category.submenu(submenu.id)))
            targets.extend(ReportTarget.for_account(a) for a in self.accounts_by_submenu[submenu.id])
        targets.append(self.report_target(Category.master(master.id)))
        return targets

    def master_of(self, category: Optional[Category]) -> Optional[Master]:
        """Master a category belongs to, or None when it does not resolve."""
        if category is None:
            return None
        if category.kind == CategoryType.ACCOUNT:
            resolved = self.accounts_by_id.get(category.id)
            return resolved.master if resolved else None
        if category.kind == CategoryType.SUBMENU:
            submenu = self.submenus_by_id.get(category.id)
            return self.masters_by_id.get(submenu.master_id) if submenu else None
        if category.kind == CategoryType.MASTER:
            return self.masters_by_id.get(category.id)
        return None

    def category_name(self, category: Optional[Category]) -> str:
        """Human readable name for a category, "Uncategorized" when empty."""
        if category is None:
            return "Uncategorized"
        if category.kind == CategoryType.ACCOUNT:
            resolved = self.accounts_by_id.get(category.id)
            return resolved.name if resolved else "Unknown"
        if category.kind == CategoryType.SUBMENU:
            submenu = self.submenus_by_id.get(category.id)
            return submenu.name if submenu else "Unknown"
        master = self.masters_by_id.get(category.id)
        return master.name.value if master else "Unknown"


def _account_sort_key(resolved: ResolvedAccount) -> tuple:
    # numeric codes first in numeric order, then other codes, then uncoded
    code = (resolved.code or "").strip()
    if code.isascii() and code.isdigit():
        code_key = (0, int(code), "")
    elif code:
        code_key = (1, 0, code)
    else:
        code_key = (2, 0, "")
    return (code_key, resolved.name.lower())

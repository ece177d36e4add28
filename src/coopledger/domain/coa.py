"""Chart of accounts domain service."""

import logging
import re
from typing import Any, Iterable, Mapping, Optional

from coopledger.config import DEFAULT_CHART, DEFAULT_TAXONOMY, LedgerTaxonomy
from coopledger.database.base import Database
from coopledger.domain.entities import Account, MasterName, Submenu
from coopledger.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_account_code,
    master_not_found,
    submenu_not_found,
)
from coopledger.domain.hierarchy import CoaHierarchy, ResolvedAccount

logger = logging.getLogger(__name__)

NUMERIC_CODE = re.compile(r"^\d+$")
MIN_ACCOUNT_NAME_LENGTH = 3


class CoaService:
    """Service for the chart of accounts hierarchy."""

    def __init__(self, db: Database, taxonomy: LedgerTaxonomy = DEFAULT_TAXONOMY):
        """Initialize chart of accounts service.

        Args:
            db: Database instance
            taxonomy: Submenu ordering and code tables
        """
        self.db = db
        self.taxonomy = taxonomy

    def load_hierarchy(self) -> CoaHierarchy:
        """Load every active master, submenu and account into one index."""
        return CoaHierarchy(
            masters=self.db.list_masters(),
            submenus=self.db.list_submenus(),
            accounts=self.db.list_accounts(),
            taxonomy=self.taxonomy,
        )

    def _get_master(self, master_name: str):
        try:
            name = MasterName(master_name)
        except ValueError:
            raise NotFoundError(master_not_found(master_name)) from None
        master = self.db.get_master_by_name(name.value)
        if master is None or not master.is_active:
            raise NotFoundError(master_not_found(master_name))
        return master

    def resolve_account_code(self, master_name: str) -> str:
        """Generate the next free account code for a master.

        The next code is one past the largest purely numeric code among the
        master's accounts (inactive accounts included), never below the
        master's base code plus one. Legacy codes that are not all digits
        are ignored.

        Args:
            master_name: Master name, e.g. "Assets"

        Returns:
            New account code as a string
        """
        base = self.taxonomy.code_base(master_name)
        master = self.db.get_master_by_name(master_name)
        if master is None:
            return str(base + 1)

        numeric_codes = [int(code) for code in self.db.list_account_codes(master.id) if NUMERIC_CODE.match(code)]
        return str(max(numeric_codes + [base]) + 1)

    def create_account(
        self,
        submenu_id: int,
        name: str,
        code: Optional[str] = None,
        currency: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a new account under a submenu.

        Args:
            submenu_id: Parent submenu ID
            name: Account name (at least 3 characters)
            code: Explicit account code; generated from the master's range when omitted
            currency: Currency label, defaults to the taxonomy's default currency
            description: Optional description

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is too short
            NotFoundError: If the submenu does not exist
            ConflictError: If the code is already used by another account
        """
        name = (name or "").strip()
        if len(name) < MIN_ACCOUNT_NAME_LENGTH:
            raise ValidationError(f"Account name must be at least {MIN_ACCOUNT_NAME_LENGTH} characters")
        if submenu_id is None:
            raise ValidationError("Submenu is required")

        submenu = self.db.get_submenu(submenu_id)
        if submenu is None:
            raise NotFoundError(submenu_not_found(submenu_id))

        code = (code or "").strip() or None
        if code is None:
            master = self._master_for_submenu(submenu)
            code = self.resolve_account_code(master.name.value)
        elif self.db.get_account_by_code(code) is not None:
            raise ConflictError(duplicate_account_code(code))

        account_id = self.db.create_account(
            submenu_id=submenu_id,
            name=name,
            code=code,
            currency=currency or self.taxonomy.default_currency,
            description=description or "",
        )
        logger.info("Created account %s (%s) under submenu %s", account_id, code, submenu.name)
        return account_id

    def _master_for_submenu(self, submenu: Submenu):
        for master in self.db.list_masters(include_inactive=True):
            if master.id == submenu.master_id:
                return master
        raise NotFoundError(f"Master {submenu.master_id} not found")

    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        code: Optional[str] = None,
        currency: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        """Update account fields; empty values keep the current value.

        Raises:
            NotFoundError: If account not found
            ValidationError: If the new name is too short
            ConflictError: If the new code belongs to another account
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        if name is not None and name.strip():
            name = name.strip()
            if len(name) < MIN_ACCOUNT_NAME_LENGTH:
                raise ValidationError(f"Account name must be at least {MIN_ACCOUNT_NAME_LENGTH} characters")
        else:
            name = None

        code = (code or "").strip() or None
        if code is not None and code != account.code:
            existing = self.db.get_account_by_code(code)
            if existing is not None and existing.id != account_id:
                raise ConflictError(duplicate_account_code(code))

        self.db.update_account(
            account_id,
            name=name,
            code=code,
            currency=currency or None,
            description=description,
        )

    def delete_account(self, account_id: int) -> None:
        """Soft delete an account; its history stays in the ledger.

        Raises:
            NotFoundError: If account not found
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        self.db.deactivate_account(account_id)
        logger.info("Deactivated account %s (%s)", account_id, account.name)

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID, or None if not found."""
        return self.db.get_account(account_id)

    def get_account_detail(self, account_id: int) -> ResolvedAccount:
        """Get an account together with its submenu and master.

        Raises:
            NotFoundError: If the account, or its parent rows, do not exist
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        submenu = self.db.get_submenu(account.submenu_id)
        if submenu is None:
            raise NotFoundError(submenu_not_found(account.submenu_id))
        return ResolvedAccount(account=account, submenu=submenu, master=self._master_for_submenu(submenu))

    def list_accounts_by_type(self, master_type: Optional[str] = None) -> dict[str, Any]:
        """Accounts of one master grouped by submenu, with counts for every master.

        Unknown or missing types fall back to Assets.
        """
        account_types = [m.value for m in MasterName]
        current_type = master_type if master_type in account_types else MasterName.ASSETS.value
        hierarchy = self.load_hierarchy()

        account_counts = {t: len(hierarchy.accounts_of_master(MasterName(t))) for t in account_types}

        accounts_by_submenu: dict[str, dict[str, Any]] = {}
        master = hierarchy.master(MasterName(current_type))
        if master is not None:
            for submenu in hierarchy.submenus_by_master[master.id]:
                accounts_by_submenu[submenu.name] = {
                    "submenu_id": submenu.id,
                    "accounts": [r.account for r in hierarchy.accounts_by_submenu[submenu.id]],
                }

        return {
            "current_type": current_type,
            "account_types": account_types,
            "account_counts": account_counts,
            "accounts_by_submenu": accounts_by_submenu,
        }

    def create_submenu(
        self, master_name: str, name: str, code: Optional[str] = None, description: str = ""
    ) -> int:
        """Create a submenu under a master.

        Raises:
            ValidationError: If the name is empty
            NotFoundError: If the master does not exist
            ConflictError: If the master already has a submenu with this name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Submenu name is required")
        master = self._get_master(master_name)
        if self.db.get_submenu_by_name(master.id, name) is not None:
            raise ConflictError(f"Submenu '{name}' already exists under {master.name.value}")
        return self.db.create_submenu(master_id=master.id, name=name, code=code, description=description or "")

    def list_submenus(self, master_type: str) -> list[Submenu]:
        """List active submenus of a master in canonical order.

        Raises:
            NotFoundError: If the master does not exist or is inactive
        """
        master = self._get_master(master_type)
        return sorted(
            self.db.list_submenus(master_id=master.id),
            key=lambda s: self.taxonomy.submenu_sort_key(master.name.value, s.name),
        )

    def list_submenus_legacy(self, payload: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Submenus for the legacy request shape.

        Accepts the master type as ``master_type`` or ``masterType`` and returns
        a bare list with the legacy field names. Any failure yields an empty
        list.
        """
        master_type = payload.get("master_type") or payload.get("masterType")
        if not master_type:
            return []
        try:
            submenus = self.list_submenus(master_type)
        except NotFoundError:
            return []
        return [
            {
                "id": s.id,
                "masterId": s.master_id,
                "submenuName": s.name,
                "submenuCode": s.code or "",
                "description": s.description,
            }
            for s in submenus
        ]

    def list_categories(self) -> list[dict[str, Any]]:
        """Flattened master -> submenu -> account options for category pickers."""
        hierarchy = self.load_hierarchy()
        options: list[dict[str, Any]] = []
        for name in MasterName:
            master = hierarchy.master(name)
            if master is None:
                continue
            options.append({"id": master.id, "name": master.name.value, "type": "master"})
            for submenu in hierarchy.submenus_by_master[master.id]:
                options.append({"id": submenu.id, "name": submenu.name, "type": "submenu"})
                for resolved in hierarchy.accounts_by_submenu[submenu.id]:
                    options.append(
                        {"id": resolved.id, "name": resolved.name, "code": resolved.code or "", "type": "account"}
                    )
        return options

    def list_asset_accounts(self) -> dict[str, list[Account]]:
        """Active Asset accounts grouped by submenu name."""
        hierarchy = self.load_hierarchy()
        master = hierarchy.master(MasterName.ASSETS)
        if master is None:
            return {}
        return {
            submenu.name: [r.account for r in hierarchy.accounts_by_submenu[submenu.id]]
            for submenu in hierarchy.submenus_by_master[master.id]
        }

    def seed_chart(self, chart: Iterable = DEFAULT_CHART) -> bool:
        """Create the default masters and submenus.

        Returns:
            True if the chart was created, False if masters already existed
        """
        if self.db.list_masters(include_inactive=True):
            return False
        with self.db.unit_of_work():
            for master_name, master_code, master_description, submenus in chart:
                master_id = self.db.create_master(
                    name=MasterName(master_name).value, code=master_code, description=master_description
                )
                for submenu_name, submenu_code, submenu_description in submenus:
                    self.db.create_submenu(
                        master_id=master_id,
                        name=submenu_name,
                        code=submenu_code,
                        description=submenu_description,
                    )
        logger.info("Seeded default chart of accounts")
        return True

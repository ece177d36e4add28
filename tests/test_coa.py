"""Tests for the chart of accounts service and hierarchy."""

import pytest

from coopledger.config import DEFAULT_CHART
from coopledger.domain.entities import Category, MasterName
from coopledger.domain.errors import ConflictError, NotFoundError, ValidationError


def test_seed_chart_is_idempotent(temp_db, coa_service):
    assert coa_service.seed_chart() is True
    assert coa_service.seed_chart() is False

    masters = temp_db.list_masters()
    assert sorted(m.name.value for m in masters) == sorted(m.value for m in MasterName)
    expected_submenus = sum(len(submenus) for _, _, _, submenus in DEFAULT_CHART)
    assert len(temp_db.list_submenus()) == expected_submenus


def test_create_account_generates_code_from_master_range(coa_service, seeded_chart):
    bank_id = coa_service.create_account(seeded_chart[("Assets", "Cash and Bank")], "Bank BCA")
    cash_id = coa_service.create_account(seeded_chart[("Assets", "Cash and Bank")], "Petty Cash")
    rent_id = coa_service.create_account(seeded_chart[("Expenses", "Operating Expenses")], "Office Rent")

    assert coa_service.get_account(bank_id).code == "1001"
    assert coa_service.get_account(cash_id).code == "1002"
    assert coa_service.get_account(rent_id).code == "5001"


def test_create_account_defaults(coa_service, seeded_chart):
    account_id = coa_service.create_account(seeded_chart[("Assets", "Cash and Bank")], "  Bank BCA  ")
    account = coa_service.get_account(account_id)

    assert account.name == "Bank BCA"
    assert account.currency == "Rp"
    assert account.balance == 0
    assert account.is_active


def test_generated_code_skips_non_numeric_codes(coa_service, seeded_chart):
    submenu_id = seeded_chart[("Assets", "Cash and Bank")]
    coa_service.create_account(submenu_id, "Legacy Account", code="A-77")
    coa_service.create_account(submenu_id, "Numbered Account", code="1010")

    new_id = coa_service.create_account(submenu_id, "Next Account")
    assert coa_service.get_account(new_id).code == "1011"


def test_generated_code_counts_inactive_accounts(coa_service, seeded_chart):
    submenu_id = seeded_chart[("Income", "Sales Revenue")]
    old_id = coa_service.create_account(submenu_id, "Old Sales")
    coa_service.delete_account(old_id)

    new_id = coa_service.create_account(submenu_id, "New Sales")
    assert coa_service.get_account(new_id).code == "4002"


def test_create_account_rejects_duplicate_code(coa_service, seeded_chart):
    submenu_id = seeded_chart[("Assets", "Cash and Bank")]
    coa_service.create_account(submenu_id, "Bank BCA", code="1001")

    with pytest.raises(ConflictError, match="already exists"):
        coa_service.create_account(submenu_id, "Bank BRI", code="1001")


def test_create_account_validation(coa_service, seeded_chart):
    with pytest.raises(ValidationError, match="at least 3 characters"):
        coa_service.create_account(seeded_chart[("Assets", "Cash and Bank")], "AB")

    with pytest.raises(NotFoundError):
        coa_service.create_account(9999, "Bank BCA")


def test_update_account(coa_service, accounts):
    coa_service.update_account(accounts["Bank BCA"], name="Bank BCA Syariah", currency="IDR")
    account = coa_service.get_account(accounts["Bank BCA"])

    assert account.name == "Bank BCA Syariah"
    assert account.currency == "IDR"
    assert account.code == "1001"


def test_update_account_rejects_code_of_other_account(coa_service, accounts):
    with pytest.raises(ConflictError):
        coa_service.update_account(accounts["Bank BCA"], code="1002")

    # Re-saving its own code is fine
    coa_service.update_account(accounts["Bank BCA"], code="1001")


def test_delete_account_is_soft(temp_db, coa_service, accounts):
    coa_service.delete_account(accounts["Petty Cash"])

    account = temp_db.get_account(accounts["Petty Cash"])
    assert account is not None
    assert not account.is_active
    assert accounts["Petty Cash"] not in coa_service.load_hierarchy().accounts_by_id


def test_delete_missing_account(coa_service, seeded_chart):
    with pytest.raises(NotFoundError):
        coa_service.delete_account(12345)


def test_get_account_detail(coa_service, accounts):
    detail = coa_service.get_account_detail(accounts["Office Rent"])

    assert detail.name == "Office Rent"
    assert detail.submenu_name == "Operating Expenses"
    assert detail.master_name == MasterName.EXPENSES


def test_list_accounts_by_type(coa_service, accounts):
    listing = coa_service.list_accounts_by_type("Expenses")

    assert listing["current_type"] == "Expenses"
    assert listing["account_counts"]["Assets"] == 4
    assert listing["account_counts"]["Expenses"] == 3
    assert list(listing["accounts_by_submenu"]) == [
        "Cost of Goods Sold",
        "Operating Expenses",
        "Payroll Expenses",
        "Other Expenses",
    ]
    operating = listing["accounts_by_submenu"]["Operating Expenses"]["accounts"]
    assert [a.name for a in operating] == ["Office Rent", "Electricity"]


def test_list_accounts_by_type_falls_back_to_assets(coa_service, accounts):
    listing = coa_service.list_accounts_by_type("Bogus")
    assert listing["current_type"] == "Assets"
    assert list(listing["accounts_by_submenu"])[0] == "Cash and Bank"


def test_list_submenus_in_canonical_order(coa_service, seeded_chart):
    names = [s.name for s in coa_service.list_submenus("Assets")]
    assert names == ["Cash and Bank", "Accounts Receivable", "Other Current Assets", "Fixed Assets"]

    with pytest.raises(NotFoundError):
        coa_service.list_submenus("Nonsense")


def test_list_submenus_legacy_shape(coa_service, seeded_chart):
    rows = coa_service.list_submenus_legacy({"masterType": "Equity"})
    assert [r["submenuName"] for r in rows] == ["Owner's Equity", "Retained Earnings"]
    assert set(rows[0]) == {"id", "masterId", "submenuName", "submenuCode", "description"}

    assert coa_service.list_submenus_legacy({"master_type": "Unknown"}) == []
    assert coa_service.list_submenus_legacy({}) == []


def test_create_submenu(coa_service, seeded_chart):
    submenu_id = coa_service.create_submenu("Assets", "Money in Transit")
    names = [s.name for s in coa_service.list_submenus("Assets")]
    assert names.index("Money in Transit") == 1
    assert submenu_id in {s.id for s in coa_service.list_submenus("Assets")}

    with pytest.raises(ConflictError):
        coa_service.create_submenu("Assets", "Money in Transit")


def test_list_categories_is_flattened_tree(coa_service, accounts):
    options = coa_service.list_categories()

    assert options[0] == {"id": options[0]["id"], "name": "Assets", "type": "master"}
    assert options[1]["name"] == "Cash and Bank"
    assert options[2]["name"] == "Bank BCA"
    assert options[2]["code"] == "1001"
    assert {o["type"] for o in options} == {"master", "submenu", "account"}


def test_list_asset_accounts(coa_service, accounts):
    grouped = coa_service.list_asset_accounts()
    assert [a.name for a in grouped["Cash and Bank"]] == ["Bank BCA", "Petty Cash"]
    assert grouped["Other Current Assets"] == []


class TestCoaHierarchy:
    """Tests for hierarchy lookups."""

    def test_accounts_under_each_level(self, coa_service, accounts, seeded_chart):
        hierarchy = coa_service.load_hierarchy()
        expenses = hierarchy.master(MasterName.EXPENSES)

        assert hierarchy.accounts_under(Category.account(accounts["Office Rent"])) == {accounts["Office Rent"]}
        assert hierarchy.accounts_under(Category.submenu(seeded_chart[("Expenses", "Operating Expenses")])) == {
            accounts["Office Rent"],
            accounts["Electricity"],
        }
        assert hierarchy.accounts_under(Category.master(expenses.id)) == {
            accounts["Inventory Purchases"],
            accounts["Office Rent"],
            accounts["Electricity"],
        }
        assert hierarchy.accounts_under(None) == frozenset()

    def test_master_of(self, coa_service, accounts, seeded_chart):
        hierarchy = coa_service.load_hierarchy()

        assert hierarchy.master_of(Category.account(accounts["Product Sales"])).name == MasterName.INCOME
        assert hierarchy.master_of(Category.submenu(seeded_chart[("Liabilities", "Credit Card")])).name == (
            MasterName.LIABILITIES
        )
        assert hierarchy.master_of(Category.account(99999)) is None

    def test_category_names(self, coa_service, accounts, seeded_chart):
        hierarchy = coa_service.load_hierarchy()

        assert hierarchy.category_name(None) == "Uncategorized"
        assert hierarchy.category_name(Category.account(accounts["Electricity"])) == "Electricity"
        assert hierarchy.category_name(Category.submenu(seeded_chart[("Income", "Other Income")])) == "Other Income"
        assert hierarchy.category_name(Category.account(99999)) == "Unknown"

    def test_account_codes_sort_numerically(self, coa_service, seeded_chart):
        submenu_id = seeded_chart[("Equity", "Owner's Equity")]
        coa_service.create_account(submenu_id=submenu_id, name="Reserve Fund", code="EQ-1")
        coa_service.create_account(submenu_id=submenu_id, name="Voluntary Savings", code="1000")
        coa_service.create_account(submenu_id=submenu_id, name="Mandatory Savings", code="999")
        hierarchy = coa_service.load_hierarchy()

        assert [a.code for a in hierarchy.accounts_of_master(MasterName.EQUITY)] == ["999", "1000", "EQ-1"]

    def test_report_target_levels(self, coa_service, accounts, seeded_chart):
        hierarchy = coa_service.load_hierarchy()
        expenses = hierarchy.master(MasterName.EXPENSES)
        submenu_id = seeded_chart[("Expenses", "Operating Expenses")]

        rent = hierarchy.report_target(Category.account(accounts["Office Rent"]))
        assert (rent.row_id, rent.submenu_name) == (accounts["Office Rent"], "Operating Expenses")
        opex = hierarchy.report_target(Category.submenu(submenu_id))
        assert opex.key == f"submenu_{submenu_id}"
        assert (opex.name, opex.submenu_name) == ("Operating Expenses", "Operating Expenses")
        whole = hierarchy.report_target(Category.master(expenses.id))
        assert (whole.key, whole.submenu_name) == (f"master_{expenses.id}", "Expenses")
        assert hierarchy.report_target(Category.account(99999)) is None
        assert hierarchy.report_targets(MasterName.EXPENSES)[-1] == whole

    def test_inactive_accounts_are_not_indexed(self, coa_service, accounts):
        coa_service.delete_account(accounts["Electricity"])
        hierarchy = coa_service.load_hierarchy()

        assert [a.name for a in hierarchy.accounts_of_master(MasterName.EXPENSES)] == [
            "Inventory Purchases",
            "Office Rent",
        ]

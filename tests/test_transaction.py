"""Tests for the transaction ledger service."""

from datetime import date
from decimal import Decimal

import pytest

from coopledger.domain.entities import Category, SplitLine, TransactionType
from coopledger.domain.errors import NotFoundError, ValidationError
from coopledger.domain.transaction import category_from_input, normalize_split_lines, normalize_transaction_type


def _balance(transaction_service, account_id):
    return transaction_service.db.get_account(account_id).balance


class TestRecordTransaction:
    """Tests for recording transactions."""

    def test_deposit_increases_balance(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(
            account_id=accounts["Bank BCA"],
            transaction_type="deposit",
            amount="1000000",
            transaction_date=date(2024, 1, 15),
            description="Member savings",
            category=Category.account(accounts["Member Capital"]),
        )

        view = transaction_service.get_transaction(txn_id)
        assert view.transaction.transaction_type == TransactionType.DEPOSIT
        assert view.transaction.amount == Decimal("1000000")
        assert view.category_name == "Member Capital"
        assert view.account_name == "Bank BCA"
        assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("1000000")

    def test_withdrawal_decreases_balance(self, transaction_service, accounts):
        transaction_service.record_transaction(
            accounts["Bank BCA"], "Withdrawal", Decimal("250000"), date(2024, 1, 20),
            category=Category.account(accounts["Office Rent"]),
        )
        assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("-250000")

    def test_negative_amount_is_stored_absolute(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(
            accounts["Bank BCA"], "Withdrawal", "-300", date(2024, 1, 20)
        )
        assert transaction_service.get_transaction(txn_id).transaction.amount == Decimal("300")
        assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("-300")

    def test_uncategorized(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(accounts["Petty Cash"], "Deposit", 50, date(2024, 2, 1))
        assert transaction_service.get_transaction(txn_id).category_name == "Uncategorized"

    @pytest.mark.parametrize("amount", [0, "0", "", None, "abc"])
    def test_rejects_missing_or_zero_amount(self, transaction_service, accounts, amount):
        with pytest.raises(ValidationError, match="greater than zero"):
            transaction_service.record_transaction(accounts["Bank BCA"], "Deposit", amount, date(2024, 1, 1))

    def test_rejects_invalid_type(self, transaction_service, accounts):
        with pytest.raises(ValidationError):
            transaction_service.record_transaction(accounts["Bank BCA"], "Transfer", 10, date(2024, 1, 1))

    def test_rejects_missing_date(self, transaction_service, accounts):
        with pytest.raises(ValidationError, match="date is required"):
            transaction_service.record_transaction(accounts["Bank BCA"], "Deposit", 10, None)

    def test_rejects_non_asset_account(self, transaction_service, accounts):
        with pytest.raises(ValidationError, match="Asset account"):
            transaction_service.record_transaction(accounts["Office Rent"], "Deposit", 10, date(2024, 1, 1))

    def test_rejects_unknown_account(self, transaction_service, accounts):
        with pytest.raises(NotFoundError):
            transaction_service.record_transaction(9999, "Deposit", 10, date(2024, 1, 1))

    def test_rejects_inactive_account(self, transaction_service, coa_service, accounts):
        coa_service.delete_account(accounts["Petty Cash"])
        with pytest.raises(ValidationError, match="inactive"):
            transaction_service.record_transaction(accounts["Petty Cash"], "Deposit", 10, date(2024, 1, 1))

    def test_rejects_unknown_category(self, transaction_service, accounts):
        with pytest.raises(ValidationError, match="not found"):
            transaction_service.record_transaction(
                accounts["Bank BCA"], "Deposit", 10, date(2024, 1, 1), category=Category.submenu(9999)
            )
        assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("0")


class TestSplits:
    """Tests for split transactions."""

    def test_split_transaction(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(
            accounts["Bank BCA"],
            "Withdrawal",
            1000,
            date(2024, 3, 1),
            splits=[
                {"amount": "600", "category_id": accounts["Office Rent"]},
                {"amount": "400", "category_id": accounts["Electricity"], "description": "PLN"},
            ],
        )

        view = transaction_service.get_transaction(txn_id)
        assert view.transaction.is_split
        assert view.transaction.category is None
        assert view.category_name == "Split"
        assert [(s.split.amount, s.category_name) for s in view.splits] == [
            (Decimal("600"), "Office Rent"),
            (Decimal("400"), "Electricity"),
        ]
        assert view.splits[1].split.description == "PLN"

    def test_category_and_splits_together_are_rejected(self, transaction_service, accounts):
        with pytest.raises(ValidationError, match="not both"):
            transaction_service.record_transaction(
                accounts["Bank BCA"],
                "Withdrawal",
                1000,
                date(2024, 3, 1),
                category=Category.account(accounts["Office Rent"]),
                splits=[{"amount": "1000", "category_id": accounts["Electricity"]}],
            )

        assert transaction_service.list_transactions() == []
        assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("0")

    def test_update_with_category_and_splits_is_rejected(self, transaction_service, accounts):
        rent = Category.account(accounts["Office Rent"])
        txn_id = transaction_service.record_transaction(
            accounts["Bank BCA"], "Withdrawal", 100, date(2024, 3, 1), category=rent
        )

        with pytest.raises(ValidationError, match="not both"):
            transaction_service.update_transaction(
                txn_id, category=rent, splits=[SplitLine(Decimal("100"), Category.account(accounts["Electricity"]))]
            )

        view = transaction_service.get_transaction(txn_id)
        assert view.category_name == "Office Rent"
        assert view.splits == []

    def test_zero_amount_split_rows_are_dropped(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(
            accounts["Bank BCA"],
            "Withdrawal",
            100,
            date(2024, 3, 1),
            splits=[{"amount": 0, "category_id": accounts["Office Rent"]}],
        )
        view = transaction_service.get_transaction(txn_id)
        assert not view.transaction.is_split
        assert view.splits == []

    def test_find_unallocated_splits(self, transaction_service, accounts):
        balanced_id = transaction_service.record_transaction(
            accounts["Bank BCA"],
            "Withdrawal",
            100,
            date(2024, 3, 1),
            splits=[SplitLine(Decimal("100"), Category.account(accounts["Office Rent"]))],
        )
        short_id = transaction_service.record_transaction(
            accounts["Bank BCA"],
            "Withdrawal",
            100,
            date(2024, 3, 2),
            description="Half allocated",
            splits=[SplitLine(Decimal("50"), Category.account(accounts["Electricity"]))],
        )

        issues = transaction_service.find_unallocated_splits()

        assert [issue["id"] for issue in issues] == [short_id]
        issue = issues[0]
        assert issue["transaction_amount"] == Decimal("100")
        assert issue["total_split_amount"] == Decimal("50")
        assert issue["remaining_unallocated"] == Decimal("50")
        assert issue["account_name"] == "Bank BCA"
        assert balanced_id not in {i["id"] for i in issues}


class TestUpdateAndDelete:
    """Tests for updating and deleting transactions."""

    def test_repeating_an_update_leaves_balances_unchanged(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(accounts["Bank BCA"], "Deposit", 500, date(2024, 1, 1))

        for _ in range(2):
            transaction_service.update_transaction(txn_id, amount=800)
            assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("800")

    def test_update_moves_balance_between_accounts(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(accounts["Bank BCA"], "Deposit", 500, date(2024, 1, 1))

        transaction_service.update_transaction(txn_id, account_id=accounts["Petty Cash"], transaction_type="Withdrawal")

        assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("0")
        assert _balance(transaction_service, accounts["Petty Cash"]) == Decimal("-500")

    def test_update_replaces_splits(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(
            accounts["Bank BCA"],
            "Withdrawal",
            100,
            date(2024, 1, 1),
            splits=[{"amount": 100, "category_id": accounts["Office Rent"]}],
        )

        transaction_service.update_transaction(txn_id, category=Category.account(accounts["Electricity"]))

        view = transaction_service.get_transaction(txn_id)
        assert not view.transaction.is_split
        assert view.splits == []
        assert view.category_name == "Electricity"

    def test_update_keeps_unspecified_fields(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(
            accounts["Bank BCA"], "Deposit", 100, date(2024, 1, 1), description="Dues", notes="January"
        )
        transaction_service.update_transaction(txn_id, amount=120)

        txn = transaction_service.get_transaction(txn_id).transaction
        assert txn.description == "Dues"
        assert txn.notes == "January"
        assert txn.transaction_date == date(2024, 1, 1)

    def test_update_missing_transaction(self, transaction_service, accounts):
        with pytest.raises(NotFoundError):
            transaction_service.update_transaction(999, amount=1)

    def test_delete_reverses_balance(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(
            accounts["Bank BCA"],
            "Withdrawal",
            100,
            date(2024, 1, 1),
            splits=[{"amount": 100, "category_id": accounts["Office Rent"]}],
        )

        transaction_service.delete_transaction(txn_id)

        assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("0")
        assert transaction_service.db.list_splits(txn_id) == []
        with pytest.raises(NotFoundError):
            transaction_service.get_transaction(txn_id)

    def test_toggle_reviewed(self, transaction_service, accounts):
        txn_id = transaction_service.record_transaction(accounts["Bank BCA"], "Deposit", 1, date(2024, 1, 1))
        assert transaction_service.toggle_reviewed(txn_id) is True
        assert transaction_service.toggle_reviewed(txn_id) is False


class TestListingAndBalances:
    """Tests for listing and balance maintenance."""

    def test_list_newest_first(self, transaction_service, accounts):
        older = transaction_service.record_transaction(accounts["Bank BCA"], "Deposit", 1, date(2024, 1, 1))
        newer = transaction_service.record_transaction(accounts["Bank BCA"], "Deposit", 2, date(2024, 2, 1))
        other = transaction_service.record_transaction(accounts["Petty Cash"], "Deposit", 3, date(2024, 3, 1))

        assert [v.transaction.id for v in transaction_service.list_transactions()] == [other, newer, older]
        assert [v.transaction.id for v in transaction_service.list_transactions(accounts["Bank BCA"])] == [
            newer,
            older,
        ]

    def test_recompute_repairs_drift(self, transaction_service, accounts):
        transaction_service.record_transaction(accounts["Bank BCA"], "Deposit", 700, date(2024, 1, 1))
        transaction_service.record_transaction(accounts["Bank BCA"], "Withdrawal", 200, date(2024, 1, 2))
        transaction_service.db.set_account_balance(accounts["Bank BCA"], Decimal("1"))

        assert transaction_service.recompute_balance(accounts["Bank BCA"]) == Decimal("500")
        assert _balance(transaction_service, accounts["Bank BCA"]) == Decimal("500")

    def test_recompute_all_balances(self, transaction_service, accounts):
        transaction_service.record_transaction(accounts["Petty Cash"], "Deposit", 40, date(2024, 1, 1))
        balances = transaction_service.recompute_all_balances()

        assert balances[accounts["Petty Cash"]] == Decimal("40")
        assert balances[accounts["Office Rent"]] == Decimal("0")
        assert len(balances) == 12


class TestExpenseConversion:
    """Tests for turning expenses into withdrawals."""

    def test_single_line_becomes_category(self, transaction_service, accounts):
        txn_id = transaction_service.create_transaction_from_expense(
            accounts["Bank BCA"],
            date(2024, 4, 1),
            "April rent",
            [{"amount": 500, "category_id": accounts["Office Rent"]}],
            expected_total=500,
            vendor_id="Landlord",
        )

        view = transaction_service.get_transaction(txn_id)
        assert view.transaction.transaction_type == TransactionType.WITHDRAWAL
        assert view.category_name == "Office Rent"
        assert view.transaction.vendor_id == "Landlord"

    def test_several_lines_become_splits(self, transaction_service, accounts):
        txn_id = transaction_service.create_transaction_from_expense(
            accounts["Bank BCA"],
            date(2024, 4, 1),
            "Utilities",
            [
                {"amount": 300, "category_id": accounts["Electricity"]},
                {"amount": 200, "category_id": accounts["Office Rent"]},
            ],
            expected_total="500",
        )
        view = transaction_service.get_transaction(txn_id)
        assert view.transaction.is_split
        assert len(view.splits) == 2

    def test_lines_must_match_total(self, transaction_service, accounts):
        with pytest.raises(ValidationError, match="does not match"):
            transaction_service.create_transaction_from_expense(
                accounts["Bank BCA"],
                date(2024, 4, 1),
                "Utilities",
                [{"amount": 300, "category_id": accounts["Electricity"]}],
                expected_total=500,
            )

    def test_lines_need_categories(self, transaction_service, accounts):
        with pytest.raises(ValidationError, match="needs a category"):
            transaction_service.create_transaction_from_expense(
                accounts["Bank BCA"], date(2024, 4, 1), "Misc", [{"amount": 10}], expected_total=10
            )


def test_normalize_transaction_type():
    assert normalize_transaction_type("DEPOSIT") == TransactionType.DEPOSIT
    assert normalize_transaction_type(" withdrawal ") == TransactionType.WITHDRAWAL
    with pytest.raises(ValidationError):
        normalize_transaction_type(None)


def test_category_from_input():
    assert category_from_input("7", "Submenu") == Category.submenu(7)
    assert category_from_input("undefined", "account") is None
    assert category_from_input(3, None) is None
    with pytest.raises(ValidationError):
        category_from_input(3, "folder")


def test_normalize_split_lines_defaults_to_account_category():
    lines = normalize_split_lines([{"split_amount": "-25", "categoryId": "4"}])
    assert lines == [SplitLine(amount=Decimal("25"), category=Category.account(4), description="")]

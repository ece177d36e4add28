"""Tests for the accounting sign conventions."""

from decimal import Decimal

import pytest

from coopledger.domain.balance import (
    ZERO,
    cash_flow,
    debit_credit,
    master_report_signed,
    normalize_money,
    signed_balance,
)
from coopledger.domain.entities import MasterName, TransactionType

DEPOSIT = TransactionType.DEPOSIT
WITHDRAWAL = TransactionType.WITHDRAWAL


@pytest.mark.parametrize(
    "master,txn_type,expected",
    [
        (MasterName.ASSETS, DEPOSIT, Decimal("100")),
        (MasterName.ASSETS, WITHDRAWAL, Decimal("-100")),
        (MasterName.EXPENSES, DEPOSIT, Decimal("100")),
        (MasterName.EXPENSES, WITHDRAWAL, Decimal("-100")),
        (MasterName.LIABILITIES, DEPOSIT, Decimal("-100")),
        (MasterName.LIABILITIES, WITHDRAWAL, Decimal("100")),
        (MasterName.INCOME, DEPOSIT, Decimal("-100")),
        (MasterName.EQUITY, WITHDRAWAL, Decimal("100")),
    ],
)
def test_signed_balance(master, txn_type, expected):
    assert signed_balance(master, txn_type, Decimal("100")) == expected


def test_signed_balance_accepts_plain_strings():
    """Master and type may arrive as plain strings from storage."""
    assert signed_balance("Assets", "Deposit", "250") == Decimal("250")
    assert signed_balance("Income", "Withdrawal", "250") == Decimal("250")


def test_master_report_signed_income_and_expenses_positive_in_normal_use():
    assert master_report_signed(MasterName.INCOME, DEPOSIT, 100) == Decimal("100")
    assert master_report_signed(MasterName.INCOME, WITHDRAWAL, 100) == Decimal("-100")
    assert master_report_signed(MasterName.EXPENSES, WITHDRAWAL, 100) == Decimal("100")
    assert master_report_signed(MasterName.EXPENSES, DEPOSIT, 100) == Decimal("-100")


def test_master_report_signed_other_masters_fall_back_to_balance_sign():
    assert master_report_signed(MasterName.ASSETS, DEPOSIT, 100) == signed_balance(MasterName.ASSETS, DEPOSIT, 100)
    assert master_report_signed(MasterName.LIABILITIES, DEPOSIT, 100) == Decimal("-100")


def test_debit_credit_for_debit_normal_master():
    entry = debit_credit(MasterName.ASSETS, DEPOSIT, Decimal("75"))
    assert entry.debit == Decimal("75")
    assert entry.credit == ZERO
    assert entry.signed == Decimal("75")

    entry = debit_credit(MasterName.EXPENSES, WITHDRAWAL, Decimal("75"))
    assert entry.debit == ZERO
    assert entry.credit == Decimal("75")
    assert entry.signed == Decimal("-75")


def test_debit_credit_for_credit_normal_master():
    entry = debit_credit(MasterName.LIABILITIES, WITHDRAWAL, Decimal("40"))
    assert entry.debit == Decimal("40")
    assert entry.signed == Decimal("40")

    entry = debit_credit(MasterName.INCOME, DEPOSIT, Decimal("40"))
    assert entry.credit == Decimal("40")
    assert entry.signed == Decimal("-40")


def test_exactly_one_side_is_nonzero():
    for master in MasterName:
        for txn_type in TransactionType:
            entry = debit_credit(master, txn_type, Decimal("12.50"))
            assert (entry.debit == ZERO) != (entry.credit == ZERO)
            assert abs(entry.signed) == Decimal("12.50")


def test_cash_flow_uses_asset_sign():
    assert cash_flow(DEPOSIT, 10) == Decimal("10")
    assert cash_flow(WITHDRAWAL, 10) == Decimal("-10")


def test_amounts_are_normalized_to_absolute_values():
    assert signed_balance(MasterName.ASSETS, DEPOSIT, Decimal("-30")) == Decimal("30")
    assert normalize_money("-12.5") == Decimal("12.5")


@pytest.mark.parametrize("value", [None, "", "abc", "NaN", "Infinity"])
def test_normalize_money_treats_garbage_as_zero(value):
    assert normalize_money(value) == ZERO

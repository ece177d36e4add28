"""Accounting sign conventions.

Every report applies exactly one of these functions per computation:
``signed_balance`` for balance sheet and cash flows, ``master_report_signed``
for profit and loss rollups and ``debit_credit`` for the general ledger.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from coopledger.domain.entities import MasterName, TransactionType

DEBIT_NORMAL_MASTERS = frozenset({MasterName.ASSETS, MasterName.EXPENSES})

ZERO = Decimal("0")


@dataclass(frozen=True)
class DebitCredit:
    """Amount classified into a debit or credit column."""

    debit: Decimal
    credit: Decimal
    signed: Decimal


def normalize_money(value) -> Decimal:
    """Return the absolute Decimal value of ``value``, or 0 when unparseable."""
    if value is None:
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not amount.is_finite():
        return ZERO
    return abs(amount)


def is_debit_normal(master_name: str) -> bool:
    """True for masters whose balance grows on the debit side."""
    return master_name in DEBIT_NORMAL_MASTERS


def signed_balance(master_name: str, transaction_type: str, amount) -> Decimal:
    """Signed effect of a transaction on an account's normal balance.

    Debit-normal masters grow on Deposit; credit-normal masters grow on
    Withdrawal.
    """
    money = normalize_money(amount)
    if is_debit_normal(master_name):
        return money if transaction_type == TransactionType.DEPOSIT else -money
    return -money if transaction_type == TransactionType.DEPOSIT else money


def master_report_signed(master_name: str, transaction_type: str, amount) -> Decimal:
    """Signed amount for profit and loss rollups.

    Income counts Deposits as positive and Expenses count Withdrawals as
    positive, so both report as positive magnitudes under normal usage.
    """
    money = normalize_money(amount)
    if master_name == MasterName.INCOME:
        return money if transaction_type == TransactionType.DEPOSIT else -money
    if master_name == MasterName.EXPENSES:
        return money if transaction_type == TransactionType.WITHDRAWAL else -money
    return signed_balance(master_name, transaction_type, money)


def debit_credit(master_name: str, transaction_type: str, amount) -> DebitCredit:
    """Classify an amount as a general ledger debit or credit entry."""
    money = normalize_money(amount)
    if is_debit_normal(master_name):
        is_debit = transaction_type == TransactionType.DEPOSIT
    else:
        is_debit = transaction_type == TransactionType.WITHDRAWAL
    return DebitCredit(
        debit=money if is_debit else ZERO,
        credit=ZERO if is_debit else money,
        signed=money if is_debit else -money,
    )


def cash_flow(transaction_type: str, amount) -> Decimal:
    """Effect of a transaction on its own cash/bank account."""
    return signed_balance(MasterName.ASSETS, transaction_type, amount)

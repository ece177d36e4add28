"""Shared display helpers for CLI output."""

from decimal import Decimal

from coopledger.config import DEFAULT_TAXONOMY


def format_money(amount: Decimal, currency: str | None = None) -> str:
    """Format an amount with its currency label, e.g. ``Rp 1,500,000.00``."""
    label = currency or DEFAULT_TAXONOMY.default_currency
    sign = "-" if amount < 0 else ""
    return f"{sign}{label} {abs(amount):,.2f}"

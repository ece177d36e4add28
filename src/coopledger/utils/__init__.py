"""Utility functions for coopledger."""

from coopledger.utils.date_parser import parse_date, parse_date_or_default
from coopledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_date_or_default", "parse_amount"]

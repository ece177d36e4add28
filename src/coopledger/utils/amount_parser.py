"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

CURRENCY_PREFIX = re.compile(r"^(rp\.?|idr|usd|\$|€|£|¥)\s*", re.IGNORECASE)


def parse_amount(amount_str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles:
    - "123.45", "-123.45", "(123.45)" (negative in parentheses)
    - currency prefixes: "Rp 1.500.000", "Rp1,500,000.50", "$123.45", "-$123.45"
    - thousands separators in either convention: "1,234.56" and "1.234,56"

    Args:
        amount_str: Amount string (numbers are passed through)

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if isinstance(amount_str, Decimal):
        return amount_str
    if isinstance(amount_str, (int, float)):
        return Decimal(str(amount_str))
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    text = str(amount_str).strip()

    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1].strip()
    if text.startswith("-"):
        is_negative = not is_negative
        text = text[1:].strip()

    text = CURRENCY_PREFIX.sub("", text)
    if text.startswith("-"):
        is_negative = not is_negative
        text = text[1:]
    text = text.replace(" ", "")
    text = _strip_grouping(text)

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'") from None
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def _strip_grouping(text: str) -> str:
    """Remove thousands separators and normalize the decimal mark to '.'."""
    has_comma = "," in text
    has_dot = "." in text
    if has_comma and has_dot:
        # Whichever mark comes last is the decimal separator
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if has_comma:
        head, _, tail = text.rpartition(",")
        if text.count(",") == 1 and len(tail) != 3:
            return f"{head}.{tail}"
        return text.replace(",", "")
    if has_dot and text.count(".") > 1:
        return text.replace(".", "")
    if has_dot:
        head, _, tail = text.partition(".")
        # "1.500" style Rupiah grouping
        if len(tail) == 3 and head.isdigit() and len(head) <= 3 and head != "0":
            return head + tail
    return text

"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

_NON_NUMERIC = re.compile(r"[^\d.+-]")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a user-entered amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥,\s]", "", amount_str)

    amount = _to_finite_decimal(amount_str)
    return -amount if is_negative else amount


def parse_import_amount(raw: str) -> Decimal:
    """Parse an amount cell from an imported row.

    Every character other than digits, signs and the decimal point is
    dropped before parsing, so "SLL 1,250.00" becomes 1250.00.

    Raises:
        ValueError: If nothing numeric remains
    """
    return _to_finite_decimal(_NON_NUMERIC.sub("", raw or ""))


def _to_finite_decimal(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{value}'") from None
    if not amount.is_finite():
        raise ValueError(f"Amount '{value}' is not a finite number")
    return amount

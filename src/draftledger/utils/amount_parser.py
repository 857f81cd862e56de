"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str, decimal_comma: bool = False) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "-123.45 €"
    - "1,234.56"
    - "1.234,56" (with decimal_comma=True)
    - "(123.45)" (negative in parentheses)
    - "123.45-" (trailing minus, as printed by some banks)

    Args:
        amount_str: Amount string
        decimal_comma: Treat "," as decimal separator and "." as grouping

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]
    if amount_str.endswith("-"):
        is_negative = True
        amount_str = amount_str[:-1]

    # Remove currency symbols and codes
    amount_str = re.sub(r"[$€£¥]|\b[A-Z]{3}\b", "", amount_str)

    if decimal_comma:
        amount_str = amount_str.replace(".", "").replace(",", ".")
    else:
        amount_str = amount_str.replace(",", "")

    amount_str = re.sub(r"\s", "", amount_str)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if is_negative:
        amount = -amount
    return amount

"""Money and rate parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

from invoicekit.domain.pricing import quantize_money


def parse_money(amount_str: str) -> Decimal:
    """Parse a money string into a Decimal rounded to cents.

    Handles "123.45", "$1,234.50", "€ 12" and "(12.00)" (negative).

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

    cleaned = re.sub(r"[$€£¥\s]", "", amount_str).replace(",", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return quantize_money(-amount if is_negative else amount)


def parse_tax_rate(rate_str: str) -> Decimal:
    """Parse a percentage such as "15" or "7.5%".

    Raises:
        ValueError: If the rate cannot be parsed or is negative
    """
    cleaned = (rate_str or "").strip().rstrip("%").strip()
    try:
        rate = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse tax rate '{rate_str}'")
    if not rate.is_finite() or rate < 0:
        raise ValueError(f"Invalid tax rate '{rate_str}'")
    return rate

"""Parsing of invoice line arguments."""

from decimal import Decimal
from typing import Optional

from invoicekit.utils.money_parser import parse_money


def parse_item_arg(text: str) -> tuple[int, int, Optional[Decimal]]:
    """Parse ``PRODUCT_ID:QTY[:PRICE]`` into its parts.

    The price is None when omitted, meaning the catalog price applies.

    Raises:
        ValueError: If the argument is malformed
    """
    parts = [part.strip() for part in (text or "").split(":")]
    if len(parts) not in (2, 3) or not all(parts):
        raise ValueError(f"Invalid item '{text}'. Expected PRODUCT_ID:QTY[:PRICE]")
    try:
        product_id = int(parts[0])
        quantity = int(parts[1])
    except ValueError:
        raise ValueError(f"Invalid item '{text}'. Product ID and quantity must be integers")
    price = parse_money(parts[2]) if len(parts) == 3 else None
    return product_id, quantity, price

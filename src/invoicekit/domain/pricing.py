"""Line validation and document totals shared by invoices, quotes and templates."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from invoicekit.domain.entities import InvoiceItem
from invoicekit.domain.errors import ValidationError

CENT = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round a money amount half-up to cents."""
    return (value or Decimal("0")).quantize(CENT, rounding=ROUND_HALF_UP)


def validate_items(items: Sequence[InvoiceItem]) -> None:
    """Check that a document has lines and every line is sane.

    Raises:
        ValidationError: On empty items, non-positive quantity or negative price
    """
    if not items:
        raise ValidationError("At least one item is required")
    for index, item in enumerate(items, start=1):
        if item.quantity <= 0:
            raise ValidationError(f"Item {index}: quantity must be greater than 0")
        if item.unit_price < 0:
            raise ValidationError(f"Item {index}: unit price cannot be negative")
        if not item.product_name:
            raise ValidationError(f"Item {index}: product name is required")


def compute_totals(items: Sequence[InvoiceItem], tax_rate: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    """Compute subtotal, tax amount and total.

    Args:
        items: Document lines
        tax_rate: Tax rate in percent (e.g. 15 for 15%)

    Returns:
        Tuple of (subtotal, tax_amount, total), all rounded to cents

    Raises:
        ValidationError: If the tax rate is negative
    """
    if tax_rate < 0:
        raise ValidationError("Tax rate cannot be negative")
    subtotal = quantize_money(sum((item.line_total for item in items), Decimal("0")))
    tax_amount = quantize_money(subtotal * tax_rate / Decimal("100"))
    return subtotal, tax_amount, subtotal + tax_amount

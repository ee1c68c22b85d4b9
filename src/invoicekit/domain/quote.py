"""Quote service and quote-to-invoice conversion."""

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Optional

from invoicekit.database.base import Database
from invoicekit.domain.cache import WriteHook, notify_write
from invoicekit.domain.entities import DocumentType, Invoice, Quote, QuoteStatus
from invoicekit.domain.errors import ConflictError, NotFoundError, ValidationError, quote_not_found
from invoicekit.domain.invoice import InvoiceService
from invoicekit.domain.numbering import DocumentNumberService
from invoicekit.domain.permissions import INVOICES, QUOTES, Capability, require
from invoicekit.domain.pricing import compute_totals, validate_items

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (QuoteStatus.ACCEPTED, QuoteStatus.DECLINED)


class QuoteService:
    """Service for quotes. Quotes never touch stock."""

    def __init__(
        self,
        db: Database,
        invoices: Optional[InvoiceService] = None,
        numbers: Optional[DocumentNumberService] = None,
        on_write: Optional[Iterable[WriteHook]] = None,
    ):
        """Initialize quote service.

        Args:
            db: Database instance
            invoices: Invoice service used for conversion
            numbers: Number allocator for QT- numbers
            on_write: Hooks fired after quotes change
        """
        self.db = db
        self.invoices = invoices or InvoiceService(db)
        self.numbers = numbers or self.invoices.numbers
        self.on_write = tuple(on_write or ())

    def save_quote(self, tenant_id: str, quote: Quote, capability: Optional[Capability] = None) -> Quote:
        """Create or update a quote.

        Raises:
            ValidationError: If items are invalid or expiry precedes issue date
            NotFoundError: If updating a quote that does not exist
        """
        require(capability, QUOTES)
        validate_items(quote.items)
        if quote.expiry_date < quote.issue_date:
            raise ValidationError("Expiry date cannot be before issue date")
        subtotal, tax_amount, total = compute_totals(quote.items, quote.tax_rate)

        if quote.id is None:
            number = self.numbers.allocate(tenant_id, DocumentType.QUOTE)
        else:
            number = self.require_quote(tenant_id, quote.id).number

        to_save = replace(
            quote,
            number=number,
            items=tuple(quote.items),
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=total,
        )
        if to_save.id is None:
            to_save = replace(to_save, id=self.db.create_quote(tenant_id, to_save))
        else:
            self.db.update_quote(tenant_id, to_save)

        notify_write(self.on_write, tenant_id, "quotes")
        return self.db.get_quote(tenant_id, to_save.id) or to_save

    def get_quote(self, tenant_id: str, quote_id: int) -> Optional[Quote]:
        return self.db.get_quote(tenant_id, quote_id)

    def require_quote(self, tenant_id: str, quote_id: int) -> Quote:
        """Get quote by ID or raise NotFoundError."""
        quote = self.db.get_quote(tenant_id, quote_id)
        if quote is None:
            raise NotFoundError(quote_not_found(quote_id))
        return quote

    def list_quotes(self, tenant_id: str) -> list[Quote]:
        return self.db.list_quotes(tenant_id)

    def convert_to_invoice(
        self,
        tenant_id: str,
        quote_id: int,
        issue_date: date,
        payment_terms_days: int = 30,
        capability: Optional[Capability] = None,
    ) -> Invoice:
        """Create an invoice from a quote and mark the quote Accepted.

        The invoice goes through InvoiceService.save, so it gets an invoice
        number and takes stock like any other invoice.

        Args:
            tenant_id: Tenant ID
            quote_id: Quote to convert
            issue_date: Issue date of the new invoice
            payment_terms_days: Days from issue date to due date
            capability: Optional capability to enforce

        Returns:
            The created invoice

        Raises:
            NotFoundError: If the quote does not exist
            ValidationError: If the quote is already accepted or declined
            ConflictError: If the quote status changed while claiming it
        """
        require(capability, QUOTES)
        require(capability, INVOICES)
        if payment_terms_days < 0:
            raise ValidationError("Payment terms cannot be negative")

        quote = self.require_quote(tenant_id, quote_id)
        if quote.status in CLOSED_STATUSES:
            raise ValidationError(f"Quote {quote.number} is already {quote.status.value}")

        # Claim the quote first so only one conversion creates an invoice
        if not self.db.compare_and_set_quote_status(tenant_id, quote.id, quote.status, QuoteStatus.ACCEPTED):
            current = self.require_quote(tenant_id, quote_id)
            if current.status in CLOSED_STATUSES:
                raise ValidationError(f"Quote {quote.number} is already {current.status.value}")
            raise ConflictError(f"Quote {quote.number} changed while converting it, try again")

        try:
            invoice = self.invoices.save(
                tenant_id,
                Invoice(
                    customer_id=quote.customer_id,
                    customer_name=quote.customer_name,
                    issue_date=issue_date,
                    due_date=issue_date + timedelta(days=payment_terms_days),
                    items=quote.items,
                    tax_rate=quote.tax_rate,
                ),
            )
        except Exception:
            self.db.compare_and_set_quote_status(tenant_id, quote.id, QuoteStatus.ACCEPTED, quote.status)
            raise
        notify_write(self.on_write, tenant_id, "quotes")
        logger.info("Converted quote %s to invoice %s for tenant %s", quote.number, invoice.number, tenant_id)
        return invoice

"""Abstract database interface.

Every operation is scoped to a tenant. Writes are single-record atomic, with
two exceptions that callers rely on for consistency: ``apply_stock_changes``
(all-or-nothing over a set of products, guarded by per-product versions) and
the compare-and-set methods for counters and template schedules.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from invoicekit.domain.entities import (
    DocumentCounter,
    DocumentType,
    Invoice,
    InvoiceStatus,
    LedgerEntry,
    Payment,
    Product,
    Quote,
    QuoteStatus,
    RecurringTemplate,
    StockChange,
)


class Database(ABC):
    """Abstract tenant-scoped document repository for invoicekit."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Product operations
    @abstractmethod
    def create_product(self, tenant_id: str, name: str, unit_price: Decimal, stock: int) -> int:
        """Create a product. Returns product ID."""
        pass

    @abstractmethod
    def get_product(self, tenant_id: str, product_id: int) -> Optional[Product]:
        """Get product by ID."""
        pass

    @abstractmethod
    def get_products(self, tenant_id: str, product_ids: Iterable[int]) -> dict[int, Product]:
        """Get several products at once, keyed by ID. Missing IDs are omitted."""
        pass

    @abstractmethod
    def list_products(self, tenant_id: str) -> list[Product]:
        """List all products of a tenant."""
        pass

    @abstractmethod
    def apply_stock_changes(self, tenant_id: str, changes: Sequence[StockChange]) -> bool:
        """Write new stock levels for a set of products in one transaction.

        Each change only applies if the product's version still equals
        ``expected_version``; a successful write bumps the version. If any
        product fails the check nothing is written.

        Returns:
            True if all changes were applied, False on a version mismatch
        """
        pass

    # Document counter operations
    @abstractmethod
    def get_counter(self, tenant_id: str) -> DocumentCounter:
        """Get the tenant's counter (all zeros if none was written yet)."""
        pass

    @abstractmethod
    def compare_and_set_counter(
        self, tenant_id: str, doc_type: DocumentType, expected: int, new: int
    ) -> bool:
        """Atomically set the counter field for ``doc_type`` if it equals ``expected``.

        Returns:
            True if the value was swapped, False if another writer got there first
        """
        pass

    # Invoice operations
    @abstractmethod
    def create_invoice(self, tenant_id: str, invoice: Invoice) -> int:
        """Persist a new invoice with its items. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, tenant_id: str, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def update_invoice(self, tenant_id: str, invoice: Invoice) -> bool:
        """Replace a stored invoice (fields and items) if it is still at ``invoice.version``.

        Returns False and writes nothing if the stored version differs.
        Raises NotFoundError if the invoice does not exist.
        """
        pass

    @abstractmethod
    def update_invoice_status(self, tenant_id: str, invoice_id: int, status: InvoiceStatus) -> None:
        """Update only the status field of an invoice, bumping its version."""
        pass

    @abstractmethod
    def delete_invoice(self, tenant_id: str, invoice_id: int, expected_version: Optional[int] = None) -> bool:
        """Delete an invoice.

        Returns False if it does not exist or, when ``expected_version`` is
        given, if the stored version differs.
        """
        pass

    @abstractmethod
    def list_invoices(
        self,
        tenant_id: str,
        status: Optional[InvoiceStatus] = None,
        customer_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Invoice]:
        """List invoices with optional filters, oldest issue date first."""
        pass

    @abstractmethod
    def find_invoice_by_source(self, tenant_id: str, template_id: int, period: date) -> Optional[Invoice]:
        """Find the invoice generated by a recurring template for one period."""
        pass

    # Quote operations
    @abstractmethod
    def create_quote(self, tenant_id: str, quote: Quote) -> int:
        """Persist a new quote with its items. Returns quote ID."""
        pass

    @abstractmethod
    def get_quote(self, tenant_id: str, quote_id: int) -> Optional[Quote]:
        """Get quote by ID."""
        pass

    @abstractmethod
    def update_quote(self, tenant_id: str, quote: Quote) -> None:
        """Replace a stored quote by ``quote.id``."""
        pass

    @abstractmethod
    def compare_and_set_quote_status(
        self, tenant_id: str, quote_id: int, expected: QuoteStatus, new: QuoteStatus
    ) -> bool:
        """Set a quote's status only if it still equals ``expected``."""
        pass

    @abstractmethod
    def list_quotes(self, tenant_id: str) -> list[Quote]:
        """List quotes of a tenant."""
        pass

    # Payment operations
    @abstractmethod
    def create_payment(self, tenant_id: str, payment: Payment) -> int:
        """Persist a payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_payment(self, tenant_id: str, payment_id: int) -> Optional[Payment]:
        """Get payment by ID."""
        pass

    @abstractmethod
    def list_payments(
        self,
        tenant_id: str,
        invoice_id: Optional[int] = None,
        customer_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Payment]:
        """List payments with optional filters."""
        pass

    # Recurring template operations
    @abstractmethod
    def create_template(self, tenant_id: str, template: RecurringTemplate) -> int:
        """Persist a recurring template. Returns template ID."""
        pass

    @abstractmethod
    def get_template(self, tenant_id: str, template_id: int) -> Optional[RecurringTemplate]:
        """Get recurring template by ID."""
        pass

    @abstractmethod
    def update_template(self, tenant_id: str, template: RecurringTemplate) -> None:
        """Replace a stored template by ``template.id``."""
        pass

    @abstractmethod
    def delete_template(self, tenant_id: str, template_id: int) -> bool:
        """Delete a template. Returns False if it did not exist."""
        pass

    @abstractmethod
    def list_templates(
        self, tenant_id: str, due_on_or_before: Optional[date] = None
    ) -> list[RecurringTemplate]:
        """List templates ordered by next due date, optionally only due ones."""
        pass

    @abstractmethod
    def advance_template(
        self, tenant_id: str, template_id: int, expected_next_due: date, new_next_due: date
    ) -> bool:
        """Move ``next_due_date`` forward if it still equals ``expected_next_due``."""
        pass

    # Ledger operations
    @abstractmethod
    def create_ledger_entry(self, tenant_id: str, entry: LedgerEntry) -> int:
        """Persist a ledger entry with its lines. Returns entry ID."""
        pass

    @abstractmethod
    def list_ledger_entries(
        self,
        tenant_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        before: Optional[date] = None,
    ) -> list[LedgerEntry]:
        """List ledger entries in a closed date range or strictly before a date."""
        pass

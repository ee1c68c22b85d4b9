"""Invoice lifecycle service.

Saving or deleting an invoice keeps three things consistent: the invoice
document, the tenant's invoice counter and the stock of every product the
invoice references. For an edit, returning the old quantities and taking the
new ones is folded into one net delta per product and written as a single
atomic stock change. If the invoice write fails afterwards the delta is
reversed before the error propagates.

Every invoice carries a version. Updates and deletes only land on the version
they were computed from; when another writer got there first the stock delta
is undone and the whole step is recomputed from the current invoice.
"""

import logging
import time
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Mapping, Optional

from invoicekit.database.base import Database
from invoicekit.domain.cache import WriteHook, notify_write
from invoicekit.domain.entities import DocumentType, Invoice, InvoiceStatus
from invoicekit.domain.errors import DomainError, NotFoundError, invoice_not_found
from invoicekit.domain.numbering import DocumentNumberService
from invoicekit.domain.permissions import INVOICES, Capability, require
from invoicekit.domain.pricing import compute_totals, validate_items
from invoicekit.domain.retry import StaleWrite, retry_on_conflict
from invoicekit.domain.settings import CoreSettings
from invoicekit.domain.stock import StockService, net_deltas

logger = logging.getLogger(__name__)


class InvoiceService:
    """Service for creating, editing and deleting invoices."""

    def __init__(
        self,
        db: Database,
        numbers: Optional[DocumentNumberService] = None,
        stock: Optional[StockService] = None,
        settings: Optional[CoreSettings] = None,
        on_write: Optional[Iterable[WriteHook]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize invoice service.

        Args:
            db: Database instance
            numbers: Number allocator (built from db/settings if omitted)
            stock: Stock service (built from db/settings if omitted)
            settings: Core settings
            on_write: Hooks fired after invoices change
            sleep: Sleep function used between retries
        """
        self.db = db
        self.settings = settings or CoreSettings()
        self.numbers = numbers or DocumentNumberService(db, self.settings)
        self.stock = stock or StockService(db, self.settings)
        self.on_write = tuple(on_write or ())
        self._sleep = sleep

    def save(self, tenant_id: str, invoice: Invoice, capability: Optional[Capability] = None) -> Invoice:
        """Create or update an invoice.

        An invoice without ``id`` is created as Due and receives the next
        invoice number. An invoice with ``id`` replaces the stored version; its
        number, recurring source and status are kept from the stored version.
        The only status a caller can set is Cancelled; Paid is reached through
        payments alone.

        Args:
            tenant_id: Tenant ID
            invoice: Invoice to save (totals are recomputed)
            capability: Optional capability to enforce

        Returns:
            The stored invoice

        Raises:
            ValidationError: If items are invalid
            InsufficientStockError: If stock would go negative
            NotFoundError: If editing an invoice that does not exist
            ConcurrentModificationConflict: If stock, counter or invoice writes kept losing races
        """
        require(capability, INVOICES)
        validate_items(invoice.items)
        subtotal, tax_amount, total = compute_totals(invoice.items, invoice.tax_rate)
        priced = replace(
            invoice,
            items=tuple(invoice.items),
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=total,
        )

        def attempt() -> tuple[Invoice, bool]:
            previous = None
            if priced.id is not None:
                previous = self.require_invoice(tenant_id, priced.id)
            to_save = self._prepare(priced, previous)

            deltas = net_deltas(previous.items if previous is not None else (), to_save.items)
            self.stock.apply_deltas(tenant_id, deltas)

            try:
                if previous is None:
                    to_save = replace(to_save, number=self.numbers.allocate(tenant_id, DocumentType.INVOICE))
                    to_save = replace(to_save, id=self.db.create_invoice(tenant_id, to_save))
                    written = True
                else:
                    written = self.db.update_invoice(tenant_id, to_save)
            except Exception:
                logger.warning("Persisting invoice %s failed for tenant %s; restoring stock", to_save.number, tenant_id)
                self._restore_stock(tenant_id, deltas)
                raise
            if not written:
                self._restore_stock(tenant_id, deltas)
                raise StaleWrite()
            return to_save, previous is None

        to_save, created = retry_on_conflict(
            attempt, what=f"invoice {priced.id}", settings=self.settings, sleep=self._sleep
        )

        notify_write(self.on_write, tenant_id, "invoices")
        logger.info(
            "%s invoice %s for tenant %s (total %s)",
            "Created" if created else "Updated", to_save.number, tenant_id, total,
        )
        return self.db.get_invoice(tenant_id, to_save.id) or to_save

    def delete(self, tenant_id: str, invoice_id: int, capability: Optional[Capability] = None) -> bool:
        """Delete an invoice and return its quantities to stock.

        Raises:
            NotFoundError: If the invoice does not exist
            ConcurrentModificationConflict: If the stock or invoice write kept losing races
        """
        require(capability, INVOICES)

        def attempt() -> Invoice:
            invoice = self.require_invoice(tenant_id, invoice_id)
            deltas = net_deltas(invoice.items, ())
            self.stock.apply_deltas(tenant_id, deltas)

            try:
                deleted = self.db.delete_invoice(tenant_id, invoice_id, expected_version=invoice.version)
            except Exception:
                logger.warning("Deleting invoice %s failed for tenant %s; restoring stock", invoice_id, tenant_id)
                self._restore_stock(tenant_id, deltas)
                raise
            if not deleted:
                # Edited or deleted since it was read; the next attempt sees the current state
                self._restore_stock(tenant_id, deltas)
                raise StaleWrite()
            return invoice

        invoice = retry_on_conflict(attempt, what=f"invoice {invoice_id}", settings=self.settings, sleep=self._sleep)

        notify_write(self.on_write, tenant_id, "invoices")
        logger.info("Deleted invoice %s for tenant %s", invoice.number, tenant_id)
        return True

    def get_invoice(self, tenant_id: str, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID, or None."""
        return self.db.get_invoice(tenant_id, invoice_id)

    def require_invoice(self, tenant_id: str, invoice_id: int) -> Invoice:
        """Get invoice by ID or raise NotFoundError."""
        invoice = self.db.get_invoice(tenant_id, invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def list_invoices(
        self,
        tenant_id: str,
        status: Optional[InvoiceStatus] = None,
        customer_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Invoice]:
        """List invoices with optional filters."""
        return self.db.list_invoices(
            tenant_id, status=status, customer_id=customer_id, start_date=start_date, end_date=end_date
        )

    def _restore_stock(self, tenant_id: str, deltas: Mapping[int, int]) -> None:
        """Undo a stock delta that was already applied."""
        inverse = {product_id: -delta for product_id, delta in deltas.items()}
        if not inverse:
            return
        try:
            self.stock.apply_deltas(tenant_id, inverse, allow_negative=True)
        except DomainError:
            logger.exception("Could not restore stock %s for tenant %s", inverse, tenant_id)

    @staticmethod
    def _prepare(invoice: Invoice, previous: Optional[Invoice]) -> Invoice:
        """Apply the fields a caller cannot choose."""
        cancel = invoice.status == InvoiceStatus.CANCELLED
        if previous is None:
            return replace(invoice, status=InvoiceStatus.CANCELLED if cancel else InvoiceStatus.DUE, version=0)
        return replace(
            invoice,
            number=previous.number,
            source_template_id=previous.source_template_id,
            source_period=previous.source_period,
            status=InvoiceStatus.CANCELLED if cancel else previous.status,
            version=previous.version,
        )

"""Payment recording and invoice settlement."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from invoicekit.database.base import Database
from invoicekit.domain.cache import WriteHook, notify_write
from invoicekit.domain.entities import InvoiceStatus, Payment
from invoicekit.domain.errors import NotFoundError, ValidationError, invoice_not_found
from invoicekit.domain.permissions import PAYMENTS, Capability, require
from invoicekit.domain.pricing import quantize_money

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for recording payments and settling invoices."""

    def __init__(self, db: Database, on_write: Optional[Iterable[WriteHook]] = None):
        """Initialize payment service.

        Args:
            db: Database instance
            on_write: Hooks fired after payments or invoice statuses change
        """
        self.db = db
        self.on_write = tuple(on_write or ())

    def record_payment(
        self, tenant_id: str, payment: Payment, capability: Optional[Capability] = None
    ) -> Payment:
        """Record a payment and settle its invoice if fully paid.

        All payments referencing the invoice are summed, not just this one.
        The invoice flips from Due to Paid once the sum reaches its total.

        Args:
            tenant_id: Tenant ID
            payment: Payment to record (``id`` is ignored)
            capability: Optional capability to enforce

        Returns:
            The stored payment

        Raises:
            ValidationError: If amount is not positive or the invoice is cancelled
            NotFoundError: If the referenced invoice does not exist
        """
        require(capability, PAYMENTS)
        if payment.amount <= 0:
            raise ValidationError("Payment amount must be greater than 0")

        invoice = None
        if payment.invoice_id is not None:
            invoice = self.db.get_invoice(tenant_id, payment.invoice_id)
            if invoice is None:
                raise NotFoundError(invoice_not_found(payment.invoice_id))
            if invoice.status == InvoiceStatus.CANCELLED:
                raise ValidationError(f"Invoice {invoice.number} is cancelled and cannot receive payments")

        to_save = replace(payment, id=None, amount=quantize_money(payment.amount))
        saved = replace(to_save, id=self.db.create_payment(tenant_id, to_save))
        notify_write(self.on_write, tenant_id, "payments")

        if invoice is not None and invoice.status == InvoiceStatus.DUE:
            paid = self.amount_paid(tenant_id, invoice.id)
            if paid >= invoice.total:
                self.db.update_invoice_status(tenant_id, invoice.id, InvoiceStatus.PAID)
                notify_write(self.on_write, tenant_id, "invoices")
                logger.info(
                    "Invoice %s settled for tenant %s (paid %s of %s)",
                    invoice.number, tenant_id, paid, invoice.total,
                )

        return saved

    def amount_paid(self, tenant_id: str, invoice_id: int) -> Decimal:
        """Sum of all payments referencing an invoice."""
        payments = self.db.list_payments(tenant_id, invoice_id=invoice_id)
        return sum((p.amount for p in payments), Decimal("0"))

    def amount_outstanding(self, tenant_id: str, invoice_id: int) -> Decimal:
        """Invoice total minus payments, never below zero.

        Raises:
            NotFoundError: If the invoice does not exist
        """
        invoice = self.db.get_invoice(tenant_id, invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return max(invoice.total - self.amount_paid(tenant_id, invoice_id), Decimal("0"))

    def list_payments(
        self,
        tenant_id: str,
        invoice_id: Optional[int] = None,
        customer_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Payment]:
        """List payments with optional filters."""
        return self.db.list_payments(
            tenant_id, invoice_id=invoice_id, customer_id=customer_id, start_date=start_date, end_date=end_date
        )

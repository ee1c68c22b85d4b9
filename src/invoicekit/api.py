"""Collaborator entry points.

Each function builds the services it needs around the given database and
performs one operation. Callers that issue many operations should construct
the services once instead.
"""

from datetime import date
from typing import Optional

from invoicekit.database.base import Database
from invoicekit.domain.cashflow import CashFlowRuleSet, CashFlowService
from invoicekit.domain.entities import CashFlowReport, DocumentType, Invoice, Payment
from invoicekit.domain.invoice import InvoiceService
from invoicekit.domain.numbering import DocumentNumberService
from invoicekit.domain.payment import PaymentService
from invoicekit.domain.permissions import Capability
from invoicekit.domain.recurring import RecurringService
from invoicekit.domain.settings import CoreSettings


def save_invoice(
    db: Database,
    tenant_id: str,
    invoice: Invoice,
    capability: Optional[Capability] = None,
    settings: Optional[CoreSettings] = None,
) -> Invoice:
    """Create or update an invoice, keeping stock and numbering consistent."""
    return InvoiceService(db, settings=settings).save(tenant_id, invoice, capability=capability)


def delete_invoice(
    db: Database,
    tenant_id: str,
    invoice_id: int,
    capability: Optional[Capability] = None,
    settings: Optional[CoreSettings] = None,
) -> bool:
    """Delete an invoice and return its quantities to stock."""
    return InvoiceService(db, settings=settings).delete(tenant_id, invoice_id, capability=capability)


def record_payment(
    db: Database,
    tenant_id: str,
    payment: Payment,
    capability: Optional[Capability] = None,
) -> Payment:
    """Record a payment and settle its invoice when fully paid."""
    return PaymentService(db).record_payment(tenant_id, payment, capability=capability)


def generate_due_invoices(
    db: Database,
    tenant_id: str,
    as_of: date,
    capability: Optional[Capability] = None,
    settings: Optional[CoreSettings] = None,
) -> list[Invoice]:
    """Generate one invoice per due recurring template and return the new invoices.

    A template that fails is logged and left due, so the next call retries it.
    Callers that need the failures themselves use
    ``RecurringService.generate_due``, which returns them alongside the
    invoices.
    """
    invoices = InvoiceService(db, settings=settings)
    result = RecurringService(db, invoices=invoices).generate_due(tenant_id, as_of, capability=capability)
    return list(result.invoices)


def get_cash_flow_report(
    db: Database,
    tenant_id: str,
    start: date,
    end: date,
    rule_set: Optional[CashFlowRuleSet] = None,
) -> CashFlowReport:
    """Build the cash-flow report for a date range."""
    return CashFlowService(db, rule_set=rule_set).get_report(tenant_id, start, end)


def allocate_document_number(
    db: Database,
    tenant_id: str,
    doc_type: DocumentType,
    capability: Optional[Capability] = None,
    settings: Optional[CoreSettings] = None,
) -> str:
    """Reserve the next invoice or quote number."""
    return DocumentNumberService(db, settings=settings).allocate(tenant_id, doc_type, capability=capability)

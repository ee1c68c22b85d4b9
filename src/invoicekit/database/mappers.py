"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain entities stay stable
when the table layout changes.
"""

from decimal import Decimal
from typing import Iterable, Type

from invoicekit.domain import entities as domain
from invoicekit.database.models import (
    Product as ORMProduct,
    Invoice as ORMInvoice,
    Quote as ORMQuote,
    Payment as ORMPayment,
    RecurringTemplate as ORMRecurringTemplate,
    LedgerEntry as ORMLedgerEntry,
    LedgerLine as ORMLedgerLine,
    LineColumnsMixin,
)


def _decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value or 0))


def product_to_domain(orm_product: ORMProduct) -> domain.Product:
    """Convert SQLAlchemy Product model to domain Product entity."""
    return domain.Product(
        id=orm_product.id,
        name=orm_product.name,
        unit_price=_decimal(orm_product.unit_price),
        stock=orm_product.stock,
        version=orm_product.version,
    )


def line_to_domain(orm_line: LineColumnsMixin) -> domain.InvoiceItem:
    """Convert any SQLAlchemy line model to a domain InvoiceItem."""
    return domain.InvoiceItem(
        product_id=orm_line.product_id,
        product_name=orm_line.product_name,
        quantity=orm_line.quantity,
        unit_price=_decimal(orm_line.unit_price),
    )


def lines_from_domain(items: Iterable[domain.InvoiceItem], line_model: Type[LineColumnsMixin]) -> list:
    """Build ordered SQLAlchemy line rows from domain items."""
    return [
        line_model(
            position=position,
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
        )
        for position, item in enumerate(items)
    ]


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        number=orm_invoice.number,
        customer_id=orm_invoice.customer_id,
        customer_name=orm_invoice.customer_name,
        issue_date=orm_invoice.issue_date,
        due_date=orm_invoice.due_date,
        items=tuple(line_to_domain(line) for line in orm_invoice.items),
        subtotal=_decimal(orm_invoice.subtotal),
        tax_rate=_decimal(orm_invoice.tax_rate),
        tax_amount=_decimal(orm_invoice.tax_amount),
        total=_decimal(orm_invoice.total),
        status=domain.InvoiceStatus(orm_invoice.status),
        source_template_id=orm_invoice.source_template_id,
        source_period=orm_invoice.source_period,
        created_at=orm_invoice.created_at,
        version=orm_invoice.version,
    )


def quote_to_domain(orm_quote: ORMQuote) -> domain.Quote:
    """Convert SQLAlchemy Quote model to domain Quote entity."""
    return domain.Quote(
        id=orm_quote.id,
        number=orm_quote.number,
        customer_id=orm_quote.customer_id,
        customer_name=orm_quote.customer_name,
        issue_date=orm_quote.issue_date,
        expiry_date=orm_quote.expiry_date,
        items=tuple(line_to_domain(line) for line in orm_quote.items),
        subtotal=_decimal(orm_quote.subtotal),
        tax_rate=_decimal(orm_quote.tax_rate),
        tax_amount=_decimal(orm_quote.tax_amount),
        total=_decimal(orm_quote.total),
        status=domain.QuoteStatus(orm_quote.status),
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        customer_id=orm_payment.customer_id,
        invoice_id=orm_payment.invoice_id,
        amount=_decimal(orm_payment.amount),
        date=orm_payment.date,
    )


def template_to_domain(orm_template: ORMRecurringTemplate) -> domain.RecurringTemplate:
    """Convert SQLAlchemy RecurringTemplate model to domain entity."""
    return domain.RecurringTemplate(
        id=orm_template.id,
        customer_id=orm_template.customer_id,
        customer_name=orm_template.customer_name,
        items=tuple(line_to_domain(line) for line in orm_template.items),
        frequency=domain.Frequency(orm_template.frequency),
        start_date=orm_template.start_date,
        next_due_date=orm_template.next_due_date,
        end_date=orm_template.end_date,
        tax_rate=_decimal(orm_template.tax_rate),
    )


def ledger_entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain LedgerEntry entity."""
    return domain.LedgerEntry(
        id=orm_entry.id,
        date=orm_entry.date,
        reference_type=orm_entry.reference_type,
        reference_id=orm_entry.reference_id,
        description=orm_entry.description,
        lines=tuple(ledger_line_to_domain(line) for line in orm_entry.lines),
    )


def ledger_line_to_domain(orm_line: ORMLedgerLine) -> domain.LedgerLine:
    """Convert SQLAlchemy LedgerLine model to domain LedgerLine entity."""
    return domain.LedgerLine(
        account_id=orm_line.account_id,
        debit=_decimal(orm_line.debit),
        credit=_decimal(orm_line.credit),
    )

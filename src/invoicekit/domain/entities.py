"""Domain model entities for invoicekit.

These are pure data classes representing business concepts, independent of
the storage schema. Storage implementations convert their own records to and
from these types (see invoicekit.database.mappers).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class InvoiceStatus(str, Enum):
    """Settlement status of an invoice."""

    DUE = "Due"
    PAID = "Paid"
    CANCELLED = "Cancelled"


class QuoteStatus(str, Enum):
    """Lifecycle status of a quote."""

    DRAFT = "Draft"
    SENT = "Sent"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"


class Frequency(str, Enum):
    """Billing frequency of a recurring template."""

    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class DocumentType(str, Enum):
    """Kinds of documents that receive a sequential number."""

    INVOICE = "invoice"
    QUOTE = "quote"


class StockDirection(str, Enum):
    """Direction of a stock adjustment."""

    INCREASE = "increase"
    DECREASE = "decrease"


class CashFlowBucket(str, Enum):
    """Cash-flow statement categories."""

    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


@dataclass(frozen=True)
class Product:
    """Catalog product with its current stock level."""

    id: int
    name: str
    unit_price: Decimal
    stock: int
    version: int = 0


@dataclass(frozen=True)
class InvoiceItem:
    """A single invoice (or quote/template) line."""

    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Invoice:
    """Invoice domain entity.

    ``id`` and ``number`` are None for an invoice that has not been saved yet.
    ``source_template_id``/``source_period`` identify the recurring template
    period that produced the invoice, if any. ``version`` is bumped by every
    stored change and guards updates and deletes.
    """

    customer_id: str
    issue_date: date
    due_date: date
    items: tuple[InvoiceItem, ...]
    id: Optional[int] = None
    number: Optional[str] = None
    customer_name: Optional[str] = None
    subtotal: Decimal = Decimal("0.00")
    tax_rate: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    status: InvoiceStatus = InvoiceStatus.DUE
    source_template_id: Optional[int] = None
    source_period: Optional[date] = None
    created_at: Optional[datetime] = None
    version: int = 0


@dataclass(frozen=True)
class Quote:
    """Quote domain entity. Quotes never touch stock."""

    customer_id: str
    issue_date: date
    expiry_date: date
    items: tuple[InvoiceItem, ...]
    id: Optional[int] = None
    number: Optional[str] = None
    customer_name: Optional[str] = None
    subtotal: Decimal = Decimal("0.00")
    tax_rate: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    status: QuoteStatus = QuoteStatus.DRAFT


@dataclass(frozen=True)
class Payment:
    """Payment received from a customer, optionally against an invoice."""

    customer_id: str
    amount: Decimal
    date: date
    invoice_id: Optional[int] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class RecurringTemplate:
    """Recurring invoice blueprint with its schedule."""

    customer_id: str
    items: tuple[InvoiceItem, ...]
    frequency: Frequency
    start_date: date
    next_due_date: Optional[date] = None
    end_date: Optional[date] = None
    tax_rate: Decimal = Decimal("0")
    customer_name: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class DocumentCounter:
    """Per-tenant running numbers for invoices and quotes."""

    tenant_id: str
    last_invoice_number: int = 0
    last_quote_number: int = 0

    def last_for(self, doc_type: DocumentType) -> int:
        if doc_type == DocumentType.INVOICE:
            return self.last_invoice_number
        return self.last_quote_number


@dataclass(frozen=True)
class LedgerLine:
    """One account line of a ledger entry."""

    account_id: str
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")


@dataclass(frozen=True)
class LedgerEntry:
    """Balanced bookkeeping record produced outside the core."""

    date: date
    lines: tuple[LedgerLine, ...]
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    description: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class StockChange:
    """Versioned stock write for a single product."""

    product_id: int
    expected_version: int
    new_stock: int


@dataclass(frozen=True)
class CashFlowReport:
    """Cash-flow statement for a date range (derived, never persisted)."""

    start_date: date
    end_date: date
    opening_cash: Decimal
    operating_in: Decimal
    operating_out: Decimal
    investing_in: Decimal
    investing_out: Decimal
    financing_in: Decimal
    financing_out: Decimal
    net_cash_flow: Decimal
    closing_cash: Decimal
    unclassified_count: int
    fallback_payment_count: int = 0


@dataclass(frozen=True)
class RecurringFailure:
    """A template that could not be processed during a generation run."""

    template_id: int
    error: str


@dataclass(frozen=True)
class RecurringRunResult:
    """Outcome of one recurring generation run."""

    invoices: tuple[Invoice, ...] = ()
    failures: tuple[RecurringFailure, ...] = ()
    advanced_template_ids: tuple[int, ...] = field(default_factory=tuple)

"""SQLAlchemy models for invoicekit database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class LineColumnsMixin:
    """Columns shared by every document line table."""

    position = Column(Integer, nullable=False, default=0)
    product_id = Column(Integer, nullable=True)
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)


class Product(Base):
    """Product catalog model."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    # Bumped on every stock write; used for optimistic concurrency
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class DocumentCounter(Base):
    """Per-tenant running document numbers."""

    __tablename__ = "document_counters"

    tenant_id = Column(String, primary_key=True)
    last_invoice_number = Column(Integer, nullable=False, default=0)
    last_quote_number = Column(Integer, nullable=False, default=0)


class Invoice(Base):
    """Invoice model."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    number = Column(String, nullable=False)
    customer_id = Column(String, nullable=False)
    customer_name = Column(String, nullable=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(7, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False)
    source_template_id = Column(Integer, nullable=True)
    source_period = Column(Date, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_invoice_number"),
        # One invoice per recurring template period
        UniqueConstraint("tenant_id", "source_template_id", "source_period", name="uq_invoice_source"),
    )

    # Relationships
    items = relationship(
        "InvoiceLine", order_by="InvoiceLine.position", cascade="all, delete-orphan", back_populates="invoice"
    )


class InvoiceLine(LineColumnsMixin, Base):
    """Invoice line model."""

    __tablename__ = "invoice_lines"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)

    invoice = relationship("Invoice", back_populates="items")


class Quote(Base):
    """Quote model."""

    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    number = Column(String, nullable=False)
    customer_id = Column(String, nullable=False)
    customer_name = Column(String, nullable=True)
    issue_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(7, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("tenant_id", "number", name="uq_quote_number"),)

    items = relationship(
        "QuoteLine", order_by="QuoteLine.position", cascade="all, delete-orphan", back_populates="quote"
    )


class QuoteLine(LineColumnsMixin, Base):
    """Quote line model."""

    __tablename__ = "quote_lines"

    id = Column(Integer, primary_key=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False)

    quote = relationship("Quote", back_populates="items")


class Payment(Base):
    """Payment model."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    customer_id = Column(String, nullable=False)
    # Plain reference: payments outlive deleted invoices
    invoice_id = Column(Integer, nullable=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)


class RecurringTemplate(Base):
    """Recurring invoice template model."""

    __tablename__ = "recurring_templates"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    customer_id = Column(String, nullable=False)
    customer_name = Column(String, nullable=True)
    frequency = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    next_due_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    tax_rate = Column(Numeric(7, 4), nullable=False, default=0)

    items = relationship(
        "TemplateLine", order_by="TemplateLine.position", cascade="all, delete-orphan", back_populates="template"
    )


class TemplateLine(LineColumnsMixin, Base):
    """Recurring template line model."""

    __tablename__ = "template_lines"

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey("recurring_templates.id"), nullable=False)

    template = relationship("RecurringTemplate", back_populates="items")


class LedgerEntry(Base):
    """Ledger entry model (written by the bookkeeping subsystem)."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    reference_type = Column(String, nullable=True)
    reference_id = Column(String, nullable=True)
    description = Column(String, nullable=True)

    lines = relationship(
        "LedgerLine", order_by="LedgerLine.position", cascade="all, delete-orphan", back_populates="entry"
    )


class LedgerLine(Base):
    """Ledger line model."""

    __tablename__ = "ledger_lines"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("ledger_entries.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    account_id = Column(String, nullable=False)
    debit = Column(Numeric(14, 2), nullable=False, default=0)
    credit = Column(Numeric(14, 2), nullable=False, default=0)

    entry = relationship("LedgerEntry", back_populates="lines")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)

"""Shared pytest fixtures for invoicekit tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from invoicekit.database.factories import create_sqlite_database
from invoicekit.domain.cashflow import CashFlowService
from invoicekit.domain.entities import InvoiceItem
from invoicekit.domain.invoice import InvoiceService
from invoicekit.domain.numbering import DocumentNumberService
from invoicekit.domain.payment import PaymentService
from invoicekit.domain.product import ProductService
from invoicekit.domain.quote import QuoteService
from invoicekit.domain.recurring import RecurringService
from invoicekit.domain.settings import CoreSettings
from invoicekit.domain.stock import StockService

TENANT = "acme"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def tenant():
    return TENANT


@pytest.fixture
def settings():
    """Settings with no backoff delay so retry tests run instantly."""
    return CoreSettings(max_conflict_retries=3, retry_backoff_seconds=0)


@pytest.fixture
def product_service(temp_db):
    return ProductService(temp_db)


@pytest.fixture
def number_service(temp_db, settings):
    return DocumentNumberService(temp_db, settings)


@pytest.fixture
def stock_service(temp_db, settings):
    return StockService(temp_db, settings)


@pytest.fixture
def invoice_service(temp_db, settings, number_service, stock_service):
    return InvoiceService(temp_db, numbers=number_service, stock=stock_service, settings=settings)


@pytest.fixture
def payment_service(temp_db):
    return PaymentService(temp_db)


@pytest.fixture
def recurring_service(temp_db, invoice_service):
    return RecurringService(temp_db, invoices=invoice_service)


@pytest.fixture
def quote_service(temp_db, invoice_service):
    return QuoteService(temp_db, invoices=invoice_service)


@pytest.fixture
def cashflow_service(temp_db):
    return CashFlowService(temp_db)


@pytest.fixture
def widget(product_service, tenant):
    """Product "Widget" priced 10.00 with 10 in stock."""
    product_id = product_service.create_product(tenant, "Widget", Decimal("10.00"), stock=10)
    return product_service.get_product(tenant, product_id)


@pytest.fixture
def gadget(product_service, tenant):
    """Product "Gadget" priced 25.00 with 5 in stock."""
    product_id = product_service.create_product(tenant, "Gadget", Decimal("25.00"), stock=5)
    return product_service.get_product(tenant, product_id)


def item_for(product, quantity, unit_price=None):
    """Build an invoice line for a catalog product."""
    return InvoiceItem(
        product_id=product.id,
        product_name=product.name,
        quantity=quantity,
        unit_price=product.unit_price if unit_price is None else unit_price,
    )


@pytest.fixture
def make_item():
    return item_for


@pytest.fixture
def issue_date():
    return date(2024, 1, 15)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

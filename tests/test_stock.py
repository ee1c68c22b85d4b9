"""Tests for stock adjustment."""

from decimal import Decimal

import pytest

from invoicekit.domain.entities import InvoiceItem, StockChange, StockDirection
from invoicekit.domain.errors import ConcurrentModificationConflict, InsufficientStockError
from invoicekit.domain.settings import CoreSettings
from invoicekit.domain.stock import StockService, net_deltas, quantities_by_product


class CompetingStockDatabase:
    """Database wrapper where another writer sells one unit of a product before each of our writes."""

    def __init__(self, inner, tenant_id, product_id, races):
        self._inner = inner
        self.tenant_id = tenant_id
        self.product_id = product_id
        self.races = races

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def apply_stock_changes(self, tenant_id, changes):
        if self.races > 0:
            self.races -= 1
            product = self._inner.get_product(self.tenant_id, self.product_id)
            assert self._inner.apply_stock_changes(
                self.tenant_id,
                [StockChange(product_id=product.id, expected_version=product.version, new_stock=product.stock - 1)],
            )
        return self._inner.apply_stock_changes(tenant_id, changes)


def test_quantities_by_product_sums_and_skips_free_lines(widget):
    """Test that lines are summed per product and free-text lines are ignored."""
    items = [
        InvoiceItem(product_id=widget.id, product_name="Widget", quantity=2, unit_price=Decimal("10")),
        InvoiceItem(product_id=None, product_name="Delivery", quantity=1, unit_price=Decimal("5")),
        InvoiceItem(product_id=widget.id, product_name="Widget", quantity=3, unit_price=Decimal("9")),
    ]
    assert quantities_by_product(items) == {widget.id: 5}


def test_net_deltas_drops_unchanged_products(make_item, widget, gadget):
    """Test the combined return-then-take delta."""
    old = [make_item(widget, 3), make_item(gadget, 1)]
    new = [make_item(widget, 5), make_item(gadget, 1)]
    assert net_deltas(old, new) == {widget.id: -2}


def test_adjust_decrease_and_increase(stock_service, product_service, tenant, widget, make_item):
    """Test decreasing then increasing stock."""
    assert stock_service.adjust(tenant, [make_item(widget, 4)], StockDirection.DECREASE) == {widget.id: 6}
    assert product_service.get_product(tenant, widget.id).stock == 6

    stock_service.adjust(tenant, [make_item(widget, 4)], StockDirection.INCREASE)
    assert product_service.get_product(tenant, widget.id).stock == 10


def test_adjust_bumps_version(stock_service, product_service, tenant, widget, make_item):
    """Test that each stock write bumps the product version."""
    stock_service.adjust(tenant, [make_item(widget, 1)], StockDirection.DECREASE)
    assert product_service.get_product(tenant, widget.id).version == widget.version + 1


def test_adjust_skips_missing_product(stock_service, product_service, tenant, widget, make_item):
    """Test that a line for a deleted product is skipped, not fatal."""
    items = [
        make_item(widget, 2),
        InvoiceItem(product_id=9999, product_name="Gone", quantity=1, unit_price=Decimal("1")),
    ]
    assert stock_service.adjust(tenant, items, StockDirection.DECREASE) == {widget.id: 8}
    assert product_service.get_product(tenant, widget.id).stock == 8


def test_negative_stock_rejected_by_default(stock_service, product_service, tenant, widget, gadget, make_item):
    """Test that going below zero fails and leaves every product untouched."""
    items = [make_item(widget, 2), make_item(gadget, 6)]
    with pytest.raises(InsufficientStockError, match="Insufficient stock"):
        stock_service.adjust(tenant, items, StockDirection.DECREASE)

    assert product_service.get_product(tenant, widget.id).stock == 10
    assert product_service.get_product(tenant, gadget.id).stock == 5


def test_negative_stock_allowed_by_setting(temp_db, product_service, tenant, gadget, make_item):
    """Test that allow_negative_stock lets stock go below zero."""
    service = StockService(temp_db, CoreSettings(allow_negative_stock=True))
    service.adjust(tenant, [make_item(gadget, 7)], StockDirection.DECREASE)
    assert product_service.get_product(tenant, gadget.id).stock == -2


def test_conflicting_writer_is_retried(temp_db, product_service, tenant, widget, gadget, make_item):
    """Test that a version mismatch re-reads and applies on fresh stock."""
    racing = CompetingStockDatabase(temp_db, tenant, widget.id, races=1)
    service = StockService(racing, CoreSettings(retry_backoff_seconds=0), sleep=lambda s: None)

    service.adjust(tenant, [make_item(widget, 2), make_item(gadget, 1)], StockDirection.DECREASE)

    # Competitor sold 1 widget, we took 2 more
    assert product_service.get_product(tenant, widget.id).stock == 7
    assert product_service.get_product(tenant, gadget.id).stock == 4


def test_write_is_all_or_nothing_when_retries_run_out(temp_db, product_service, tenant, widget, gadget, make_item):
    """Test that no product of the set is written when every attempt conflicts."""
    racing = CompetingStockDatabase(temp_db, tenant, widget.id, races=10)
    service = StockService(
        racing, CoreSettings(max_conflict_retries=3, retry_backoff_seconds=0), sleep=lambda s: None
    )

    with pytest.raises(ConcurrentModificationConflict):
        service.adjust(tenant, [make_item(widget, 2), make_item(gadget, 1)], StockDirection.DECREASE)

    # Only the competitor's three sales landed; gadget was never written
    assert product_service.get_product(tenant, widget.id).stock == 7
    assert product_service.get_product(tenant, gadget.id).stock == 5


def test_apply_deltas_ignores_zero(stock_service, tenant, widget):
    """Test that an all-zero delta is a no-op."""
    assert stock_service.apply_deltas(tenant, {widget.id: 0}) == {}

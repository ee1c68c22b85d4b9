"""Stock adjustment service."""

import logging
import time
from collections import defaultdict
from typing import Callable, Iterable, Mapping, Optional

from invoicekit.database.base import Database
from invoicekit.domain.cache import WriteHook, notify_write
from invoicekit.domain.entities import InvoiceItem, StockChange, StockDirection
from invoicekit.domain.errors import InsufficientStockError, insufficient_stock
from invoicekit.domain.permissions import INVOICES, Capability, require
from invoicekit.domain.retry import StaleWrite, retry_on_conflict
from invoicekit.domain.settings import CoreSettings

logger = logging.getLogger(__name__)


def quantities_by_product(items: Iterable[InvoiceItem]) -> dict[int, int]:
    """Sum item quantities per product, ignoring lines without a product."""
    totals: dict[int, int] = defaultdict(int)
    for item in items:
        if item.product_id is None:
            continue
        totals[item.product_id] += abs(item.quantity)
    return dict(totals)


def net_deltas(
    returned: Iterable[InvoiceItem], taken: Iterable[InvoiceItem]
) -> dict[int, int]:
    """Per-product stock delta of giving back ``returned`` and taking ``taken``."""
    deltas: dict[int, int] = defaultdict(int)
    for product_id, quantity in quantities_by_product(returned).items():
        deltas[product_id] += quantity
    for product_id, quantity in quantities_by_product(taken).items():
        deltas[product_id] -= quantity
    return {product_id: delta for product_id, delta in deltas.items() if delta != 0}


class StockService:
    """Applies signed stock deltas to the product catalog.

    A call touches every affected product in a single all-or-nothing write,
    guarded by each product's version. Losing a race re-reads the products
    and retries with backoff.
    """

    def __init__(
        self,
        db: Database,
        settings: Optional[CoreSettings] = None,
        on_write: Optional[Iterable[WriteHook]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize stock service.

        Args:
            db: Database instance
            settings: Retry and negative-stock settings
            on_write: Hooks fired after stock changes
            sleep: Sleep function used between retries
        """
        self.db = db
        self.settings = settings or CoreSettings()
        self.on_write = tuple(on_write or ())
        self._sleep = sleep

    def adjust(
        self,
        tenant_id: str,
        items: Iterable[InvoiceItem],
        direction: StockDirection,
        capability: Optional[Capability] = None,
    ) -> dict[int, int]:
        """Increase or decrease stock by the quantities of ``items``.

        Args:
            tenant_id: Tenant ID
            items: Lines whose quantities are applied
            direction: INCREASE returns stock, DECREASE takes it
            capability: Optional capability to enforce

        Returns:
            New stock level per product that was written

        Raises:
            InsufficientStockError: If stock would go negative and that is not allowed
            ConcurrentModificationConflict: If every attempt lost its race
        """
        sign = -1 if direction == StockDirection.DECREASE else 1
        deltas = {product_id: sign * qty for product_id, qty in quantities_by_product(items).items()}
        return self.apply_deltas(tenant_id, deltas, capability=capability)

    def apply_deltas(
        self,
        tenant_id: str,
        deltas: Mapping[int, int],
        capability: Optional[Capability] = None,
        allow_negative: Optional[bool] = None,
    ) -> dict[int, int]:
        """Apply signed per-product deltas atomically.

        Products that no longer exist are skipped. ``allow_negative`` overrides
        the configured negative-stock policy (used when undoing a change).

        Returns:
            New stock level per product that was written
        """
        require(capability, INVOICES)
        pending = {product_id: delta for product_id, delta in deltas.items() if delta != 0}
        if not pending:
            return {}
        if allow_negative is None:
            allow_negative = self.settings.allow_negative_stock

        def attempt() -> dict[int, int]:
            products = self.db.get_products(tenant_id, pending.keys())
            changes = []
            new_levels = {}
            for product_id in sorted(pending):
                delta = pending[product_id]
                product = products.get(product_id)
                if product is None:
                    logger.warning(
                        "Skipping stock change of %+d for missing product %s (tenant %s)",
                        delta, product_id, tenant_id,
                    )
                    continue
                new_stock = product.stock + delta
                if delta < 0 and new_stock < 0:
                    if not allow_negative:
                        raise InsufficientStockError(insufficient_stock(product_id, product.stock, delta))
                    logger.warning(
                        "Stock of product %s (tenant %s) goes negative: %d -> %d",
                        product_id, tenant_id, product.stock, new_stock,
                    )
                changes.append(
                    StockChange(product_id=product_id, expected_version=product.version, new_stock=new_stock)
                )
                new_levels[product_id] = new_stock

            if changes and not self.db.apply_stock_changes(tenant_id, changes):
                raise StaleWrite()
            return new_levels

        new_levels = retry_on_conflict(
            attempt,
            what=f"stock of products {sorted(pending)}",
            settings=self.settings,
            sleep=self._sleep,
        )
        if new_levels:
            notify_write(self.on_write, tenant_id, "products")
        return new_levels

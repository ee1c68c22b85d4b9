"""Product catalog service."""

from decimal import Decimal
from typing import Iterable, Optional

from invoicekit.database.base import Database
from invoicekit.domain.cache import WriteHook, notify_write
from invoicekit.domain.entities import Product as ProductEntity
from invoicekit.domain.errors import NotFoundError, ValidationError, product_not_found
from invoicekit.domain.permissions import PRODUCTS, Capability, require


class ProductService:
    """Service for managing catalog products.

    Stock levels are only changed by StockService; this service creates
    products with their initial stock and reads them back.
    """

    def __init__(self, db: Database, on_write: Optional[Iterable[WriteHook]] = None):
        """Initialize product service.

        Args:
            db: Database instance
            on_write: Hooks fired after products change
        """
        self.db = db
        self.on_write = tuple(on_write or ())

    def create_product(
        self,
        tenant_id: str,
        name: str,
        unit_price: Decimal,
        stock: int = 0,
        capability: Optional[Capability] = None,
    ) -> int:
        """Create a product.

        Returns:
            Product ID

        Raises:
            ValidationError: If name is empty or price/stock are negative
        """
        require(capability, PRODUCTS)
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if unit_price < 0:
            raise ValidationError("Unit price cannot be negative")
        if stock < 0:
            raise ValidationError("Initial stock cannot be negative")

        product_id = self.db.create_product(tenant_id, name=name.strip(), unit_price=unit_price, stock=stock)
        notify_write(self.on_write, tenant_id, "products")
        return product_id

    def get_product(self, tenant_id: str, product_id: int) -> Optional[ProductEntity]:
        return self.db.get_product(tenant_id, product_id)

    def require_product(self, tenant_id: str, product_id: int) -> ProductEntity:
        """Get a product or raise NotFoundError."""
        product = self.db.get_product(tenant_id, product_id)
        if product is None:
            raise NotFoundError(product_not_found(product_id))
        return product

    def list_products(self, tenant_id: str) -> list[ProductEntity]:
        return self.db.list_products(tenant_id)

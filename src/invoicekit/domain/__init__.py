"""Domain layer for invoicekit.

Services are resolved lazily because they import ``invoicekit.database.base``,
which in turn imports the entities defined in this package.
"""

_SERVICES = {
    "DocumentNumberService": "invoicekit.domain.numbering",
    "StockService": "invoicekit.domain.stock",
    "ProductService": "invoicekit.domain.product",
    "InvoiceService": "invoicekit.domain.invoice",
    "PaymentService": "invoicekit.domain.payment",
    "RecurringService": "invoicekit.domain.recurring",
    "QuoteService": "invoicekit.domain.quote",
    "CashFlowService": "invoicekit.domain.cashflow",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module
        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

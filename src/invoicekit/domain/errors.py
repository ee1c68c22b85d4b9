"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for callers that handle ValueError.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InsufficientStockError(ValidationError):
    """A stock adjustment would drive a product below zero."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ConcurrentModificationConflict(ConflictError):
    """An optimistic version check failed after all retry attempts."""


class PermissionDenied(DomainError):
    """The supplied capability does not allow the requested write."""


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def product_not_found(product_id: int) -> str:
    """Return message for missing product."""
    return f"Product {product_id} not found"


def quote_not_found(quote_id: int) -> str:
    """Return message for missing quote."""
    return f"Quote {quote_id} not found"


def template_not_found(template_id: int) -> str:
    """Return message for missing recurring template."""
    return f"Recurring template {template_id} not found"


def insufficient_stock(product_id: int, current: int, delta: int) -> str:
    """Return message when a stock change would go negative."""
    return (
        f"Insufficient stock for product {product_id}. "
        f"Current: {current}, required change: {delta}"
    )


def retries_exhausted(what: str, attempts: int) -> str:
    """Return message when an optimistic write keeps losing races."""
    return f"Concurrent modification of {what}; gave up after {attempts} attempt{'s' if attempts != 1 else ''}"

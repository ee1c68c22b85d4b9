"""Tests for the caller-owned read cache."""

from datetime import date
from decimal import Decimal

from invoicekit.domain.cache import ReadCache, notify_write
from invoicekit.domain.entities import Payment
from invoicekit.domain.payment import PaymentService


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_get_or_load_caches_until_ttl():
    clock = FakeClock()
    cache = ReadCache(ttl_seconds=300, clock=clock)
    calls = []

    def load():
        calls.append(1)
        return len(calls)

    assert cache.get_or_load("t", "invoices", "all", load) == 1
    clock.now = 299
    assert cache.get_or_load("t", "invoices", "all", load) == 1
    clock.now = 301
    assert cache.get_or_load("t", "invoices", "all", load) == 2


def test_invalidate_is_scoped_to_tenant_and_collection():
    cache = ReadCache()
    cache.set("t1", "invoices", "all", "a")
    cache.set("t1", "payments", "all", "b")
    cache.set("t2", "invoices", "all", "c")

    cache.invalidate("t1", "invoices")

    assert cache.get("t1", "invoices", "all") is None
    assert cache.get("t1", "payments", "all") == "b"
    assert cache.get("t2", "invoices", "all") == "c"
    assert len(cache) == 2


def test_notify_write_calls_every_hook():
    seen = []
    notify_write([lambda t, c: seen.append((t, c)), lambda t, c: seen.append(c)], "t", "products")
    notify_write(None, "t", "products")
    assert seen == [("t", "products"), "products"]


def test_service_writes_invalidate_cached_reads(temp_db, tenant):
    """Test that a cached payment list is dropped when a payment is recorded."""
    cache = ReadCache()
    service = PaymentService(temp_db, on_write=[cache.invalidate])

    def cached_payments():
        return cache.get_or_load(tenant, "payments", "all", lambda: service.list_payments(tenant))

    assert cached_payments() == []
    service.record_payment(tenant, Payment(customer_id="C1", amount=Decimal("5"), date=date(2024, 1, 1)))
    assert len(cached_payments()) == 1

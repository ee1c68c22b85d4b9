"""Tests for the cash-flow report."""

from datetime import date
from decimal import Decimal

import pytest

from invoicekit.domain.cashflow import (
    CashFlowRuleSet,
    CashFlowService,
    ClassificationRule,
)
from invoicekit.domain.entities import CashFlowBucket, LedgerEntry, LedgerLine, Payment
from invoicekit.domain.errors import ValidationError

JAN_1 = date(2024, 1, 1)
JAN_31 = date(2024, 1, 31)


def entry(on, cash_account, amount, other_account, reference_type=None, reference_id=None, description=None):
    """Two-line entry: positive ``amount`` credits the cash line, negative debits it."""
    amount = Decimal(amount)
    if amount >= 0:
        cash = LedgerLine(account_id=cash_account, credit=amount)
        other = LedgerLine(account_id=other_account, debit=amount)
    else:
        cash = LedgerLine(account_id=cash_account, debit=-amount)
        other = LedgerLine(account_id=other_account, credit=-amount)
    return LedgerEntry(
        date=on,
        lines=(cash, other),
        reference_type=reference_type,
        reference_id=reference_id,
        description=description,
    )


@pytest.fixture
def add_entry(temp_db, tenant):
    def add(*args, **kwargs):
        return temp_db.create_ledger_entry(tenant, entry(*args, **kwargs))

    return add


def test_sales_receipt_is_operating_in(cashflow_service, add_entry, tenant):
    """Scenario: a 500 cash credit against a sales account is operating inflow."""
    add_entry(date(2024, 1, 10), "Cash", "500", "Sales Revenue")

    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)

    assert report.operating_in == Decimal("500.00")
    assert report.operating_out == Decimal("0.00")
    assert report.net_cash_flow == Decimal("500.00")
    assert report.unclassified_count == 0


def test_opening_cash_uses_entries_strictly_before_start(cashflow_service, add_entry, tenant):
    """Scenario: opening cash sums prior movements and the range start day is not opening."""
    add_entry(date(2023, 12, 5), "Bank", "1000", "Owner Capital")
    add_entry(date(2023, 12, 20), "Bank", "-200", "Supplier Payable")
    add_entry(JAN_1, "Bank", "300", "Customer Receivable")

    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)

    assert report.opening_cash == Decimal("800.00")
    assert report.operating_in == Decimal("300.00")
    assert report.closing_cash == Decimal("1100.00")
    assert cashflow_service.opening_cash(tenant, JAN_1) == Decimal("800")


def test_buckets(cashflow_service, add_entry, tenant):
    """Test operating, investing and financing classification and flow direction."""
    add_entry(date(2024, 1, 2), "Cash", "1000", "Customer Receivable")
    add_entry(date(2024, 1, 3), "Cash", "-400", "Supplier Payable")
    add_entry(date(2024, 1, 4), "Bank", "-2500", "Equipment")
    add_entry(date(2024, 1, 5), "Bank", "5000", "Bank Loan Liability")
    add_entry(date(2024, 1, 6), "Wallet", "-300", "Owner Drawings", reference_type="Owner")
    add_entry(date(2024, 1, 7), "Bank", "750", "Misc", description="Sale of fixed asset")

    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)

    assert report.operating_in == Decimal("1000.00")
    assert report.operating_out == Decimal("400.00")
    assert report.investing_in == Decimal("750.00")
    assert report.investing_out == Decimal("2500.00")
    assert report.financing_in == Decimal("5000.00")
    assert report.financing_out == Decimal("300.00")
    assert report.net_cash_flow == Decimal("3550.00")
    assert report.closing_cash == Decimal("3550.00")


def test_reference_type_classifies(cashflow_service, add_entry, tenant):
    add_entry(date(2024, 1, 2), "Cash", "120", "Suspense", reference_type="Invoice", reference_id="7")
    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)
    assert report.operating_in == Decimal("120.00")


def test_unclassified_entries_are_counted_not_bucketed(cashflow_service, add_entry, tenant):
    add_entry(date(2024, 1, 2), "Cash", "99", "Suspense")
    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)

    assert report.unclassified_count == 1
    assert report.operating_in == Decimal("0.00")
    assert report.net_cash_flow == Decimal("0.00")


def test_entries_without_cash_line_are_ignored(cashflow_service, add_entry, tenant):
    add_entry(date(2024, 1, 2), "Inventory", "50", "Supplier Payable")
    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)
    assert report.unclassified_count == 0
    assert report.net_cash_flow == Decimal("0.00")


def test_only_first_cash_line_counts(cashflow_service, temp_db, tenant):
    """Test that a transfer between two cash accounts uses the first cash line only."""
    temp_db.create_ledger_entry(
        tenant,
        LedgerEntry(
            date=date(2024, 1, 2),
            lines=(
                LedgerLine(account_id="Bank", credit=Decimal("200")),
                LedgerLine(account_id="Petty Cash", debit=Decimal("200")),
                LedgerLine(account_id="Capital", debit=Decimal("0")),
            ),
        ),
    )
    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)
    assert report.financing_in == Decimal("200.00")


def test_arabic_cash_keyword(cashflow_service, add_entry, tenant):
    add_entry(date(2024, 1, 2), "كاش", "10", "Sales")
    assert cashflow_service.get_report(tenant, JAN_1, JAN_31).operating_in == Decimal("10.00")


def test_unjournaled_payments_fall_back_to_operating(cashflow_service, temp_db, tenant):
    temp_db.create_payment(tenant, Payment(customer_id="C1", amount=Decimal("80"), date=date(2024, 1, 9)))
    temp_db.create_payment(tenant, Payment(customer_id="C1", amount=Decimal("20"), date=date(2024, 2, 9)))

    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)

    assert report.operating_in == Decimal("80.00")
    assert report.fallback_payment_count == 1


def test_journaled_payment_is_not_counted_twice(cashflow_service, temp_db, add_entry, tenant):
    """Test that a payment with its own ledger entry only counts once."""
    payment_id = temp_db.create_payment(
        tenant, Payment(customer_id="C1", amount=Decimal("80"), date=date(2024, 1, 9))
    )
    add_entry(date(2024, 1, 9), "Bank", "80", "Accounts Receivable", reference_type="payment", reference_id=str(payment_id))

    report = cashflow_service.get_report(tenant, JAN_1, JAN_31)

    assert report.operating_in == Decimal("80.00")
    assert report.fallback_payment_count == 0


def test_payment_journaled_after_the_range_is_not_a_fallback(cashflow_service, temp_db, add_entry, tenant):
    """Test that a payment booked to the ledger after the range end is left to that later period."""
    payment_id = temp_db.create_payment(
        tenant, Payment(customer_id="C1", amount=Decimal("80"), date=date(2024, 1, 30))
    )
    add_entry(date(2024, 2, 2), "Bank", "80", "Accounts Receivable", reference_type="payment", reference_id=str(payment_id))

    january = cashflow_service.get_report(tenant, JAN_1, JAN_31)
    february = cashflow_service.get_report(tenant, date(2024, 2, 1), date(2024, 2, 29))

    assert january.operating_in == Decimal("0.00")
    assert january.fallback_payment_count == 0
    assert february.operating_in == Decimal("80.00")


def test_custom_rule_set(temp_db, add_entry, tenant):
    """Test swapping in a different rule table and cash keywords."""
    rules = CashFlowRuleSet(
        rules=(ClassificationRule(CashFlowBucket.INVESTING, account_pattern=r"crypto"),),
        cash_keywords=("till",),
    )
    add_entry(date(2024, 1, 2), "Till", "-60", "Crypto Holdings")
    add_entry(date(2024, 1, 3), "Cash", "500", "Sales")

    report = CashFlowService(temp_db, rule_set=rules).get_report(tenant, JAN_1, JAN_31)

    assert report.investing_out == Decimal("60.00")
    # "Cash" is not a cash account under this rule set
    assert report.operating_in == Decimal("0.00")


def test_tenant_rule_set_override(temp_db, add_entry, tenant):
    override = CashFlowRuleSet(rules=(ClassificationRule(CashFlowBucket.FINANCING, account_pattern=r"sales"),))
    add_entry(date(2024, 1, 3), "Cash", "500", "Sales")

    service = CashFlowService(temp_db, tenant_rule_sets={tenant: override})

    assert service.get_report(tenant, JAN_1, JAN_31).financing_in == Decimal("500.00")
    assert service.rule_set_for("other") is service.rule_set


def test_rule_order_first_match_wins():
    """Test that operating rules take priority over later buckets."""
    rules = CashFlowRuleSet()
    mixed = entry(JAN_1, "Cash", "10", "Customer Loan")
    assert rules.classify(mixed, rules.cash_line_index(mixed)) == CashFlowBucket.OPERATING


def test_start_after_end_rejected(cashflow_service, tenant):
    with pytest.raises(ValidationError, match="after end date"):
        cashflow_service.get_report(tenant, JAN_31, JAN_1)


def test_tenants_do_not_mix(cashflow_service, temp_db, add_entry, tenant):
    add_entry(date(2024, 1, 2), "Cash", "500", "Sales")
    report = cashflow_service.get_report("someone-else", JAN_1, JAN_31)
    assert report.operating_in == Decimal("0.00")

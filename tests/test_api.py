"""Tests for the collaborator entry points."""

from datetime import date
from decimal import Decimal

from invoicekit import api
from invoicekit.domain.entities import DocumentType, Frequency, Invoice, InvoiceStatus, Payment, RecurringTemplate


def test_invoice_payment_and_report_flow(temp_db, tenant, widget, make_item, recurring_service):
    invoice = api.save_invoice(
        temp_db,
        tenant,
        Invoice(customer_id="C1", issue_date=date(2024, 1, 5), due_date=date(2024, 2, 4), items=(make_item(widget, 2),)),
    )
    assert invoice.number == "INV-0001"

    api.record_payment(
        temp_db, tenant, Payment(customer_id="C1", amount=Decimal("20"), date=date(2024, 1, 6), invoice_id=invoice.id)
    )
    assert temp_db.get_invoice(tenant, invoice.id).status == InvoiceStatus.PAID

    report = api.get_cash_flow_report(temp_db, tenant, date(2024, 1, 1), date(2024, 1, 31))
    assert report.operating_in == Decimal("20.00")

    assert api.delete_invoice(temp_db, tenant, invoice.id) is True
    assert temp_db.get_product(tenant, widget.id).stock == 10


def test_generate_due_invoices(temp_db, tenant, widget, make_item, recurring_service):
    recurring_service.save_template(
        tenant,
        RecurringTemplate(
            customer_id="C1", items=(make_item(widget, 1),), frequency=Frequency.YEARLY, start_date=date(2024, 1, 1)
        ),
    )
    invoices = api.generate_due_invoices(temp_db, tenant, date(2024, 1, 1))
    assert [invoice.source_period for invoice in invoices] == [date(2024, 1, 1)]


def test_generate_due_invoices_skips_failing_templates(temp_db, tenant, gadget, make_item, recurring_service):
    """Test that a template short of stock yields no invoice and stays due."""
    template = recurring_service.save_template(
        tenant,
        RecurringTemplate(
            customer_id="C1", items=(make_item(gadget, 6),), frequency=Frequency.WEEKLY, start_date=date(2024, 1, 1)
        ),
    )

    assert api.generate_due_invoices(temp_db, tenant, date(2024, 1, 1)) == []
    assert recurring_service.get_template(tenant, template.id).next_due_date == date(2024, 1, 1)


def test_allocate_document_number(temp_db, tenant):
    assert api.allocate_document_number(temp_db, tenant, DocumentType.QUOTE) == "QT-0001"

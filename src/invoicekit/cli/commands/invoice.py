"""Invoice commands."""

from datetime import date, timedelta

import click

from invoicekit.cli.error_handling import handle_domain_error, parse_or_exit
from invoicekit.domain.entities import Invoice, InvoiceItem, InvoiceStatus
from invoicekit.domain.errors import DomainError, NotFoundError, product_not_found
from invoicekit.domain.invoice import InvoiceService
from invoicekit.domain.payment import PaymentService
from invoicekit.domain.product import ProductService
from invoicekit.utils.date_parser import parse_date
from invoicekit.utils.item_parser import parse_item_arg
from invoicekit.utils.money_parser import parse_tax_rate


@click.group("invoice")
def invoice_group():
    """Create, inspect and delete invoices."""
    pass


def build_items(ctx, item_args: tuple[str, ...]) -> tuple[InvoiceItem, ...]:
    """Turn PRODUCT_ID:QTY[:PRICE] arguments into invoice lines."""
    products = ProductService(ctx.obj["db"])
    items = []
    for arg in item_args:
        product_id, quantity, price = parse_or_exit(ctx, parse_item_arg, arg, "item")
        product = products.get_product(ctx.obj["tenant"], product_id)
        if product is None:
            handle_domain_error(ctx, NotFoundError(product_not_found(product_id)))
        items.append(
            InvoiceItem(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=price if price is not None else product.unit_price,
            )
        )
    return tuple(items)


@invoice_group.command("add")
@click.option("--customer", required=True, help="Customer ID")
@click.option("--customer-name", help="Customer display name")
@click.option(
    "--item",
    "item_args",
    multiple=True,
    required=True,
    help="Invoice line as PRODUCT_ID:QTY[:PRICE] (repeatable)",
)
@click.option("--date", "issue", default="today", help="Issue date (YYYY-MM-DD or 'today')")
@click.option("--due", help="Due date (defaults to 30 days after issue date)")
@click.option("--tax-rate", default="0", help="Tax rate in percent (e.g., 15)")
@click.pass_context
def add_invoice(
    ctx,
    customer: str,
    customer_name: str | None,
    item_args: tuple[str, ...],
    issue: str,
    due: str | None,
    tax_rate: str,
):
    """Create an invoice and take its quantities from stock.

    Examples:
        invoicekit invoice add --customer C1 --item 1:2 --item 3:1:9.99
        invoicekit invoice add --customer C1 --item 1:5 --date 2024-01-15 --tax-rate 15
    """
    issue_date = parse_or_exit(ctx, parse_date, issue, "date")
    due_date = parse_or_exit(ctx, parse_date, due, "due date") if due else issue_date + timedelta(days=30)
    rate = parse_or_exit(ctx, parse_tax_rate, tax_rate, "tax rate")
    items = build_items(ctx, item_args)

    service = InvoiceService(ctx.obj["db"], settings=ctx.obj["settings"])
    try:
        invoice = service.save(
            ctx.obj["tenant"],
            Invoice(
                customer_id=customer,
                customer_name=customer_name,
                issue_date=issue_date,
                due_date=due_date,
                items=items,
                tax_rate=rate,
            ),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created invoice {invoice.number} (ID: {invoice.id})")
    click.echo(f"  Customer: {invoice.customer_name or invoice.customer_id}")
    click.echo(f"  Total: {invoice.total:,.2f}")


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@click.pass_context
def show_invoice(ctx, invoice_id: int):
    """Show an invoice with its lines and outstanding amount."""
    tenant = ctx.obj["tenant"]
    service = InvoiceService(ctx.obj["db"])
    try:
        invoice = service.require_invoice(tenant, invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    outstanding = PaymentService(ctx.obj["db"]).amount_outstanding(tenant, invoice_id)

    click.echo(f"Invoice {invoice.number} (ID: {invoice.id})")
    click.echo(f"  Customer: {invoice.customer_name or invoice.customer_id}")
    click.echo(f"  Issued: {invoice.issue_date}  Due: {invoice.due_date}")
    click.echo(f"  Status: {invoice.status.value}")
    click.echo("-" * 60)
    for item in invoice.items:
        click.echo(
            f"  {item.product_name:24s} {item.quantity:>5d} x {item.unit_price:>10,.2f} = {item.line_total:>10,.2f}"
        )
    click.echo("-" * 60)
    click.echo(f"  Subtotal: {invoice.subtotal:,.2f}")
    if invoice.tax_amount:
        click.echo(f"  Tax ({invoice.tax_rate}%): {invoice.tax_amount:,.2f}")
    click.echo(f"  Total: {invoice.total:,.2f}")
    click.echo(f"  Outstanding: {outstanding:,.2f}")


@invoice_group.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in InvoiceStatus], case_sensitive=False),
    help="Only invoices with this status",
)
@click.option("--customer", help="Only invoices of this customer")
@click.pass_context
def list_invoices(ctx, status: str | None, customer: str | None):
    """List invoices."""
    service = InvoiceService(ctx.obj["db"])
    status_filter = None
    if status:
        status_filter = next(s for s in InvoiceStatus if s.value.lower() == status.lower())

    invoices = service.list_invoices(ctx.obj["tenant"], status=status_filter, customer_id=customer)
    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo("\nInvoices:")
    click.echo("-" * 70)
    for inv in invoices:
        click.echo(
            f"ID: {inv.id:3d} | {inv.number:10s} | {inv.issue_date} | "
            f"{inv.customer_id:12s} | {inv.total:>10,.2f} | {inv.status.value}"
        )


@invoice_group.command("delete")
@click.argument("invoice_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_invoice(ctx, invoice_id: int, yes: bool):
    """Delete an invoice and return its quantities to stock."""
    tenant = ctx.obj["tenant"]
    service = InvoiceService(ctx.obj["db"], settings=ctx.obj["settings"])
    try:
        invoice = service.require_invoice(tenant, invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete invoice {invoice.number}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete(tenant, invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted invoice {invoice.number}")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group)

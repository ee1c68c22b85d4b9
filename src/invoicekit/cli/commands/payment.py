"""Payment commands."""

import click

from invoicekit.cli.error_handling import handle_domain_error, parse_or_exit
from invoicekit.domain.entities import Payment
from invoicekit.domain.errors import DomainError
from invoicekit.domain.payment import PaymentService
from invoicekit.utils.date_parser import parse_date
from invoicekit.utils.money_parser import parse_money


@click.group("payment")
def payment_group():
    """Record and list payments."""
    pass


@payment_group.command("record")
@click.option("--customer", required=True, help="Customer ID")
@click.option("--amount", required=True, help="Amount received (e.g., 150.00)")
@click.option("--invoice", "invoice_id", type=int, help="Invoice ID the payment settles")
@click.option("--date", "paid_on", default="today", help="Payment date (YYYY-MM-DD or 'today')")
@click.pass_context
def record_payment(ctx, customer: str, amount: str, invoice_id: int | None, paid_on: str):
    """Record a payment.

    When the payments against an invoice reach its total, the invoice is
    marked Paid.

    Examples:
        invoicekit payment record --customer C1 --amount 100 --invoice 3
    """
    tenant = ctx.obj["tenant"]
    payment_amount = parse_or_exit(ctx, parse_money, amount, "amount")
    payment_date = parse_or_exit(ctx, parse_date, paid_on, "date")

    service = PaymentService(ctx.obj["db"])
    try:
        payment = service.record_payment(
            tenant,
            Payment(customer_id=customer, amount=payment_amount, date=payment_date, invoice_id=invoice_id),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded payment {payment.id} of {payment.amount:,.2f}")
    if invoice_id is not None:
        outstanding = service.amount_outstanding(tenant, invoice_id)
        click.echo(f"  Outstanding on invoice {invoice_id}: {outstanding:,.2f}")


@payment_group.command("list")
@click.option("--invoice", "invoice_id", type=int, help="Only payments for this invoice")
@click.pass_context
def list_payments(ctx, invoice_id: int | None):
    """List payments."""
    payments = PaymentService(ctx.obj["db"]).list_payments(ctx.obj["tenant"], invoice_id=invoice_id)
    if not payments:
        click.echo("No payments found.")
        return

    click.echo("\nPayments:")
    click.echo("-" * 60)
    for p in payments:
        target = f"invoice {p.invoice_id}" if p.invoice_id is not None else "on account"
        click.echo(f"ID: {p.id:3d} | {p.date} | {p.customer_id:12s} | {p.amount:>10,.2f} | {target}")


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group)

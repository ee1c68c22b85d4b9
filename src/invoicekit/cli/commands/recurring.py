"""Recurring invoice template commands."""

import click

from invoicekit.cli.commands.invoice import build_items
from invoicekit.cli.error_handling import handle_domain_error, parse_or_exit
from invoicekit.domain.entities import Frequency, RecurringTemplate
from invoicekit.domain.errors import DomainError
from invoicekit.domain.invoice import InvoiceService
from invoicekit.domain.recurring import RecurringService
from invoicekit.utils.date_parser import parse_date
from invoicekit.utils.money_parser import parse_tax_rate


@click.group("recurring")
def recurring_group():
    """Manage recurring invoice templates."""
    pass


def recurring_service(ctx) -> RecurringService:
    db = ctx.obj["db"]
    return RecurringService(db, invoices=InvoiceService(db, settings=ctx.obj["settings"]))


@recurring_group.command("add")
@click.option("--customer", required=True, help="Customer ID")
@click.option("--customer-name", help="Customer display name")
@click.option(
    "--item",
    "item_args",
    multiple=True,
    required=True,
    help="Template line as PRODUCT_ID:QTY[:PRICE] (repeatable)",
)
@click.option(
    "--frequency",
    type=click.Choice([f.value for f in Frequency], case_sensitive=False),
    required=True,
    help="How often an invoice is generated",
)
@click.option("--start", "start", required=True, help="First billing date")
@click.option("--end", "end", help="Last date on which invoices may be generated")
@click.option("--tax-rate", default="0", help="Tax rate in percent")
@click.pass_context
def add_template(
    ctx,
    customer: str,
    customer_name: str | None,
    item_args: tuple[str, ...],
    frequency: str,
    start: str,
    end: str | None,
    tax_rate: str,
):
    """Create a recurring invoice template.

    Examples:
        invoicekit recurring add --customer C1 --item 1:1 --frequency Monthly --start 2024-01-31
    """
    start_date = parse_or_exit(ctx, parse_date, start, "start date")
    end_date = parse_or_exit(ctx, parse_date, end, "end date") if end else None
    rate = parse_or_exit(ctx, parse_tax_rate, tax_rate, "tax rate")
    items = build_items(ctx, item_args)
    freq = next(f for f in Frequency if f.value.lower() == frequency.lower())

    try:
        template = recurring_service(ctx).save_template(
            ctx.obj["tenant"],
            RecurringTemplate(
                customer_id=customer,
                customer_name=customer_name,
                items=items,
                frequency=freq,
                start_date=start_date,
                end_date=end_date,
                tax_rate=rate,
            ),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created {freq.value.lower()} template {template.id}, next due {template.next_due_date}")


@recurring_group.command("list")
@click.pass_context
def list_templates(ctx):
    """List recurring templates."""
    templates = recurring_service(ctx).list_templates(ctx.obj["tenant"])
    if not templates:
        click.echo("No recurring templates found.")
        return

    click.echo("\nRecurring templates:")
    click.echo("-" * 70)
    for t in templates:
        ends = f" | ends {t.end_date}" if t.end_date else ""
        click.echo(
            f"ID: {t.id:3d} | {t.customer_id:12s} | {t.frequency.value:8s} | next due {t.next_due_date}{ends}"
        )


@recurring_group.command("generate")
@click.option("--as-of", "as_of", default="today", help="Reference date (defaults to today)")
@click.option("--catch-up", is_flag=True, help="Generate every elapsed period, not just one")
@click.pass_context
def generate(ctx, as_of: str, catch_up: bool):
    """Generate invoices for every due template."""
    tenant = ctx.obj["tenant"]
    reference = parse_or_exit(ctx, parse_date, as_of, "date")
    service = recurring_service(ctx)

    try:
        if catch_up:
            result = service.catch_up(tenant, reference)
        else:
            result = service.generate_due(tenant, reference)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for invoice in result.invoices:
        click.echo(f"Generated invoice {invoice.number} for {invoice.customer_id} ({invoice.total:,.2f})")
    for failure in result.failures:
        click.echo(f"Template {failure.template_id} failed: {failure.error}", err=True)
    click.echo(f"{len(result.invoices)} invoice(s) generated, {len(result.failures)} failure(s)")
    if result.failures:
        ctx.exit(1)


def register_commands(cli):
    """Register recurring commands with main CLI."""
    cli.add_command(recurring_group)

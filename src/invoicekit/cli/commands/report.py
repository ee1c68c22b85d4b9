"""Report commands."""

import click

from invoicekit.cli.error_handling import handle_domain_error, parse_or_exit
from invoicekit.domain.cashflow import CashFlowService
from invoicekit.domain.errors import DomainError
from invoicekit.utils.date_parser import get_period_range, parse_date


@click.group("report")
def report_group():
    """Financial reports."""
    pass


@report_group.command("cashflow")
@click.option("--start", help="Start date (inclusive)")
@click.option("--end", help="End date (inclusive)")
@click.option("--period", help="Named period: this-month, last-month, this-quarter, this-year, last-year")
@click.pass_context
def cashflow(ctx, start: str | None, end: str | None, period: str | None):
    """Show operating, investing and financing cash flow.

    Either --period or both --start and --end must be given.

    Examples:
        invoicekit report cashflow --start 2024-01-01 --end 2024-01-31
        invoicekit report cashflow --period last-month
    """
    if period:
        if start or end:
            click.echo("Error: Cannot combine --period with --start/--end", err=True)
            ctx.exit(1)
        start_date, end_date = parse_or_exit(ctx, get_period_range, period, "period")
    elif start and end:
        start_date = parse_or_exit(ctx, parse_date, start, "start date")
        end_date = parse_or_exit(ctx, parse_date, end, "end date")
    else:
        click.echo("Error: Provide --period or both --start and --end", err=True)
        ctx.exit(1)

    try:
        report = CashFlowService(ctx.obj["db"]).get_report(ctx.obj["tenant"], start_date, end_date)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nCash flow {report.start_date} to {report.end_date}")
    click.echo("=" * 50)
    click.echo(f"{'Opening cash':30s} {report.opening_cash:>15,.2f}")
    click.echo("-" * 50)
    rows = [
        ("Operating in", report.operating_in),
        ("Operating out", report.operating_out),
        ("Investing in", report.investing_in),
        ("Investing out", report.investing_out),
        ("Financing in", report.financing_in),
        ("Financing out", report.financing_out),
    ]
    for label, value in rows:
        click.echo(f"{label:30s} {value:>15,.2f}")
    click.echo("-" * 50)
    click.echo(f"{'Net cash flow':30s} {report.net_cash_flow:>15,.2f}")
    click.echo(f"{'Closing cash':30s} {report.closing_cash:>15,.2f}")
    if report.fallback_payment_count:
        click.echo(f"\nIncludes {report.fallback_payment_count} payment(s) without ledger entries")
    if report.unclassified_count:
        click.echo(f"Unclassified cash entries: {report.unclassified_count}", err=True)


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group)

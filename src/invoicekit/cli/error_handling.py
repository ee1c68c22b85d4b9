"""CLI error handling helpers."""

import click

from invoicekit.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def parse_or_exit(ctx: click.Context, parser, value: str, what: str):
    """Run a utils parser, exiting with an error message on ValueError."""
    try:
        return parser(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {what}: {e}", err=True)
        ctx.exit(1)

"""Main CLI entry point."""

import logging

import click

from invoicekit.database.factories import create_database, create_sqlite_database
from invoicekit.domain.settings import CoreSettings

# Import and register all commands at module level
from invoicekit.cli.commands import (
    product,
    invoice,
    payment,
    recurring,
    report,
    number,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides INVOICEKIT_DB_PATH environment variable)",
    envvar="INVOICEKIT_DB_PATH",
)
@click.option(
    "--tenant",
    default="default",
    show_default=True,
    help="Tenant to operate on (overrides INVOICEKIT_TENANT environment variable)",
    envvar="INVOICEKIT_TENANT",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, tenant: str, verbose: bool):
    """Invoicekit - Invoicing and inventory bookkeeping.

    Issue numbered invoices that keep product stock in step, record payments,
    run recurring invoice templates and report cash flow.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = CoreSettings.from_env()
        except ValueError as e:
            click.echo(f"Error: Invalid configuration: {e}", err=True)
            ctx.exit(1)
        if db_path:
            db = create_sqlite_database(database_path=db_path)
        else:
            db = create_database()
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["tenant"] = tenant
        ctx.obj["settings"] = settings
        ctx.call_on_close(db.disconnect)


# Register all commands
product.register_commands(cli)
invoice.register_commands(cli)
payment.register_commands(cli)
recurring.register_commands(cli)
report.register_commands(cli)
number.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

"""Product catalog commands."""

import click

from invoicekit.cli.error_handling import handle_domain_error, parse_or_exit
from invoicekit.domain.errors import DomainError
from invoicekit.domain.product import ProductService
from invoicekit.utils.money_parser import parse_money


@click.group("product")
def product_group():
    """Manage catalog products."""
    pass


@product_group.command("add")
@click.argument("name", metavar="NAME")
@click.option("--price", required=True, help="Unit price (e.g., 12.50)")
@click.option("--stock", type=int, default=0, show_default=True, help="Initial stock")
@click.pass_context
def add_product(ctx, name: str, price: str, stock: int):
    """Add a product to the catalog.

    Examples:
        invoicekit product add "Widget" --price 10.00 --stock 25
    """
    service = ProductService(ctx.obj["db"])
    unit_price = parse_or_exit(ctx, parse_money, price, "price")

    try:
        product_id = service.create_product(ctx.obj["tenant"], name, unit_price, stock=stock)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created product '{name.strip()}' (ID: {product_id})")


@product_group.command("list")
@click.pass_context
def list_products(ctx):
    """List products with their stock."""
    service = ProductService(ctx.obj["db"])

    products = service.list_products(ctx.obj["tenant"])
    if not products:
        click.echo("No products found.")
        return

    click.echo("\nProducts:")
    click.echo("-" * 60)
    for p in products:
        click.echo(f"ID: {p.id:3d} | {p.name:24s} | {p.unit_price:>10,.2f} | Stock: {p.stock}")


def register_commands(cli):
    """Register product commands with main CLI."""
    cli.add_command(product_group)

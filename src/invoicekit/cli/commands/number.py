"""Document number commands."""

import click

from invoicekit.cli.error_handling import handle_domain_error
from invoicekit.domain.entities import DocumentType
from invoicekit.domain.errors import DomainError
from invoicekit.domain.numbering import DocumentNumberService


@click.group("number")
def number_group():
    """Document numbering."""
    pass


@number_group.command("next")
@click.argument("doc_type", type=click.Choice([d.value for d in DocumentType], case_sensitive=False))
@click.option("--peek", is_flag=True, help="Show the next number without reserving it")
@click.pass_context
def next_number(ctx, doc_type: str, peek: bool):
    """Reserve (or preview) the next invoice or quote number."""
    service = DocumentNumberService(ctx.obj["db"], settings=ctx.obj["settings"])
    kind = DocumentType(doc_type.lower())
    if peek:
        click.echo(service.peek(ctx.obj["tenant"], kind))
        return
    try:
        click.echo(service.allocate(ctx.obj["tenant"], kind))
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register number commands with main CLI."""
    cli.add_command(number_group)

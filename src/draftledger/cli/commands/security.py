"""Security commands."""

import click
from draftledger.cli.error_handling import handle_domain_error
from draftledger.domain.errors import DomainError
from draftledger.domain.securities import SecurityService


@click.group()
def security_group():
    """Manage securities."""
    pass


@security_group.command("create")
@click.argument("name")
@click.argument("identifier")
@click.option("--code", "external_code", help="Additional code, e.g. the WKN")
@click.option("--currency", default="EUR", show_default=True, help="Trading currency")
@click.pass_context
def create_security(ctx, name: str, identifier: str, external_code: str | None, currency: str):
    """Create a security identified by e.g. its ISIN.

    Examples:
        draftledger security create "iShares Core MSCI World" IE00B4L5Y983 --code A0RPWH
    """
    db = ctx.obj["db"]
    service = SecurityService(db)

    try:
        security_id = service.create_security(
            ctx.obj["owner_id"], name, identifier, external_code, currency
        )
        click.echo(f"Created security '{name}' (ID: {security_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@security_group.command("list")
@click.pass_context
def list_securities(ctx):
    """List all securities."""
    db = ctx.obj["db"]
    service = SecurityService(db)

    securities = service.list_securities(ctx.obj["owner_id"])
    if not securities:
        click.echo("No securities found.")
        return

    for sec in securities:
        state = "" if sec.is_active else " [inactive]"
        click.echo(f"ID: {sec.id:3d} | {sec.identifier:12s} | {sec.name}{state}")


def register_commands(cli):
    """Register security commands with main CLI."""
    cli.add_command(security_group, name="security")

"""Account management commands."""

import click
from draftledger.cli.error_handling import handle_domain_error
from draftledger.domain.accounts import AccountService
from draftledger.domain.entities import AccountType
from draftledger.domain.errors import DomainError


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--iban", help="IBAN used to detect the account on import")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    default=AccountType.GIRO.value,
    help="Account type (default: giro)",
)
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.pass_context
def create_account(ctx, name: str, iban: str | None, account_type: str, bank: str | None):
    """Create a new account.

    A contact of type bank is created for --bank if it does not exist yet.

    Examples:
        draftledger account create "Checking" --iban DE89370400440532013000 --bank "Comdirect"
        draftledger account create "Tagesgeld" --type savings
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = service.create_account(
            ctx.obj["owner_id"],
            name=name,
            account_type=AccountType(account_type.lower()),
            iban=iban,
            bank_name=bank,
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts(ctx.obj["owner_id"])
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 70)
    for acc in accounts:
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.account_type.value:7s} | IBAN: {acc.iban or '-'}"
        )


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")

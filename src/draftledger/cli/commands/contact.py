"""Contact management commands."""

import click
from draftledger.cli.error_handling import handle_domain_error
from draftledger.domain.contacts import ContactService
from draftledger.domain.entities import ContactType
from draftledger.domain.errors import DomainError

CREATABLE_TYPES = [t.value for t in ContactType if t != ContactType.SELF]


@click.group()
def contact_group():
    """Manage contacts and their aliases."""
    pass


@contact_group.command("create")
@click.argument("name")
@click.option(
    "--type",
    "contact_type",
    type=click.Choice(CREATABLE_TYPES, case_sensitive=False),
    default=ContactType.ORGANIZATION.value,
    help="Contact type (default: organization)",
)
@click.option(
    "--intermediary",
    is_flag=True,
    help="Payments through this contact are broken down by a split draft",
)
@click.pass_context
def create_contact(ctx, name: str, contact_type: str, intermediary: bool):
    """Create a new contact."""
    db = ctx.obj["db"]
    service = ContactService(db)

    try:
        contact_id = service.create_contact(
            ctx.obj["owner_id"], name, ContactType(contact_type.lower()), intermediary
        )
        click.echo(f"Created contact '{name}' (ID: {contact_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@contact_group.command("alias")
@click.argument("contact_id", type=int)
@click.argument("pattern")
@click.pass_context
def add_alias(ctx, contact_id: int, pattern: str):
    """Add a wildcard alias to a contact.

    Examples:
        draftledger contact alias 3 "amzn*mktp*"
    """
    db = ctx.obj["db"]
    service = ContactService(db)

    try:
        service.add_alias(ctx.obj["owner_id"], contact_id, pattern)
        click.echo(f"Added alias '{pattern}' to contact {contact_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@contact_group.command("list")
@click.pass_context
def list_contacts(ctx):
    """List all contacts with their aliases."""
    db = ctx.obj["db"]
    service = ContactService(db)
    owner_id = ctx.obj["owner_id"]

    contacts = service.list_contacts(owner_id)
    if not contacts:
        click.echo("No contacts found.")
        return

    aliases = service.alias_lookup(owner_id)
    click.echo("\nContacts:")
    click.echo("-" * 70)
    for contact in contacts:
        flag = " [intermediary]" if contact.is_payment_intermediary else ""
        click.echo(f"ID: {contact.id:3d} | {contact.name:25s} | {contact.contact_type.value}{flag}")
        for pattern in aliases.get(contact.id, []):
            click.echo(f"         alias: {pattern}")


def register_commands(cli):
    """Register contact commands with main CLI."""
    cli.add_command(contact_group, name="contact")

"""Statement draft commands."""

import click
from draftledger.cli.error_handling import handle_domain_error
from draftledger.domain.booking import BookingEngine
from draftledger.domain.classification import ClassificationService
from draftledger.domain.drafts import StatementDraftService
from draftledger.domain.errors import DomainError
from draftledger.domain.validation import DraftValidator, ValidationResult


def print_messages(result: ValidationResult) -> None:
    """Print validation messages, one per line."""
    for message in result.messages:
        where = f" (entry {message.entry_id})" if message.entry_id is not None else ""
        click.echo(f"  [{message.severity.value}] {message.code}{where}: {message.message}")


@click.group()
def draft_group():
    """Review, classify, validate and book statement drafts."""
    pass


@draft_group.command("list")
@click.pass_context
def list_drafts(ctx):
    """List open drafts."""
    db = ctx.obj["db"]
    service = StatementDraftService(db)

    drafts = service.list_open_drafts(ctx.obj["owner_id"])
    if not drafts:
        click.echo("No open drafts.")
        return

    click.echo("\nOpen drafts:")
    click.echo("-" * 80)
    for draft in drafts:
        click.echo(
            f"ID: {draft.id:3d} | {draft.original_file_name:20s} | "
            f"{(draft.description or '-'):25s} | {len(draft.entries):4d} entries | "
            f"total {draft.total_amount:.2f}"
        )


@draft_group.command("show")
@click.argument("draft_id", type=int)
@click.pass_context
def show_draft(ctx, draft_id: int):
    """Show a draft with its entries."""
    db = ctx.obj["db"]
    service = StatementDraftService(db)

    try:
        draft = service.require_draft(ctx.obj["owner_id"], draft_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nDraft {draft.id}: {draft.description or draft.original_file_name}")
    click.echo(
        f"Status: {draft.status.value} | Version: {draft.version} | "
        f"Account: {draft.detected_account_id or '-'}"
    )
    if draft.split_parent is not None:
        click.echo(f"Split draft of entry {draft.split_parent.entry_id} (draft {draft.split_parent.draft_id})")
    click.echo("-" * 80)
    for entry in draft.entries:
        click.echo(
            f"{entry.id:5d} | {entry.booking_date.isoformat()} | {entry.amount:>10.2f} | "
            f"{entry.status.value:14s} | contact {entry.contact_id or '-'} | {entry.subject}"
        )


@draft_group.command("classify")
@click.argument("draft_id", type=int)
@click.option("--entry", "entry_id", type=int, help="Only classify this entry")
@click.pass_context
def classify_draft(ctx, draft_id: int, entry_id: int | None):
    """Re-run automatic classification of a draft."""
    db = ctx.obj["db"]
    service = ClassificationService(db)

    try:
        draft = service.classify(ctx.obj["owner_id"], draft_id, entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    accounted = sum(1 for e in draft.entries if e.contact_id is not None)
    click.echo(f"Classified draft {draft_id}: {accounted}/{len(draft.entries)} entries have a contact")


@draft_group.command("validate")
@click.argument("draft_id", type=int)
@click.option("--entry", "entry_id", type=int, help="Only validate this entry")
@click.pass_context
def validate_draft(ctx, draft_id: int, entry_id: int | None):
    """Validate a draft and print all findings."""
    db = ctx.obj["db"]
    validator = DraftValidator(db)

    try:
        result = validator.validate(ctx.obj["owner_id"], draft_id, entry_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Draft {draft_id} is {'valid' if result.is_valid else 'invalid'}")
    print_messages(result)
    if not result.is_valid:
        ctx.exit(1)


@draft_group.command("book")
@click.argument("draft_id", type=int)
@click.option("--entry", "entry_id", type=int, help="Only book this entry")
@click.option("--force", is_flag=True, help="Book despite warnings")
@click.option("--expected-version", type=int, help="Fail if the draft changed since this version")
@click.pass_context
def book_draft(ctx, draft_id: int, entry_id: int | None, force: bool, expected_version: int | None):
    """Book a draft (or one entry) into postings."""
    db = ctx.obj["db"]
    engine = BookingEngine(db)

    try:
        result = engine.book(
            ctx.obj["owner_id"],
            draft_id,
            entry_id,
            force_warnings=force,
            expected_version=expected_version,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not result.success:
        reason = "warnings (use --force)" if result.validation.is_valid else "errors"
        click.echo(f"Draft {draft_id} was not booked because of {reason}:", err=True)
        print_messages(result.validation)
        ctx.exit(1)

    click.echo(f"Booked {result.booked_count} entries of draft {draft_id}")
    print_messages(result.validation)
    if result.next_open_draft_id is not None:
        click.echo(f"Next open draft: {result.next_open_draft_id}")


@draft_group.command("cancel")
@click.argument("draft_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def cancel_draft(ctx, draft_id: int, yes: bool):
    """Discard an open draft."""
    db = ctx.obj["db"]
    service = StatementDraftService(db)

    if not yes and not click.confirm(f"Are you sure you want to discard draft {draft_id}?"):
        click.echo("Cancel aborted.")
        return

    try:
        service.cancel_draft(ctx.obj["owner_id"], draft_id)
        click.echo(f"Discarded draft {draft_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@draft_group.command("set-contact")
@click.argument("draft_id", type=int)
@click.argument("entry_id", type=int)
@click.argument("contact_id", type=int)
@click.pass_context
def set_contact(ctx, draft_id: int, entry_id: int, contact_id: int):
    """Assign a contact to an entry by hand."""
    db = ctx.obj["db"]
    service = StatementDraftService(db)

    try:
        entry = service.set_entry_contact(ctx.obj["owner_id"], draft_id, entry_id, contact_id)
        click.echo(f"Entry {entry_id} is now {entry.status.value}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@draft_group.command("link-split")
@click.argument("draft_id", type=int)
@click.argument("entry_id", type=int)
@click.argument("split_draft_id", type=int)
@click.pass_context
def link_split(ctx, draft_id: int, entry_id: int, split_draft_id: int):
    """Link an intermediary entry to the draft that breaks it down."""
    db = ctx.obj["db"]
    service = StatementDraftService(db)

    try:
        entry = service.set_entry_split_draft(ctx.obj["owner_id"], draft_id, entry_id, split_draft_id)
        click.echo(f"Linked entry {entry_id} to draft {split_draft_id} ({entry.status.value})")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register draft commands with main CLI."""
    cli.add_command(draft_group, name="draft")

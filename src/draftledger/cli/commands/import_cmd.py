"""Statement import command."""

from dataclasses import replace
from pathlib import Path

import click
from draftledger.cli.error_handling import handle_domain_error
from draftledger.config import load_import_split_settings
from draftledger.domain.drafts import StatementDraftService
from draftledger.domain.errors import DomainError
from draftledger.domain.grouping import ImportSplitMode
from draftledger.readers.csv_reader import CsvStatementReader


@click.command("import")
@click.argument("statement_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--iban", help="IBAN of the account the statement belongs to")
@click.option("--description", help="Description for the created drafts")
@click.option("--decimal-comma", is_flag=True, help="Amounts use ',' as decimal separator")
@click.option("--dayfirst", is_flag=True, help="Dates are written day first (15.01.2024)")
@click.option(
    "--split-mode",
    type=click.Choice([m.value for m in ImportSplitMode], case_sensitive=False),
    help="Override DRAFTLEDGER_SPLIT_MODE",
)
@click.option("--max-entries", type=int, help="Override DRAFTLEDGER_MAX_ENTRIES_PER_DRAFT")
@click.option("--min-entries", type=int, help="Override DRAFTLEDGER_MIN_ENTRIES_PER_DRAFT")
@click.pass_context
def import_statement(
    ctx,
    statement_file: str,
    iban: str | None,
    description: str | None,
    decimal_comma: bool,
    dayfirst: bool,
    split_mode: str | None,
    max_entries: int | None,
    min_entries: int | None,
):
    """Import a CSV statement into one or more drafts."""
    db = ctx.obj["db"]
    service = StatementDraftService(db)
    path = Path(statement_file)

    try:
        settings = load_import_split_settings()
        overrides = {}
        if split_mode is not None:
            overrides["mode"] = ImportSplitMode(split_mode.lower())
        if max_entries is not None:
            overrides["max_entries_per_draft"] = max_entries
        if min_entries is not None:
            overrides["min_entries_per_draft"] = min_entries
        if overrides:
            settings = replace(settings, **overrides)

        reader = CsvStatementReader(
            account_iban=iban,
            description=description,
            decimal_comma=decimal_comma,
            dayfirst=dayfirst,
        )
        result = service.import_statement(
            ctx.obj["owner_id"], path.name, path.read_bytes(), [reader], settings
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    info = result.split_info
    click.echo("\nImport complete:")
    click.echo(f"  Movements: {info.total_movements}")
    click.echo(f"  Drafts: {info.draft_count} ({'monthly' if info.effective_monthly else 'fixed size'})")
    for draft in result.drafts:
        click.echo(f"    Draft {draft.id}: {draft.description or '-'} ({len(draft.entries)} entries)")


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_statement)

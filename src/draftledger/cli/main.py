"""Main CLI entry point."""

import click
from draftledger.database.factories import create_sqlite_database
from draftledger.logging_config import setup_logging

# Import and register all commands at module level
from draftledger.cli.commands import (
    account,
    contact,
    savings_plan,
    security,
    import_cmd,
    draft,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides DRAFTLEDGER_DB_PATH environment variable)",
    envvar="DRAFTLEDGER_DB_PATH",
)
@click.option(
    "--owner",
    "owner_id",
    type=int,
    default=1,
    show_default=True,
    envvar="DRAFTLEDGER_OWNER_ID",
    help="ID of the user whose data is used",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="DRAFTLEDGER_LOG_LEVEL",
    help="Log level for JSON logs on stderr",
)
@click.pass_context
def cli(ctx, db_path: str | None, owner_id: int, log_level: str):
    """Draftledger - statement import and booking.

    Import bank statements into drafts, let them be classified against your
    contacts, savings plans and securities, then validate and book them.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level)
    ctx.obj["owner_id"] = owner_id

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
account.register_commands(cli)
contact.register_commands(cli)
savings_plan.register_commands(cli)
security.register_commands(cli)
import_cmd.register_commands(cli)
draft.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

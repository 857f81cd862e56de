"""CLI error handling helpers."""

import click

from draftledger.domain.errors import ConcurrencyError, DomainError

# Exit status for a lost draft version race; the caller may reload and retry.
EXIT_CONFLICT = 3


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure.

    Concurrent modifications exit with EXIT_CONFLICT, everything else with 1.
    """
    if isinstance(error, ConcurrencyError):
        click.echo(f"Error: {error}. Reload the draft and try again.", err=True)
        ctx.exit(EXIT_CONFLICT)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)

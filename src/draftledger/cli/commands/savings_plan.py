"""Savings plan commands."""

import click
from draftledger.cli.error_handling import handle_domain_error
from draftledger.domain.entities import SavingsPlanInterval, SavingsPlanType
from draftledger.domain.errors import DomainError
from draftledger.domain.savings_plans import SavingsPlanService
from draftledger.utils.amount_parser import parse_amount
from draftledger.utils.date_parser import parse_date


@click.group()
def savings_plan_group():
    """Manage savings plans."""
    pass


@savings_plan_group.command("create")
@click.argument("name")
@click.option(
    "--type",
    "plan_type",
    type=click.Choice([t.value for t in SavingsPlanType], case_sensitive=False),
    default=SavingsPlanType.OPEN.value,
    help="Plan type (default: open)",
)
@click.option("--target-amount", help="Amount to save (e.g., 1200.00)")
@click.option("--target-date", help="Due date (YYYY-MM-DD)")
@click.option(
    "--interval",
    type=click.Choice([i.value for i in SavingsPlanInterval], case_sensitive=False),
    help="Interval of recurring plans",
)
@click.option("--contract", "contract_number", help="Contract number found in transfer subjects")
@click.pass_context
def create_savings_plan(
    ctx,
    name: str,
    plan_type: str,
    target_amount: str | None,
    target_date: str | None,
    interval: str | None,
    contract_number: str | None,
):
    """Create a new savings plan.

    Examples:
        draftledger savings-plan create "Holiday" --target-amount 1200 --target-date 2025-06-30
        draftledger savings-plan create "ETF" --type recurring --interval monthly --target-date 2025-01-31
    """
    db = ctx.obj["db"]
    service = SavingsPlanService(db)

    try:
        plan_id = service.create_plan(
            ctx.obj["owner_id"],
            name=name,
            plan_type=SavingsPlanType(plan_type.lower()),
            target_amount=parse_amount(target_amount) if target_amount else None,
            target_date=parse_date(target_date) if target_date else None,
            interval=SavingsPlanInterval(interval.lower()) if interval else None,
            contract_number=contract_number,
        )
        click.echo(f"Created savings plan '{name}' (ID: {plan_id})")
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)


@savings_plan_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include archived plans")
@click.pass_context
def list_savings_plans(ctx, show_all: bool):
    """List savings plans with their balance."""
    db = ctx.obj["db"]
    service = SavingsPlanService(db)
    owner_id = ctx.obj["owner_id"]

    plans = service.list_plans(owner_id, active_only=not show_all)
    if not plans:
        click.echo("No savings plans found.")
        return

    for plan in plans:
        balance = service.get_balance(owner_id, plan.id)
        target = f"{plan.target_amount:.2f}" if plan.target_amount is not None else "-"
        due = plan.target_date.isoformat() if plan.target_date else "-"
        state = "" if plan.is_active else " [archived]"
        click.echo(
            f"ID: {plan.id:3d} | {plan.name:20s} | {balance:>10.2f} / {target:>10s} | due {due}{state}"
        )


def register_commands(cli):
    """Register savings plan commands with main CLI."""
    cli.add_command(savings_plan_group, name="savings-plan")

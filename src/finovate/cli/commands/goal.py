"""Monthly goal commands."""

import click

from finovate.cli.error_handling import handle_domain_error
from finovate.cli.output import money
from finovate.domain.errors import DomainError
from finovate.domain.goal import GoalService


@click.group()
def goal_group():
    """Show or set the monthly income goal."""
    pass


@goal_group.command("show")
@click.pass_context
def show_goal(ctx) -> None:
    """Show the monthly income goal."""
    db = ctx.obj["db"]
    service = GoalService(db)

    goal = service.get_goal(ctx.obj["owner_id"])
    click.echo(f"Monthly goal: {money(goal)}")


@goal_group.command("set")
@click.argument("amount")
@click.pass_context
def set_goal(ctx, amount: str) -> None:
    """Set the monthly income goal (0 to 10,000,000).

    Examples:
        finovate goal set 5000
    """
    db = ctx.obj["db"]
    service = GoalService(db)

    try:
        goal = service.set_goal(ctx.obj["owner_id"], amount)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Monthly goal set to {money(goal)}")


def register_commands(cli):
    """Register goal commands with CLI."""
    cli.add_command(goal_group, name="goal")

"""Dashboard report commands."""

import click

from finovate.cli.output import echo_json, money
from finovate.domain.dashboard import DashboardService


@click.group()
def dashboard_group():
    """Show dashboard reports."""
    pass


@dashboard_group.command("summary")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show_summary(ctx, as_json: bool) -> None:
    """Balance, invoices, this month's figures and goal progress."""
    db = ctx.obj["db"]
    service = DashboardService(db)

    summary = service.summary(ctx.obj["owner_id"])
    if as_json:
        echo_json(summary)
        return

    click.echo("\nDashboard")
    click.echo("=" * 50)
    click.echo(f"Total balance:         {money(summary.total_balance):>16}")
    click.echo(f"Total invoiced:        {money(summary.total_invoice_amount):>16}")
    click.echo(f"Income this month:     {money(summary.monthly_income):>16}")
    click.echo(f"Expenses this month:   {money(summary.monthly_expenses):>16}")
    click.echo(f"Profit this month:     {money(summary.monthly_profit):>16}")

    if summary.goal_progress is not None:
        progress = summary.goal_progress
        click.echo(
            f"Monthly goal:          {money(progress.goal):>16}  "
            f"({progress.percent_complete * 100:.0f}% reached)"
        )
    else:
        click.echo("Monthly goal:          not set")

    if summary.category_expenses:
        click.echo("\nExpenses by category this month:")
        for item in summary.category_expenses:
            click.echo(f"  {item.category:25s} {money(item.amount):>14}  {item.percentage:3d}%")

    if summary.recent_transactions:
        click.echo("\nRecent transactions:")
        for txn in summary.recent_transactions:
            kind_label = txn.kind.value if txn.kind is not None else "?"
            click.echo(
                f"  {txn.occurred_at:%Y-%m-%d}  {kind_label:6}  {money(txn.amount):>12}  {txn.description}"
            )

    if summary.recent_invoices:
        click.echo("\nRecent invoices:")
        for inv in summary.recent_invoices:
            click.echo(
                f"  {inv.invoice_number:12}  {inv.status.value:9}  {money(inv.total_amount):>12}  {inv.client_name}"
            )


@dashboard_group.command("income-expense")
@click.option("--period", help="Number of trailing months (default 12, at most 60)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show_income_expense(ctx, period: str | None, as_json: bool) -> None:
    """Monthly income and expenses."""
    db = ctx.obj["db"]
    service = DashboardService(db)

    series = service.income_expense(ctx.obj["owner_id"], period)
    if as_json:
        echo_json(series)
        return
    if not series:
        click.echo("No transactions in this period.")
        return

    click.echo(f"{'Month':8}  {'Income':>14}  {'Expenses':>14}")
    click.echo("-" * 40)
    for entry in series:
        click.echo(f"{entry.month:8}  {money(entry.income):>14}  {money(entry.expenses):>14}")


@dashboard_group.command("categories")
@click.option(
    "--period",
    help="Trailing days (default 30, at most 365) or weekly, monthly, yearly",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show_categories(ctx, period: str | None, as_json: bool) -> None:
    """Expenses by category."""
    db = ctx.obj["db"]
    service = DashboardService(db)

    breakdown = service.category_expenses(ctx.obj["owner_id"], period)
    if as_json:
        echo_json(breakdown)
        return
    if not breakdown:
        click.echo("No expenses in this period.")
        return

    for item in breakdown:
        click.echo(
            f"{item.category:25s} {money(item.amount):>14}  {item.count:4d}  {item.percentage:3d}%"
        )


@dashboard_group.command("profit")
@click.option("--months", help="Number of calendar months up to this one (default 12, at most 24)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show_profit(ctx, months: str | None, as_json: bool) -> None:
    """Monthly profit, one row per month including empty ones."""
    db = ctx.obj["db"]
    service = DashboardService(db)

    series = service.yearly_profit(ctx.obj["owner_id"], months)
    if as_json:
        echo_json(series)
        return

    click.echo(f"{'Month':8}  {'Income':>14}  {'Expenses':>14}  {'Profit':>14}")
    click.echo("-" * 56)
    for entry in series:
        click.echo(
            f"{entry.month:8}  {money(entry.income):>14}  "
            f"{money(entry.expenses):>14}  {money(entry.profit):>14}"
        )


def register_commands(cli):
    """Register dashboard commands with CLI."""
    cli.add_command(dashboard_group, name="dashboard")

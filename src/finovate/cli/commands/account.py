"""Bank account management commands."""

import click

from finovate.cli.error_handling import handle_domain_error
from finovate.cli.output import echo_json, money
from finovate.domain.bank_account import ACCOUNT_TYPES, BankAccountService
from finovate.domain.errors import DomainError


@click.group()
def account_group():
    """Manage bank accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.option(
    "--type",
    "account_type",
    type=click.Choice(ACCOUNT_TYPES, case_sensitive=False),
    default="CHECKING",
    show_default=True,
    help="Account type",
)
@click.pass_context
def create_account(ctx, name: str, bank: str | None, account_type: str):
    """Create a new bank account.

    Examples:
        finovate account create "Business Checking" --bank "Chase"
        finovate account create "Petty Cash" --type CASH
    """
    db = ctx.obj["db"]
    service = BankAccountService(db)

    try:
        account_id = service.create_account(
            ctx.obj["owner_id"], name=name, bank_name=bank, account_type=account_type
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created account '{name}' (ID: {account_id})")
    if bank is None:
        click.echo(f"Bank name set to '{name}'")


@account_group.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_accounts(ctx, as_json: bool):
    """List bank accounts with their balances."""
    db = ctx.obj["db"]
    service = BankAccountService(db)

    stats = service.list_with_stats(ctx.obj["owner_id"])
    if as_json:
        echo_json(stats)
        return
    if not stats:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for item in stats:
        acc = item.account
        state = "" if acc.is_active else " (inactive)"
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.account_type:8s} | "
            f"Balance: {money(item.balance):>12}{state}"
        )


@account_group.command("show")
@click.argument("account_id", type=int)
@click.pass_context
def show_account(ctx, account_id: int):
    """Show a bank account with its totals."""
    db = ctx.obj["db"]
    service = BankAccountService(db)

    try:
        stats = service.get_stats(ctx.obj["owner_id"], account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    acc = stats.account
    click.echo(f"{acc.name} (ID: {acc.id})")
    click.echo(f"  Bank:         {acc.bank_name}")
    click.echo(f"  Type:         {acc.account_type}")
    click.echo(f"  Active:       {'yes' if acc.is_active else 'no'}")
    click.echo(f"  Credits:      {money(stats.credits)}")
    click.echo(f"  Debits:       {money(stats.debits)}")
    click.echo(f"  Balance:      {money(stats.balance)}")
    click.echo(f"  Transactions: {stats.transaction_count}")


@account_group.command("toggle")
@click.argument("account_id", type=int)
@click.pass_context
def toggle_account(ctx, account_id: int):
    """Activate or deactivate a bank account."""
    db = ctx.obj["db"]
    service = BankAccountService(db)

    try:
        account = service.toggle_active(ctx.obj["owner_id"], account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Account '{account.name}' is now {'active' if account.is_active else 'inactive'}")


@account_group.command("delete")
@click.argument("account_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_account(ctx, account_id: int, yes: bool):
    """Delete a bank account without transactions."""
    db = ctx.obj["db"]
    service = BankAccountService(db)

    if not yes and not click.confirm(f"Delete account {account_id}?"):
        click.echo("Cancelled.")
        return

    try:
        service.delete_account(ctx.obj["owner_id"], account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted account {account_id}")


def register_commands(cli):
    """Register account commands with CLI."""
    cli.add_command(account_group, name="account")

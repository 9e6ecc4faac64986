"""Transaction management commands."""

import json

import click

from finovate.cli.date_filters import parse_cli_date
from finovate.cli.error_handling import handle_domain_error
from finovate.cli.output import echo_json, money
from finovate.domain.aggregation import category_label
from finovate.domain.errors import DomainError
from finovate.domain.transaction import TransactionService


@click.group()
def transaction_group():
    """Manage ledger entries."""
    pass


@transaction_group.command("add")
@click.option("--kind", required=True, help="CREDIT (income) or DEBIT (expense)")
@click.option("--amount", required=True, help="Positive amount (e.g., 123.45)")
@click.option("--description", required=True, help="Transaction description")
@click.option("--date", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--category", help="Category label (e.g., 'Rent')")
@click.option("--account-id", type=int, help="Bank account ID")
@click.pass_context
def add_transaction(
    ctx,
    kind: str,
    amount: str,
    description: str,
    date: str | None,
    category: str | None,
    account_id: int | None,
) -> None:
    """Record a ledger entry.

    Examples:
        finovate transaction add --kind credit --amount 5000 --description "Consulting"
        finovate transaction add --kind debit --amount 200 --description "Lunch" --category Food
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    occurred_at = parse_cli_date(ctx, date, "date")

    try:
        transaction_id = service.create_transaction(
            ctx.obj["owner_id"],
            kind=kind,
            description=description,
            amount=amount,
            occurred_at=occurred_at,
            category=category,
            bank_account_id=account_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created transaction {transaction_id}")


@transaction_group.command("list")
@click.option("--from", "date_from", help="Start date (inclusive)")
@click.option("--to", "date_to", help="End date (inclusive)")
@click.option("--kind", help="Only CREDIT or DEBIT entries")
@click.option("--category", help="Only entries in this category")
@click.option("--account-id", type=int, help="Only entries of this bank account")
@click.option("--search", help="Text to look for in descriptions")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_transactions(
    ctx,
    date_from: str | None,
    date_to: str | None,
    kind: str | None,
    category: str | None,
    account_id: int | None,
    search: str | None,
    as_json: bool,
) -> None:
    """List ledger entries, newest first."""
    db = ctx.obj["db"]
    service = TransactionService(db)
    start = parse_cli_date(ctx, date_from, "start date")
    end = parse_cli_date(ctx, date_to, "end date", end_of_day=True)

    try:
        transactions = service.list_transactions(
            ctx.obj["owner_id"],
            date_from=start,
            date_to=end,
            kind=kind,
            category=category,
            bank_account_id=account_id,
            search=search,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if as_json:
        echo_json(transactions)
        return
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"{'ID':>5}  {'Date':10}  {'Kind':6}  {'Amount':>12}  {'Category':15}  Description")
    click.echo("-" * 80)
    for txn in transactions:
        kind_label = txn.kind.value if txn.kind is not None else "?"
        category_text = category_label(txn.category) if txn.category is not None else ""
        marker = " [payment]" if txn.source_invoice_id is not None else ""
        click.echo(
            f"{txn.id:>5}  {txn.occurred_at:%Y-%m-%d}  {kind_label:6}  "
            f"{money(txn.amount):>12}  {category_text[:15]:15}  {txn.description}{marker}"
        )


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--kind", help="CREDIT or DEBIT")
@click.option("--amount", help="Positive amount")
@click.option("--description", help="Transaction description")
@click.option("--date", help="Transaction date")
@click.option("--category", help="Category label, or empty string to clear")
@click.option("--account-id", type=int, help="Bank account ID")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: int,
    kind: str | None,
    amount: str | None,
    description: str | None,
    date: str | None,
    category: str | None,
    account_id: int | None,
) -> None:
    """Update a ledger entry.

    Updates only the fields that are provided. Use --category "" to clear the
    category. Entries recording an invoice payment cannot be edited; mark the
    invoice unpaid instead.

    Examples:
        finovate transaction update 1 --amount 75.00
        finovate transaction update 1 --category ""  # Clear category
    """
    db = ctx.obj["db"]
    service = TransactionService(db)
    occurred_at = parse_cli_date(ctx, date, "date")
    clear_category = category is not None and category.strip() == ""

    try:
        txn = service.update_transaction(
            ctx.obj["owner_id"],
            transaction_id,
            kind=kind,
            description=description,
            amount=amount,
            occurred_at=occurred_at,
            category=None if clear_category else category,
            bank_account_id=account_id,
            clear_category=clear_category,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated transaction {txn.id}")


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool) -> None:
    """Delete a ledger entry."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    if not yes and not click.confirm(f"Delete transaction {transaction_id}?"):
        click.echo("Cancelled.")
        return

    try:
        service.delete_transaction(ctx.obj["owner_id"], transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("categories")
@click.pass_context
def list_categories(ctx) -> None:
    """List categories in use with their totals."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    usage = service.list_categories(ctx.obj["owner_id"])
    if not usage:
        click.echo("No categories in use.")
        return
    for item in usage:
        click.echo(f"{item.category:25s} {item.count:5d}  {money(item.total_amount):>14}")


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int) -> None:
    """Show one ledger entry."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    txn = service.get_transaction(ctx.obj["owner_id"], transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)
        return

    click.echo(f"Transaction {txn.id}")
    click.echo(f"  Date:        {txn.occurred_at:%Y-%m-%d %H:%M}")
    click.echo(f"  Kind:        {txn.kind.value if txn.kind is not None else 'unknown'}")
    click.echo(f"  Amount:      {money(txn.amount)}")
    click.echo(f"  Description: {txn.description}")
    if txn.category is not None:
        click.echo(f"  Category:    {txn.category}")
    if txn.bank_account_id is not None:
        click.echo(f"  Account:     {txn.bank_account_id}")
    if txn.source_invoice_id is not None:
        click.echo(f"  Invoice:     {txn.source_invoice_id}")


@transaction_group.command("batch")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def batch_transactions(ctx, file_path: str) -> None:
    """Record several ledger entries from a JSON file, all or nothing.

    The file holds a list of objects with kind, description, amount and
    optionally date, category and bank_account_id.

    Examples:
        finovate transaction batch january.json
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        with open(file_path, encoding="utf-8") as f:
            raw_entries = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        click.echo(f"Error: Could not read {file_path}: {e}", err=True)
        ctx.exit(1)
        return
    if not isinstance(raw_entries, list):
        click.echo("Error: Batch file must contain a list of transactions", err=True)
        ctx.exit(1)
        return

    entries = []
    for index, raw in enumerate(raw_entries):
        if not isinstance(raw, dict):
            click.echo(f"Error: Entry {index} is not an object", err=True)
            ctx.exit(1)
            return
        entry = {
            key: raw.get(key)
            for key in ("kind", "description", "amount", "category", "bank_account_id")
        }
        entry["occurred_at"] = parse_cli_date(ctx, raw.get("date"), f"date of entry {index}")
        entries.append(entry)

    try:
        ids = service.create_batch(ctx.obj["owner_id"], entries)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created {len(ids)} transactions")


def register_commands(cli):
    """Register transaction commands with CLI."""
    cli.add_command(transaction_group, name="transaction")

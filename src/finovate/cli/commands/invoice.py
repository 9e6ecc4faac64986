"""Invoice management commands."""

import click

from finovate.cli.date_filters import parse_cli_date
from finovate.cli.error_handling import handle_domain_error
from finovate.cli.output import echo_json, money
from finovate.domain.entities import InvoiceStatus, ItemizedLines
from finovate.domain.errors import DomainError
from finovate.domain.invoice import InvoiceService

STATUS_CHOICE = click.Choice([status.value for status in InvoiceStatus], case_sensitive=False)


def _parse_items(ctx, raw_items: tuple[str, ...]) -> list[dict] | None:
    """Parse ``NAME:QUANTITY:RATE`` item options."""
    if not raw_items:
        return None
    items = []
    for raw in raw_items:
        parts = raw.rsplit(":", 2)
        if len(parts) != 3:
            click.echo(f"Error: Invalid item '{raw}'. Expected NAME:QUANTITY:RATE", err=True)
            ctx.exit(1)
        name, quantity, rate = parts
        items.append({"name": name, "quantity": quantity, "rate": rate})
    return items


def _print_invoice(invoice) -> None:
    click.echo(f"Invoice {invoice.invoice_number} (ID: {invoice.id})")
    click.echo(f"  Client:   {invoice.client_name}")
    if invoice.client_email:
        click.echo(f"  Email:    {invoice.client_email}")
    click.echo(f"  Status:   {invoice.status.value}")
    click.echo(f"  Issued:   {invoice.issue_date:%Y-%m-%d}")
    if invoice.due_date is not None:
        click.echo(f"  Due:      {invoice.due_date:%Y-%m-%d}")
    if invoice.paid_date is not None:
        click.echo(f"  Paid:     {invoice.paid_date:%Y-%m-%d}")
    if isinstance(invoice.lines, ItemizedLines):
        click.echo("  Items:")
        for item in invoice.lines.items:
            click.echo(
                f"    {item.name:30s} {item.quantity} x {money(item.rate)} = {money(item.amount)}"
            )
    click.echo(f"  Subtotal: {money(invoice.subtotal)}")
    click.echo(f"  Tax:      {money(invoice.tax_amount)}")
    click.echo(f"  Total:    {money(invoice.total_amount)}")
    if invoice.notes:
        click.echo(f"  Notes:    {invoice.notes}")


@click.group()
def invoice_group():
    """Manage invoices."""
    pass


@invoice_group.command("create")
@click.option("--client", "client_name", required=True, help="Client name")
@click.option("--amount", help="Amount of a simple invoice without line items")
@click.option("--item", "items", multiple=True, help="Line item as NAME:QUANTITY:RATE (repeatable)")
@click.option("--number", "invoice_number", help="Invoice number (generated if omitted)")
@click.option("--tax", help="Tax amount added to the subtotal")
@click.option("--issue-date", help="Issue date (defaults to today)")
@click.option("--due-date", help="Due date")
@click.option("--email", "client_email", help="Client email")
@click.option("--address", "client_address", help="Client address")
@click.option("--notes", help="Notes")
@click.option("--account-id", type=int, help="Bank account receiving the payment")
@click.pass_context
def create_invoice(
    ctx,
    client_name: str,
    amount: str | None,
    items: tuple[str, ...],
    invoice_number: str | None,
    tax: str | None,
    issue_date: str | None,
    due_date: str | None,
    client_email: str | None,
    client_address: str | None,
    notes: str | None,
    account_id: int | None,
) -> None:
    """Create a pending invoice.

    Give either --amount or one or more --item options.

    Examples:
        finovate invoice create --client "Acme" --amount 1000
        finovate invoice create --client "Acme" --item "Design:10:85" --item "Hosting:1:20" --tax 21
    """
    db = ctx.obj["db"]
    service = InvoiceService(db)
    parsed_items = _parse_items(ctx, items)

    try:
        invoice_id = service.create_invoice(
            ctx.obj["owner_id"],
            client_name=client_name,
            items=parsed_items,
            amount=amount,
            invoice_number=invoice_number,
            tax_amount=tax,
            issue_date=parse_cli_date(ctx, issue_date, "issue date"),
            due_date=parse_cli_date(ctx, due_date, "due date"),
            client_email=client_email,
            client_address=client_address,
            notes=notes,
            bank_account_id=account_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    invoice = service.get_invoice(ctx.obj["owner_id"], invoice_id)
    click.echo(
        f"Created invoice {invoice.invoice_number} (ID: {invoice_id}) "
        f"for {money(invoice.total_amount)}"
    )


@invoice_group.command("list")
@click.option("--status", type=STATUS_CHOICE, help="Only invoices with this status")
@click.option("--client", "client_name", help="Only invoices of this client")
@click.option("--search", help="Text to look for in number, client or notes")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_invoices(
    ctx, status: str | None, client_name: str | None, search: str | None, as_json: bool
) -> None:
    """List invoices, newest first."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    invoices = service.list_invoices(
        ctx.obj["owner_id"],
        status=InvoiceStatus(status.upper()) if status else None,
        client_name=client_name,
        search=search,
    )
    if as_json:
        echo_json(invoices)
        return
    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo(f"{'ID':>5}  {'Number':12}  {'Issued':10}  {'Status':9}  {'Total':>12}  Client")
    click.echo("-" * 72)
    for inv in invoices:
        click.echo(
            f"{inv.id:>5}  {inv.invoice_number:12}  {inv.issue_date:%Y-%m-%d}  "
            f"{inv.status.value:9}  {money(inv.total_amount):>12}  {inv.client_name}"
        )


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show_invoice(ctx, invoice_id: int, as_json: bool) -> None:
    """Show invoice details."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        invoice = service.get_invoice(ctx.obj["owner_id"], invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    if as_json:
        echo_json(invoice)
    else:
        _print_invoice(invoice)


@invoice_group.command("update")
@click.argument("invoice_id", type=int)
@click.option("--client", "client_name", help="Client name")
@click.option("--amount", help="Amount of a simple invoice")
@click.option("--item", "items", multiple=True, help="Line item as NAME:QUANTITY:RATE (repeatable)")
@click.option("--number", "invoice_number", help="Invoice number")
@click.option("--tax", help="Tax amount")
@click.option("--due-date", help="Due date")
@click.option("--email", "client_email", help="Client email")
@click.option("--notes", help="Notes")
@click.option("--account-id", type=int, help="Bank account receiving the payment")
@click.pass_context
def update_invoice(
    ctx,
    invoice_id: int,
    client_name: str | None,
    amount: str | None,
    items: tuple[str, ...],
    invoice_number: str | None,
    tax: str | None,
    due_date: str | None,
    client_email: str | None,
    notes: str | None,
    account_id: int | None,
) -> None:
    """Update invoice details.

    Amounts of a paid invoice cannot be changed; mark it unpaid first.
    """
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        invoice = service.update_invoice(
            ctx.obj["owner_id"],
            invoice_id,
            client_name=client_name,
            items=_parse_items(ctx, items),
            amount=amount,
            invoice_number=invoice_number,
            tax_amount=tax,
            due_date=parse_cli_date(ctx, due_date, "due date"),
            client_email=client_email,
            notes=notes,
            bank_account_id=account_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated invoice {invoice.invoice_number}")


@invoice_group.command("duplicate")
@click.argument("invoice_id", type=int)
@click.pass_context
def duplicate_invoice(ctx, invoice_id: int) -> None:
    """Copy an invoice as a new pending invoice."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        new_id = service.duplicate_invoice(ctx.obj["owner_id"], invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    invoice = service.get_invoice(ctx.obj["owner_id"], new_id)
    click.echo(f"Created invoice {invoice.invoice_number} (ID: {new_id})")


@invoice_group.command("paid")
@click.argument("invoice_id", type=int)
@click.option("--date", "paid_date", help="Payment date (defaults to now)")
@click.pass_context
def mark_paid(ctx, invoice_id: int, paid_date: str | None) -> None:
    """Mark an invoice as paid and record the payment as income."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        invoice = service.mark_paid(
            ctx.obj["owner_id"], invoice_id, parse_cli_date(ctx, paid_date, "payment date")
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Invoice {invoice.invoice_number} marked as paid ({money(invoice.total_amount)})")


@invoice_group.command("unpaid")
@click.argument("invoice_id", type=int)
@click.option(
    "--status",
    type=click.Choice(["PENDING", "OVERDUE", "CANCELLED"], case_sensitive=False),
    default="PENDING",
    show_default=True,
    help="Status to move the invoice to",
)
@click.pass_context
def mark_unpaid(ctx, invoice_id: int, status: str) -> None:
    """Revert a paid invoice and remove its payment from the ledger."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        invoice = service.mark_unpaid(ctx.obj["owner_id"], invoice_id, InvoiceStatus(status.upper()))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Invoice {invoice.invoice_number} is now {invoice.status.value}")


@invoice_group.command("status")
@click.argument("invoice_id", type=int)
@click.argument("status", type=STATUS_CHOICE)
@click.pass_context
def set_status(ctx, invoice_id: int, status: str) -> None:
    """Set the status of an invoice.

    Moving to or from PAID keeps the ledger in step.
    """
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        invoice = service.set_status(ctx.obj["owner_id"], invoice_id, InvoiceStatus(status.upper()))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Invoice {invoice.invoice_number} is now {invoice.status.value}")


@invoice_group.command("delete")
@click.argument("invoice_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_invoice(ctx, invoice_id: int, yes: bool) -> None:
    """Delete an invoice and its payment entries."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    if not yes and not click.confirm(f"Delete invoice {invoice_id}?"):
        click.echo("Cancelled.")
        return

    try:
        removed = service.delete_invoice(ctx.obj["owner_id"], invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted invoice {invoice_id}")
    if removed:
        click.echo(f"Removed {removed} payment transaction(s)")


def register_commands(cli):
    """Register invoice commands with CLI."""
    cli.add_command(invoice_group, name="invoice")

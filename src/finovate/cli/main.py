"""Main CLI entry point."""

import click
import structlog

from finovate.config import get_settings
from finovate.database.factories import create_sqlite_database
from finovate.log import configure_logging

# Import and register all commands at module level
from finovate.cli.commands import (
    account,
    dashboard,
    goal,
    invoice,
    transaction,
)

logger = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINOVATE_DB_PATH environment variable)",
    envvar="FINOVATE_DB_PATH",
)
@click.option(
    "--owner",
    help="Owner whose books to work on (overrides FINOVATE_OWNER environment variable)",
    envvar="FINOVATE_OWNER",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level for diagnostics on stderr (overrides FINOVATE_LOG_LEVEL)",
    envvar="FINOVATE_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, owner: str | None, log_level: str | None):
    """Finovate - Small business finance tracking.

    Record income and expenses, issue invoices, and follow your monthly
    goal on a dashboard. Paying an invoice records the payment in the
    ledger automatically.
    """
    ctx.ensure_object(dict)
    settings = get_settings()
    configure_logging(log_level or settings.log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["owner_id"] = owner or settings.owner_id
        ctx.call_on_close(db.disconnect)
        logger.debug("cli_started", command=ctx.invoked_subcommand, owner_id=ctx.obj["owner_id"])


# Register all commands
transaction.register_commands(cli)
invoice.register_commands(cli)
account.register_commands(cli)
dashboard.register_commands(cli)
goal.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

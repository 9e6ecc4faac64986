"""CLI error handling helpers."""

import click

from finovate.domain.errors import DomainError, ReconciliationError, ValidationError

# Exit code for failures on our side rather than the caller's
EXIT_INTERNAL = 3


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ValidationError):
        for detail in error.details:
            click.echo(f"  {detail.field}: {detail.message}", err=True)
    ctx.exit(EXIT_INTERNAL if isinstance(error, ReconciliationError) else 1)

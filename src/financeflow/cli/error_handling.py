"""CLI error handling helpers."""

import click

from financeflow.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def fail(ctx: click.Context, message: str) -> None:
    """Render a failure message and exit with failure."""
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)

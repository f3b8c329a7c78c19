"""Main CLI entry point."""

import click

from financeflow.config import Settings
from financeflow.database.factories import create_sqlite_store
from financeflow.logging_config import setup_logging

# Import and register all commands at module level
from financeflow.cli.commands import carry_forward, summary, transaction


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FINANCEFLOW_DB_PATH environment variable)",
    envvar="FINANCEFLOW_DB_PATH",
)
@click.pass_context
def cli(ctx, db_path: str | None):
    """Financeflow - monthly budgets, obligations and cash-flow forecasts.

    Works against the local database. Unpaid bills can be carried into the
    next month, and the current month's balance is projected to month end.
    """
    ctx.ensure_object(dict)

    # Open the store only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is not None:
        settings = Settings.from_env()
        setup_logging(settings)
        store = create_sqlite_store(database_path=db_path or settings.database_path)
        ctx.obj["settings"] = settings
        ctx.obj["store"] = store
        ctx.call_on_close(store.close)


# Register all commands
transaction.register_commands(cli)
summary.register_commands(cli)
carry_forward.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

"""Monthly carry-forward command."""

import click

from financeflow.cli.runtime import resolve_month, run_with_view_model
from financeflow.utils.amount_parser import format_amount


@click.command("carry-forward")
@click.option("--month", help="Month to close (YYYY-MM, defaults to this month)")
@click.pass_context
def carry_forward(ctx, month: str | None):
    """Carry unpaid bills of a month into the next month.

    Running it again for the same month does not carry anything twice.
    """
    selected = resolve_month(ctx, month)

    async def action(view_model):
        return await view_model.process_monthly_carry_forward()

    result = run_with_view_model(ctx, action, month=selected)
    if not result.success:
        click.echo(f"Error: Carry-forward failed: {result.error}", err=True)
        ctx.exit(1)

    target = selected.next()
    if result.carried:
        click.echo(f"Carried {len(result.carried)} transaction(s) into {target}:")
        for txn in result.carried:
            click.echo(f"  {str(txn.date):<12} {txn.title[:24]:<24} {format_amount(txn.amount):>12}")
        click.echo(f"Total carried: {format_amount(result.carried_total)}")
    else:
        click.echo(f"Nothing to carry into {target}.")
    if result.skipped:
        click.echo(f"Skipped {len(result.skipped)} already carried.")
    if result.reset:
        categories = sorted({txn.category for txn in result.reset})
        click.echo(f"Starting fresh next month: {', '.join(categories)}")


def register_commands(cli):
    """Register carry-forward command with main CLI."""
    cli.add_command(carry_forward)

"""Summary and forecast commands."""

import click

from financeflow.cli.runtime import resolve_month, run_with_view_model
from financeflow.utils.amount_parser import format_amount, parse_amount


@click.command("summary")
@click.option("--month", help="Month (YYYY-MM, 'this month', 'last month')")
@click.option("--budget", help="Monthly budget to compare expenses against")
@click.pass_context
def summary(ctx, month: str | None, budget: str | None):
    """Show income, expenses, balance and category totals for a month."""
    selected = resolve_month(ctx, month)
    budget_amount = None
    if budget:
        try:
            budget_amount = parse_amount(budget)
        except ValueError as e:
            click.echo(f"Error: Invalid budget: {e}", err=True)
            ctx.exit(1)

    async def action(view_model):
        return view_model.state

    state = run_with_view_model(ctx, action, month=selected, budget=budget_amount)
    if state.error:
        click.echo(f"Error: {state.error}", err=True)
        ctx.exit(1)

    snapshot = state.snapshot
    click.echo(f"\nSummary for {selected}")
    click.echo("=" * 40)
    click.echo(f"{'Income':<20} {format_amount(snapshot.income):>18}")
    click.echo(f"{'Expenses':<20} {format_amount(snapshot.expenses):>18}")
    click.echo(f"{'Balance':<20} {format_amount(snapshot.balance):>18}")
    click.echo(f"{'Unpaid':<20} {format_amount(snapshot.unpaid_total):>18}")
    if budget_amount is not None:
        click.echo(f"{'Budget':<20} {format_amount(state.budget):>18}")
        click.echo(f"{'Budget remaining':<20} {format_amount(state.budget_remaining):>18}")

    if snapshot.category_totals:
        click.echo("\nExpenses by category:")
        ordered = sorted(snapshot.category_totals.items(), key=lambda item: (-item[1], item[0]))
        for category, total in ordered:
            click.echo(f"  {category or 'Uncategorized':<18} {format_amount(total):>18}")

    if snapshot.recent:
        click.echo("\nRecent:")
        for txn in snapshot.recent:
            amount = format_amount(-txn.amount if txn.is_expense else txn.amount)
            click.echo(f"  {str(txn.date):<12} {txn.title[:24]:<24} {amount:>14}")

    if snapshot.frequent_payees:
        click.echo(f"\nFrequent payees: {', '.join(snapshot.frequent_payees)}")


@click.command("forecast")
@click.option("--month", help="Month (YYYY-MM, 'this month', 'last month')")
@click.pass_context
def forecast(ctx, month: str | None):
    """Show the daily running balance and its projection to month end.

    The projection extends the average daily net movement so far and
    subtracts known upcoming bills. It is an estimate only.
    """
    selected = resolve_month(ctx, month)

    async def action(view_model):
        return view_model.cash_flow

    series = run_with_view_model(ctx, action, month=selected)

    click.echo(f"\nCash flow for {selected}")
    click.echo("-" * 60)
    click.echo(f"{'Date':<12} {'Income':>12} {'Expense':>12} {'Balance':>14}")
    click.echo("-" * 60)
    for point in series.historical:
        click.echo(
            f"{str(point.date):<12} {format_amount(point.income):>12} "
            f"{format_amount(point.expense):>12} {format_amount(point.balance):>14}"
        )
    for point in series.forecast:
        click.echo(f"{str(point.date):<12} {'':>12} {'':>12} {format_amount(point.balance):>14} (projected)")
    click.echo(f"\nProjected month-end balance: {format_amount(series.projected_month_end)}")


def register_commands(cli):
    """Register summary commands with main CLI."""
    cli.add_command(summary)
    cli.add_command(forecast)

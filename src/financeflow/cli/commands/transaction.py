"""Transaction commands: add, list, pay, delete."""

import asyncio

import click

from financeflow.cli.error_handling import fail, handle_domain_error
from financeflow.cli.runtime import resolve_month, run_with_view_model
from financeflow.domain.entities import Month, TransactionStatus
from financeflow.domain.errors import DomainError
from financeflow.domain.rules import build_transaction
from financeflow.utils.amount_parser import format_amount, parse_amount
from financeflow.utils.date_parser import parse_date


@click.command("add")
@click.option(
    "--date",
    "date_str",
    required=True,
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')",
)
@click.option(
    "--amount", required=True, help="Transaction amount (e.g., 2500 or -85.75)"
)
@click.option("--title", default="", help="Transaction title or payee")
@click.option("--category", default="", help="Category (e.g., 'Food', 'Rent')")
@click.option(
    "--expense/--income",
    "is_expense",
    default=None,
    help="Direction. When omitted, a negative amount is an expense.",
)
@click.option("--paid", help="Amount already paid")
@click.pass_context
def add_transaction(
    ctx,
    date_str: str,
    amount: str,
    title: str,
    category: str,
    is_expense: bool | None,
    paid: str | None,
):
    """Add a transaction.

    Examples:
        financeflow add --date 2024-03-01 --amount 2500 --title Salary --income
        financeflow add --date today --amount -85.75 --title Market --category Food
    """
    try:
        txn = build_transaction(
            title=title,
            amount=parse_amount(amount),
            date=parse_date(date_str),
            category=category,
            is_expense=is_expense,
            paid_amount=parse_amount(paid) if paid else None,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return

    async def action(view_model):
        return await view_model.add_transaction(txn)

    if not run_with_view_model(ctx, action, month=Month.from_date(txn.date)):
        fail(ctx, "Could not add transaction")

    kind = "expense" if txn.is_expense else "income"
    click.echo(f"Added {kind} '{txn.title}' of {format_amount(txn.amount)} on {txn.date}")


@click.command("list")
@click.option("--month", help="Month (YYYY-MM, 'this month', 'last month')")
@click.option("--category", help="Only show this category")
@click.option(
    "--status",
    type=click.Choice([s.value for s in TransactionStatus]),
    help="Only show this payment status",
)
@click.option("--unpaid", is_flag=True, help="Only show transactions not fully paid")
@click.pass_context
def list_transactions(ctx, month: str | None, category: str | None, status: str | None, unpaid: bool):
    """List the transactions of a month, newest first."""
    selected = resolve_month(ctx, month)

    async def action(view_model):
        if unpaid:
            return view_model.unpaid_transactions()
        if status:
            return view_model.by_status(TransactionStatus(status))
        if category is not None:
            return view_model.by_category(category)
        return list(view_model.transactions)

    transactions = run_with_view_model(ctx, action, month=selected)
    if category is not None and (unpaid or status):
        transactions = [txn for txn in transactions if txn.category == category]

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s) in {selected}:")
    click.echo("-" * 96)
    click.echo(
        f"{'ID':<8} {'Date':<12} {'Amount':>12} {'Paid':>12} {'Status':<8} {'Category':<16} {'Title':<24}"
    )
    click.echo("-" * 96)
    for txn in transactions:
        amount_str = format_amount(-txn.amount if txn.is_expense else txn.amount)
        paid_str = format_amount(txn.paid_amount) if txn.paid_amount is not None else ""
        title = txn.title[:22] + (" *" if txn.is_carried_forward else "")
        click.echo(
            f"{txn.id:<8} {str(txn.date):<12} {amount_str:>12} {paid_str:>12} "
            f"{txn.status.value:<8} {txn.category[:16]:<16} {title:<24}"
        )


@click.command("pay")
@click.argument("transaction_id")
@click.argument("amount")
@click.pass_context
def pay_transaction(ctx, transaction_id: str, amount: str):
    """Record a payment of AMOUNT against a transaction.

    The paid amount never exceeds the transaction amount.
    """
    try:
        payment = parse_amount(amount)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    store = ctx.obj["store"]
    txn = asyncio.run(store.get_transaction(transaction_id))
    if txn is None:
        fail(ctx, f"Transaction {transaction_id} not found")
        return

    async def action(view_model):
        if not await view_model.record_payment(txn, payment):
            return None
        return await store.get_transaction(transaction_id)

    updated = run_with_view_model(ctx, action, month=Month.from_date(txn.date))
    if updated is None:
        fail(ctx, f"Could not record payment on transaction {transaction_id}")
        return

    click.echo(
        f"Transaction {transaction_id}: paid {format_amount(updated.paid_amount)} "
        f"of {format_amount(updated.amount)} ({updated.status.value})"
    )


@click.command("delete")
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, yes: bool):
    """Delete a transaction."""
    if not yes and not click.confirm(f"Delete transaction {transaction_id}?"):
        click.echo("Cancelled.")
        return

    async def action(view_model):
        return await view_model.delete_transaction(transaction_id)

    if not run_with_view_model(ctx, action):
        fail(ctx, f"Could not delete transaction {transaction_id}")
        return
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(add_transaction)
    cli.add_command(list_transactions)
    cli.add_command(pay_transaction)
    cli.add_command(delete_transaction)

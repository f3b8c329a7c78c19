"""Run view-model operations from synchronous click commands."""

import asyncio
from decimal import Decimal
from typing import Awaitable, Callable, Optional, TypeVar

import click

from financeflow.database.factories import remote_store_factory
from financeflow.database.remote import InMemoryDocumentStore
from financeflow.domain.collaborators import InMemoryAuthProvider, StaticBudgetProvider
from financeflow.domain.entities import Month
from financeflow.services.view_model import DashboardViewModel
from financeflow.utils.date_parser import parse_month

T = TypeVar("T")


def run_with_view_model(
    ctx: click.Context,
    action: Callable[[DashboardViewModel], Awaitable[T]],
    month: Optional[Month] = None,
    budget: Optional[Decimal] = None,
) -> T:
    """Start a signed-out view model on the local store, run ``action``, dispose.

    The CLI never signs in, so the remote factory is never used; it is wired
    to an empty in-memory document store only to satisfy the constructor.
    """
    store = ctx.obj["store"]
    settings = ctx.obj["settings"]

    async def runner() -> T:
        view_model = DashboardViewModel(
            local_store=store,
            remote_store_factory=remote_store_factory(InMemoryDocumentStore()),
            auth=InMemoryAuthProvider(),
            budget_provider=StaticBudgetProvider(default=budget or Decimal("0")),
            settings=settings,
            month=month,
        )
        await view_model.start()
        try:
            return await action(view_model)
        finally:
            await view_model.dispose()

    return asyncio.run(runner())


def resolve_month(ctx: click.Context, month: Optional[str]) -> Month:
    """Parse a --month option, exiting with an error message when invalid."""
    try:
        return parse_month(month or "this month")
    except ValueError as e:
        click.echo(f"Error: Invalid month: {e}", err=True)
        ctx.exit(1)

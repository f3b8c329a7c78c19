"""Shared pytest fixtures for financeflow tests."""

import asyncio
import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from financeflow.config import Settings
from financeflow.database.factories import create_sqlite_store, remote_store_factory
from financeflow.database.remote import InMemoryDocumentStore, RemoteTransactionStore
from financeflow.domain.collaborators import InMemoryAuthProvider, StaticBudgetProvider
from financeflow.domain.entities import Month
from financeflow.domain.rules import build_transaction
from financeflow.services.view_model import DashboardViewModel

TODAY = date(2024, 3, 15)
MARCH = Month(2024, 3)


async def settle(rounds: int = 50):
    """Let queued feed deliveries and consumer tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_txn(title="Item", amount="10", day=1, month=MARCH, **kwargs):
    """Build a transaction in ``month`` on ``day``."""
    return build_transaction(
        title=title,
        amount=Decimal(amount),
        date=date(month.year, month.month, day),
        **kwargs,
    )


@pytest.fixture
def temp_db_path():
    """Path to a temporary SQLite file, removed afterwards."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield db_path
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def local_store(temp_db_path):
    """Create a local store on a temporary database."""
    store = create_sqlite_store(database_path=temp_db_path)
    yield store
    store.close()


@pytest.fixture
def documents():
    """In-memory remote document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def remote_store(documents):
    """Remote store signed in as user-1."""
    return RemoteTransactionStore(documents, "user-1")


@pytest.fixture
def auth():
    """Signed-out auth provider."""
    return InMemoryAuthProvider()


@pytest.fixture
def settings():
    """Settings with a short loading timeout."""
    return Settings(loading_timeout=0.05)


@pytest.fixture
def view_model(local_store, documents, auth, settings):
    """View model on March 2024 with a fixed clock."""
    return DashboardViewModel(
        local_store=local_store,
        remote_store_factory=remote_store_factory(documents),
        auth=auth,
        budget_provider=StaticBudgetProvider({MARCH: Decimal("1000")}),
        settings=settings,
        clock=lambda: TODAY,
        month=MARCH,
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

"""Store factory functions for creating transaction store instances."""

import os
from pathlib import Path
from typing import Callable, Optional

from financeflow.database.base import TransactionStore
from financeflow.database.remote import DocumentStore, RemoteTransactionStore
from financeflow.database.sqlalchemy_db import SQLAlchemyTransactionStore


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemyTransactionStore:
    """Create a SQLite-backed local store.

    Args:
        database_path: Path to SQLite database file. If None, checks FINANCEFLOW_DB_PATH
            environment variable, then defaults to ~/.financeflow/financeflow.db

    Returns:
        SQLAlchemyTransactionStore instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("FINANCEFLOW_DB_PATH")

    if database_path is None:
        # Default to ~/.financeflow/financeflow.db
        home = Path.home()
        db_dir = home / ".financeflow"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "financeflow.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyTransactionStore(database_url)


def remote_store_factory(documents: DocumentStore) -> Callable[[Optional[str]], TransactionStore]:
    """Return a factory building a remote store for a given principal."""

    def create(principal: Optional[str]) -> TransactionStore:
        return RemoteTransactionStore(documents, principal)

    return create

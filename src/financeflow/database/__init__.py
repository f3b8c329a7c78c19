"""Storage layer for financeflow application."""

from financeflow.database.base import TransactionFeed, TransactionStore
from financeflow.database.factories import create_sqlite_store, remote_store_factory
from financeflow.database.remote import (
    DocumentStore,
    InMemoryDocumentStore,
    RemoteTransactionStore,
)
from financeflow.database.sqlalchemy_db import SQLAlchemyTransactionStore

__all__ = [
    "TransactionFeed",
    "TransactionStore",
    "create_sqlite_store",
    "remote_store_factory",
    "DocumentStore",
    "InMemoryDocumentStore",
    "RemoteTransactionStore",
    "SQLAlchemyTransactionStore",
]

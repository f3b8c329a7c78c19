"""SQLAlchemy-backed local transaction store."""

from typing import Callable, Optional, TypeVar
from datetime import date
from sqlalchemy import extract
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from financeflow.database.base import TransactionStore
from financeflow.database.mappers import apply_to_orm, transaction_to_domain
from financeflow.database.models import Transaction, create_session_factory
from financeflow.domain.entities import Month, Transaction as DomainTransaction
from financeflow.domain.errors import PersistenceError
from financeflow.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SQLAlchemyTransactionStore(TransactionStore):
    """SQLAlchemy-based implementation of the TransactionStore interface.

    Calls run synchronously inside the coroutine; the local database is fast
    enough that this behaves like any other awaited call to the caller.
    """

    name = "local store"

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy store.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    def _query(self, operation: str, run: Callable[[Session], T]) -> T:
        """Run ``run`` against the session, raising PersistenceError on database failures."""
        session = self._get_session()
        try:
            return run(session)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Local %s failed", operation, extra={"error": str(e)})
            raise PersistenceError(f"Could not {operation}: {e}") from e

    def _get_row(self, operation: str, transaction_id: str) -> Optional[Transaction]:
        try:
            key = int(transaction_id)
        except (TypeError, ValueError):
            return None
        return self._query(
            operation,
            lambda session: session.query(Transaction).filter(Transaction.id == key).first(),
        )

    def _commit(self, operation: str) -> None:
        self._query(operation, lambda session: session.commit())

    def close(self) -> None:
        """Close the session."""
        if self._session is not None:
            self._session.close()
            self._session = None

    async def list_transactions(self, month: Optional[Month] = None) -> list[DomainTransaction]:
        """List transactions, newest first, optionally limited to one month."""

        def run(session: Session) -> list[Transaction]:
            query = session.query(Transaction)
            if month is not None:
                query = query.filter(
                    extract("year", Transaction.date) == month.year,
                    extract("month", Transaction.date) == month.month,
                )
            return query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()

        rows = self._query("list transactions", run)
        return [transaction_to_domain(row) for row in rows]

    async def get_transaction(self, transaction_id: str) -> Optional[DomainTransaction]:
        """Get transaction by ID."""
        row = self._get_row("get transaction", transaction_id)
        if row is None:
            return None
        return transaction_to_domain(row)

    async def insert_transaction(self, txn: DomainTransaction) -> str:
        """Insert a transaction. Returns the new transaction ID."""
        row = apply_to_orm(txn, Transaction())
        self._query("insert transaction", lambda session: session.add(row))
        self._commit("insert transaction")
        return str(row.id)

    async def update_transaction(self, transaction_id: str, txn: DomainTransaction) -> bool:
        """Replace a transaction. Returns False if it doesn't exist."""
        row = self._get_row("update transaction", transaction_id)
        if row is None:
            return False
        apply_to_orm(txn, row)
        self._commit("update transaction")
        return True

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction. Returns False if it doesn't exist."""
        row = self._get_row("delete transaction", transaction_id)
        if row is None:
            return False
        self._query("delete transaction", lambda session: session.delete(row))
        self._commit("delete transaction")
        return True

    async def list_upcoming_bills(self, after: date, limit: int = 30) -> list[DomainTransaction]:
        """List unpaid expenses dated after ``after``, soonest first."""
        rows = self._query(
            "list upcoming bills",
            lambda session: session.query(Transaction)
            .filter(
                Transaction.is_expense.is_(True),
                Transaction.date > after,
                Transaction.status != "paid",
            )
            .order_by(Transaction.date.asc(), Transaction.id.asc())
            .limit(limit)
            .all(),
        )
        return [transaction_to_domain(row) for row in rows]

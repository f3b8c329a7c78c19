"""Abstract transaction store interface and live feed handle."""

import asyncio
from abc import ABC, abstractmethod
from datetime import date
from typing import Callable, Optional

# Import entities directly to avoid pulling in domain services
from financeflow.domain.entities import Month, Transaction
from financeflow.domain.errors import SubscriptionError, live_updates_unsupported


class TransactionFeed:
    """Cancelable, single-consumer handle for a live transaction feed.

    The producer pushes full transaction-set snapshots (or an error); the one
    consumer iterates with ``async for``. Closing the handle ends iteration and
    detaches the producer, so teardown is one call with nothing left dangling.
    """

    _CLOSED = object()

    def __init__(self, on_close: Optional[Callable[["TransactionFeed"], None]] = None):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._on_close = on_close
        self.closed = False

    def push(self, transactions: list[Transaction]) -> None:
        """Deliver a snapshot of the matching transaction set."""
        if not self.closed:
            self._queue.put_nowait(list(transactions))

    def fail(self, error: Exception) -> None:
        """Deliver an error; the consumer sees it raised as SubscriptionError."""
        if not self.closed:
            self._queue.put_nowait(error)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._queue.put_nowait(self._CLOSED)
        if self._on_close is not None:
            self._on_close(self)

    def __aiter__(self) -> "TransactionFeed":
        return self

    async def __anext__(self) -> list[Transaction]:
        item = await self._queue.get()
        if item is self._CLOSED:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            self.close()
            if isinstance(item, SubscriptionError):
                raise item
            raise SubscriptionError(str(item)) from item
        return item


class TransactionStore(ABC):
    """Abstract transaction store shared by the local and remote backends.

    Backend failures are raised as PersistenceError.
    """

    name = "store"
    supports_live_updates = False

    @abstractmethod
    async def list_transactions(self, month: Optional[Month] = None) -> list[Transaction]:
        """List transactions, newest first, optionally limited to one month."""
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    async def insert_transaction(self, txn: Transaction) -> str:
        """Insert a transaction. Returns the new transaction ID."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction_id: str, txn: Transaction) -> bool:
        """Replace a transaction. Returns False if it doesn't exist."""
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction. Returns False if it doesn't exist."""
        pass

    @abstractmethod
    async def list_upcoming_bills(self, after: date, limit: int = 30) -> list[Transaction]:
        """List unpaid expenses dated after ``after``, soonest first."""
        pass

    async def subscribe(self, month: Month) -> TransactionFeed:
        """Open a live feed of the month's transaction set.

        Raises:
            SubscriptionError: If the store has no live updates
        """
        raise SubscriptionError(live_updates_unsupported(self.name))

    def close(self) -> None:
        """Release backend resources."""
        pass

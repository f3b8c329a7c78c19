"""Remote document-store backed transaction store.

The real-time document database is an external collaborator. This module
defines the narrow contract consumed from it (``DocumentStore``), an in-memory
implementation with live watchers, and the ``RemoteTransactionStore`` adapter
that scopes every call under the signed-in user's namespace.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from typing import Any, Optional

from financeflow.database.base import TransactionFeed, TransactionStore
from financeflow.database.mappers import document_to_domain, domain_to_document
from financeflow.domain.entities import Month, Transaction, TransactionStatus
from financeflow.domain.errors import AuthRequiredError, PersistenceError, SubscriptionError, auth_required
from financeflow.logging_config import get_logger

logger = get_logger(__name__)

DocumentRange = tuple[Optional[datetime], Optional[datetime]]


class DocumentStore(ABC):
    """Contract consumed from the remote document database."""

    @abstractmethod
    async def query(
        self, collection: str, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return (id, data) pairs whose ``date`` lies within [start, end]."""
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Get a document body by ID."""
        pass

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Add a document with a generated ID. Returns the ID."""
        pass

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: dict[str, Any], merge: bool = True) -> None:
        """Write a document, merging into an existing one when ``merge`` is set."""
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> bool:
        """Update an existing document. Returns False if it doesn't exist."""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False if it doesn't exist."""
        pass

    @abstractmethod
    def watch(
        self, collection: str, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> TransactionFeed:
        """Open a live feed of the collection range; delivers immediately, then on change."""
        pass


class InMemoryDocumentStore(DocumentStore):
    """Document store held in memory, with live watchers.

    Every write re-delivers the full matching set to each watcher of the
    written collection, the way a real-time database pushes query snapshots.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._watchers: dict[str, list[tuple[TransactionFeed, DocumentRange]]] = {}

    @property
    def watcher_count(self) -> int:
        return sum(len(watchers) for watchers in self._watchers.values())

    def _collection(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _matching(
        self, collection: str, start: Optional[datetime], end: Optional[datetime]
    ) -> list[tuple[str, dict[str, Any]]]:
        result = []
        for doc_id, data in self._collection(collection).items():
            when = data.get("date")
            if start is not None and when < start:
                continue
            if end is not None and when > end:
                continue
            result.append((doc_id, dict(data)))
        return result

    def _snapshot(self, collection: str, bounds: DocumentRange) -> list[Transaction]:
        return [document_to_domain(doc_id, data) for doc_id, data in self._matching(collection, *bounds)]

    def _notify(self, collection: str) -> None:
        for feed, bounds in list(self._watchers.get(collection, [])):
            feed.push(self._snapshot(collection, bounds))

    def fail_watchers(self, collection: str, error: Exception) -> None:
        """Push an error to every watcher of a collection."""
        for feed, _ in list(self._watchers.get(collection, [])):
            feed.fail(error)

    async def query(self, collection, start=None, end=None):
        return self._matching(collection, start, end)

    async def get(self, collection, doc_id):
        data = self._collection(collection).get(doc_id)
        return dict(data) if data is not None else None

    async def add(self, collection, data):
        doc_id = uuid.uuid4().hex
        self._collection(collection)[doc_id] = dict(data)
        self._notify(collection)
        return doc_id

    async def set(self, collection, doc_id, data, merge=True):
        docs = self._collection(collection)
        if merge and doc_id in docs:
            docs[doc_id].update(data)
        else:
            docs[doc_id] = dict(data)
        self._notify(collection)

    async def update(self, collection, doc_id, data):
        docs = self._collection(collection)
        if doc_id not in docs:
            return False
        docs[doc_id].update(data)
        self._notify(collection)
        return True

    async def delete(self, collection, doc_id):
        if self._collection(collection).pop(doc_id, None) is None:
            return False
        self._notify(collection)
        return True

    def watch(self, collection, start=None, end=None):
        bounds = (start, end)

        def detach(feed: TransactionFeed) -> None:
            watchers = self._watchers.get(collection, [])
            self._watchers[collection] = [(f, b) for f, b in watchers if f is not feed]

        feed = TransactionFeed(on_close=detach)
        self._watchers.setdefault(collection, []).append((feed, bounds))
        feed.push(self._snapshot(collection, bounds))
        return feed


def month_range(month: Month) -> tuple[datetime, datetime]:
    """Date-range predicate bounds: first day 00:00:00 to last day 23:59:59."""
    return (
        datetime.combine(month.first_day, time.min),
        datetime.combine(month.last_day, time(23, 59, 59)),
    )


class RemoteTransactionStore(TransactionStore):
    """Transaction store scoped under one user's remote namespace."""

    name = "remote store"
    supports_live_updates = True

    def __init__(self, documents: DocumentStore, principal: Optional[str]):
        """Initialize remote store.

        Args:
            documents: Document store collaborator
            principal: Signed-in user ID, or None when signed out
        """
        self.documents = documents
        self.principal = principal

    def _collection(self, operation: str) -> str:
        if not self.principal:
            raise AuthRequiredError(auth_required(operation))
        return f"users/{self.principal}/transactions"

    async def _call(self, operation: str, coro):
        try:
            return await coro
        except (AuthRequiredError, PersistenceError):
            raise
        except Exception as e:
            logger.error("Remote %s failed", operation, extra={"error": str(e)})
            raise PersistenceError(f"Could not {operation}: {e}") from e

    async def list_transactions(self, month: Optional[Month] = None) -> list[Transaction]:
        collection = self._collection("list transactions")
        start, end = month_range(month) if month is not None else (None, None)
        docs = await self._call("list transactions", self.documents.query(collection, start, end))
        txns = [document_to_domain(doc_id, data) for doc_id, data in docs]
        return sorted(txns, key=lambda txn: txn.date, reverse=True)

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        collection = self._collection("get transaction")
        data = await self._call("get transaction", self.documents.get(collection, transaction_id))
        if data is None:
            return None
        return document_to_domain(transaction_id, data)

    async def insert_transaction(self, txn: Transaction) -> str:
        collection = self._collection("insert transaction")
        return await self._call("insert transaction", self.documents.add(collection, domain_to_document(txn)))

    async def update_transaction(self, transaction_id: str, txn: Transaction) -> bool:
        collection = self._collection("update transaction")
        return await self._call(
            "update transaction",
            self.documents.update(collection, transaction_id, domain_to_document(txn)),
        )

    async def delete_transaction(self, transaction_id: str) -> bool:
        collection = self._collection("delete transaction")
        return await self._call("delete transaction", self.documents.delete(collection, transaction_id))

    async def list_upcoming_bills(self, after: date, limit: int = 30) -> list[Transaction]:
        collection = self._collection("list upcoming bills")
        start = datetime.combine(after, time.max)
        docs = await self._call("list upcoming bills", self.documents.query(collection, start, None))
        bills = [
            txn
            for txn in (document_to_domain(doc_id, data) for doc_id, data in docs)
            if txn.is_expense and txn.date > after and txn.status != TransactionStatus.PAID
        ]
        bills.sort(key=lambda txn: txn.date)
        return bills[:limit]

    async def subscribe(self, month: Month) -> TransactionFeed:
        """Open a live feed of the month's transactions under this user."""
        collection = self._collection("subscribe")
        try:
            return self.documents.watch(collection, *month_range(month))
        except SubscriptionError:
            raise
        except Exception as e:
            logger.error("Remote subscribe failed", extra={"error": str(e)})
            raise SubscriptionError(f"Could not subscribe: {e}") from e

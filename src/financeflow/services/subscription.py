"""Live subscription management.

At most one live feed exists at any time. Every new subscription tears the
previous one down first, and a generation counter makes sure a feed that was
superseded while it was still opening, or while a delivery was in flight,
never reaches the consumer.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from financeflow.database.base import TransactionFeed, TransactionStore
from financeflow.domain.entities import Month, Transaction
from financeflow.domain.errors import DomainError, LoadingTimeoutError, SubscriptionError
from financeflow.logging_config import get_logger

logger = get_logger(__name__)

SnapshotHandler = Callable[[list[Transaction]], Awaitable[None]]
ErrorHandler = Callable[[SubscriptionError], Awaitable[None]]
TimeoutHandler = Callable[[LoadingTimeoutError], None]


class SubscriptionState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    ERROR_BACKOFF = "error_backoff"


class SubscriptionManager:
    """Owns the single live transaction feed."""

    def __init__(self, loading_timeout: float = 5.0):
        """Initialize subscription manager.

        Args:
            loading_timeout: Seconds to wait for the first delivery before the
                timeout handler fires. The subscription itself stays open.
        """
        self.loading_timeout = loading_timeout
        self.state = SubscriptionState.UNSUBSCRIBED
        self.generation = 0
        self.month: Optional[Month] = None
        self._feed: Optional[TransactionFeed] = None
        self._task: Optional[asyncio.Task] = None
        self._timeout: Optional[asyncio.TimerHandle] = None
        self._retired: list[asyncio.Task] = []

    @property
    def active_count(self) -> int:
        """Number of open feeds: always 0 or 1."""
        return 1 if self._feed is not None and not self._feed.closed else 0

    async def subscribe(
        self,
        store: TransactionStore,
        month: Month,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
        on_timeout: Optional[TimeoutHandler] = None,
    ) -> int:
        """Replace the current feed with one for ``month`` on ``store``.

        Returns:
            Generation number of the new subscription
        """
        self.unsubscribe()
        generation = self.generation
        self.state = SubscriptionState.SUBSCRIBING
        self.month = month

        try:
            feed = await store.subscribe(month)
        except DomainError as e:
            if generation != self.generation:
                return generation
            error = e if isinstance(e, SubscriptionError) else SubscriptionError(str(e))
            logger.warning("Could not open live feed", extra={"month": str(month), "error": str(e)})
            self.state = SubscriptionState.ERROR_BACKOFF
            await on_error(error)
            return generation

        if generation != self.generation:
            # Superseded while the feed was opening
            feed.close()
            return generation

        self._feed = feed
        if on_timeout is not None and self.loading_timeout > 0:
            loop = asyncio.get_running_loop()
            self._timeout = loop.call_later(self.loading_timeout, self._fire_timeout, generation, on_timeout)
        self._task = asyncio.create_task(self._consume(generation, feed, on_snapshot, on_error))
        logger.debug("Subscribed", extra={"month": str(month), "generation": generation})
        return generation

    def unsubscribe(self) -> None:
        """Tear down the current feed, if any."""
        self.generation += 1
        self._cancel_timeout()
        if self._feed is not None:
            self._feed.close()
            self._feed = None
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
            self._retired = [t for t in self._retired if not t.done()]
            self._retired.append(task)
        self.state = SubscriptionState.UNSUBSCRIBED

    async def shutdown(self) -> None:
        """Unsubscribe and wait for cancelled consumers to finish."""
        self.unsubscribe()
        retired, self._retired = self._retired, []
        if retired:
            await asyncio.gather(*retired, return_exceptions=True)

    async def _consume(
        self,
        generation: int,
        feed: TransactionFeed,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
    ) -> None:
        try:
            async for transactions in feed:
                if generation != self.generation:
                    break
                if self.state == SubscriptionState.SUBSCRIBING:
                    self.state = SubscriptionState.ACTIVE
                    self._cancel_timeout()
                await on_snapshot(transactions)
        except SubscriptionError as e:
            if generation != self.generation:
                return
            logger.warning("Live feed failed", extra={"month": str(self.month), "error": str(e)})
            self._cancel_timeout()
            feed.close()
            self._feed = None
            self._task = None
            self.state = SubscriptionState.ERROR_BACKOFF
            await on_error(e)

    def _fire_timeout(self, generation: int, on_timeout: TimeoutHandler) -> None:
        self._timeout = None
        if generation != self.generation or self.state != SubscriptionState.SUBSCRIBING:
            return
        error = LoadingTimeoutError(f"No data for {self.month} after {self.loading_timeout:.1f}s")
        logger.warning(str(error), extra={"month": str(self.month)})
        on_timeout(error)

    def _cancel_timeout(self) -> None:
        if self._timeout is not None:
            self._timeout.cancel()
            self._timeout = None


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None

"""Tests for the live subscription manager."""

import asyncio

import pytest

from conftest import MARCH, make_txn, settle

from financeflow.database.base import TransactionFeed
from financeflow.domain.entities import Month
from financeflow.domain.errors import LoadingTimeoutError, SubscriptionError
from financeflow.services.subscription import SubscriptionManager, SubscriptionState


class SilentStore:
    """Store whose feeds never deliver unless pushed to by the test."""

    def __init__(self):
        self.feeds = []

    async def subscribe(self, month):
        feed = TransactionFeed()
        self.feeds.append(feed)
        return feed


class Recorder:
    def __init__(self):
        self.snapshots = []
        self.errors = []
        self.timeouts = []

    async def on_snapshot(self, transactions):
        self.snapshots.append(transactions)

    async def on_error(self, error):
        self.errors.append(error)

    def on_timeout(self, error):
        self.timeouts.append(error)


async def _subscribe(manager, store, recorder, month=MARCH):
    return await manager.subscribe(
        store,
        month,
        on_snapshot=recorder.on_snapshot,
        on_error=recorder.on_error,
        on_timeout=recorder.on_timeout,
    )


@pytest.mark.asyncio
async def test_first_delivery_activates(remote_store, documents):
    """Test that the first delivery activates the subscription."""
    manager = SubscriptionManager(loading_timeout=1)
    recorder = Recorder()
    await remote_store.insert_transaction(make_txn(title="Rent", amount="-900", day=1))

    await _subscribe(manager, remote_store, recorder)
    await settle()

    assert manager.state == SubscriptionState.ACTIVE
    assert [txn.title for txn in recorder.snapshots[-1]] == ["Rent"]
    assert manager.active_count == 1
    await manager.shutdown()
    assert documents.watcher_count == 0


@pytest.mark.asyncio
async def test_resubscribe_keeps_one_feed(remote_store, documents):
    """Switching months tears down the previous feed first."""
    manager = SubscriptionManager(loading_timeout=1)
    recorder = Recorder()

    await _subscribe(manager, remote_store, recorder, MARCH)
    await _subscribe(manager, remote_store, recorder, Month(2024, 4))
    await _subscribe(manager, remote_store, recorder, Month(2024, 5))
    await settle()

    assert manager.active_count == 1
    assert documents.watcher_count == 1
    assert manager.month == Month(2024, 5)
    await manager.shutdown()


@pytest.mark.asyncio
async def test_superseded_feed_never_delivers():
    """Test that a replaced feed never reaches the handler."""
    manager = SubscriptionManager(loading_timeout=1)
    store = SilentStore()
    recorder = Recorder()

    await _subscribe(manager, store, recorder)
    first = store.feeds[0]
    await _subscribe(manager, store, recorder)
    first.push([make_txn(title="Stale")])
    store.feeds[1].push([make_txn(title="Fresh")])
    await settle()

    assert [[txn.title for txn in batch] for batch in recorder.snapshots] == [["Fresh"]]
    await manager.shutdown()


@pytest.mark.asyncio
async def test_loading_timeout_fires_without_data():
    """Test that the timeout fires when no data arrives."""
    manager = SubscriptionManager(loading_timeout=0.01)
    recorder = Recorder()

    await _subscribe(manager, SilentStore(), recorder)
    await asyncio.sleep(0.05)

    assert len(recorder.timeouts) == 1
    assert isinstance(recorder.timeouts[0], LoadingTimeoutError)
    assert manager.state == SubscriptionState.SUBSCRIBING
    await manager.shutdown()


@pytest.mark.asyncio
async def test_timeout_cancelled_by_first_delivery():
    """Test that a delivery cancels the timeout."""
    manager = SubscriptionManager(loading_timeout=0.02)
    store = SilentStore()
    recorder = Recorder()

    await _subscribe(manager, store, recorder)
    store.feeds[0].push([])
    await settle()
    await asyncio.sleep(0.05)

    assert recorder.timeouts == []
    await manager.shutdown()


@pytest.mark.asyncio
async def test_feed_error_moves_to_backoff():
    """Test that a feed error moves the manager to backoff."""
    manager = SubscriptionManager(loading_timeout=1)
    store = SilentStore()
    recorder = Recorder()

    await _subscribe(manager, store, recorder)
    store.feeds[0].fail(RuntimeError("permission denied"))
    await settle()

    assert manager.state == SubscriptionState.ERROR_BACKOFF
    assert manager.active_count == 0
    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0], SubscriptionError)


@pytest.mark.asyncio
async def test_store_without_feed_reports_error(local_store):
    """Test subscribing to a store without live updates."""
    manager = SubscriptionManager(loading_timeout=1)
    recorder = Recorder()

    await _subscribe(manager, local_store, recorder)

    assert manager.state == SubscriptionState.ERROR_BACKOFF
    assert len(recorder.errors) == 1


@pytest.mark.asyncio
async def test_unsubscribe_closes_feed():
    """Test that shutdown closes the feed."""
    manager = SubscriptionManager(loading_timeout=1)
    store = SilentStore()

    await _subscribe(manager, store, Recorder())
    await manager.shutdown()

    assert store.feeds[0].closed
    assert manager.state == SubscriptionState.UNSUBSCRIBED
    assert manager.active_count == 0

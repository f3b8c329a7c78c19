"""Tests for monthly carry-forward and reset processing."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import MARCH, make_txn

from financeflow.config import DEFAULT_CARRY_FORWARD_CATEGORIES, DEFAULT_RESET_CATEGORIES
from financeflow.domain.carry_forward import CarryForwardService, same_day_in
from financeflow.domain.entities import Month, TransactionStatus
from financeflow.domain.errors import PersistenceError

APRIL = Month(2024, 4)


class FailingInsertStore:
    """Wraps a store and fails the Nth insert."""

    def __init__(self, store, fail_on: int):
        self.store = store
        self.fail_on = fail_on
        self.inserts = 0

    async def list_transactions(self, month=None):
        return await self.store.list_transactions(month)

    async def insert_transaction(self, txn):
        self.inserts += 1
        if self.inserts == self.fail_on:
            raise PersistenceError("disk full")
        return await self.store.insert_transaction(txn)

    async def delete_transaction(self, transaction_id):
        return await self.store.delete_transaction(transaction_id)


async def _seed(store, *transactions):
    seeded = []
    for txn in transactions:
        new_id = await store.insert_transaction(txn)
        seeded.append(await store.get_transaction(new_id))
    return seeded


def _service(store):
    return CarryForwardService(store, DEFAULT_CARRY_FORWARD_CATEGORIES, DEFAULT_RESET_CATEGORIES)


def test_same_day_clamps_to_month_end():
    """Test that the carried date is clamped to the last day of the month."""
    assert same_day_in(Month(2024, 2), date(2024, 1, 31)) == date(2024, 2, 29)
    assert same_day_in(APRIL, date(2024, 3, 12)) == date(2024, 4, 12)


def test_selection_by_category_and_status():
    """Test carry-forward and reset selection by category and status."""
    transactions = [
        make_txn(title="Phone", amount="-30", day=12, category="Bills", id="1"),
        make_txn(title="Rent", amount="-900", day=1, category="Rent", paid_amount="900", id="2"),
        make_txn(title="Market", amount="-40", day=2, category="Food", id="3"),
    ]
    service = _service(None)

    assert [txn.title for txn in service.select_carry_forward(transactions, MARCH)] == ["Phone"]
    assert [txn.title for txn in service.select_reset(transactions, MARCH)] == ["Market"]


@pytest.mark.asyncio
async def test_unpaid_bill_is_carried_once(local_store):
    """Running twice for the same month carries the bill only once."""
    transactions = await _seed(
        local_store,
        make_txn(title="Power", amount="-100", day=10, category="Utilities", paid_amount="40"),
        make_txn(title="Market", amount="-40", day=2, category="Food"),
    )
    service = _service(local_store)

    first = await service.process_monthly_carry_forward(transactions, MARCH)
    second = await service.process_monthly_carry_forward(transactions, MARCH)

    assert first.success
    assert len(first.carried) == 1
    copy = first.carried[0]
    assert copy.amount == Decimal("60")
    assert copy.date == date(2024, 4, 10)
    assert copy.is_carried_forward
    assert copy.carried_from_id == transactions[0].id
    assert copy.status == TransactionStatus.UNPAID
    assert [txn.title for txn in first.reset] == ["Market"]

    assert second.success
    assert second.carried == ()
    assert len(second.skipped) == 1

    april = await local_store.list_transactions(APRIL)
    assert len(april) == 1
    assert sum(txn.amount for txn in april) == Decimal("60")


@pytest.mark.asyncio
async def test_originals_are_untouched(local_store):
    """Test that carrying forward never modifies the original."""
    transactions = await _seed(
        local_store, make_txn(title="Phone", amount="-30", day=12, category="Bills")
    )

    await _service(local_store).process_monthly_carry_forward(transactions, MARCH)

    original = await local_store.get_transaction(transactions[0].id)
    assert original == transactions[0]
    assert len(await local_store.list_transactions(MARCH)) == 1


@pytest.mark.asyncio
async def test_failed_write_rolls_back(local_store):
    """A failure midway leaves no carried copies behind."""
    transactions = await _seed(
        local_store,
        make_txn(title="Phone", amount="-30", day=12, category="Bills"),
        make_txn(title="Loan", amount="-200", day=15, category="Loan"),
    )
    store = FailingInsertStore(local_store, fail_on=2)

    result = await _service(store).process_monthly_carry_forward(transactions, MARCH)

    assert not result.success
    assert "disk full" in result.error
    assert result.carried == ()
    assert await local_store.list_transactions(APRIL) == []


@pytest.mark.asyncio
async def test_nothing_to_carry(local_store):
    """Test a month with nothing to carry forward."""
    transactions = await _seed(
        local_store, make_txn(title="Salary", amount="2000", day=1, is_expense=False)
    )

    result = await _service(local_store).process_monthly_carry_forward(transactions, MARCH)

    assert result.success
    assert result.carried == ()
    assert result.carried_total == Decimal("0")

"""Tests for the transaction service."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from conftest import MARCH, make_txn

from financeflow.domain.entities import TransactionStatus
from financeflow.domain.errors import NotFoundError, ValidationError
from financeflow.domain.transaction import TransactionService


@pytest.fixture
def transaction_service(local_store):
    """Create a TransactionService on the local store."""
    return TransactionService(local_store)


@pytest.mark.asyncio
async def test_create_ignores_given_id(transaction_service):
    """Test that create assigns a new ID."""
    new_id = await transaction_service.create_transaction(make_txn(title="Cafe", amount="-4", id="abc"))

    stored = await transaction_service.get_transaction(new_id)
    assert stored.id == new_id
    assert stored.id != "abc"


@pytest.mark.asyncio
async def test_create_rejects_bad_paid_amount(transaction_service):
    """Test that create validates the paid amount."""
    txn = replace(make_txn(title="Cafe", amount="-4"), paid_amount=Decimal("9"))

    with pytest.raises(ValidationError):
        await transaction_service.create_transaction(txn)


@pytest.mark.asyncio
async def test_update_missing_transaction(transaction_service):
    """Test updating a missing or ID-less transaction."""
    with pytest.raises(NotFoundError):
        await transaction_service.update_transaction(make_txn(id="404"))
    with pytest.raises(ValidationError):
        await transaction_service.update_transaction(make_txn())


@pytest.mark.asyncio
async def test_delete_missing_transaction(transaction_service):
    """Test deleting a missing transaction."""
    with pytest.raises(NotFoundError):
        await transaction_service.delete_transaction("404")


@pytest.mark.asyncio
async def test_record_payment_persists(transaction_service):
    """Test that a recorded payment is stored."""
    new_id = await transaction_service.create_transaction(make_txn(title="Power", amount="-100", day=10))
    txn = await transaction_service.get_transaction(new_id)

    updated = await transaction_service.record_payment(txn, "40")

    assert updated.status == TransactionStatus.PARTIAL
    assert (await transaction_service.get_transaction(new_id)).paid_amount == Decimal("40")


@pytest.mark.asyncio
async def test_listing(transaction_service):
    """Test listing by month and upcoming bills."""
    await transaction_service.create_transaction(make_txn(title="Rent", amount="-900", day=1))
    await transaction_service.create_transaction(make_txn(title="Phone", amount="-30", day=28))

    assert len(await transaction_service.list_transactions(MARCH)) == 2
    bills = await transaction_service.list_upcoming_bills(after=date(2024, 3, 15))
    assert [txn.title for txn in bills] == ["Phone"]

"""Transaction domain service."""

from dataclasses import replace
from datetime import date
from typing import Optional

from financeflow.database.base import TransactionStore
from financeflow.domain.entities import ZERO, Month, Transaction
from financeflow.domain.errors import (
    NotFoundError,
    ValidationError,
    invalid_paid_amount,
    transaction_not_found,
)
from financeflow.domain.rules import AmountLike, apply_payment


class TransactionService:
    """Service for managing transactions against one store."""

    def __init__(self, store: TransactionStore):
        """Initialize transaction service.

        Args:
            store: Transaction store instance
        """
        self.store = store

    async def create_transaction(self, txn: Transaction) -> str:
        """Create a transaction.

        Args:
            txn: Transaction to create (its id is ignored)

        Returns:
            New transaction ID

        Raises:
            ValidationError: If the transaction violates the paid amount invariant
        """
        self._validate(txn)
        return await self.store.insert_transaction(replace(txn, id=None))

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        return await self.store.get_transaction(transaction_id)

    async def update_transaction(self, txn: Transaction) -> None:
        """Replace a stored transaction.

        Raises:
            ValidationError: If the transaction has no ID or is invalid
            NotFoundError: If the transaction doesn't exist
        """
        if txn.id is None:
            raise ValidationError("Cannot update a transaction without an ID")
        self._validate(txn)
        if not await self.store.update_transaction(txn.id, txn):
            raise NotFoundError(transaction_not_found(txn.id))

    async def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        if not await self.store.delete_transaction(transaction_id):
            raise NotFoundError(transaction_not_found(transaction_id))

    async def record_payment(self, txn: Transaction, amount: AmountLike) -> Transaction:
        """Record a payment and persist the updated transaction.

        Returns:
            The updated transaction
        """
        updated = apply_payment(txn, amount)
        await self.update_transaction(updated)
        return updated

    async def list_transactions(self, month: Optional[Month] = None) -> list[Transaction]:
        """List transactions, optionally limited to one month."""
        return await self.store.list_transactions(month)

    async def list_upcoming_bills(self, after: date, limit: int = 30) -> list[Transaction]:
        """List unpaid expenses dated after ``after``."""
        return await self.store.list_upcoming_bills(after=after, limit=limit)

    def _validate(self, txn: Transaction) -> None:
        if txn.amount < 0:
            raise ValidationError(f"Amount must be a non-negative magnitude, got {txn.amount}")
        if txn.paid_amount is not None and not ZERO <= txn.paid_amount <= txn.amount:
            raise ValidationError(invalid_paid_amount(txn.paid_amount, txn.amount))

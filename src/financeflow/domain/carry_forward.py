"""Monthly carry-forward and reset processing."""

from dataclasses import replace
from datetime import date
from typing import Iterable, Sequence

from financeflow.database.base import TransactionStore
from financeflow.domain.aggregator import filter_month, in_categories
from financeflow.domain.entities import (
    CarryForwardResult,
    Month,
    Transaction,
    TransactionStatus,
)
from financeflow.domain.errors import DomainError
from financeflow.domain.rules import build_transaction
from financeflow.logging_config import get_logger

logger = get_logger(__name__)


def same_day_in(month: Month, day: date) -> date:
    """The same day-of-month in ``month``, clamped to its last day."""
    return date(month.year, month.month, min(day.day, month.days_in_month))


def carried_copy(original: Transaction, month: Month) -> Transaction:
    """Materialize the unpaid remainder of ``original`` as a new transaction in ``month``."""
    return build_transaction(
        title=original.title,
        amount=original.remaining_amount,
        is_expense=original.is_expense,
        date=same_day_in(month, original.date),
        category=original.category,
        is_carried_forward=True,
        carried_from_id=original.id,
    )


class CarryForwardService:
    """Rolls unpaid obligations into the next month.

    Originals are never modified or deleted. A second run for the same month
    skips originals that already have a carried copy in the next month
    (matched on ``carried_from_id``), so repeating the operation never doubles
    the carried amount.
    """

    def __init__(
        self,
        store: TransactionStore,
        carry_forward_categories: Iterable[str],
        reset_categories: Iterable[str],
    ):
        """Initialize carry-forward service.

        Args:
            store: Store the carried copies are written to
            carry_forward_categories: Categories rolled over while unpaid
            reset_categories: Categories that start each month from zero
        """
        self.store = store
        self.carry_forward_categories = tuple(carry_forward_categories)
        self.reset_categories = tuple(reset_categories)

    def select_carry_forward(self, transactions: Sequence[Transaction], month: Month) -> list[Transaction]:
        """Unpaid transactions of ``month`` in carry-forward categories."""
        return [
            txn
            for txn in in_categories(filter_month(transactions, month), self.carry_forward_categories)
            if txn.status != TransactionStatus.PAID and txn.remaining_amount > 0
        ]

    def select_reset(self, transactions: Sequence[Transaction], month: Month) -> list[Transaction]:
        """Transactions of ``month`` in reset categories, whatever their status."""
        return in_categories(filter_month(transactions, month), self.reset_categories)

    async def process_monthly_carry_forward(
        self, transactions: Sequence[Transaction], month: Month
    ) -> CarryForwardResult:
        """Carry unpaid obligations of ``month`` into the following month.

        All-or-nothing per call: if any write fails, copies already written by
        this call are deleted again and the result reports failure.

        Args:
            transactions: Current transaction set (other months are ignored)
            month: Month being closed

        Returns:
            CarryForwardResult describing carried, skipped and reset transactions
        """
        target = month.next()
        reset = tuple(self.select_reset(transactions, month))
        candidates = self.select_carry_forward(transactions, month)

        inserted: list[Transaction] = []
        skipped: list[Transaction] = []
        try:
            existing = await self.store.list_transactions(target)
            already_carried = {
                txn.carried_from_id for txn in existing if txn.is_carried_forward and txn.carried_from_id
            }
            for original in candidates:
                if original.id is not None and original.id in already_carried:
                    skipped.append(original)
                    continue
                copy = carried_copy(original, target)
                new_id = await self.store.insert_transaction(copy)
                inserted.append(replace(copy, id=new_id))
        except DomainError as e:
            logger.error(
                "Carry-forward aborted",
                extra={"month": str(month), "written": len(inserted), "error": str(e)},
            )
            await self._rollback(inserted)
            return CarryForwardResult(success=False, reset=reset, error=str(e))

        logger.info(
            "Carried forward %d transaction(s) into %s",
            len(inserted),
            target,
            extra={"skipped": len(skipped), "reset": len(reset)},
        )
        return CarryForwardResult(
            success=True, carried=tuple(inserted), skipped=tuple(skipped), reset=reset
        )

    async def _rollback(self, inserted: list[Transaction]) -> None:
        for txn in inserted:
            try:
                await self.store.delete_transaction(txn.id)
            except DomainError as e:
                logger.error(
                    "Could not roll back carried transaction",
                    extra={"transaction_id": txn.id, "error": str(e)},
                )

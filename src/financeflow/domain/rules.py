"""Transaction normalization and payment rules.

Every record entering the system, whether typed in by the user, read from the
local database or delivered by the remote feed, passes through
:func:`build_transaction` so that direction and payment status are derived the
same way everywhere.
"""

from dataclasses import replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from financeflow.domain.entities import ZERO, Transaction, TransactionStatus
from financeflow.domain.errors import (
    ValidationError,
    invalid_paid_amount,
    invalid_payment,
)

AmountLike = Union[Decimal, int, float, str]

# Both stores keep money to the cent
CENTS = Decimal("0.01")


def to_decimal(value: AmountLike) -> Decimal:
    """Convert a numeric value to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_cents(value: AmountLike) -> Decimal:
    """Convert a numeric value to Decimal rounded half up to whole cents."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_direction(
    amount: AmountLike, is_expense: Optional[bool] = None
) -> tuple[Decimal, bool]:
    """Normalize a raw amount and optional expense flag.

    The explicit flag wins when given. When it is None, a negative amount
    means an expense. The returned amount is always the absolute magnitude.

    Args:
        amount: Signed or unsigned amount
        is_expense: Optional explicit direction

    Returns:
        Tuple of (magnitude, is_expense)
    """
    value = to_decimal(amount)
    if is_expense is None:
        is_expense = value < 0
    return abs(value), is_expense


def derive_status(amount: Decimal, paid_amount: Optional[Decimal]) -> TransactionStatus:
    """Derive payment status from the paid amount."""
    paid = paid_amount or ZERO
    if paid >= amount and paid > 0:
        return TransactionStatus.PAID
    if paid > 0:
        return TransactionStatus.PARTIAL
    return TransactionStatus.UNPAID


def build_transaction(
    title: str,
    amount: AmountLike,
    date: date,
    category: str = "",
    is_expense: Optional[bool] = None,
    paid_amount: Optional[AmountLike] = None,
    status: Optional[TransactionStatus] = None,
    id: Optional[Union[str, int]] = None,
    is_carried_forward: bool = False,
    carried_from_id: Optional[Union[str, int]] = None,
) -> Transaction:
    """Build a normalized Transaction from raw input.

    Status is derived from ``paid_amount`` when a paid amount is given. When
    only a status is given (records without a paid amount), ``PAID`` is
    honoured by treating the full amount as paid.

    Raises:
        ValidationError: If the paid amount is negative or exceeds the amount
    """
    magnitude, expense = normalize_direction(to_cents(amount), is_expense)

    paid = to_cents(paid_amount) if paid_amount is not None else None
    if paid is not None and (paid < 0 or paid > magnitude):
        raise ValidationError(invalid_paid_amount(paid, magnitude))

    if paid is None and status == TransactionStatus.PAID:
        paid = magnitude

    return Transaction(
        id=str(id) if id is not None else None,
        title=title or "",
        amount=magnitude,
        is_expense=expense,
        date=date,
        category=category or "",
        status=derive_status(magnitude, paid),
        paid_amount=paid,
        is_carried_forward=is_carried_forward,
        carried_from_id=str(carried_from_id) if carried_from_id is not None else None,
    )


def apply_payment(txn: Transaction, amount: AmountLike) -> Transaction:
    """Return a copy of ``txn`` with a payment recorded.

    The new paid amount is the existing paid amount plus ``amount``, clamped to
    the transaction amount, so repeated payments never decrease it and never
    overshoot.

    Raises:
        ValidationError: If amount is not positive
    """
    payment = to_cents(amount)
    if payment <= 0:
        raise ValidationError(invalid_payment(payment))

    paid = min((txn.paid_amount or ZERO) + payment, txn.amount)
    return replace(txn, paid_amount=paid, status=derive_status(txn.amount, paid))



"""Monthly aggregation of transactions into a snapshot.

Everything here is a pure function of its inputs. The snapshot is rebuilt
from scratch on every update rather than patched, so derived fields can never
drift apart.
"""

from collections import Counter, defaultdict
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from financeflow.domain.entities import (
    ZERO,
    Month,
    MonthlySnapshot,
    Transaction,
    TransactionStatus,
)

RECENT_LIMIT = 5
PAYEE_LIMIT = 3


def filter_month(transactions: Iterable[Transaction], month: Month) -> list[Transaction]:
    """Keep only transactions dated within ``month``."""
    return [txn for txn in transactions if month.contains(txn.date)]


def income_total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((txn.amount for txn in transactions if not txn.is_expense), ZERO)


def expense_total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((txn.amount for txn in transactions if txn.is_expense), ZERO)


def category_totals(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Sum expense amounts per category. Income is excluded."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if txn.is_expense:
            totals[txn.category] += txn.amount
    return dict(totals)


def unpaid_total(transactions: Iterable[Transaction]) -> Decimal:
    """Sum what is still owed across transactions that are not fully paid."""
    return sum(
        (txn.remaining_amount for txn in transactions if txn.status != TransactionStatus.PAID),
        ZERO,
    )


def recent_transactions(
    transactions: Iterable[Transaction], limit: int = RECENT_LIMIT
) -> list[Transaction]:
    """Newest first, truncated to ``limit``."""
    ordered = sorted(transactions, key=lambda txn: txn.date, reverse=True)
    return ordered[:limit]


def frequent_payees(transactions: Iterable[Transaction], limit: int = PAYEE_LIMIT) -> list[str]:
    """Most common transaction titles, most frequent first (ties alphabetical)."""
    counts = Counter(txn.title for txn in transactions if txn.title)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [title for title, _ in ranked[:limit]]


def by_category(transactions: Iterable[Transaction], category: str) -> list[Transaction]:
    return [txn for txn in transactions if txn.category == category]


def by_status(transactions: Iterable[Transaction], status: TransactionStatus) -> list[Transaction]:
    return [txn for txn in transactions if txn.status == status]


def unpaid_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [txn for txn in transactions if txn.status != TransactionStatus.PAID]


def carried_forward_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [txn for txn in transactions if txn.is_carried_forward]


def in_categories(
    transactions: Iterable[Transaction], categories: Iterable[str]
) -> list[Transaction]:
    wanted = set(categories)
    return [txn for txn in transactions if txn.category in wanted]


def aggregate_month(
    transactions: Sequence[Transaction],
    month: Month,
    reset_categories: Optional[Iterable[str]] = None,
    recent_limit: int = RECENT_LIMIT,
    payee_limit: int = PAYEE_LIMIT,
) -> MonthlySnapshot:
    """Build the snapshot for ``month`` from an unordered transaction set.

    Transactions outside the month are ignored, so callers may pass a
    pre-filtered remote result or a wider local list and get the same answer.

    Args:
        transactions: Transactions in any order
        month: Target month
        reset_categories: Categories whose totals start from zero each month
        recent_limit: Maximum length of the recent list
        payee_limit: Maximum number of frequent payees

    Returns:
        MonthlySnapshot for the month (all zeros when nothing matches)
    """
    in_month = filter_month(transactions, month)
    if not in_month:
        return MonthlySnapshot.empty(month)

    income = income_total(in_month)
    expenses = expense_total(in_month)

    return MonthlySnapshot(
        month=month,
        income=income,
        expenses=expenses,
        balance=income - expenses,
        category_totals=category_totals(in_month),
        unpaid_total=unpaid_total(in_month),
        recent=tuple(recent_transactions(in_month, recent_limit)),
        transactions=tuple(sorted(in_month, key=lambda txn: txn.date, reverse=True)),
        carried_forward=tuple(carried_forward_transactions(in_month)),
        reset_eligible=tuple(in_categories(in_month, reset_categories or ())),
        frequent_payees=tuple(frequent_payees(in_month, payee_limit)),
    )

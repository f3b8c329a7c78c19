"""Domain model entities for financeflow.

These are pure data classes representing business concepts, independent of
the storage backend. Both the local SQL store and the remote document store
map their records onto these types at the boundary.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional
import calendar

from dateutil.relativedelta import relativedelta

ZERO = Decimal("0")


class TransactionStatus(str, Enum):
    """Payment state of a transaction."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class DataSourceMode(str, Enum):
    """Which store backs reads and writes."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True, order=True)
class Month:
    """A calendar month (year + month)."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Invalid month: {self.month}")

    @classmethod
    def from_date(cls, value: date) -> "Month":
        return cls(value.year, value.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    def contains(self, value: date) -> bool:
        """Return True if the date falls within this month."""
        return value.year == self.year and value.month == self.month

    def days(self) -> list[date]:
        """Every calendar day of the month, in order."""
        return [self.first_day + timedelta(days=i) for i in range(self.days_in_month)]

    def next(self) -> "Month":
        return Month.from_date(self.first_day + relativedelta(months=1))

    def previous(self) -> "Month":
        return Month.from_date(self.first_day - relativedelta(months=1))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity.

    ``amount`` is always a non-negative magnitude; ``is_expense`` carries the
    direction. Use :func:`financeflow.domain.rules.build_transaction` to
    construct normalized instances from raw input.
    """

    id: Optional[str]
    title: str
    amount: Decimal
    is_expense: bool
    date: date
    category: str = ""
    status: TransactionStatus = TransactionStatus.UNPAID
    paid_amount: Optional[Decimal] = None
    is_carried_forward: bool = False
    carried_from_id: Optional[str] = None

    @property
    def remaining_amount(self) -> Decimal:
        """Amount still owed on this transaction."""
        return self.amount - (self.paid_amount or ZERO)

    @property
    def signed_amount(self) -> Decimal:
        """Net effect on the balance: negative for expenses."""
        return -self.amount if self.is_expense else self.amount


@dataclass(frozen=True)
class MonthlySnapshot:
    """Derived aggregates for one month. Never persisted, never patched."""

    month: Month
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    balance: Decimal = ZERO
    category_totals: dict[str, Decimal] = field(default_factory=dict)
    unpaid_total: Decimal = ZERO
    recent: tuple[Transaction, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    carried_forward: tuple[Transaction, ...] = ()
    reset_eligible: tuple[Transaction, ...] = ()
    frequent_payees: tuple[str, ...] = ()

    @classmethod
    def empty(cls, month: Month) -> "MonthlySnapshot":
        return cls(month=month)

    @property
    def is_empty(self) -> bool:
        return not self.transactions


@dataclass(frozen=True)
class CashFlowPoint:
    """One day of a cash-flow series."""

    date: date
    balance: Decimal
    income: Decimal = ZERO
    expense: Decimal = ZERO


@dataclass(frozen=True)
class CashFlowSeries:
    """Historical (actual) and forecast (projected) balance curves for a month."""

    month: Month
    historical: tuple[CashFlowPoint, ...] = ()
    forecast: tuple[CashFlowPoint, ...] = ()

    @property
    def points(self) -> tuple[CashFlowPoint, ...]:
        return self.historical + self.forecast

    @property
    def projected_month_end(self) -> Decimal:
        """Balance at the last day of the month, actual or projected."""
        points = self.points
        return points[-1].balance if points else ZERO


@dataclass(frozen=True)
class CarryForwardResult:
    """Outcome of a monthly carry-forward run."""

    success: bool
    carried: tuple[Transaction, ...] = ()
    skipped: tuple[Transaction, ...] = ()
    reset: tuple[Transaction, ...] = ()
    error: Optional[str] = None

    @property
    def carried_total(self) -> Decimal:
        return sum((txn.amount for txn in self.carried), ZERO)


@dataclass(frozen=True)
class DashboardState:
    """Consolidated view-model state published to observers."""

    mode: DataSourceMode
    selected_month: Month
    snapshot: MonthlySnapshot
    cash_flow: CashFlowSeries
    loading: bool = False
    error: Optional[str] = None
    budget: Decimal = ZERO

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self.snapshot.transactions

    @property
    def budget_remaining(self) -> Decimal:
        return self.budget - self.snapshot.expenses

"""Cash-flow projection for the active month.

The forecast is a heuristic, not a guarantee. It extends the average daily net
movement observed so far and subtracts bills already known to fall due. It
will be wrong whenever spending is lumpy; that is accepted.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from financeflow.domain.entities import (
    ZERO,
    CashFlowPoint,
    CashFlowSeries,
    Month,
    Transaction,
)


def elapsed_days(month: Month, today: date) -> int:
    """Number of days of ``month`` that have already happened, today included."""
    if today < month.first_day:
        return 0
    if today > month.last_day:
        return month.days_in_month
    return today.day


def daily_movements(
    transactions: Iterable[Transaction], month: Month
) -> dict[date, tuple[Decimal, Decimal]]:
    """Map each day of the month to its (income, expense) totals."""
    income: dict[date, Decimal] = defaultdict(lambda: ZERO)
    expense: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if not month.contains(txn.date):
            continue
        if txn.is_expense:
            expense[txn.date] += txn.amount
        else:
            income[txn.date] += txn.amount
    return {day: (income[day], expense[day]) for day in set(income) | set(expense)}


def bills_by_date(bills: Iterable[Transaction]) -> dict[date, Decimal]:
    """Sum upcoming bill amounts that share a due date."""
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for bill in bills:
        totals[bill.date] += bill.remaining_amount
    return dict(totals)


def build_historical(
    transactions: Iterable[Transaction], month: Month, today: date
) -> list[CashFlowPoint]:
    """One point per elapsed day with the actual running balance."""
    movements = daily_movements(transactions, month)
    points: list[CashFlowPoint] = []
    balance = ZERO
    for day in month.days()[: elapsed_days(month, today)]:
        income, expense = movements.get(day, (ZERO, ZERO))
        balance += income - expense
        points.append(CashFlowPoint(date=day, balance=balance, income=income, expense=expense))
    return points


def build_forecast(
    historical: list[CashFlowPoint],
    upcoming_bills: Iterable[Transaction],
    month: Month,
    today: date,
) -> list[CashFlowPoint]:
    """One projected point per remaining day of the month."""
    start_balance = historical[-1].balance if historical else ZERO
    average = start_balance / len(historical) if historical else ZERO
    due = bills_by_date(upcoming_bills)

    points: list[CashFlowPoint] = []
    balance = start_balance
    for day in month.days()[elapsed_days(month, today):]:
        balance += average
        balance -= due.get(day, ZERO)
        points.append(CashFlowPoint(date=day, balance=balance))
    return points


def project_cash_flow(
    transactions: Iterable[Transaction],
    upcoming_bills: Iterable[Transaction],
    month: Month,
    today: date,
) -> CashFlowSeries:
    """Compute historical and forecast balance curves for ``month``.

    Args:
        transactions: The month's transactions
        upcoming_bills: Future-dated obligations (matched to forecast days by exact date)
        month: Active month
        today: Current date; splits history from forecast

    Returns:
        CashFlowSeries whose two segments cover every day of the month exactly once
    """
    historical = build_historical(list(transactions), month, today)
    forecast = build_forecast(historical, upcoming_bills, month, today)
    return CashFlowSeries(month=month, historical=tuple(historical), forecast=tuple(forecast))

"""Domain layer for financeflow application."""

from financeflow.domain.entities import (
    CarryForwardResult,
    CashFlowPoint,
    CashFlowSeries,
    DashboardState,
    DataSourceMode,
    Month,
    MonthlySnapshot,
    Transaction,
    TransactionStatus,
)

__all__ = [
    "CarryForwardResult",
    "CashFlowPoint",
    "CashFlowSeries",
    "DashboardState",
    "DataSourceMode",
    "Month",
    "MonthlySnapshot",
    "Transaction",
    "TransactionStatus",
]

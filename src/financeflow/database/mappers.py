"""Mapper functions between domain entities and storage records.

The SQL store keeps integer ids and ``Date`` columns; the document store keeps
string ids and datetime values. Both are normalized to the same domain
Transaction here, so nothing past this module sees backend differences.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from financeflow.database.models import Transaction as ORMTransaction
from financeflow.domain import entities as domain
from financeflow.domain.rules import build_transaction


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return build_transaction(
        id=orm_transaction.id,
        title=orm_transaction.title,
        amount=orm_transaction.amount,
        is_expense=orm_transaction.is_expense,
        date=orm_transaction.date,
        category=orm_transaction.category,
        paid_amount=orm_transaction.paid_amount,
        status=domain.TransactionStatus(orm_transaction.status),
        is_carried_forward=orm_transaction.is_carried_forward,
        carried_from_id=orm_transaction.carried_from_id,
    )


def apply_to_orm(txn: domain.Transaction, orm_transaction: ORMTransaction) -> ORMTransaction:
    """Copy domain Transaction fields onto a SQLAlchemy model."""
    orm_transaction.title = txn.title
    orm_transaction.amount = txn.amount
    orm_transaction.is_expense = txn.is_expense
    orm_transaction.date = txn.date
    orm_transaction.category = txn.category
    orm_transaction.status = txn.status.value
    orm_transaction.paid_amount = txn.paid_amount
    orm_transaction.is_carried_forward = txn.is_carried_forward
    orm_transaction.carried_from_id = txn.carried_from_id
    return orm_transaction


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def document_to_domain(doc_id: str, data: dict[str, Any]) -> domain.Transaction:
    """Convert a remote document to a domain Transaction.

    Documents written by older clients may lack ``isExpense``; the sign of the
    amount decides direction in that case.
    """
    status = data.get("status")
    return build_transaction(
        id=doc_id,
        title=data.get("title", ""),
        amount=_to_decimal(data.get("amount", 0)),
        is_expense=data.get("isExpense"),
        date=_to_date(data["date"]),
        category=data.get("category", ""),
        paid_amount=_to_decimal(data.get("paidAmount")),
        status=domain.TransactionStatus(status) if status else None,
        is_carried_forward=bool(data.get("isCarriedForward", False)),
        carried_from_id=data.get("carriedFromId"),
    )


def domain_to_document(txn: domain.Transaction) -> dict[str, Any]:
    """Convert a domain Transaction to a remote document body."""
    return {
        "title": txn.title,
        "amount": str(txn.amount),
        "isExpense": txn.is_expense,
        "date": datetime(txn.date.year, txn.date.month, txn.date.day),
        "category": txn.category,
        "status": txn.status.value,
        "paidAmount": str(txn.paid_amount) if txn.paid_amount is not None else None,
        "isCarriedForward": txn.is_carried_forward,
        "carriedFromId": txn.carried_from_id,
    }
